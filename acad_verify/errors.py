"""Exceptions raised by the verification pipeline."""


class CertificateVerificationError(Exception):
    """Base class for pipeline failures"""


class OcrError(CertificateVerificationError):
    """The OCR engine could not process the uploaded image"""


class FetchVerificationError(CertificateVerificationError):
    """Lightweight HTTP verification failed (network, status or parse error)"""


class BrowserVerificationError(CertificateVerificationError):
    """Headless browser verification failed"""


class VerificationError(CertificateVerificationError):
    """Both online verification tiers failed"""

    def __init__(self, message, fetch_error=None, browser_error=None):
        super().__init__(message)
        self.fetch_error = fetch_error
        self.browser_error = browser_error
