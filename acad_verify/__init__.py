"""ACAD certificate verification: QR/OCR extraction and online confirmation of certificate URLs."""

__version__ = "1.0.0"

from .models import CertificateDetails, Method, Status, VerificationVerdict
from .pipeline import CertificateVerifier, verify_certificate

__all__ = [
    "CertificateDetails",
    "CertificateVerifier",
    "Method",
    "Status",
    "VerificationVerdict",
    "verify_certificate",
]
