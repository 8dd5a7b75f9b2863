"""
Certificate verification orchestrator.

QR detection runs first; when no code is found the raw image goes through
OCR and the text is searched for a verification URL. Whatever path is
taken, the caller always gets a VerificationVerdict back and the uploaded
file is removed.
"""

import os
import logging
import traceback

from . import config
from .detector import CodeDetector
from .errors import OcrError, VerificationError
from .models import Method, Status, VerificationVerdict
from .ocr import TextExtractor
from .urls import extract_url, normalize_url
from .verifier import OnlineVerifier

logger = logging.getLogger(__name__)

CERTIFICATE_KEYWORDS = ['certificate', 'certified', 'completion', 'achievement', 'course', 'program']


def find_certificate_keywords(text):
    lowered = (text or '').lower()
    return [k for k in CERTIFICATE_KEYWORDS if k in lowered]


def names_match(recipient_name, caller_name):
    """Case-insensitive substring match in either direction"""
    recipient = recipient_name.lower()
    caller = caller_name.lower()
    return caller in recipient or recipient in caller


def apply_name_check(verdict, caller_name):
    """Demote the verdict to NameMismatch when the scraped recipient differs from caller_name"""
    if not caller_name or verdict.details is None or not verdict.details.recipient_name:
        return verdict

    recipient = verdict.details.recipient_name
    verdict.name_match = names_match(recipient, caller_name)
    if not verdict.name_match:
        logger.info(f"Name mismatch: recipient '{recipient}' vs provided '{caller_name}'")
        verdict.status = Status.NAME_MISMATCH
        verdict.reason = f'Certificate recipient "{recipient}" does not match provided name "{caller_name}"'
    return verdict


def remove_artifact(image_path):
    try:
        if image_path and os.path.exists(image_path):
            os.remove(image_path)
            logger.info("Cleaned up uploaded file")
    except OSError as e:
        logger.error(f"Failed to cleanup file {image_path}: {e}")


class CertificateVerifier:
    """Runs detection, OCR, URL extraction and online verification in order"""

    def __init__(self, detector=None, text_extractor=None, online_verifier=None, url_extractor=None):
        self.detector = detector or CodeDetector()
        self.text_extractor = text_extractor or TextExtractor()
        self.online_verifier = online_verifier or OnlineVerifier()
        self.url_extractor = url_extractor or extract_url

    def _verify_code(self, payload):
        logger.info("QR code found, attempting to verify...")
        # bare domains get https://; anything that is not a URL goes through unchanged
        url = normalize_url(payload) or payload
        try:
            verdict = self.online_verifier.verify(url)
        except VerificationError as e:
            logger.error(f"QR verification failed: {e}")
            return VerificationVerdict(
                status=Status.ERROR,
                verification_method=Method.QR_CODE,
                extracted_url=url,
                reason=f"QR code found but verification failed: {e}",
            )
        verdict.verification_method = Method.QR_CODE
        verdict.extracted_url = url
        return verdict

    def _verify_text(self, image_path):
        try:
            ocr_text = self.text_extractor.extract_text(image_path)
        except OcrError as e:
            logger.error(f"OCR process failed: {e}")
            return VerificationVerdict(
                status=Status.ERROR,
                verification_method=Method.OCR,
                reason=str(e),
            )

        logger.info(f"OCR text sample: {ocr_text[:200]}...")
        sample = ocr_text[:config.OCR_SAMPLE_LENGTH]
        url = self.url_extractor(ocr_text)

        if url:
            logger.info("URL found in OCR text, attempting to verify...")
            try:
                verdict = self.online_verifier.verify(url)
            except VerificationError as e:
                logger.error(f"OCR URL verification failed: {e}")
                return VerificationVerdict(
                    status=Status.ERROR,
                    verification_method=Method.OCR,
                    extracted_url=url,
                    ocr_text=sample,
                    reason=f"URL found in certificate but verification failed: {e}",
                )
            verdict.verification_method = Method.OCR_ONLINE
            verdict.extracted_url = url
            verdict.ocr_text = sample
            return verdict

        keywords = find_certificate_keywords(ocr_text)
        if keywords:
            return VerificationVerdict(
                status=Status.PARTIAL,
                verification_method=Method.OCR_TEXT,
                found_keywords=keywords,
                ocr_text=sample,
                reason='Certificate text detected but no verification URL found',
            )

        return VerificationVerdict(
            status=Status.INVALID,
            verification_method=Method.OCR,
            ocr_text=ocr_text[:config.OCR_SHORT_SAMPLE_LENGTH],
            reason='No certificate content or verification URL found',
        )

    def verify(self, image_path, caller_name=None):
        """Verify the certificate image at `image_path`; the file is deleted afterwards"""
        logger.info(f"Verifying certificate {image_path} (provided name: {caller_name!r})")
        try:
            logger.info("Step 1: Attempting QR code detection...")
            payload = self.detector.detect_file(image_path)

            if payload:
                verdict = self._verify_code(payload)
            else:
                logger.info("Step 2: Attempting OCR...")
                verdict = self._verify_text(image_path)

            return apply_name_check(verdict, caller_name)

        except Exception as e:
            logger.error(f"Verification process failed: {e}")
            logger.error(traceback.format_exc())
            return VerificationVerdict(
                status=Status.ERROR,
                verification_method=Method.ERROR,
                reason=f"Certificate verification failed: {e}",
            )
        finally:
            remove_artifact(image_path)


_default_verifier = None


def verify_certificate(image_path, caller_name=None):
    """Verify with process-wide default components"""
    global _default_verifier
    if _default_verifier is None:
        _default_verifier = CertificateVerifier()
    return _default_verifier.verify(image_path, caller_name)
