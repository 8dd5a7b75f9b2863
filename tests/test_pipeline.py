"""Tests for the verification orchestrator in acad_verify/pipeline.py."""

from unittest.mock import MagicMock

import pytest

from acad_verify import pipeline
from acad_verify.errors import OcrError, VerificationError
from acad_verify.models import CertificateDetails, Method, Status, VerificationVerdict
from acad_verify.pipeline import CertificateVerifier, apply_name_check, names_match, verify_certificate

URL = "https://credly.com/badges/abc123"


def _online_verdict(status=Status.VALID, recipient="") -> VerificationVerdict:
    return VerificationVerdict(
        status=status,
        verification_method=Method.SCRAPING,
        details=CertificateDetails(title="Badge", recipient_name=recipient),
        url=URL,
    )


def _make_verifier(code=None, ocr_text="", ocr_error=None, online=None, online_error=None):
    detector = MagicMock()
    detector.detect_file.return_value = code

    text_extractor = MagicMock()
    if ocr_error is not None:
        text_extractor.extract_text.side_effect = ocr_error
    else:
        text_extractor.extract_text.return_value = ocr_text

    online_verifier = MagicMock()
    if online_error is not None:
        online_verifier.verify.side_effect = online_error
    else:
        online_verifier.verify.return_value = online or _online_verdict()

    return CertificateVerifier(
        detector=detector,
        text_extractor=text_extractor,
        online_verifier=online_verifier,
    )


@pytest.fixture
def artifact(tmp_path):
    path = tmp_path / "certificate.png"
    path.write_bytes(b"\x89PNG fake upload")
    return str(path)


# ---------------------------------------------------------------------------
# QR code path
# ---------------------------------------------------------------------------
class TestCodePath:
    def test_code_found_and_valid(self, artifact) -> None:
        verifier = _make_verifier(code=URL)

        verdict = verifier.verify(artifact)

        assert verdict.status == Status.VALID
        assert verdict.verification_method == Method.QR_CODE
        assert verdict.extracted_url == URL
        verifier.online_verifier.verify.assert_called_once_with(URL)
        verifier.text_extractor.extract_text.assert_not_called()

    def test_bare_domain_code_gets_https(self, artifact) -> None:
        verifier = _make_verifier(code="credly.com/badges/x")

        verdict = verifier.verify(artifact)

        verifier.online_verifier.verify.assert_called_once_with("https://credly.com/badges/x")
        assert verdict.status == Status.VALID
        assert verdict.extracted_url == "https://credly.com/badges/x"

    def test_non_url_code_is_passed_through(self, artifact) -> None:
        verifier = _make_verifier(code="SERIAL 12345", online_error=VerificationError("Verification failed: bad url"))

        verdict = verifier.verify(artifact)

        verifier.online_verifier.verify.assert_called_once_with("SERIAL 12345")
        assert verdict.status == Status.ERROR
        assert verdict.extracted_url == "SERIAL 12345"

    def test_code_found_unknown_page(self, artifact) -> None:
        verifier = _make_verifier(code=URL, online=_online_verdict(Status.UNKNOWN))
        verdict = verifier.verify(artifact)
        assert verdict.status == Status.UNKNOWN
        assert verdict.verification_method == Method.QR_CODE

    def test_code_found_verification_fails(self, artifact) -> None:
        verifier = _make_verifier(code=URL, online_error=VerificationError("Verification failed: boom"))

        verdict = verifier.verify(artifact)

        assert verdict.status == Status.ERROR
        assert verdict.verification_method == Method.QR_CODE
        assert verdict.extracted_url == URL
        assert verdict.reason.startswith("QR code found but verification failed:")
        assert verdict.details is None


# ---------------------------------------------------------------------------
# OCR path
# ---------------------------------------------------------------------------
class TestOcrPath:
    def test_url_in_ocr_text_is_verified(self, artifact) -> None:
        text = "Certificate of Completion\nVerify at coursera.org/verify/XYZ\n"
        verifier = _make_verifier(ocr_text=text)

        verdict = verifier.verify(artifact)

        verifier.online_verifier.verify.assert_called_once_with("https://coursera.org/verify/XYZ")
        assert verdict.status == Status.VALID
        assert verdict.verification_method == Method.OCR_ONLINE
        assert verdict.extracted_url == "https://coursera.org/verify/XYZ"
        assert verdict.ocr_text == text

    def test_url_verification_failure(self, artifact) -> None:
        verifier = _make_verifier(
            ocr_text="https://unstop.com/certificate-preview/1",
            online_error=VerificationError("Verification failed: x. Browser automation also failed: y"),
        )

        verdict = verifier.verify(artifact)

        assert verdict.status == Status.ERROR
        assert verdict.verification_method == Method.OCR
        assert verdict.reason.startswith("URL found in certificate but verification failed:")
        assert verdict.ocr_text

    def test_keywords_without_url_is_partial(self, artifact) -> None:
        verifier = _make_verifier(ocr_text="This certificate is awarded to Jane Doe")

        verdict = verifier.verify(artifact)

        assert verdict.status == Status.PARTIAL
        assert verdict.verification_method == Method.OCR_TEXT
        assert verdict.found_keywords == ["certificate"]
        assert verdict.reason == "Certificate text detected but no verification URL found"
        verifier.online_verifier.verify.assert_not_called()

    def test_no_url_no_keywords_is_invalid(self, artifact) -> None:
        verdict = _make_verifier(ocr_text="hello world").verify(artifact)

        assert verdict.status == Status.INVALID
        assert verdict.verification_method == Method.OCR
        assert verdict.reason == "No certificate content or verification URL found"
        assert verdict.details is None

    def test_ocr_sample_is_truncated(self, artifact) -> None:
        text = "course " * 200
        verdict = _make_verifier(ocr_text=text).verify(artifact)
        assert len(verdict.ocr_text) == 500

    def test_invalid_sample_is_shorter(self, artifact) -> None:
        verdict = _make_verifier(ocr_text="z" * 1000).verify(artifact)
        assert verdict.status == Status.INVALID
        assert len(verdict.ocr_text) == 200

    def test_ocr_failure_is_error(self, artifact) -> None:
        verifier = _make_verifier(ocr_error=OcrError("OCR processing failed: cannot identify image file"))

        verdict = verifier.verify(artifact)

        assert verdict.status == Status.ERROR
        assert verdict.verification_method == Method.OCR
        assert verdict.reason == "OCR processing failed: cannot identify image file"


# ---------------------------------------------------------------------------
# Name matching
# ---------------------------------------------------------------------------
class TestNameMatching:
    def test_mismatch_overrides_valid(self, artifact) -> None:
        verifier = _make_verifier(code=URL, online=_online_verdict(recipient="John Smith"))

        verdict = verifier.verify(artifact, "Jon Smith")

        assert verdict.status == Status.NAME_MISMATCH
        assert verdict.name_match is False
        assert "John Smith" in verdict.reason
        assert "Jon Smith" in verdict.reason

    def test_partial_name_matches(self, artifact) -> None:
        verifier = _make_verifier(code=URL, online=_online_verdict(recipient="Jane Alice Doe"))
        verdict = verifier.verify(artifact, "jane alice")
        assert verdict.status == Status.VALID
        assert verdict.name_match is True

    def test_caller_name_containing_recipient_matches(self, artifact) -> None:
        verifier = _make_verifier(code=URL, online=_online_verdict(recipient="Doe"))
        verdict = verifier.verify(artifact, "Jane Doe")
        assert verdict.name_match is True

    def test_skipped_without_recipient(self, artifact) -> None:
        verdict = _make_verifier(code=URL).verify(artifact, "Jane Doe")
        assert verdict.status == Status.VALID
        assert verdict.name_match is None

    def test_skipped_without_caller_name(self, artifact) -> None:
        verifier = _make_verifier(code=URL, online=_online_verdict(recipient="John Smith"))
        verdict = verifier.verify(artifact)
        assert verdict.name_match is None
        assert "nameMatch" not in verdict.to_dict()

    def test_names_match_both_directions(self) -> None:
        assert names_match("John Smith", "john")
        assert names_match("Smith", "John Smith")
        assert not names_match("John Smith", "Jon Smith")

    def test_apply_name_check_ignores_partial(self) -> None:
        verdict = VerificationVerdict(status=Status.PARTIAL, verification_method=Method.OCR_TEXT)
        assert apply_name_check(verdict, "Jane").status == Status.PARTIAL


# ---------------------------------------------------------------------------
# Robustness and cleanup
# ---------------------------------------------------------------------------
class TestCleanupAndErrors:
    def test_artifact_removed_after_success(self, artifact) -> None:
        _make_verifier(code=URL).verify(artifact)
        assert not pipeline.os.path.exists(artifact)

    def test_artifact_removed_after_ocr_failure(self, artifact) -> None:
        _make_verifier(ocr_error=OcrError("OCR processing failed: x")).verify(artifact)
        assert not pipeline.os.path.exists(artifact)

    def test_unexpected_exception_becomes_error_verdict(self, artifact) -> None:
        verifier = _make_verifier()
        verifier.detector.detect_file.side_effect = MemoryError("out of memory")

        verdict = verifier.verify(artifact)

        assert verdict.status == Status.ERROR
        assert verdict.verification_method == Method.ERROR
        assert verdict.reason == "Certificate verification failed: out of memory"
        assert not pipeline.os.path.exists(artifact)

    def test_unexpected_online_exception_is_contained(self, artifact) -> None:
        verdict = _make_verifier(code=URL, online_error=KeyError("details")).verify(artifact)
        assert verdict.status == Status.ERROR

    def test_missing_artifact_is_tolerated(self, tmp_path) -> None:
        verdict = _make_verifier(ocr_text="hello").verify(str(tmp_path / "gone.png"))
        assert verdict.status == Status.INVALID

    def test_same_input_same_status(self, tmp_path) -> None:
        statuses = []
        for i in range(2):
            path = tmp_path / f"copy{i}.png"
            path.write_bytes(b"same bytes")
            verifier = _make_verifier(code=URL, online=_online_verdict(recipient="John Smith"))
            statuses.append(verifier.verify(str(path), "Jon Smith").status)
        assert statuses[0] == statuses[1] == Status.NAME_MISMATCH


class TestModuleEntryPoint:
    def test_verify_certificate_uses_default_verifier(self, monkeypatch, artifact) -> None:
        verifier = _make_verifier(ocr_text="Course completion record")
        monkeypatch.setattr(pipeline, "_default_verifier", verifier)

        verdict = verify_certificate(artifact, None)

        assert verdict.status == Status.PARTIAL
        assert verdict.found_keywords == ["completion", "course"]
