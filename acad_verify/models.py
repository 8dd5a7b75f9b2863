"""
Result types for one certificate verification run.
All of them are request-scoped; nothing here is persisted.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, NamedTuple, Optional


class Status(str, Enum):
    VALID = 'Valid'
    UNKNOWN = 'Unknown'
    PARTIAL = 'Partial'
    INVALID = 'Invalid'
    ERROR = 'Error'
    NAME_MISMATCH = 'NameMismatch'


class Method:
    QR_CODE = 'QR Code'
    OCR_ONLINE = 'OCR + Online Verification'
    OCR_TEXT = 'OCR Text Analysis'
    OCR = 'OCR'
    BROWSER = 'Browser Automation'
    SCRAPING = 'Online Scraping'
    ERROR = 'Error'


class DetectionAttempt(NamedTuple):
    """One preprocessing variant tried by the code detector"""
    index: int
    strategy: str


@dataclass
class CertificateDetails:
    """Certificate fields scraped from the verification page"""
    title: str = ''
    recipient_name: str = ''
    course_name: str = ''
    issuer: str = ''
    issue_date: str = ''

    def to_dict(self) -> Dict[str, str]:
        return {
            'title': self.title,
            'recipientName': self.recipient_name,
            'courseName': self.course_name,
            'issuer': self.issuer,
            'issueDate': self.issue_date,
        }


@dataclass
class VerificationVerdict:
    """
    Structured outcome of a verification run.

    `details` is only set on success-path verdicts and `reason` on
    failure or ambiguous ones. `to_dict` drops unset optional fields so
    the route can return it as the JSON body.
    """
    status: Status
    verification_method: str
    extracted_url: Optional[str] = None
    details: Optional[CertificateDetails] = None
    ocr_text: Optional[str] = None
    found_keywords: Optional[List[str]] = None
    name_match: Optional[bool] = None
    reason: Optional[str] = None
    url: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        data = {
            'status': Status(self.status).value,
            'verificationMethod': self.verification_method,
        }
        optional = (
            ('extractedUrl', self.extracted_url),
            ('details', self.details.to_dict() if self.details else None),
            ('ocrText', self.ocr_text),
            ('foundKeywords', list(self.found_keywords) if self.found_keywords is not None else None),
            ('nameMatch', self.name_match),
            ('reason', self.reason),
            ('url', self.url),
        )
        for key, value in optional:
            if value is not None:
                data[key] = value
        return data
