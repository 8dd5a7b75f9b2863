"""
Verification URL extraction from OCR text.

Three pattern families are scanned in order (scheme-qualified URLs, bare
domains, known certificate platforms) and every match is collected. After
deduplication and normalization the first valid URL wins; there is no
ranking between families.
"""

import re
import logging
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)

CERTIFICATE_PLATFORMS = [
    'credly.com', 'coursera.org', 'edx.org', 'udemy.com', 'linkedin.com/learning',
    'skillshare.com', 'udacity.com', 'codecademy.com', 'freecodecamp.org',
    'khanacademy.org', 'pluralsight.com', 'treehouse.com', 'adobe.com',
    'microsoft.com', 'google.com', 'amazon.com', 'ibm.com', 'oracle.com',
    'salesforce.com', 'unstop.com',
]

URL_PATTERNS = [
    # Scheme-qualified
    re.compile(r'https?://\S+', re.IGNORECASE),
    # Bare domain with optional path
    re.compile(r'(?:www\.)?[a-z0-9][a-z0-9-]*[a-z0-9]*\.[a-z]{2,}(?:/\S*)?', re.IGNORECASE),
    # Known platforms
    re.compile(
        r'(?:' + '|'.join(re.escape(p) for p in CERTIFICATE_PLATFORMS) + r')\S*',
        re.IGNORECASE,
    ),
]

SCHEME_RE = re.compile(r'^https?://', re.IGNORECASE)
TRAILING_PUNCTUATION = '.,;:!?)]}>\'"'


def _normalize(candidate):
    url = candidate.strip().rstrip(TRAILING_PUNCTUATION)
    if url and not SCHEME_RE.match(url):
        url = 'https://' + url
    return url


def is_valid_url(url):
    """Well-formed absolute http(s) URL with a host"""
    try:
        parts = urlsplit(url)
        # Accessing port validates it
        parts.port
    except ValueError:
        return False
    if parts.scheme.lower() not in ('http', 'https'):
        return False
    return bool(parts.hostname)


def normalize_url(candidate):
    """`candidate` as an absolute https URL, or None when it is not one"""
    url = _normalize(candidate or '')
    if not url or any(c.isspace() for c in url):
        return None
    return url if is_valid_url(url) else None


def find_candidates(text):
    """All raw pattern matches in family order, first occurrence kept"""
    seen = set()
    candidates = []
    for pattern in URL_PATTERNS:
        for match in pattern.findall(text or ''):
            if match not in seen:
                seen.add(match)
                candidates.append(match)
    return candidates


def extract_urls(text):
    urls = []
    for candidate in find_candidates(text):
        url = normalize_url(candidate)
        if url and url not in urls:
            urls.append(url)
    logger.info(f"Extracted URLs: {urls}")
    return urls


def extract_url(text):
    """First valid verification URL found in `text`, or None"""
    logger.info("Extracting URL from text...")
    urls = extract_urls(text)
    return urls[0] if urls else None
