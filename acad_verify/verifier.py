"""
Online certificate verification.

Tier 1 fetches the verification page with requests and parses it with
BeautifulSoup. Only when that raises does tier 2 render the page in
headless Chromium through Playwright. Tiers are never raced.
"""

import logging

import requests
from bs4 import BeautifulSoup

from . import config
from .errors import BrowserVerificationError, FetchVerificationError, VerificationError
from .models import CertificateDetails, Method, Status, VerificationVerdict

HAS_PLAYWRIGHT = False
try:
    from playwright.sync_api import sync_playwright
    HAS_PLAYWRIGHT = True
except ImportError:
    print("Info: Playwright not available - browser verification disabled")

logger = logging.getLogger(__name__)

VERIFICATION_KEYWORDS = ['verified', 'valid', 'authentic', 'issued', 'certified', 'certificate']

REQUEST_HEADERS = {
    'User-Agent': config.USER_AGENT,
    'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
    'Accept-Language': 'en-US,en;q=0.5',
    'Accept-Encoding': 'gzip, deflate',
    'DNT': '1',
    'Connection': 'keep-alive',
    'Upgrade-Insecure-Requests': '1',
}

# Ordered (field, selectors) pairs; first selector with non-empty text wins
FIELD_SELECTORS = [
    ('recipient_name', ['.name', '.recipient-name', '.student-name', '[class*="name"]']),
    ('course_name', ['.course', '.program', '.certification', '[class*="course"]', '[class*="program"]']),
    ('issuer', ['.issuer', '.organization', '.company', '[class*="issuer"]', '[class*="org"]']),
    ('issue_date', ['.issue-date', '.date', 'time', '[class*="date"]']),
]

BROWSER_SELECTORS = [
    'h1', 'h2', 'h3',
    '.certificate-title', '.cert-title',
    '.name', '.recipient-name',
    '.course', '.program',
    '.issuer', '.organization',
    '.date', '.issue-date',
    '[class*="certificate"]',
    '[class*="cert"]',
    '[id*="certificate"]',
    '[id*="cert"]',
]

BROWSER_FIELD_SELECTORS = [
    ('recipient_name', ['.recipient-name', '.name']),
    ('course_name', ['.course', '.program']),
    ('issuer', ['.issuer', '.organization']),
    ('issue_date', ['.issue-date', '.date']),
]

BROWSER_LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-accelerated-2d-canvas',
    '--no-first-run',
    '--no-zygote',
    '--disable-gpu',
]

EXTRACT_CONTENT_JS = """
({selectors, keywords}) => {
    const texts = {};
    for (const selector of selectors) {
        try {
            const found = Array.from(document.querySelectorAll(selector))
                .map(el => (el.textContent || '').trim())
                .filter(text => text.length > 0);
            if (found.length > 0) {
                texts[selector] = found;
            }
        } catch (e) {
            // invalid selector for this document
        }
    }
    const body = document.body ? document.body.textContent.toLowerCase() : '';
    return {
        title: document.title || '',
        texts: texts,
        verificationIndicators: keywords.filter(keyword => body.includes(keyword)),
    };
}
"""

UNKNOWN_REASON = 'No verification evidence found on the certificate page'


def find_keywords(title, body):
    title = (title or '').lower()
    body = (body or '').lower()
    return [k for k in VERIFICATION_KEYWORDS if k in body or k in title]


def extract_details(soup, title):
    """Try FIELD_SELECTORS in order against parsed HTML"""
    details = CertificateDetails(title=title)
    for field_name, selectors in FIELD_SELECTORS:
        for selector in selectors:
            element = soup.select_one(selector)
            if element is None:
                continue
            text = element.get_text(' ', strip=True)
            if text:
                setattr(details, field_name, text)
                break
    return details


class BrowserRenderer:
    """Loads a page in headless Chromium and pulls certificate text out of the live DOM"""

    def __init__(self, timeout_ms=None, settle_ms=None):
        self.timeout_ms = config.BROWSER_TIMEOUT_MS if timeout_ms is None else timeout_ms
        self.settle_ms = config.BROWSER_SETTLE_MS if settle_ms is None else settle_ms

    def render(self, url):
        if not HAS_PLAYWRIGHT:
            raise BrowserVerificationError("Playwright is not installed")

        logger.info(f"Starting browser automation for: {url}")
        with sync_playwright() as playwright:
            browser = playwright.chromium.launch(headless=True, args=BROWSER_LAUNCH_ARGS)
            try:
                page = browser.new_page(
                    user_agent=config.USER_AGENT,
                    viewport={'width': 1280, 'height': 720},
                )
                logger.info("Navigating to URL...")
                response = page.goto(url, wait_until='networkidle', timeout=self.timeout_ms)
                if response is None:
                    raise BrowserVerificationError("No response received")
                if not response.ok:
                    raise BrowserVerificationError(f"HTTP {response.status}: {response.status_text}")

                page.wait_for_timeout(self.settle_ms)
                content = page.evaluate(
                    EXTRACT_CONTENT_JS,
                    {'selectors': BROWSER_SELECTORS, 'keywords': VERIFICATION_KEYWORDS},
                )
            finally:
                browser.close()

        logger.debug(f"Extracted content: {content}")
        return content


class OnlineVerifier:
    """Two-tier verification of a certificate URL"""

    def __init__(self, session=None, renderer=None, fetch_timeout=None, browser_enabled=None):
        self.session = session or requests.Session()
        self.renderer = renderer or BrowserRenderer()
        self.fetch_timeout = config.FETCH_TIMEOUT if fetch_timeout is None else fetch_timeout
        self.browser_enabled = config.BROWSER_ENABLED if browser_enabled is None else browser_enabled

    def fetch_page(self, url, timeout=None):
        response = self.session.get(
            url,
            headers=REQUEST_HEADERS,
            timeout=self.fetch_timeout if timeout is None else timeout,
        )
        response.raise_for_status()
        # bytes, so the page's <meta charset> decides the encoding
        return BeautifulSoup(response.content, 'html.parser')

    def _verify_with_fetch(self, url):
        try:
            soup = self.fetch_page(url)
            title = soup.title.get_text(strip=True) if soup.title else ''
            body = soup.body.get_text(' ', strip=True) if soup.body else soup.get_text(' ', strip=True)
            logger.info(f"Page title: {title}")

            keywords = find_keywords(title, body)
            logger.info(f"Found verification keywords: {keywords}")
            details = extract_details(soup, title)
        except Exception as e:
            raise FetchVerificationError(str(e)) from e

        status = Status.VALID if keywords else Status.UNKNOWN
        return VerificationVerdict(
            status=status,
            verification_method=Method.SCRAPING,
            details=details,
            reason=None if keywords else UNKNOWN_REASON,
            url=url,
        )

    def _verify_with_browser(self, url):
        try:
            content = self.renderer.render(url)
        except BrowserVerificationError:
            raise
        except Exception as e:
            raise BrowserVerificationError(str(e)) from e

        title = content.get('title') or ''
        texts = content.get('texts') or {}
        indicators = content.get('verificationIndicators') or []

        mentions_certificate = any(
            'certificate' in text.lower() or 'certified' in text.lower()
            for values in texts.values()
            for text in values
        )
        is_valid = bool(indicators) or 'certificate' in title.lower() or mentions_certificate

        details = CertificateDetails(title=title)
        for field_name, selectors in BROWSER_FIELD_SELECTORS:
            for selector in selectors:
                values = texts.get(selector)
                if values:
                    setattr(details, field_name, values[0])
                    break

        return VerificationVerdict(
            status=Status.VALID if is_valid else Status.UNKNOWN,
            verification_method=Method.BROWSER,
            details=details,
            reason=None if is_valid else UNKNOWN_REASON,
            url=url,
        )

    def verify(self, url):
        logger.info(f"Attempting online verification for: {url}")
        try:
            return self._verify_with_fetch(url)
        except FetchVerificationError as fetch_error:
            logger.warning(f"Online verification failed, trying browser automation... {fetch_error}")

            if not self.browser_enabled:
                browser_error = BrowserVerificationError("browser automation is disabled")
            else:
                try:
                    return self._verify_with_browser(url)
                except BrowserVerificationError as e:
                    browser_error = e

            logger.error(f"Browser automation also failed: {browser_error}")
            raise VerificationError(
                f"Verification failed: {fetch_error}. Browser automation also failed: {browser_error}",
                fetch_error=fetch_error,
                browser_error=browser_error,
            )
