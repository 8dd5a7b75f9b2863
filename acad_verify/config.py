"""
Runtime configuration for the ACAD certificate verifier.
Every setting can be overridden with an ACAD_* environment variable.
"""

import os
import tempfile


def _env_int(name, default):
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    return int(value)


def _env_float(name, default):
    value = os.getenv(name)
    if value is None or value.strip() == '':
        return default
    return float(value)


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# Upload handling
UPLOAD_FOLDER = os.getenv('ACAD_UPLOAD_FOLDER') or tempfile.mkdtemp(prefix='acad_uploads_')
MAX_CONTENT_LENGTH = _env_int('ACAD_MAX_UPLOAD_MB', 50) * 1024 * 1024
UPLOAD_MAX_AGE = _env_int('ACAD_UPLOAD_MAX_AGE', 600)
CLEANUP_INTERVAL = _env_int('ACAD_CLEANUP_INTERVAL', 60)

# Code detection
MAX_DETECTION_ATTEMPTS = max(1, min(12, _env_int('ACAD_MAX_DETECTION_ATTEMPTS', 12)))
DETECTION_ATTEMPT_TIMEOUT = _env_float('ACAD_DETECTION_ATTEMPT_TIMEOUT', 10.0)
MAX_SCALED_PIXELS = _env_int('ACAD_MAX_SCALED_PIXELS', 40_000_000)
QR_DECODER = os.getenv('ACAD_QR_DECODER', 'pyzbar').strip().lower()

# OCR
OCR_LANG = os.getenv('ACAD_OCR_LANG', 'eng')
OCR_CONFIG = os.getenv('ACAD_OCR_CONFIG', '--oem 3 --psm 3')
TESSERACT_CMD = os.getenv('ACAD_TESSERACT_CMD')
OCR_SAMPLE_LENGTH = 500
OCR_SHORT_SAMPLE_LENGTH = 200

# Online verification
FETCH_TIMEOUT = _env_float('ACAD_FETCH_TIMEOUT', 15.0)
DEBUG_FETCH_TIMEOUT = 10.0
BROWSER_ENABLED = _env_bool('ACAD_BROWSER_ENABLED', True)
BROWSER_TIMEOUT_MS = _env_int('ACAD_BROWSER_TIMEOUT_MS', 30000)
BROWSER_SETTLE_MS = _env_int('ACAD_BROWSER_SETTLE_MS', 3000)
USER_AGENT = (
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
)

LOG_LEVEL = os.getenv('ACAD_LOG_LEVEL', 'INFO').upper()


class Config:
    """Flask settings, loaded with app.config.from_object"""
    MAX_CONTENT_LENGTH = MAX_CONTENT_LENGTH
    UPLOAD_FOLDER = UPLOAD_FOLDER
    UPLOAD_MAX_AGE = UPLOAD_MAX_AGE
    CLEANUP_INTERVAL = CLEANUP_INTERVAL
    SECRET_KEY = os.getenv('ACAD_SECRET_KEY') or os.urandom(24)
