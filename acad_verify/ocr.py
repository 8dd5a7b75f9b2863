"""
Tesseract OCR over the raw uploaded image.
"""

import logging
import time

import pytesseract
from PIL import Image

from . import config
from .errors import OcrError

logger = logging.getLogger(__name__)

if config.TESSERACT_CMD:
    pytesseract.pytesseract.tesseract_cmd = config.TESSERACT_CMD


def tesseract_version():
    """Installed Tesseract version as a string, or None when unavailable"""
    try:
        return str(pytesseract.get_tesseract_version())
    except Exception as e:
        logger.debug(f"Tesseract not available: {e}")
        return None


class TextExtractor:
    """Runs OCR against the unmodified image and returns all recognized text"""

    def __init__(self, lang=None, tesseract_config=None):
        self.lang = lang or config.OCR_LANG
        self.tesseract_config = config.OCR_CONFIG if tesseract_config is None else tesseract_config

    def extract_text(self, image_path):
        logger.info("Starting OCR process...")
        start_time = time.time()

        try:
            with Image.open(image_path) as image:
                image.load()
                text = pytesseract.image_to_string(image, lang=self.lang, config=self.tesseract_config)
        except Exception as e:
            logger.error(f"OCR failed: {e}")
            raise OcrError(f"OCR processing failed: {e}") from e

        elapsed = round(time.time() - start_time, 2)
        logger.info(f"OCR completed in {elapsed}s. Extracted text length: {len(text)}")
        return text
