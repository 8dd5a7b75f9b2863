"""
QR code detection over a fixed, ordered list of preprocessing variants.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout

import cv2
import numpy as np
from PIL import Image

from . import config
from .models import DetectionAttempt
from .preprocess import STRATEGIES, preprocess

logger = logging.getLogger(__name__)


# =====================
# DECODERS
# =====================

def decode_with_pyzbar(image):
    """Decode the first QR symbol with zbar; returns None when nothing is found"""
    # zbar's shared library is loaded at import time
    from pyzbar import pyzbar

    for symbol in pyzbar.decode(image, symbols=[pyzbar.ZBarSymbol.QRCODE]):
        data = symbol.data.decode('utf-8', errors='ignore').strip()
        if data:
            return data
    return None


def decode_with_opencv(image):
    """Decode a single QR code with OpenCV's built-in detector"""
    array = np.array(image.convert('RGB'))
    bgr = cv2.cvtColor(array, cv2.COLOR_RGB2BGR)
    data, _points, _ = cv2.QRCodeDetector().detectAndDecode(bgr)
    data = (data or '').strip()
    return data or None


DECODERS = {
    'pyzbar': decode_with_pyzbar,
    'opencv': decode_with_opencv,
}


def get_decoder(name):
    try:
        return DECODERS[name]
    except KeyError:
        raise ValueError(f"Unknown QR decoder '{name}', expected one of: {', '.join(DECODERS)}")


# =====================
# DETECTOR
# =====================

class CodeDetector:
    """Tries each preprocessing variant in order until one decodes"""

    def __init__(self, decoder=None, max_attempts=None, attempt_timeout=None):
        if decoder is None:
            decoder = config.QR_DECODER
        self.decoder = get_decoder(decoder) if isinstance(decoder, str) else decoder
        max_attempts = max_attempts or config.MAX_DETECTION_ATTEMPTS
        self.max_attempts = max(1, min(max_attempts, len(STRATEGIES)))
        self.attempt_timeout = config.DETECTION_ATTEMPT_TIMEOUT if attempt_timeout is None else attempt_timeout

    def _attempt(self, image, index):
        processed = preprocess(image, index)
        return self.decoder(processed)

    def _run_attempt(self, image, index):
        if not self.attempt_timeout:
            return self._attempt(image, index)

        executor = ThreadPoolExecutor(max_workers=1)
        try:
            future = executor.submit(self._attempt, image, index)
            return future.result(timeout=self.attempt_timeout)
        finally:
            executor.shutdown(wait=False)

    def detect_with_attempts(self, image):
        """Return (payload or None, list of DetectionAttempt tried)"""
        attempts = []
        for strategy in STRATEGIES[:self.max_attempts]:
            attempts.append(DetectionAttempt(strategy.index, strategy.name))
            logger.info(f"QR detection attempt {strategy.index}/{self.max_attempts}: {strategy.name}")

            try:
                payload = self._run_attempt(image, strategy.index)
            except FutureTimeout:
                logger.warning(f"Attempt {strategy.index} timed out after {self.attempt_timeout}s")
                continue
            except ImportError as e:
                # every remaining variant would fail the same way
                logger.warning(f"QR decoder unavailable, skipping QR detection: {e}")
                return None, attempts
            except Exception as e:
                logger.debug(f"Attempt {strategy.index} failed: {e}")
                continue

            if payload:
                logger.info(f"QR code detected on attempt {strategy.index}: {payload}")
                return payload, attempts

        logger.info(f"No QR code detected after {len(attempts)} attempts")
        return None, attempts

    def detect(self, image):
        payload, _ = self.detect_with_attempts(image)
        return payload

    def detect_file(self, image_path):
        """Load and scan an image file; unreadable files count as 'not found'"""
        try:
            with Image.open(image_path) as img:
                img.load()
                image = img.copy()
        except Exception as e:
            logger.error(f"QR detection could not read image {image_path}: {e}")
            return None
        return self.detect(image)
