"""
Image preprocessing variants used to make small or low-contrast QR codes
readable. Each variant is a fixed chain of Pillow operations; variants are
tried in index order by the code detector.
"""

import math
import logging
from typing import Callable, NamedTuple

from PIL import Image, ImageEnhance, ImageFilter, ImageOps

from . import config

logger = logging.getLogger(__name__)


class PreprocessStrategy(NamedTuple):
    index: int
    name: str
    apply: Callable[[Image.Image], Image.Image]


# =====================
# BASIC OPERATIONS
# =====================

def _contrast(image, factor):
    return ImageEnhance.Contrast(image).enhance(factor)


def _brightness(image, factor):
    return ImageEnhance.Brightness(image).enhance(factor)


def _greyscale(image):
    return ImageOps.grayscale(image)


def _normalize(image):
    return ImageOps.autocontrast(image)


def _invert(image):
    return ImageOps.invert(image)


def _posterize(image, levels):
    bits = max(1, int(math.log2(levels)))
    return ImageOps.posterize(image, bits)


def _sharpen(image):
    return image.filter(ImageFilter.SHARPEN)


def _scale(image, factor):
    """Upscale, shrinking the factor when the result would exceed MAX_SCALED_PIXELS"""
    width, height = image.size
    pixels = width * height
    if pixels * factor * factor > config.MAX_SCALED_PIXELS:
        factor = max(1.0, math.sqrt(config.MAX_SCALED_PIXELS / pixels))
        logger.debug(f"Scale factor capped at {factor:.2f} for {width}x{height} image")
    if factor <= 1.0:
        return image.copy()
    size = (int(width * factor), int(height * factor))
    return image.resize(size, Image.LANCZOS)


def _flatten(image):
    """Bring palette/alpha images to RGB; invert and posterize reject RGBA and P"""
    if image.mode in ('RGB', 'L'):
        return image.copy()
    if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
        rgba = image.convert('RGBA')
        background = Image.new('RGB', rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[-1])
        return background
    return image.convert('RGB')


# =====================
# VARIANTS
# =====================

STRATEGIES = (
    PreprocessStrategy(1, 'original', lambda img: img),
    PreprocessStrategy(2, 'high-contrast',
                       lambda img: _brightness(_contrast(img, 1.5), 1.1)),
    PreprocessStrategy(3, 'greyscale-contrast',
                       lambda img: _contrast(_greyscale(img), 1.8)),
    PreprocessStrategy(4, 'scale-2x-sharpen',
                       lambda img: _contrast(_sharpen(_scale(img, 2)), 1.3)),
    PreprocessStrategy(5, 'scale-3x',
                       lambda img: _scale(img, 3)),
    PreprocessStrategy(6, 'invert',
                       lambda img: _contrast(_invert(img), 1.5)),
    PreprocessStrategy(7, 'normalize',
                       lambda img: _brightness(_contrast(_normalize(img), 1.4), 1.1)),
    PreprocessStrategy(8, 'edge-enhance',
                       lambda img: _brightness(_contrast(img, 2.0), 0.9)),
    PreprocessStrategy(9, 'scale-4x-normalize',
                       lambda img: _normalize(_scale(img, 4))),
    PreprocessStrategy(10, 'extreme-contrast',
                       lambda img: _brightness(_contrast(_greyscale(img), 2.5), 1.2)),
    PreprocessStrategy(11, 'posterize',
                       lambda img: _contrast(_posterize(img, 4), 1.5)),
    PreprocessStrategy(12, 'combined',
                       lambda img: _normalize(_contrast(_greyscale(_scale(img, 2)), 1.8))),
)


def get_strategy(attempt):
    if not 1 <= attempt <= len(STRATEGIES):
        raise ValueError(f"Preprocessing attempt must be between 1 and {len(STRATEGIES)}, got {attempt}")
    return STRATEGIES[attempt - 1]


def preprocess(image, attempt):
    """Return a transformed copy of `image` for the given 1-based attempt index"""
    strategy = get_strategy(attempt)
    return strategy.apply(_flatten(image))
