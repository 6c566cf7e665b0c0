"""
ocr.py - Text recognizer boundary.

The only module that knows about Tesseract. Everything downstream consumes
the returned string; swapping the recognizer must not require changes to
analyze.py as long as it still returns plain text.

Preprocessing targets printed business documents photographed on a phone:
grayscale, upscale to roughly 300 DPI equivalent, stretch contrast, sharpen,
then a binary threshold so Tesseract sees black text on white.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union

import pytesseract
from PIL import Image, ImageFilter, ImageOps

from logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".tiff", ".tif", ".bmp"}

TARGET_WIDTH = 2550
UPSCALE_BELOW_WIDTH = 2000
MAX_UPSCALE = 3.0
BINARY_THRESHOLD = 140
TESSERACT_LANG = "eng"


def preprocess_image(image_path: Union[str, Path]) -> Image.Image:
    """Return a binarized, recognizer-friendly copy of the image."""
    with Image.open(image_path) as img:
        image = ImageOps.exif_transpose(img).convert("L")

    width, height = image.size
    if 0 < width < UPSCALE_BELOW_WIDTH:
        scale = min(TARGET_WIDTH / width, MAX_UPSCALE)
        image = image.resize(
            (round(width * scale), round(height * scale)),
            Image.Resampling.LANCZOS,
        )

    image = ImageOps.autocontrast(image, cutoff=1)
    image = image.filter(ImageFilter.SHARPEN)
    image = image.point(lambda px: 255 if px > BINARY_THRESHOLD else 0)

    logger.debug(
        "ocr_preprocess | file=%s | width=%s | out_width=%s",
        Path(image_path).name,
        width,
        image.size[0],
    )
    return image


def extract_text(image_path: Union[str, Path], original_name: str = "") -> str:
    """Recognize the text of one page image.

    Args:
        image_path: Path to the staged image. Upload staging may strip the
            extension, so the suffix is taken from `original_name` when given.
        original_name: The file name the user uploaded.

    Raises:
        FileNotFoundError: The image does not exist.
        ValueError: The file type is not a supported image.
    """
    path = Path(image_path)
    if not path.exists():
        raise FileNotFoundError(f"Document image not found: {image_path}")

    suffix = Path(original_name).suffix.lower() if original_name else path.suffix.lower()
    if suffix not in SUPPORTED_IMAGE_EXTENSIONS:
        raise ValueError(
            f"Unsupported document type {suffix or '(none)'!r} for {original_name or path.name}; "
            f"supported: {', '.join(sorted(SUPPORTED_IMAGE_EXTENSIONS))}"
        )

    try:
        image = preprocess_image(path)
    except OSError as exc:
        logger.warning(
            "ocr_preprocess_failed | file=%s | error=%s | fallback=raw_image",
            original_name or path.name,
            exc,
        )
        with Image.open(path) as img:
            image = img.copy()

    text = pytesseract.image_to_string(image, lang=TESSERACT_LANG)
    logger.info("ocr_complete | file=%s | chars=%s", original_name or path.name, len(text))
    return text
