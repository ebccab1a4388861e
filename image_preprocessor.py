"""
Image Preprocessor - Flattens logbook photos before text recognition.

Phone photos of a paper logbook have uneven lighting and faint ink. Turning
the photo into a pure black-and-white image first gives the OCR engine a
much cleaner picture to read.

For Python beginners:
- An image is just a grid of pixels; numpy lets us process the whole grid
  at once instead of looping over every pixel
- Grayscale uses the standard luminance formula 0.299R + 0.587G + 0.114B
- Binarizing means every pixel becomes either white (255) or black (0)
"""

import io
from pathlib import Path
from typing import Union

import numpy as np
from loguru import logger
from PIL import Image, UnidentifiedImageError

from config import BINARIZE_THRESHOLD, LUMINANCE_WEIGHTS, SUPPORTED_IMAGE_EXTENSIONS

ImageSource = Union[Image.Image, np.ndarray, bytes, str, Path]


class InvalidImage(ValueError):
    """Raised for degenerate, unreadable or unsupported images."""


def load_image(image_path: Union[str, Path]) -> Image.Image:
    """
    Open a logbook photo from disk.

    Args:
        image_path: Path to a PNG, JPG, JPEG, BMP or TIFF file

    Returns:
        The decoded PIL image

    Raises:
        InvalidImage: unsupported extension, missing file or undecodable data
    """

    path = Path(image_path)
    if path.suffix.lower() not in SUPPORTED_IMAGE_EXTENSIONS:
        raise InvalidImage(
            f"Unsupported image type '{path.suffix}'. "
            f"Please upload one of: {', '.join(sorted(SUPPORTED_IMAGE_EXTENSIONS))}"
        )
    if not path.is_file():
        raise InvalidImage(f"Image file not found: {path}")

    try:
        with Image.open(path) as img:
            img.load()
            return img.copy()
    except (UnidentifiedImageError, OSError) as e:
        raise InvalidImage(f"Could not read image {path.name}: {e}") from e


def _to_rgb_array(image: ImageSource) -> np.ndarray:
    """Convert any supported image source into an HxWx3 float array."""

    if isinstance(image, (str, Path)):
        image = load_image(image)
    elif isinstance(image, bytes):
        try:
            image = Image.open(io.BytesIO(image))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise InvalidImage(f"Could not decode image bytes: {e}") from e

    if isinstance(image, Image.Image):
        if image.width == 0 or image.height == 0:
            raise InvalidImage(f"Image has zero size ({image.width}x{image.height})")
        return np.asarray(image.convert('RGB'), dtype=np.float64)

    if not isinstance(image, np.ndarray):
        raise InvalidImage(f"Unsupported image source: {type(image).__name__}")

    if image.ndim not in (2, 3) or image.shape[0] == 0 or image.shape[1] == 0:
        raise InvalidImage(f"Image has zero size or bad shape {image.shape}")

    pixels = image.astype(np.float64)
    if pixels.ndim == 2:
        # already single channel: treat as R = G = B
        return np.stack([pixels] * 3, axis=-1)
    if pixels.shape[2] < 3:
        raise InvalidImage(f"Expected 3 or 4 color channels, got {pixels.shape[2]}")
    return pixels[:, :, :3]  # drop alpha


def preprocess_image(image: ImageSource) -> Image.Image:
    """
    Convert a photo to a black-and-white bitmap for OCR.

    Args:
        image: PIL image, numpy array, raw file bytes or a file path

    Returns:
        Grayscale ('L' mode) PIL image whose pixels are only 0 or 255

    Raises:
        InvalidImage: if the image has zero width or height or cannot be read
    """

    rgb = _to_rgb_array(image)

    r_weight, g_weight, b_weight = LUMINANCE_WEIGHTS
    gray = np.rint(r_weight * rgb[:, :, 0] + g_weight * rgb[:, :, 1] + b_weight * rgb[:, :, 2])
    binary = np.where(gray >= BINARIZE_THRESHOLD, 255, 0).astype(np.uint8)

    height, width = binary.shape
    logger.debug(f"Binarized {width}x{height} image at threshold {BINARIZE_THRESHOLD}")
    return Image.fromarray(binary)
