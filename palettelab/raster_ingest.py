"""Raster image ingestion and analysis-grid resampling."""
import logging
from pathlib import Path
from typing import Optional, Tuple, Union

import numpy as np
from PIL import Image
from PIL import ImageOps

from palettelab.types import ImageArray, ImageLoadError

logger = logging.getLogger(__name__)

# x, y, width, height in source pixels
CropRect = Tuple[int, int, int, int]
ImageInput = Union[ImageArray, Image.Image]


def load_image(path: Union[str, Path]) -> ImageArray:
    """
    Load an image file as an orientation-normalized RGBA buffer.

    Args:
        path: Path to image file

    Returns:
        uint8 array of shape (H, W, 4)

    Raises:
        FileNotFoundError: If file doesn't exist
        ImageLoadError: If file cannot be decoded
    """
    path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Image file not found: {path}")

    if not path.is_file():
        raise ImageLoadError(f"Path is not a file: {path}")

    try:
        with Image.open(path) as img:
            # Apply EXIF orientation transformation to handle rotation
            img = ImageOps.exif_transpose(img)
            if img.mode != 'RGBA':
                img = img.convert('RGBA')
            pixels = np.array(img)
    except (IOError, OSError) as e:
        raise ImageLoadError(f"Failed to load image {path}: {e}") from e

    logger.debug(f"Loaded {path.name}: {pixels.shape[1]}x{pixels.shape[0]}")
    return pixels


def to_rgba_float(image: ImageInput) -> np.ndarray:
    """
    Normalize a pixel buffer to float RGBA in [0, 1].

    Args:
        image: PIL image, or array of shape (H, W), (H, W, 3) or (H, W, 4).
               Integer arrays are read as 0-255, float arrays as 0-1.

    Returns:
        float64 array of shape (H, W, 4)

    Raises:
        ValueError: If the buffer shape is not an image
    """
    if isinstance(image, Image.Image):
        image = np.array(image.convert('RGBA'))

    pixels = np.asarray(image)
    if pixels.size == 0:
        return np.zeros((0, 0, 4), dtype=np.float64)

    if pixels.ndim == 2:
        pixels = np.repeat(pixels[..., np.newaxis], 3, axis=2)

    if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError(f"Expected an HxWx3 or HxWx4 image, got shape {pixels.shape}")

    if np.issubdtype(pixels.dtype, np.integer):
        rgba = pixels.astype(np.float64) / 255.0
    else:
        rgba = np.nan_to_num(pixels.astype(np.float64), nan=0.0)
    rgba = np.clip(rgba, 0.0, 1.0)

    if rgba.shape[2] == 3:
        alpha = np.ones(rgba.shape[:2] + (1,), dtype=np.float64)
        rgba = np.concatenate([rgba, alpha], axis=2)

    return rgba


def image_shape(image: ImageInput) -> Tuple[int, int]:
    """Source (height, width) of a PIL image or pixel buffer."""
    if isinstance(image, Image.Image):
        return image.height, image.width
    shape = np.shape(image)
    return shape[0], shape[1]


def crop(pixels: np.ndarray, rect: CropRect) -> np.ndarray:
    """
    Crop a buffer to rect, clamped to the image bounds.

    An empty intersection leaves the buffer uncropped.
    """
    h, w = pixels.shape[:2]
    x, y, rect_w, rect_h = rect
    x0, y0 = max(0, int(x)), max(0, int(y))
    x1, y1 = min(w, int(x + rect_w)), min(h, int(y + rect_h))

    if x0 >= x1 or y0 >= y1:
        logger.warning(f"Crop rect {rect} outside {w}x{h} image, using full image")
        return pixels

    return pixels[y0:y1, x0:x1]


def resample(pixels: np.ndarray, width: int, height: int) -> np.ndarray:
    """
    Resample a float RGBA buffer to width x height.

    Area averaging keeps block colors intact and introduces no ringing.
    Buffers already at the target size are returned unchanged.
    """
    if pixels.shape[0] == height and pixels.shape[1] == width:
        return pixels

    as_bytes = np.round(pixels * 255.0).astype(np.uint8)
    img = Image.fromarray(as_bytes)
    img = img.resize((width, height), resample=Image.Resampling.BOX)

    return np.array(img).astype(np.float64) / 255.0


def prepare_analysis_buffer(
    image: ImageInput,
    width: int = 200,
    height: int = 200,
    rect: Optional[CropRect] = None
) -> np.ndarray:
    """
    Build the fixed-size RGBA buffer all per-pixel analysis runs on.

    Args:
        image: Source pixels (see to_rgba_float)
        width: Analysis grid width
        height: Analysis grid height
        rect: Optional crop rectangle applied before resampling

    Returns:
        float64 array of shape (height, width, 4); empty (0, 0, 4) if the
        source has no pixels
    """
    pixels = to_rgba_float(image)

    if pixels.shape[0] == 0 or pixels.shape[1] == 0:
        return np.zeros((0, 0, 4), dtype=np.float64)

    if rect is not None:
        pixels = crop(pixels, rect)

    return resample(pixels, width, height)
