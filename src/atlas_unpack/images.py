import logging
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from .errors import DecodeError, WriteError

logger = logging.getLogger(__name__)

PNG_COMPRESSION = 6


def load_image(path: Union[str, Path]) -> np.ndarray:
    """Decode a sheet image with its alpha channel, if it has one."""
    image_path = Path(path)
    if not image_path.is_file():
        raise DecodeError(f"failed to open texture sheet: {image_path} not found", sheet=str(image_path))

    # imdecode instead of imread so non-ASCII paths work on every platform
    try:
        data = np.fromfile(str(image_path), dtype=np.uint8)
    except OSError as e:
        raise DecodeError(f"failed to open texture sheet {image_path}: {e}", sheet=str(image_path)) from e

    image = cv2.imdecode(data, cv2.IMREAD_UNCHANGED) if data.size else None
    if image is None:
        raise DecodeError(f"failed to decode texture sheet: {image_path}", sheet=str(image_path))

    logger.info(f"Loaded image: {image_path}")
    logger.debug(f"Shape: {image.shape}, Channels: {image.shape[2] if image.ndim > 2 else 1}")
    return image


def to_bgra(image: np.ndarray) -> np.ndarray:
    """Promote grayscale and BGR images to BGRA with an opaque alpha channel."""
    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGRA)
    channels = image.shape[2]
    if channels == 4:
        return image
    if channels == 3:
        return cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    if channels == 1:
        return cv2.cvtColor(image[:, :, 0], cv2.COLOR_GRAY2BGRA)
    raise DecodeError(f"Unsupported image format with {channels} channels")


def save_sprite(sprite: np.ndarray, path: Union[str, Path]) -> None:
    """Encode ``sprite`` as PNG at ``path``."""
    try:
        ok, encoded = cv2.imencode(".png", sprite, [cv2.IMWRITE_PNG_COMPRESSION, PNG_COMPRESSION])
    except (cv2.error, MemoryError) as e:
        raise WriteError(f"failed to encode sprite as png: {path}: {e}") from e
    if not ok:
        raise WriteError(f"failed to encode sprite as png: {path}")
    try:
        encoded.tofile(str(path))
    except (OSError, ValueError) as e:
        raise WriteError(f"failed to write output file {path}: {e}") from e
