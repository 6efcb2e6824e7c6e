from typing import Optional

import cv2
import numpy as np

from .errors import GeometryError
from .images import to_bgra
from .manifest import Texture


def extract_sprite(image: Optional[np.ndarray], texture: Texture) -> np.ndarray:
    """Cut one texture out of a decoded sheet.

    The result is a BGRA image of ``texture.source_size``. The packed pixels
    of ``texture.frame`` are placed back at ``texture.sprite_source_size``,
    undoing the packer's trim; everything else stays fully transparent.

    Rotated textures are stored on the sheet turned 90 degrees clockwise,
    so their packed region is ``frame.height`` wide and ``frame.width``
    tall. They are turned back before placement.

    Raises:
        GeometryError: if there is no image, a region falls outside
            the sheet or the logical sprite bounds, or the sprite cannot
            be allocated.
    """
    name = texture.filename
    if image is None or image.size == 0:
        raise GeometryError(f"{name}: no source image to extract from", texture=name)

    height, width = image.shape[:2]
    region = texture.packed_region
    if not region.fits_within(width, height):
        raise GeometryError(
            f"{name}: frame {region.x},{region.y} {region.width}x{region.height} "
            f"lies outside the {width}x{height} sheet",
            texture=name,
        )

    source = texture.source_size
    dest = texture.sprite_source_size
    if source.width == 0 or source.height == 0:
        raise GeometryError(f"{name}: empty sourceSize {source.width}x{source.height}", texture=name)
    if not dest.fits_within(source.width, source.height):
        raise GeometryError(
            f"{name}: spriteSourceSize {dest.x},{dest.y} {dest.width}x{dest.height} "
            f"lies outside sourceSize {source.width}x{source.height}",
            texture=name,
        )
    if (texture.frame.width, texture.frame.height) != (dest.width, dest.height):
        raise GeometryError(
            f"{name}: frame {texture.frame.width}x{texture.frame.height} does not match "
            f"spriteSourceSize {dest.width}x{dest.height}",
            texture=name,
        )

    try:
        sprite = np.zeros((source.height, source.width, 4), dtype=image.dtype)
    except (MemoryError, ValueError):
        raise GeometryError(
            f"{name}: cannot allocate a {source.width}x{source.height} sprite", texture=name
        ) from None
    if dest.width == 0 or dest.height == 0:
        return sprite

    packed = image[region.y:region.bottom, region.x:region.right]
    try:
        if texture.rotated:
            packed = cv2.rotate(packed, cv2.ROTATE_90_COUNTERCLOCKWISE)
        sprite[dest.y:dest.bottom, dest.x:dest.right] = to_bgra(packed)
    except cv2.error as e:
        raise GeometryError(f"{name}: failed to copy frame: {e}", texture=name) from e
    return sprite
