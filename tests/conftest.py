"""Shared fixtures: random sheets written to disk and manifest builders."""

import json

import cv2
import numpy as np
import pytest


def texture_entry(name, x, y, w, h, source=None, sprite_source=None, rotated=False, trimmed=False):
    source = source or (w, h)
    sprite_source = sprite_source or (0, 0, w, h)
    return {
        "filename": name,
        "frame": {"x": x, "y": y, "w": w, "h": h},
        "rotated": rotated,
        "trimmed": trimmed,
        "sourceSize": {"w": source[0], "h": source[1]},
        "spriteSourceSize": {
            "x": sprite_source[0],
            "y": sprite_source[1],
            "w": sprite_source[2],
            "h": sprite_source[3],
        },
    }


def sheet_entry(image, size, frames):
    return {
        "image": image,
        "format": "RGBA8888",
        "size": {"w": size[0], "h": size[1]},
        "scale": 1,
        "frames": frames,
    }


@pytest.fixture
def make_sheet(tmp_path):
    """Write a random BGRA sheet of ``width`` x ``height`` and return its pixels."""

    def _make(name="sheet.png", width=64, height=64, seed=0):
        rng = np.random.default_rng(seed)
        pixels = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
        # keep alpha non-zero so sprite pixels differ from the transparent background
        pixels[:, :, 3] = rng.integers(1, 256, size=(height, width), dtype=np.uint8)
        assert cv2.imwrite(str(tmp_path / name), pixels)
        return pixels

    return _make


@pytest.fixture
def write_manifest(tmp_path):
    def _write(sheets, name="atlas.json", meta=None):
        path = tmp_path / name
        path.write_text(json.dumps({"meta": meta or {"app": "test"}, "textures": sheets}))
        return path

    return _write


def read_png(path):
    image = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    assert image is not None, f"could not read {path}"
    return image
