import numpy as np
import pytest

from atlas_unpack.errors import GeometryError
from atlas_unpack.extractor import extract_sprite
from atlas_unpack.manifest import Frame, Size, Texture


def _sheet(width=64, height=64, seed=1):
    rng = np.random.default_rng(seed)
    sheet = rng.integers(0, 256, size=(height, width, 4), dtype=np.uint8)
    sheet[:, :, 3] = 255
    return sheet


def _texture(frame, source=None, sprite_source=None, rotated=False, trimmed=False, name="t"):
    frame = Frame(*frame)
    source = Size(*(source or (frame.width, frame.height)))
    sprite_source = Frame(*(sprite_source or (0, 0, frame.width, frame.height)))
    return Texture(name, frame, source, sprite_source, rotated=rotated, trimmed=trimmed)


def test_untrimmed_texture_is_raw_crop():
    sheet = _sheet()
    sprite = extract_sprite(sheet, _texture((5, 7, 20, 11)))

    assert sprite.shape == (11, 20, 4)
    np.testing.assert_array_equal(sprite, sheet[7:18, 5:25])


def test_trimmed_texture_is_placed_inside_transparent_canvas():
    sheet = _sheet()
    texture = _texture((30, 40, 4, 5), source=(10, 12), sprite_source=(2, 3, 4, 5), trimmed=True)

    sprite = extract_sprite(sheet, texture)

    assert sprite.shape == (12, 10, 4)
    np.testing.assert_array_equal(sprite[3:8, 2:6], sheet[40:45, 30:34])
    outside = np.ones((12, 10), dtype=bool)
    outside[3:8, 2:6] = False
    assert not sprite[outside].any()


def test_rotated_texture_is_turned_back():
    original = _sheet(width=6, height=3, seed=7)  # 6 wide, 3 tall
    sheet = np.zeros((20, 20, 4), dtype=np.uint8)
    # packers store rotated sprites turned 90 degrees clockwise
    stored = np.rot90(original, k=-1)  # 3 wide, 6 tall
    sheet[2:8, 4:7] = stored

    sprite = extract_sprite(sheet, _texture((4, 2, 6, 3), rotated=True))

    np.testing.assert_array_equal(sprite, original)


def test_rotated_bounds_use_on_sheet_extent():
    sheet = _sheet(width=10, height=4)
    # 4 wide x 8 tall when unrotated; occupies 8 columns x 4 rows on the sheet
    sprite = extract_sprite(sheet, _texture((0, 0, 4, 8), rotated=True))
    assert sprite.shape == (8, 4, 4)

    with pytest.raises(GeometryError):
        extract_sprite(sheet, _texture((0, 0, 8, 4), rotated=True))


def test_grayscale_and_bgr_sheets_are_promoted():
    gray = np.full((8, 8), 99, dtype=np.uint8)
    sprite = extract_sprite(gray, _texture((0, 0, 4, 4)))
    assert sprite.shape == (4, 4, 4)
    assert (sprite[:, :, :3] == 99).all()
    assert (sprite[:, :, 3] == 255).all()

    bgr = np.zeros((8, 8, 3), dtype=np.uint8)
    bgr[:, :, 2] = 200
    sprite = extract_sprite(bgr, _texture((2, 2, 3, 3)))
    assert (sprite[:, :, 2] == 200).all()
    assert (sprite[:, :, 3] == 255).all()


def test_empty_packed_region_gives_transparent_sprite():
    sprite = extract_sprite(_sheet(), _texture((0, 0, 0, 0), source=(5, 5), sprite_source=(0, 0, 0, 0)))
    assert sprite.shape == (5, 5, 4)
    assert not sprite.any()


@pytest.mark.parametrize(
    "texture, message",
    [
        (_texture((60, 0, 8, 8)), "outside the 64x64 sheet"),
        (_texture((0, 60, 8, 8)), "outside the 64x64 sheet"),
        (_texture((0, 0, 4, 4), source=(6, 6), sprite_source=(4, 4, 4, 4)), "outside sourceSize"),
        (_texture((0, 0, 4, 4), source=(8, 8), sprite_source=(0, 0, 5, 5)), "does not match"),
        (_texture((0, 0, 4, 4), source=(0, 4), sprite_source=(0, 0, 0, 0)), "empty sourceSize"),
    ],
)
def test_bad_geometry_raises(texture, message):
    with pytest.raises(GeometryError, match=message) as excinfo:
        extract_sprite(_sheet(), texture)
    assert excinfo.value.texture == "t"


def test_missing_image_raises():
    with pytest.raises(GeometryError, match="no source image"):
        extract_sprite(None, _texture((0, 0, 1, 1)))


def test_extraction_does_not_mutate_sheet():
    sheet = _sheet()
    before = sheet.copy()
    extract_sprite(sheet, _texture((0, 0, 16, 16), source=(20, 20), sprite_source=(2, 2, 16, 16)))
    np.testing.assert_array_equal(sheet, before)


def test_unallocatable_sprite_raises_geometry_error():
    huge = 2 ** 62
    texture = _texture((0, 0, 4, 4), source=(huge, huge), sprite_source=(0, 0, 4, 4), trimmed=True)
    with pytest.raises(GeometryError, match="cannot allocate"):
        extract_sprite(_sheet(), texture)
