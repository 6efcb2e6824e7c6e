"""Parsed atlas manifest.

Three layouts are understood: the multi-atlas form (a top-level ``textures``
list, one entry per sheet) and the single-sheet "JSON array" and "JSON hash"
forms (a top-level ``frames`` list or object plus ``meta.image``).
"""

import json
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Tuple, Union

from .errors import ManifestError


@dataclass(frozen=True)
class Size:
    width: int
    height: int


@dataclass(frozen=True)
class Frame:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)

    def fits_within(self, width: int, height: int) -> bool:
        return self.x >= 0 and self.y >= 0 and self.right <= width and self.bottom <= height


@dataclass(frozen=True)
class Texture:
    filename: str
    frame: Frame
    source_size: Size
    sprite_source_size: Frame
    rotated: bool = False
    trimmed: bool = False

    @property
    def packed_region(self) -> Frame:
        """Region actually occupied on the sheet; rotated sprites are stored sideways."""
        if self.rotated:
            return Frame(self.frame.x, self.frame.y, self.frame.height, self.frame.width)
        return self.frame


@dataclass(frozen=True)
class Sheet:
    image: str
    size: Size
    textures: Tuple[Texture, ...]
    format: str = ""
    scale: float = 1.0


@dataclass(frozen=True)
class Pack:
    meta: Mapping[str, Any]
    sheets: Tuple[Sheet, ...]

    @property
    def texture_count(self) -> int:
        return sum(len(sheet.textures) for sheet in self.sheets)


def _int(value: Any, where: str) -> int:
    # bool is an int subclass, but "w": true is not a dimension
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ManifestError(f"{where}: expected an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ManifestError(f"{where}: expected an integer, got {value!r}")
        value = int(value)
    if value < 0:
        raise ManifestError(f"{where}: must not be negative, got {value}")
    return value


def _object(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ManifestError(f"{where}: expected an object, got {type(value).__name__}")
    return value


def _size(value: Any, where: str) -> Size:
    obj = _object(value, where)
    try:
        return Size(_int(obj["w"], f"{where}.w"), _int(obj["h"], f"{where}.h"))
    except KeyError as e:
        raise ManifestError(f"{where}: missing {e.args[0]!r}") from None


def _frame(value: Any, where: str) -> Frame:
    obj = _object(value, where)
    try:
        return Frame(
            _int(obj["x"], f"{where}.x"),
            _int(obj["y"], f"{where}.y"),
            _int(obj["w"], f"{where}.w"),
            _int(obj["h"], f"{where}.h"),
        )
    except KeyError as e:
        raise ManifestError(f"{where}: missing {e.args[0]!r}") from None


def _bool(value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise ManifestError(f"{where}: expected true or false, got {value!r}")
    return value


def parse_texture(entry: Any, where: str, filename: Optional[str] = None) -> Texture:
    entry = _object(entry, where)
    if filename is None:
        filename = entry.get("filename")
    if not isinstance(filename, str) or not filename:
        raise ManifestError(f"{where}: missing filename")
    where = f"{where} ({filename})"

    if "frame" not in entry:
        raise ManifestError(f"{where}: missing frame")
    frame = _frame(entry["frame"], f"{where}.frame")

    if "sourceSize" in entry:
        source_size = _size(entry["sourceSize"], f"{where}.sourceSize")
    else:
        source_size = frame.size

    if "spriteSourceSize" in entry:
        sprite_source_size = _frame(entry["spriteSourceSize"], f"{where}.spriteSourceSize")
    else:
        sprite_source_size = Frame(0, 0, source_size.width, source_size.height)

    return Texture(
        filename=filename,
        frame=frame,
        source_size=source_size,
        sprite_source_size=sprite_source_size,
        rotated=_bool(entry.get("rotated", False), f"{where}.rotated"),
        trimmed=_bool(entry.get("trimmed", False), f"{where}.trimmed"),
    )


def _textures(frames: Any, where: str) -> Tuple[Texture, ...]:
    if isinstance(frames, list):
        return tuple(parse_texture(entry, f"{where}[{i}]") for i, entry in enumerate(frames))
    if isinstance(frames, Mapping):
        return tuple(
            parse_texture(entry, f"{where}[{name!r}]", filename=name)
            for name, entry in frames.items()
        )
    raise ManifestError(f"{where}: expected a list or object of frames")


def parse_sheet(entry: Any, where: str) -> Sheet:
    entry = _object(entry, where)
    image = entry.get("image")
    if not isinstance(image, str) or not image:
        raise ManifestError(f"{where}: missing image")

    size = _size(entry["size"], f"{where}.size") if "size" in entry else Size(0, 0)
    scale = entry.get("scale", 1.0)
    try:
        scale = float(scale)
    except (TypeError, ValueError):
        raise ManifestError(f"{where}.scale: expected a number, got {scale!r}") from None

    return Sheet(
        image=image,
        size=size,
        textures=_textures(entry.get("frames", []), f"{where}.frames"),
        format=str(entry.get("format", "")),
        scale=scale,
    )


def parse_pack(document: Any) -> Pack:
    """Build a :class:`Pack` from an already decoded JSON document."""
    document = _object(document, "manifest")
    meta = _object(document.get("meta", {}), "meta")

    if "textures" in document:
        sheets = document["textures"]
        if not isinstance(sheets, list):
            raise ManifestError("textures: expected a list of sheets")
        parsed = tuple(parse_sheet(entry, f"textures[{i}]") for i, entry in enumerate(sheets))
    elif "frames" in document:
        # single-sheet layout keeps the sheet description under meta
        sheet = {"frames": document["frames"], **meta}
        parsed = (parse_sheet(sheet, "meta"),)
    else:
        raise ManifestError("manifest has neither 'textures' nor 'frames'")

    return Pack(meta=MappingProxyType(dict(meta)), sheets=parsed)


def load_pack(path: Union[str, Path]) -> Pack:
    manifest_path = Path(path)
    try:
        with open(manifest_path, "r", encoding="utf-8") as f:
            document = json.load(f)
    except OSError as e:
        raise ManifestError(f"failed to read manifest {manifest_path}: {e}") from e
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ManifestError(f"invalid JSON in {manifest_path}: {e}") from e
    return parse_pack(document)
