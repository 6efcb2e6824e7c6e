import logging
import os
import re
import threading
from pathlib import Path, PurePosixPath
from typing import Set, Union

import numpy as np

from .errors import WriteError
from .images import save_sprite
from .manifest import Texture

logger = logging.getLogger(__name__)

OUTPUT_SUFFIX = ".png"


class SpriteWriter:
    """Writes extracted sprites below ``root``, one PNG per texture.

    Texture names may contain ``/`` (or ``\\``); each component becomes a
    directory. Directories are created once per distinct prefix and
    ``mkdir(exist_ok=True)`` keeps concurrent creation safe.
    """

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)
        self._lock = threading.Lock()
        self._created: Set[Path] = set()

    def path_for(self, texture: Texture) -> Path:
        if "\x00" in texture.filename:
            raise WriteError(f"{texture.filename!r}: output name contains a NUL byte", texture=texture.filename)
        try:
            os.fsencode(texture.filename)
        except UnicodeError:
            raise WriteError(
                f"{texture.filename!r}: output name cannot be encoded for this filesystem",
                texture=texture.filename,
            ) from None
        parts = PurePosixPath(re.sub(r"[\\/]+", "/", texture.filename)).parts
        if not parts or parts[0] == "/" or ".." in parts or re.match(r"^[A-Za-z]:$", parts[0]):
            raise WriteError(
                f"{texture.filename}: output path escapes {self.root}",
                texture=texture.filename,
            )
        return self.root.joinpath(*parts[:-1], parts[-1] + OUTPUT_SUFFIX)

    def ensure_directory(self, directory: Path) -> None:
        with self._lock:
            if directory in self._created:
                return
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except (OSError, ValueError) as e:
            raise WriteError(f"failed to create output directory {directory}: {e}") from e
        with self._lock:
            self._created.add(directory)

    def write(self, texture: Texture, sprite: np.ndarray) -> Path:
        path = self.path_for(texture)
        try:
            self.ensure_directory(path.parent)
            save_sprite(sprite, path)
        except WriteError as e:
            e.texture = texture.filename
            raise
        logger.debug(f"Wrote {path}")
        return path
