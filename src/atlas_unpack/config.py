import os
from pathlib import Path
from typing import Optional, Union

MAX_DEFAULT_WORKERS = 32
MANIFEST_SUFFIX = ".json"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def default_workers() -> int:
    """Twice the CPU count, capped at 32."""
    return min(2 * (os.cpu_count() or 1), MAX_DEFAULT_WORKERS)


def input_dir_for(manifest: Union[str, Path]) -> Path:
    """Sheet images are resolved relative to the manifest."""
    return Path(manifest).parent


def output_dir_for(manifest: Union[str, Path], output: Optional[Union[str, Path]] = None) -> Path:
    """``output`` if given, else a directory named after the manifest beside it."""
    if output:
        return Path(output)
    manifest_path = Path(manifest)
    return manifest_path.parent / manifest_path.stem
