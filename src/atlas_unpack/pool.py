import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional, Union

import numpy as np

from .concurrency import ConcurrencyBudget, ResultAggregator
from .errors import DecodeError, UnpackError
from .extractor import extract_sprite
from .images import load_image, to_bgra
from .manifest import Sheet, Texture
from .output import SpriteWriter
from .progress import NullProgress, ProgressSink

logger = logging.getLogger(__name__)


class SheetWorkerPool:
    """Extracts every texture of a sheet on a bounded pool of threads.

    The sheet image is decoded once and shared read-only by the workers.
    A failing texture never stops its siblings; the first error is kept.
    """

    def __init__(
        self,
        input_dir: Union[str, Path],
        writer: SpriteWriter,
        workers: int,
        budget: Optional[ConcurrencyBudget] = None,
        progress: Optional[ProgressSink] = None,
    ):
        self.input_dir = Path(input_dir)
        self.writer = writer
        self.workers = workers
        self.budget = budget or ConcurrencyBudget(workers)
        self.progress = progress or NullProgress()

    def process_sheet(self, sheet: Sheet, results: Optional[ResultAggregator] = None) -> Optional[UnpackError]:
        """Extract all of ``sheet``'s textures and return the first error, if any.

        Outcomes are also merged into ``results`` when given.
        """
        local = ResultAggregator()
        try:
            self._run(sheet, local)
        finally:
            if results is not None:
                results.merge(local)
        return local.first_error

    def _run(self, sheet: Sheet, results: ResultAggregator) -> None:
        sheet_path = self.input_dir / sheet.image
        try:
            image = to_bgra(load_image(sheet_path))
        except DecodeError as e:
            e.sheet = sheet.image
            logger.error(f"Sheet {sheet.image} skipped: {e}")
            results.failure(e, units=len(sheet.textures))
            self.progress.sheet_failed(sheet, e)
            return

        if not sheet.textures:
            return

        with ThreadPoolExecutor(max_workers=min(self.workers, len(sheet.textures))) as executor:
            futures = [executor.submit(self._unpack_texture, sheet, texture, image) for texture in sheet.textures]
            for future in as_completed(futures):
                error = future.result()
                if error is None:
                    results.success()
                else:
                    results.failure(error)
                self.progress.advance(sheet)

        logger.info(f"Finished sheet {sheet.image}: {len(sheet.textures)} textures")

    def _unpack_texture(self, sheet: Sheet, texture: Texture, image: np.ndarray) -> Optional[UnpackError]:
        with self.budget.slot():
            try:
                sprite = extract_sprite(image, texture)
                self.writer.write(texture, sprite)
            except UnpackError as e:
                e.sheet = sheet.image
                e.texture = texture.filename
                logger.error(f"Failed to unpack {texture.filename} from {sheet.image}: {e}")
                return e
        return None
