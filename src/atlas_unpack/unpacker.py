import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .concurrency import ConcurrencyBudget, ResultAggregator
from .errors import UnpackError, WriteError
from .manifest import Pack
from .output import SpriteWriter
from .pool import SheetWorkerPool
from .progress import NullProgress, ProgressSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UnpackReport:
    sheets: int
    textures: int
    written: int
    failed: int
    error: Optional[UnpackError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class Unpacker:
    """One extraction session over a parsed pack.

    Every sheet runs in its own pipeline, all at once. Texture work from all
    sheets shares one :class:`ConcurrencyBudget` of ``workers`` slots.
    """

    pack: Pack
    input_dir: Path
    output_dir: Path
    workers: int
    progress: ProgressSink = field(default_factory=NullProgress, compare=False)

    def __post_init__(self):
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        object.__setattr__(self, "input_dir", Path(self.input_dir))
        object.__setattr__(self, "output_dir", Path(self.output_dir))

    def run(self) -> UnpackReport:
        """Extract every sheet and report, without raising for unit failures."""
        sheets = self.pack.sheets
        total = self.pack.texture_count
        logger.info(f"Found {len(sheets)} texture sheets")
        logger.info(f"Writing to {self.output_dir}")

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteError(f"failed to create output directory {self.output_dir}: {e}") from e

        results = ResultAggregator()
        budget = ConcurrencyBudget(self.workers)
        pool = SheetWorkerPool(
            self.input_dir,
            SpriteWriter(self.output_dir),
            self.workers,
            budget=budget,
            progress=self.progress,
        )

        self.progress.start(self.pack)
        try:
            if sheets:
                with ThreadPoolExecutor(max_workers=len(sheets)) as executor:
                    futures = [executor.submit(pool.process_sheet, sheet, results) for sheet in sheets]
                    for future in futures:
                        future.result()
        finally:
            self.progress.close()

        report = UnpackReport(
            sheets=len(sheets),
            textures=total,
            written=results.succeeded,
            failed=results.failed,
            error=results.first_error,
        )
        if report.ok:
            logger.info(f"Extracted {total} textures from {len(sheets)} sheets")
        else:
            logger.error(f"{report.failed} of {total} textures failed; first error: {report.error}")
        return report

    def unpack(self) -> UnpackReport:
        """Like :meth:`run`, but raise the first error once all sheets have drained."""
        report = self.run()
        if report.error is not None:
            raise report.error
        return report
