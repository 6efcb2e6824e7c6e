from typing import Dict, Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from .errors import UnpackError
from .manifest import Pack, Sheet


class ProgressSink:
    """Receives unit-completed events; called from many worker threads.

    The base class does nothing, so it doubles as the no-op sink.
    """

    def start(self, pack: Pack) -> None:
        pass

    def advance(self, sheet: Sheet) -> None:
        """One texture of ``sheet`` finished, successfully or not."""

    def sheet_failed(self, sheet: Sheet, error: UnpackError) -> None:
        pass

    def close(self) -> None:
        pass


NullProgress = ProgressSink


class RichProgress(ProgressSink):
    """One bar per sheet, keyed by its image name, plus a total bar."""

    def __init__(self, console: Optional[Console] = None):
        self.progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            "[progress.percentage]{task.percentage:>3.0f}%",
            TimeElapsedColumn(),
            console=console,
        )
        self._sheet_tasks: Dict[str, TaskID] = {}
        self._total_task: Optional[TaskID] = None

    def start(self, pack: Pack) -> None:
        for sheet in pack.sheets:
            self._sheet_tasks[sheet.image] = self.progress.add_task(sheet.image, total=len(sheet.textures))
        self._total_task = self.progress.add_task("Total", total=pack.texture_count)
        self.progress.start()

    def advance(self, sheet: Sheet) -> None:
        # Progress.advance takes the progress lock internally
        task = self._sheet_tasks.get(sheet.image)
        if task is not None:
            self.progress.advance(task)
        if self._total_task is not None:
            self.progress.advance(self._total_task)

    def sheet_failed(self, sheet: Sheet, error: UnpackError) -> None:
        task = self._sheet_tasks.get(sheet.image)
        if task is not None:
            self.progress.update(task, description=f"[red]{sheet.image} (failed)")
        # the sheet's textures will never complete; count them so Total can finish
        if self._total_task is not None:
            self.progress.advance(self._total_task, len(sheet.textures))

    def close(self) -> None:
        self.progress.stop()
