"""
Progress bar shown while a collection is being resolved, using Rich.

One row per collection:

    Resolving   ✓ 2  ✗ 1  ? 1   ━━━━━━━━━━━━━━━━━━━━━━━━━   4/4

Counts are kept in the task's fields so the counts column can render
them without touching the bar object.

Usage:
    from tubelink.core.progress import ResolvingProgressBar

    with ResolvingProgressBar(total=3) as progress:
        for outcome in outcomes:
            progress.update(found=outcome.found)
"""

from typing import Optional

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    ProgressColumn,
    Task,
    TaskID,
    TextColumn,
)
from rich.text import Text
from rich.theme import Theme


PROGRESS_THEME = Theme({
    "bar.back": "grey23",
    "bar.complete": "rgb(165,66,129)",
    "bar.finished": "rgb(114,156,31)",
    "bar.pulse": "rgb(165,66,129)",
    "progress.download": "white",
})

# Task fields holding the per-outcome counts
COUNT_FIELDS = ("found", "not_found", "unresolved")


class OutcomeCountsColumn(ProgressColumn):
    """
    Renders found / no match / unresolved counts of a task.

    The unresolved count only appears once it is non-zero.
    """

    def __init__(self, width: int = 22) -> None:
        self.width = width
        super().__init__()

    def render(self, task: Task) -> Text:
        found = task.fields.get("found", 0)
        not_found = task.fields.get("not_found", 0)
        unresolved = task.fields.get("unresolved", 0)

        text = Text()
        text.append(f"✓ {found}", style="green")
        text.append("  ")
        text.append(f"✗ {not_found}", style="red")
        if unresolved:
            text.append("  ")
            text.append(f"? {unresolved}", style="yellow")

        text.truncate(max_width=self.width, overflow="ellipsis", pad=True)
        return text


class ResolvingProgressBar:
    """
    Progress bar for collection resolution.

    Attributes:
        total: Number of members being resolved.
        found / not_found / unresolved: Outcome counts so far.

    Thread Safety:
        Call update() and log() from one thread (the one collecting
        finished members); Rich refreshes the display on its own thread.
    """

    def __init__(self, total: int, description: str = "Resolving") -> None:
        self.total = total
        self.description = description
        self.found = 0
        self.not_found = 0
        self.unresolved = 0

        # stdout is reserved for the resolved links
        self.console = Console(stderr=True)
        self.progress = Progress(
            TextColumn("[white]{task.description}"),
            OutcomeCountsColumn(),
            BarColumn(bar_width=40, finished_style="green"),
            MofNCompleteColumn(),
            console=self.console,
            transient=False,
            refresh_per_second=10,
        )

        self.task_id: Optional[TaskID] = None
        self._started = False

    @property
    def completed(self) -> int:
        return self.found + self.not_found + self.unresolved

    def __enter__(self) -> "ResolvingProgressBar":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def start(self) -> None:
        if self._started:
            return
        self.console.push_theme(PROGRESS_THEME)
        self.progress.start()
        self.task_id = self.progress.add_task(
            self.description,
            total=self.total,
            **self._counts(),
        )
        self._started = True

    def stop(self) -> None:
        if not self._started:
            return
        self.progress.stop()
        self.console.pop_theme()
        self._started = False

    def log(self, message: str) -> None:
        """Print a message above the bar."""
        self.progress.console.print(message, highlight=False, markup=False)

    def update(self, found: bool, unresolved: bool = False) -> None:
        """
        Record one finished collection member.

        Args:
            found: Whether a video was found for the member.
            unresolved: Whether the member's track couldn't be determined.
                        Takes precedence over `found`.
        """
        if unresolved:
            self.unresolved += 1
        elif found:
            self.found += 1
        else:
            self.not_found += 1

        if self.task_id is not None:
            self.progress.update(self.task_id, completed=self.completed, **self._counts())

    def _counts(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in COUNT_FIELDS}
