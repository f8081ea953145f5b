# -*- coding: utf-8 -*-
"""
Run-scoped progress counters.

ImportProgress is created once per run and passed explicitly to the page walker
and entity sequencer. It only feeds log lines and an optional tqdm bar; nothing
about correctness depends on it.

Example:
    progress = ImportProgress(show_bar=True)
    progress.set_total(1234)
    progress.advance()   # logs "Progress 1/1234 (0%)"
    progress.close()
"""

# Standard library
from typing import Optional

# Third-party
from tqdm import tqdm

# Local
from formation_graph.utils.logger import get_logger

logger = get_logger(__name__)


class ImportProgress:
    """Counts pages and entities for one walk."""

    def __init__(self, show_bar: bool = False):
        self.total_hits: Optional[int] = None
        self.processed = 0
        self.skipped = 0
        self.pages = 0
        self.show_bar = show_bar
        self._bar = None

    def set_total(self, total: Optional[int]) -> None:
        """Record the total hit count. Only the first non-empty value is kept."""
        if self.total_hits is not None or total is None:
            return
        self.total_hits = total
        if self.show_bar:
            self._bar = tqdm(total=total, desc="Entities", initial=self.processed)

    @property
    def percent(self) -> Optional[int]:
        if not self.total_hits:
            return None
        return round(self.processed / self.total_hits * 100)

    def page_done(self) -> None:
        self.pages += 1

    def advance(self) -> None:
        """One entity fully merged."""
        self.processed += 1
        if self._bar is not None:
            self._bar.update(1)
        if self.total_hits:
            logger.info(f"Progress {self.processed}/{self.total_hits} ({self.percent}%)")
        else:
            logger.info(f"Progress {self.processed}")

    def skip(self) -> None:
        """One entity dropped as malformed."""
        self.skipped += 1

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None

    def summary(self) -> str:
        return (f"{self.processed} entities merged, {self.skipped} skipped, "
                f"{self.pages} pages (total hits: {self.total_hits})")
