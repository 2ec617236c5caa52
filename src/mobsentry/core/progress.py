"""Progress reporting for mobsentry scans.

The engine reports one ScanProgress per completed file, whether the file was
scanned, served from the cache or skipped.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class ScanProgress:
    """Progress of a running scan.

    Attributes:
        current: Number of files completed so far (1-based, monotonic).
        total: Total number of files in the scan.

    Example:
        >>> progress = ScanProgress(current=25, total=100)
        >>> progress.percent_complete
        25.0
    """

    current: int
    total: int

    @property
    def percent_complete(self) -> float:
        """Percentage of files completed, 0.0 when there is nothing to scan."""
        if self.total == 0:
            return 0.0
        return (self.current / self.total) * 100.0


ProgressCallback = Callable[[ScanProgress], None]
