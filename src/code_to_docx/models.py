"""Value types passed between the walker, the file processor and the CLI."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path


@dataclass(frozen=True, slots=True)
class SourceFile:
    """A qualifying file, read once and rendered as one page."""

    path: Path
    relative_path: Path
    lines: list[str]

    @property
    def heading(self) -> str:
        return str(self.relative_path)


@dataclass(slots=True)
class StageTimings:
    scan_ms: float
    write_ms: float


@dataclass(slots=True)
class ConversionResult:
    """Outcome of a successful run."""

    output_path: Path
    pages: list[str]
    warnings: list[str] = field(default_factory=list)
    timings: StageTimings = field(default_factory=lambda: StageTimings(0.0, 0.0))
    line_counts: dict[str, int] = field(default_factory=dict)

    @property
    def summary(self) -> str:
        noun = "file" if len(self.pages) == 1 else "files"
        total = (self.timings.scan_ms + self.timings.write_ms) / 1000
        return f"Wrote {len(self.pages)} {noun} to {self.output_path} in {total:.2f}s"


__all__ = ["ConversionResult", "SourceFile", "StageTimings"]
