"""Outcome of one export: the output path on success, the error otherwise."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ExportError


@dataclass(frozen=True)
class ExportResult:
    output_path: Optional[Path] = None
    error: Optional[ExportError] = None

    def __post_init__(self) -> None:
        if (self.output_path is None) == (self.error is None):
            raise ValueError("ExportResult needs exactly one of output_path or error")

    @classmethod
    def success(cls, output_path: str | Path) -> "ExportResult":
        return cls(output_path=Path(output_path))

    @classmethod
    def failure(cls, error: ExportError) -> "ExportResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Path:
        """Return the output path, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.output_path

    def __str__(self) -> str:
        if self.ok:
            return f"Success({self.output_path})"
        return f"Failure({type(self.error).__name__}: {self.error})"


__all__ = ["ExportResult"]
