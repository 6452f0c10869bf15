"""Per-source outcome records and the combined run report."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class SourceReport:
    source: str
    inserted: int = 0
    processed: int = 0
    errors: int = 0
    job_id: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, source: str, *, inserted: int, processed: int, job_id: Optional[str] = None) -> "SourceReport":
        return cls(source=source, inserted=inserted, processed=processed, errors=0, job_id=job_id)

    @classmethod
    def write_failed(cls, source: str, *, processed: int, row_count: int, error: str, job_id: Optional[str] = None) -> "SourceReport":
        # Whole batch counts as failed; partial writes are not assumed
        return cls(source=source, inserted=0, processed=processed, errors=row_count, job_id=job_id, error=error)

    @classmethod
    def failed(cls, source: str, error: BaseException) -> "SourceReport":
        return cls(
            source=source,
            inserted=0,
            processed=0,
            errors=1,
            job_id=getattr(error, "job_id", None),
            error=f"{type(error).__name__}: {error}",
        )

    def to_dict(self, *, include_diagnostics: bool = False) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "source": self.source,
            "inserted": self.inserted,
            "processed": self.processed,
            "errors": self.errors,
        }
        if include_diagnostics:
            out["job_id"] = self.job_id
            out["error"] = self.error
        return out


@dataclass
class RunReport:
    """Envelope for one orchestration run.

    ``success`` stays True even when individual sources failed; their
    failures are visible through the per-source ``errors`` counts.
    """

    results: List[SourceReport] = field(default_factory=list)
    success: bool = True

    def add(self, report: SourceReport) -> None:
        self.results.append(report)

    @property
    def total_inserted(self) -> int:
        return sum(r.inserted for r in self.results)

    @property
    def total_processed(self) -> int:
        return sum(r.processed for r in self.results)

    @property
    def total_errors(self) -> int:
        return sum(r.errors for r in self.results)

    @property
    def failed_sources(self) -> List[str]:
        return [r.source for r in self.results if r.errors]

    def to_dict(self, *, include_diagnostics: bool = False) -> Dict[str, Any]:
        return {
            "success": self.success,
            "results": [r.to_dict(include_diagnostics=include_diagnostics) for r in self.results],
        }

    def summary(self) -> str:
        return (
            f"sources={len(self.results)} inserted={self.total_inserted} "
            f"processed={self.total_processed} errors={self.total_errors}"
        )
