"""Per-entry and per-run results of a sync or check."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class OperationResult:
    """Outcome of applying one operation to one entry."""

    label: str
    success: bool
    written: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    extra: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def changed_tree(self) -> bool:
        """True when a sync wrote or removed anything."""
        return bool(self.written or self.removed)

    @property
    def problems(self) -> list[str]:
        """Human readable lines for every discrepancy found by a check."""
        lines = [f"file {path!r} does not exist" for path in self.missing]
        lines += [f"file {path!r} does not exist on original" for path in self.extra]
        lines += [f"file {path!r} is not identical to original" for path in self.changed]
        return lines

    @property
    def summary(self) -> str:
        if self.error:
            return self.error
        if self.problems:
            return f"{len(self.problems)} difference(s)"
        if self.written or self.removed:
            return f"{len(self.written)} written, {len(self.removed)} removed"
        return "ok"


@dataclass
class AggregateResult:
    """Results of a whole run, in config order."""

    results: list[OperationResult] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return all(r.success for r in self.results)

    @property
    def failed(self) -> list[OperationResult]:
        return [r for r in self.results if not r.success]

    def __len__(self) -> int:
        return len(self.results)
