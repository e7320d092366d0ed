"""Core result data structures for the conformance checker."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .severity import Severity

SEVERITY_ORDER: Sequence[Severity] = (
    Severity.ERROR,
    Severity.WARNING,
)


@dataclass(frozen=True)
class Violation:
    """Capture a single failed rule evaluation."""

    rule_id: str
    kind: str
    severity: Severity
    message: str
    path: Optional[str] = None
    line: Optional[int] = None

    @property
    def location(self) -> str:
        if self.path is None:
            return "-"
        if self.line is None:
            return self.path
        return f"{self.path}:{self.line}"

    def to_dict(self) -> Dict[str, object]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass(frozen=True)
class Summary:
    """Aggregate violation counts by severity."""

    error: int = 0
    warning: int = 0

    @classmethod
    def from_violations(cls, violations: Iterable[Violation]) -> "Summary":
        counts = {severity: 0 for severity in SEVERITY_ORDER}
        for violation in violations:
            counts[violation.severity] += 1
        return cls(error=counts[Severity.ERROR], warning=counts[Severity.WARNING])

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)

    def as_rows(self) -> List[Tuple[str, int]]:
        """Return severity/count pairs ordered for reporting."""

        return [(severity.value, getattr(self, severity.value)) for severity in SEVERITY_ORDER]

    @property
    def total(self) -> int:
        return sum(getattr(self, severity.value) for severity in SEVERITY_ORDER)


@dataclass(frozen=True)
class ConformanceReport:
    """Bundle the verdict and ordered violations for one module root."""

    module_root: str
    provider: str
    module_type: str
    violations: Tuple[Violation, ...] = field(default_factory=tuple)

    @property
    def passed(self) -> bool:
        return not any(violation.severity is Severity.ERROR for violation in self.violations)

    @property
    def summary(self) -> Summary:
        return Summary.from_violations(self.violations)

    def rule_ids(self) -> List[str]:
        return [violation.rule_id for violation in self.violations]

    def to_dict(self) -> Dict[str, object]:
        return {
            "module_root": self.module_root,
            "provider": self.provider,
            "module_type": self.module_type,
            "summary": self.summary.to_dict(),
            "violations": [violation.to_dict() for violation in self.violations],
            "passed": self.passed,
        }

    def exit_code(self) -> int:
        return 0 if self.passed else 1
