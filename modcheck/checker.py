"""Conformance checker: evaluate rules against an inventory."""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .checks import Check
from .checks.content import ContentPatternCheck
from .checks.file_presence import FilePresenceCheck
from .checks.naming import NamingPatternCheck
from .errors import ScanError
from .inventory import ModuleInventory, scan
from .registry import Rule, RuleKind, RuleRegistry
from .result import ConformanceReport, Violation
from .severity import Severity

logger = logging.getLogger(__name__)


def load_checks() -> Dict[RuleKind, Check]:
    checks: List[Check] = [
        FilePresenceCheck(),
        NamingPatternCheck(),
        ContentPatternCheck(),
    ]
    return {check.kind: check for check in checks}


CHECKS = load_checks()


def check(inventory: ModuleInventory, rules: Iterable[Rule]) -> ConformanceReport:
    """Evaluate every applicable rule and collect all violations.

    Rules are evaluated independently and in the order given; a failure in
    one evaluator is recorded as a violation and never stops the rest.
    """

    violations: List[Violation] = []
    evaluated = 0
    for rule in rules:
        if not rule.applies_to(inventory.provider, inventory.module_type):
            logger.debug("Rule %s out of scope for %s", rule.id, inventory.root_path)
            continue
        evaluated += 1
        try:
            found = list(CHECKS[rule.kind].evaluate(rule, inventory))
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Rule %s failed on %s: %s", rule.id, inventory.root_path, exc)
            found = [
                Violation(
                    rule_id=rule.id,
                    kind=rule.kind.value,
                    severity=Severity.ERROR,
                    message=f"Rule evaluation failed: {exc}",
                )
            ]
        violations.extend(found)

    report = ConformanceReport(
        module_root=inventory.root_path,
        provider=inventory.provider.value,
        module_type=inventory.module_type.value,
        violations=tuple(violations),
    )
    logger.info(
        "Checked %s against %d rules: %d violations, passed=%s",
        inventory.root_path,
        evaluated,
        len(violations),
        report.passed,
    )
    return report


def check_module(
    root: Union[str, Path],
    registry: RuleRegistry,
    provider: Optional[str] = None,
    module_type: Optional[str] = None,
    cancel: Optional[threading.Event] = None,
) -> ConformanceReport:
    """Scan ``root`` and check it against the registry rules in its scope."""

    inventory = scan(root, provider=provider, module_type=module_type, cancel=cancel)
    return check(inventory, registry.rules_for(inventory.provider, inventory.module_type))


@dataclass(frozen=True)
class ModuleOutcome:
    """Result of checking one root in a batch: a report or the scan error."""

    module_root: str
    report: Optional[ConformanceReport] = None
    error: Optional[ScanError] = None

    @property
    def passed(self) -> bool:
        return self.report is not None and self.report.passed


def check_many(
    roots: Sequence[Union[str, Path]],
    registry: RuleRegistry,
    provider: Optional[str] = None,
    module_type: Optional[str] = None,
    jobs: int = 1,
    cancel: Optional[threading.Event] = None,
) -> List[ModuleOutcome]:
    """Check several module roots; each root is scanned and checked on its own.

    Outcomes are returned in the order of ``roots`` regardless of ``jobs``.
    """

    def run(root: Union[str, Path]) -> ModuleOutcome:
        try:
            report = check_module(root, registry, provider=provider, module_type=module_type, cancel=cancel)
        except ScanError as exc:
            logger.error("%s", exc)
            return ModuleOutcome(module_root=str(root), error=exc)
        return ModuleOutcome(module_root=str(root), report=report)

    if jobs <= 1 or len(roots) <= 1:
        return [run(root) for root in roots]
    with ThreadPoolExecutor(max_workers=jobs) as pool:
        return list(pool.map(run, roots))
