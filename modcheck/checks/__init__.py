"""Evaluators for each rule kind."""

from __future__ import annotations

import functools
import re
from typing import Iterable, List, Pattern, Protocol

from modcheck.inventory import ModuleInventory
from modcheck.registry import Rule, RuleKind
from modcheck.result import Violation


class Check(Protocol):
    """Protocol implemented by all rule-kind evaluators."""

    kind: RuleKind

    def evaluate(self, rule: Rule, inventory: ModuleInventory) -> Iterable[Violation]:
        """Return the violations ``rule`` produces against ``inventory``."""


@functools.lru_cache(maxsize=256)
def compile_glob(pattern: str) -> Pattern[str]:
    """Translate a path glob: ``**/`` spans directories, ``*`` and ``?`` stay within one."""

    parts: List[str] = []
    index = 0
    while index < len(pattern):
        if pattern.startswith("**/", index):
            parts.append("(?:.*/)?")
            index += 3
        elif pattern.startswith("**", index):
            parts.append(".*")
            index += 2
        elif pattern[index] == "*":
            parts.append("[^/]*")
            index += 1
        elif pattern[index] == "?":
            parts.append("[^/]")
            index += 1
        else:
            parts.append(re.escape(pattern[index]))
            index += 1
    return re.compile("".join(parts) + r"\Z")


def expand_path(rule: Rule, inventory: ModuleInventory) -> str:
    """Substitute ``{provider}`` and ``{resource}``; unknown values become wildcards."""

    provider = inventory.provider.value if inventory.provider.value != "unknown" else "*"
    resource = inventory.resource or "*"
    return rule.path.replace("{provider}", provider).replace("{resource}", resource)


def matching_files(rule: Rule, inventory: ModuleInventory) -> List[str]:
    """Return the inventory files matching the rule's path, sorted."""

    pattern = compile_glob(expand_path(rule, inventory))
    return [path for path in inventory.sorted_files() if pattern.match(path)]


def violation(rule: Rule, message: str, path: str | None = None, line: int | None = None) -> Violation:
    return Violation(
        rule_id=rule.id,
        kind=rule.kind.value,
        severity=rule.severity,
        message=message,
        path=path,
        line=line,
    )
