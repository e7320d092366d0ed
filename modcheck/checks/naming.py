"""Flag declared block names that break the naming convention.

Generic placeholder names such as ``this`` are rejected; a descriptive name
is otherwise a human judgement, so only forbidden names and an optional
regex are enforced.
"""

from __future__ import annotations

import re
from typing import List

from modcheck.inventory import ModuleInventory
from modcheck.registry import Rule, RuleKind
from modcheck.result import Violation

from . import expand_path, matching_files, violation


class NamingPatternCheck:
    kind = RuleKind.NAMING_PATTERN

    def evaluate(self, rule: Rule, inventory: ModuleInventory) -> List[Violation]:
        files = [path for path in matching_files(rule, inventory) if path in inventory.declarations]
        if not files:
            if rule.required:
                return [
                    violation(rule, f"No Terraform file matching {expand_path(rule, inventory)} to check {rule.target} names")
                ]
            return []

        pattern = re.compile(rule.name_pattern) if rule.name_pattern else None
        forbidden = {name.lower() for name in rule.forbidden}
        violations: List[Violation] = []
        for path in files:
            for declaration in inventory.declarations[path]:
                if declaration.kind != rule.target:
                    continue
                if rule.resource_type and declaration.type != rule.resource_type:
                    continue
                label = _describe(declaration.kind, declaration.type, declaration.name)
                if declaration.name.lower() in forbidden:
                    message = f"{label} uses the generic name {declaration.name!r}; use a descriptive name"
                elif pattern is not None and not pattern.fullmatch(declaration.name):
                    message = f"{label} does not match naming pattern {rule.name_pattern}"
                else:
                    continue
                violations.append(violation(rule, message, path=path, line=declaration.line))
        return violations


def _describe(kind: str, block_type: str | None, name: str) -> str:
    if block_type:
        return f'{kind} "{block_type}" "{name}"'
    return f'{kind} "{name}"'
