"""Require files that every module of a given scope ships."""

from __future__ import annotations

from typing import List

from modcheck.inventory import ModuleInventory
from modcheck.registry import Rule, RuleKind
from modcheck.result import Violation

from . import expand_path, matching_files, violation


class FilePresenceCheck:
    kind = RuleKind.FILE_PRESENCE

    def evaluate(self, rule: Rule, inventory: ModuleInventory) -> List[Violation]:
        if matching_files(rule, inventory):
            return []
        expected = expand_path(rule, inventory)
        qualifier = "Required" if rule.required else "Recommended"
        message = f"{qualifier} file {expected} is missing"
        if rule.description:
            message = f"{message} ({rule.description})"
        return [violation(rule, message)]
