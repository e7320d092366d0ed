"""Require structural elements inside matching files."""

from __future__ import annotations

import re
from typing import List, Optional

from modcheck.inventory import ModuleInventory
from modcheck.registry import Rule, RuleKind
from modcheck.result import Violation

from . import expand_path, matching_files, violation


class ContentPatternCheck:
    kind = RuleKind.CONTENT_PATTERN

    def evaluate(self, rule: Rule, inventory: ModuleInventory) -> List[Violation]:
        expected = expand_path(rule, inventory)
        files = matching_files(rule, inventory)
        if not files:
            if rule.required:
                return [violation(rule, f"No file matching {expected} to look for {_wanted(rule)}")]
            return []

        for path in files:
            if self._file_satisfies(rule, inventory, path):
                return []
        location = files[0] if len(files) == 1 else None
        return [violation(rule, f"{_wanted(rule)} not found in {expected}", path=location)]

    def _file_satisfies(self, rule: Rule, inventory: ModuleInventory, path: str) -> bool:
        if rule.element is not None:
            block, name = _split_element(rule.element)
            declarations = inventory.declarations.get(path, ())
            if not any(d.kind == block and (name is None or d.name == name) for d in declarations):
                return False
        if rule.text is not None:
            text = inventory.texts.get(path)
            if text is None or not re.search(rule.text, text, re.MULTILINE):
                return False
        return True


def _split_element(element: str) -> tuple[str, Optional[str]]:
    block, _, name = element.partition(".")
    return block, name or None


def _wanted(rule: Rule) -> str:
    parts = []
    if rule.element is not None:
        block, name = _split_element(rule.element)
        parts.append(f'{block} "{name}"' if name else f"{block} block")
    if rule.text is not None:
        parts.append(f"text /{rule.text}/")
    return " with ".join(parts)
