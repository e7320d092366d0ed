"""Rule registry: the declarative conventions a module is checked against.

Rules are read from YAML documents shaped like::

    rules:
      - id: FILE001
        kind: file-presence
        path: main.tf
        provider: all
        module_type: all
        required: true
        description: Root module entry point

A registry is immutable once loaded and keeps registration order so that
reports are reproducible from run to run.
"""

from __future__ import annotations

import functools
import logging
import re
from dataclasses import dataclass
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

import yaml

from .config import DEFAULT_RULES_RESOURCE
from .errors import RegistryLoadError
from .scope import ModuleType, Provider, scope_matches
from .severity import Severity
from .utils import parse_yaml_text, read_yaml_file

logger = logging.getLogger(__name__)

PLACEHOLDERS = ("{provider}", "{resource}")
PLACEHOLDER_PATTERN = re.compile(r"\{[^{}]*\}")
NAMING_TARGETS = ("resource", "data", "module", "variable", "output", "provider")
DEFAULT_FORBIDDEN_NAMES = ("this",)
ELEMENT_PATTERN = re.compile(r"\A[a-z_]+(?:\.[A-Za-z0-9_\-]+)?\Z")
KNOWN_KEYS = frozenset(
    {
        "id",
        "kind",
        "path",
        "provider",
        "module_type",
        "required",
        "description",
        "target",
        "resource_type",
        "forbidden",
        "name_pattern",
        "element",
        "text",
    }
)

RuleSource = Union[str, Path, Mapping[str, Any], Sequence[Mapping[str, Any]]]


class RuleKind(str, Enum):
    FILE_PRESENCE = "file-presence"
    NAMING_PATTERN = "naming-pattern"
    CONTENT_PATTERN = "content-pattern"


@dataclass(frozen=True)
class Rule:
    """One convention a module must (or should) satisfy."""

    id: str
    kind: RuleKind
    path: str
    provider: Provider = Provider.ALL
    module_type: ModuleType = ModuleType.ALL
    required: bool = True
    description: str = ""
    target: Optional[str] = None
    resource_type: Optional[str] = None
    forbidden: Tuple[str, ...] = ()
    name_pattern: Optional[str] = None
    element: Optional[str] = None
    text: Optional[str] = None

    @property
    def severity(self) -> Severity:
        return Severity.for_required(self.required)

    def applies_to(self, provider: Provider, module_type: ModuleType) -> bool:
        return scope_matches(self.provider, provider) and scope_matches(self.module_type, module_type)


class RuleRegistry:
    """Ordered, read-only collection of rules."""

    def __init__(self, rules: Sequence[Rule], source: str = "<memory>") -> None:
        self._rules: Tuple[Rule, ...] = tuple(rules)
        self._by_id: Dict[str, Rule] = {rule.id: rule for rule in self._rules}
        self.source = source

    @classmethod
    def load(cls, source: RuleSource) -> "RuleRegistry":
        """Build a registry from a YAML file path or already-parsed YAML data."""

        if isinstance(source, (str, Path)):
            label = str(source)
            path = Path(source)
            if not path.is_file():
                raise RegistryLoadError(label, "rule file does not exist")
            try:
                document = read_yaml_file(path)
            except (OSError, UnicodeDecodeError) as exc:
                raise RegistryLoadError(label, f"unreadable rule file ({exc})") from exc
            except yaml.YAMLError as exc:
                raise RegistryLoadError(label, f"invalid YAML ({exc})") from exc
        else:
            label = "<memory>"
            document = source

        rules = _parse_document(document, label)
        logger.debug("Loaded %d rules from %s", len(rules), label)
        return cls(rules, source=label)

    def rules_for(self, provider: Provider, module_type: ModuleType) -> List[Rule]:
        """Return rules whose scope covers ``provider`` and ``module_type``, in registration order."""

        return [rule for rule in self._rules if rule.applies_to(provider, module_type)]

    def get(self, rule_id: str) -> Optional[Rule]:
        return self._by_id.get(rule_id)

    def __iter__(self) -> Iterator[Rule]:
        return iter(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._by_id


@functools.lru_cache(maxsize=None)
def default_registry() -> RuleRegistry:
    """Return the packaged rule set, loaded once per process."""

    resource = resources.files("modcheck").joinpath(DEFAULT_RULES_RESOURCE)
    label = f"modcheck/{DEFAULT_RULES_RESOURCE}"
    try:
        document = parse_yaml_text(resource.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise RegistryLoadError(label, str(exc)) from exc
    registry = RuleRegistry(_parse_document(document, label), source=label)
    logger.debug("Loaded default registry with %d rules", len(registry))
    return registry


# ----------------------------------------------------------------------
# Validation helpers
# ----------------------------------------------------------------------
def _parse_document(document: Any, label: str) -> List[Rule]:
    if isinstance(document, Mapping):
        entries = document.get("rules")
        if entries is None:
            raise RegistryLoadError(label, "missing top-level 'rules' list")
    else:
        entries = document
    if not isinstance(entries, (list, tuple)):
        raise RegistryLoadError(label, "'rules' must be a list")

    rules: List[Rule] = []
    seen: Dict[str, int] = {}
    for index, entry in enumerate(entries):
        rule = _parse_rule(entry, index, label)
        if rule.id in seen:
            raise RegistryLoadError(label, f"duplicate rule id {rule.id!r} (entries {seen[rule.id]} and {index})")
        seen[rule.id] = index
        rules.append(rule)
    return rules


def _parse_rule(entry: Any, index: int, label: str) -> Rule:
    if not isinstance(entry, Mapping):
        raise RegistryLoadError(label, f"rule #{index} is not a mapping")

    rule_id = entry.get("id")
    if not isinstance(rule_id, str) or not rule_id.strip():
        raise RegistryLoadError(label, f"rule #{index} has no id")
    rule_id = rule_id.strip()

    def fail(reason: str) -> RegistryLoadError:
        return RegistryLoadError(label, f"rule {rule_id}: {reason}")

    unknown_keys = sorted(set(entry) - KNOWN_KEYS)
    if unknown_keys:
        raise fail(f"unknown keys {', '.join(map(str, unknown_keys))}")

    try:
        kind = RuleKind(entry.get("kind"))
    except ValueError:
        raise fail(f"unknown kind {entry.get('kind')!r}") from None

    provider = _parse_scope(Provider, entry.get("provider", "all"), "provider", fail)
    module_type = _parse_scope(ModuleType, entry.get("module_type", "all"), "module_type", fail)

    required = entry.get("required", True)
    if not isinstance(required, bool):
        raise fail("'required' must be true or false")

    path = entry.get("path")
    if not isinstance(path, str) or not path.strip():
        raise fail(f"{kind.value} rule needs a path or pattern")
    path = path.strip()
    for placeholder in PLACEHOLDER_PATTERN.findall(path):
        if placeholder not in PLACEHOLDERS:
            raise fail(f"unknown placeholder {placeholder} in path")

    description = entry.get("description") or ""
    if not isinstance(description, str):
        raise fail("'description' must be a string")

    fields: Dict[str, Any] = {}
    if kind is RuleKind.NAMING_PATTERN:
        fields.update(_parse_naming_fields(entry, fail))
    elif kind is RuleKind.CONTENT_PATTERN:
        fields.update(_parse_content_fields(entry, fail))
    else:
        stray = [key for key in ("target", "resource_type", "forbidden", "name_pattern", "element", "text") if key in entry]
        if stray:
            raise fail(f"file-presence rules do not accept {', '.join(stray)}")

    return Rule(
        id=rule_id,
        kind=kind,
        path=path,
        provider=provider,
        module_type=module_type,
        required=required,
        description=description.strip(),
        **fields,
    )


def _parse_scope(enum_type, value: Any, field_name: str, fail) -> Any:
    if not isinstance(value, str):
        raise fail(f"'{field_name}' must be a string")
    try:
        scope = enum_type(value.strip().lower())
    except ValueError:
        raise fail(f"invalid {field_name} scope {value!r}") from None
    if scope.value == "unknown":
        raise fail(f"{field_name} scope cannot be 'unknown'")
    return scope


def _compile(pattern: Any, field_name: str, fail) -> str:
    if not isinstance(pattern, str) or not pattern:
        raise fail(f"'{field_name}' must be a non-empty string")
    try:
        re.compile(pattern)
    except re.error as exc:
        raise fail(f"invalid regex in '{field_name}' ({exc})") from None
    return pattern


def _parse_naming_fields(entry: Mapping[str, Any], fail) -> Dict[str, Any]:
    target = entry.get("target")
    if target not in NAMING_TARGETS:
        raise fail(f"naming-pattern rules need a target in {', '.join(NAMING_TARGETS)}")

    forbidden = entry.get("forbidden", list(DEFAULT_FORBIDDEN_NAMES))
    if isinstance(forbidden, str):
        forbidden = [forbidden]
    if not isinstance(forbidden, (list, tuple)) or not all(isinstance(name, str) for name in forbidden):
        raise fail("'forbidden' must be a list of names")

    name_pattern = entry.get("name_pattern")
    if name_pattern is not None:
        name_pattern = _compile(name_pattern, "name_pattern", fail)

    resource_type = entry.get("resource_type")
    if resource_type is not None and not isinstance(resource_type, str):
        raise fail("'resource_type' must be a string")

    if not forbidden and name_pattern is None:
        raise fail("naming-pattern rules need 'forbidden' names or a 'name_pattern'")

    return {
        "target": target,
        "resource_type": resource_type,
        "forbidden": tuple(forbidden),
        "name_pattern": name_pattern,
    }


def _parse_content_fields(entry: Mapping[str, Any], fail) -> Dict[str, Any]:
    element = entry.get("element")
    text = entry.get("text")
    if element is None and text is None:
        raise fail("content-pattern rules need an 'element' or a 'text' pattern")
    if element is not None and (not isinstance(element, str) or not ELEMENT_PATTERN.match(element)):
        raise fail(f"invalid element {element!r}; expected '<block>' or '<block>.<name>'")
    if text is not None:
        text = _compile(text, "text", fail)
    return {"element": element, "text": text}
