"""Repository scanner: snapshot a module directory into a ``ModuleInventory``."""

from __future__ import annotations

import errno
import logging
import os
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, FrozenSet, List, Mapping, Optional, Set, Tuple, Union

from .config import IGNORED_DIRS, MAX_TEXT_BYTES, TEXT_NAMES, TEXT_SUFFIXES
from .errors import ScanCancelled, ScanError
from .scope import ModuleType, Provider
from .utils import Declaration, parse_declarations, read_text_file

logger = logging.getLogger(__name__)

MODULE_NAME_PATTERN = re.compile(
    r"\Atf-(?P<provider>[a-z0-9]+)-module_(?P<module_type>primitive|reference)-(?P<resource>[A-Za-z0-9_\-]+)\Z"
)


@dataclass(frozen=True)
class ModuleInventory:
    """Read-only snapshot of the files found beneath one module root."""

    root_path: str
    files: FrozenSet[str]
    provider: Provider = Provider.UNKNOWN
    module_type: ModuleType = ModuleType.UNKNOWN
    resource: Optional[str] = None
    texts: Mapping[str, str] = field(default_factory=dict)
    declarations: Mapping[str, Tuple[Declaration, ...]] = field(default_factory=dict)

    def sorted_files(self) -> List[str]:
        return sorted(self.files)


def infer_identity(directory_name: str) -> Tuple[Provider, ModuleType, Optional[str]]:
    """Infer provider, module type and resource from a ``tf-<provider>-module_<type>-<resource>`` name."""

    match = MODULE_NAME_PATTERN.match(directory_name)
    if not match:
        return Provider.UNKNOWN, ModuleType.UNKNOWN, None
    provider = Provider.parse(match.group("provider"))
    if provider is Provider.ALL:
        provider = Provider.UNKNOWN
    return provider, ModuleType(match.group("module_type")), match.group("resource")


def scan(
    root: Union[str, Path],
    provider: Optional[Union[str, Provider]] = None,
    module_type: Optional[Union[str, ModuleType]] = None,
    cancel: Optional[threading.Event] = None,
) -> ModuleInventory:
    """Walk ``root`` and return its inventory.

    Directory symlinks are followed once. A link that leads back to one of its
    own ancestors, or a chain of links that never resolves (``ELOOP``), raises
    ``ScanError`` with ``reason == "cycle"``. Setting
    ``cancel`` aborts the walk with ``ScanCancelled``; nothing partial is
    returned.
    """

    root_path = Path(root)
    label = str(root_path)
    if not root_path.exists():
        raise ScanError(label, "path does not exist")
    if not root_path.is_dir():
        raise ScanError(label, "not a directory")
    if not os.access(root_path, os.R_OK | os.X_OK):
        raise ScanError(label, "permission denied")

    try:
        real_root = root_path.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise ScanError(label, "cannot resolve path", exc) from exc

    walker = _Walker(real_root, label, cancel)
    walker.walk(real_root, "", (str(real_root),))

    inferred_provider, inferred_type, resource = infer_identity(real_root.name)
    resolved_provider = _coerce(Provider, provider, inferred_provider)
    resolved_type = _coerce(ModuleType, module_type, inferred_type)

    texts: Dict[str, str] = {}
    declarations: Dict[str, Tuple[Declaration, ...]] = {}
    for relative, absolute in sorted(walker.files.items()):
        _check_cancel(cancel, label)
        if not _is_text_candidate(relative):
            continue
        try:
            text = read_text_file(absolute, max_bytes=MAX_TEXT_BYTES)
        except OSError as exc:
            raise ScanError(label, f"cannot read {relative}", exc) from exc
        if text is None:
            logger.debug("Skipping content of %s (binary or too large)", relative)
            continue
        texts[relative] = text
        if relative.endswith(".tf"):
            declarations[relative] = parse_declarations(text)

    logger.info(
        "Scanned %s: %d files, provider=%s, module_type=%s",
        label,
        len(walker.files),
        resolved_provider.value,
        resolved_type.value,
    )
    return ModuleInventory(
        root_path=label,
        files=frozenset(walker.files),
        provider=resolved_provider,
        module_type=resolved_type,
        resource=resource,
        texts=texts,
        declarations=declarations,
    )


class _Walker:
    def __init__(self, real_root: Path, label: str, cancel: Optional[threading.Event]) -> None:
        self._label = label
        self._cancel = cancel
        self._visited: Set[str] = {str(real_root)}
        self.files: Dict[str, Path] = {}

    def walk(self, directory: Path, prefix: str, ancestors: Tuple[str, ...]) -> None:
        _check_cancel(self._cancel, self._label)
        try:
            with os.scandir(directory) as entries:
                children = sorted(entries, key=lambda entry: entry.name)
        except OSError as exc:
            raise ScanError(self._label, f"cannot list {prefix or '.'}", exc) from exc

        for entry in children:
            relative = f"{prefix}{entry.name}"
            try:
                is_dir = entry.is_dir(follow_symlinks=True)
                is_link = entry.is_symlink()
            except OSError as exc:
                if exc.errno == errno.ELOOP:
                    raise ScanError(self._label, "cycle", exc) from exc
                raise ScanError(self._label, f"cannot stat {relative}", exc) from exc

            if not is_dir:
                if is_link and not self._link_target_exists(entry.path, relative):
                    logger.debug("Ignoring dangling symlink %s", relative)
                    continue
                self.files[relative] = Path(entry.path)
                continue

            if entry.name in IGNORED_DIRS:
                continue
            try:
                real = os.path.realpath(entry.path)
            except OSError as exc:
                raise ScanError(self._label, f"cannot resolve {relative}", exc) from exc
            if real in ancestors:
                raise ScanError(self._label, "cycle", OSError(f"{relative} links back to {real}"))
            if is_link and real in self._visited:
                logger.debug("Already scanned %s, skipping link %s", real, relative)
                continue
            self._visited.add(real)
            self.walk(Path(entry.path), f"{relative}/", ancestors + (real,))

    def _link_target_exists(self, path: str, relative: str) -> bool:
        """Return False for a dangling link; links that loop back on themselves are cycles."""

        try:
            os.stat(path)
        except FileNotFoundError:
            return False
        except OSError as exc:
            if exc.errno == errno.ELOOP:
                raise ScanError(self._label, "cycle", exc) from exc
            raise ScanError(self._label, f"cannot stat {relative}", exc) from exc
        return True


def _check_cancel(cancel: Optional[threading.Event], label: str) -> None:
    if cancel is not None and cancel.is_set():
        raise ScanCancelled(label)


def _is_text_candidate(relative: str) -> bool:
    name = relative.rsplit("/", 1)[-1]
    if name in TEXT_NAMES:
        return True
    return os.path.splitext(name)[1] in TEXT_SUFFIXES


def _coerce(enum_type, value, default):
    if value is None:
        return default
    parsed = value if isinstance(value, enum_type) else enum_type.parse(value)
    if parsed.value == "all":
        return enum_type.UNKNOWN
    return parsed
