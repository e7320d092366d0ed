"""Basic file IO helpers."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml


def read_yaml_file(path: Path) -> Any:
    """Return the parsed YAML document stored at ``path``."""

    with path.open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def parse_yaml_text(text: str) -> Any:
    return yaml.safe_load(text)


def read_text_file(path: Path, max_bytes: Optional[int] = None) -> Optional[str]:
    """Return the file contents as UTF-8 text.

    ``None`` is returned for files larger than ``max_bytes`` or that are not
    valid UTF-8, so binary artefacts never reach content checks.
    """

    if max_bytes is not None and path.stat().st_size > max_bytes:
        return None
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return None
