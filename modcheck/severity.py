"""Severity definitions for conformance violations."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Enumerate the supported severity levels for violations."""

    ERROR = "error"
    WARNING = "warning"

    @classmethod
    def for_required(cls, required: bool) -> "Severity":
        """Required rules fail the report; optional ones only warn."""

        return cls.ERROR if required else cls.WARNING
