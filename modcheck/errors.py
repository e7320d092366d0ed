"""Exceptions raised by the conformance pipeline.

Convention breaches are reported as violations; these errors cover the cases
where a report cannot be produced at all.
"""

from __future__ import annotations

from typing import Optional


class ModcheckError(Exception):
    """Base class for modcheck failures."""


class RegistryLoadError(ModcheckError):
    """The rule source is unreadable, malformed or contains an invalid rule."""

    def __init__(self, source: str, reason: str) -> None:
        super().__init__(f"Failed to load rules from {source}: {reason}")
        self.source = source
        self.reason = reason


class ScanError(ModcheckError):
    """A module root could not be scanned."""

    def __init__(self, path: str, reason: str, cause: Optional[BaseException] = None) -> None:
        message = f"Cannot scan {path}: {reason}"
        if cause is not None:
            message = f"{message} ({cause})"
        super().__init__(message)
        self.path = path
        self.reason = reason
        self.cause = cause


class ScanCancelled(ScanError):
    """The caller aborted the scan before it finished."""

    def __init__(self, path: str) -> None:
        super().__init__(path, "cancelled")


class UnsupportedFormatError(ModcheckError):
    """The emitter was asked for a format it does not know."""

    def __init__(self, report_format: str, supported: tuple[str, ...]) -> None:
        super().__init__(f"Unsupported report format {report_format!r}; expected one of {', '.join(supported)}")
        self.report_format = report_format
        self.supported = supported
