"""Provider and module-type scopes shared by rules and inventories.

Rules carry a concrete value or ``ALL``; inventories carry a concrete value
or ``UNKNOWN``. ``UNKNOWN`` only ever matches ``ALL``.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional


class Provider(str, Enum):
    AZURE = "azure"
    AWS = "aws"
    GCP = "gcp"
    ALL = "all"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Provider":
        """Map a provider name or alias onto the enum, ``UNKNOWN`` if unrecognised."""

        if value is None:
            return cls.UNKNOWN
        lowered = str(value).strip().lower()
        lowered = PROVIDER_ALIASES.get(lowered, lowered)
        try:
            return cls(lowered)
        except ValueError:
            return cls.UNKNOWN


PROVIDER_ALIASES: Dict[str, str] = {
    "azurerm": "azure",
    "azureplus": "azure",
    "azureapi": "azure",
    "google": "gcp",
    "googlecloud": "gcp",
    "amazon": "aws",
}


class ModuleType(str, Enum):
    PRIMITIVE = "primitive"
    REFERENCE = "reference"
    ALL = "all"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ModuleType":
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.UNKNOWN


def scope_matches(scope: Enum, value: Enum) -> bool:
    """Return True when a rule declared for ``scope`` applies to ``value``."""

    if scope.value == "all":
        return True
    if value.value == "unknown":
        return False
    return scope is value
