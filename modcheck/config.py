"""Central configuration and tunable constants.

- The rule file and log level can be overridden by CLI args or environment variables.
- Scanner limits are centralized for easy tuning.
"""

from __future__ import annotations

import os

RULES_ENV_VAR = "MODCHECK_RULES"
LOG_LEVEL_ENV_VAR = "MODCHECK_LOG_LEVEL"

# Packaged rule set, resolved relative to the ``modcheck`` package.
DEFAULT_RULES_RESOURCE = "data/default_rules.yaml"

DEFAULT_FORMAT = "text"
DEFAULT_JOBS = 1

# Directories never descended into while scanning a module root.
IGNORED_DIRS = frozenset({".git", ".terraform", ".terragrunt-cache"})

# Files whose text is kept in the inventory for content checks.
TEXT_SUFFIXES = frozenset({".tf", ".tfvars", ".hcl", ".md", ".yaml", ".yml", ".json", ".go", ".js", ".mk"})
TEXT_NAMES = frozenset({"Makefile", "LICENSE", "NOTICE", ".gitignore", ".tool-versions", ".secrets.baseline"})
MAX_TEXT_BYTES = 1024 * 1024


def rules_path_from_env() -> str | None:
    """Return the rule file configured through the environment, if any."""

    value = os.environ.get(RULES_ENV_VAR, "").strip()
    return value or None


def log_level_from_env() -> str | None:
    value = os.environ.get(LOG_LEVEL_ENV_VAR, "").strip()
    return value.upper() or None
