"""Utility helpers for the checker."""

from .fileio import parse_yaml_text, read_text_file, read_yaml_file
from .hcl import Declaration, parse_declarations

__all__ = [
    "read_yaml_file",
    "read_text_file",
    "parse_yaml_text",
    "Declaration",
    "parse_declarations",
]
