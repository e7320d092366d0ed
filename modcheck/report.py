"""Render conformance reports for people and machines."""

from __future__ import annotations

import json
from typing import Callable, Dict, List

from .errors import UnsupportedFormatError
from .result import ConformanceReport


def format_text(report: ConformanceReport) -> str:
    """One ``<severity>: <rule-id>: <message>`` line per violation."""

    return "\n".join(
        f"{violation.severity.value}: {violation.rule_id}: {violation.message}" for violation in report.violations
    )


def format_json(report: ConformanceReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def format_summary_table(report: ConformanceReport) -> str:
    """Create a human-readable summary table for console output."""

    lines: List[str] = []
    lines.append(f"Conformance Summary: {report.module_root}")
    lines.append("=" * 40)
    lines.append(f"Provider  : {report.provider}")
    lines.append(f"Type      : {report.module_type}")
    header = f"{'Severity':<10} | {'Count':>5}"
    lines.append(header)
    lines.append("-" * len(header))
    summary = report.summary
    for severity, count in summary.as_rows():
        lines.append(f"{severity:<10} | {count:>5}")
    lines.append("-" * len(header))
    status = "PASS" if report.passed else "FAIL"
    lines.append(f"Status    : {status}")
    lines.append(f"Violations: {summary.total}")

    if report.violations:
        lines.append("")
        lines.append("Violations")
        lines.append("-" * 40)
        for violation in report.violations:
            lines.append(f"[{violation.severity.value.upper()}] {violation.rule_id} {violation.message}")
            lines.append(f"  Location: {violation.location}")
    return "\n".join(lines)


FORMATTERS: Dict[str, Callable[[ConformanceReport], str]] = {
    "text": format_text,
    "json": format_json,
    "table": format_summary_table,
}
SUPPORTED_FORMATS = tuple(FORMATTERS)


def emit(report: ConformanceReport, report_format: str) -> str:
    """Render ``report`` in ``report_format`` without altering its content."""

    try:
        formatter = FORMATTERS[report_format]
    except (KeyError, TypeError):
        raise UnsupportedFormatError(str(report_format), SUPPORTED_FORMATS) from None
    return formatter(report)
