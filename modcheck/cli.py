"""Command-line entry point for the Terraform module conformance checker."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

from .checker import ModuleOutcome, check_many
from .config import DEFAULT_FORMAT, DEFAULT_JOBS, log_level_from_env, rules_path_from_env
from .errors import RegistryLoadError
from .registry import RuleRegistry, default_registry
from .report import SUPPORTED_FORMATS, emit
from .scope import ModuleType, Provider, scope_matches

logger = logging.getLogger(__name__)

EXIT_PASS = 0
EXIT_FAIL = 1
EXIT_ERROR = 2

PROVIDER_CHOICES = [provider.value for provider in Provider if provider.value not in ("all", "unknown")]
MODULE_TYPE_CHOICES = [module_type.value for module_type in ModuleType if module_type.value not in ("all", "unknown")]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modcheck",
        description="Static conformance checker for Terraform primitive and reference modules",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (repeatable).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Check one or more module directories.")
    validate.add_argument("module_roots", nargs="+", metavar="module-root", help="Module directory to check.")
    _add_rule_arguments(validate)
    validate.add_argument(
        "--format",
        choices=list(SUPPORTED_FORMATS),
        default=DEFAULT_FORMAT,
        help="Report format (defaults to text).",
    )
    validate.add_argument(
        "--out",
        "--output",
        dest="output_path",
        default=None,
        help="Path to write the report instead of stdout (e.g., artifacts/conformance.json).",
    )
    validate.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=DEFAULT_JOBS,
        help="Number of module roots to check in parallel.",
    )

    rules = subparsers.add_parser("rules", help="List the rules that apply to a provider and module type.")
    _add_rule_arguments(rules)
    return parser


def _add_rule_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--rules",
        dest="rules_path",
        default=None,
        help="YAML rule file (defaults to $MODCHECK_RULES or the bundled conventions).",
    )
    parser.add_argument(
        "--provider",
        choices=PROVIDER_CHOICES,
        default=None,
        help="Override the provider inferred from the directory name.",
    )
    parser.add_argument(
        "--module-type",
        choices=MODULE_TYPE_CHOICES,
        default=None,
        help="Override the module type inferred from the directory name.",
    )


def configure_logging(verbosity: int) -> None:
    level_name = log_level_from_env()
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    elif level_name and isinstance(logging.getLevelName(level_name), int):
        level = logging.getLevelName(level_name)
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr, force=True)


def load_registry(rules_path: str | None) -> RuleRegistry:
    path = rules_path or rules_path_from_env()
    if path:
        logger.info("Loading rules from %s", path)
        return RuleRegistry.load(path)
    return default_registry()


def render(outcomes: List[ModuleOutcome], report_format: str) -> str:
    if report_format == "json":
        if len(outcomes) == 1 and outcomes[0].report is not None:
            return emit(outcomes[0].report, "json")
        payload = [
            outcome.report.to_dict()
            if outcome.report is not None
            else {"module_root": outcome.module_root, "error": str(outcome.error)}
            for outcome in outcomes
        ]
        return json.dumps(payload, indent=2)

    sections: List[str] = []
    for outcome in outcomes:
        if outcome.report is None:
            continue
        body = emit(outcome.report, report_format)
        if len(outcomes) > 1 and report_format == "text":
            status = "PASS" if outcome.report.passed else "FAIL"
            body = f"== {outcome.module_root} ({status})" + (f"\n{body}" if body else "")
        if body:
            sections.append(body)
    separator = "\n\n" if report_format == "table" else "\n"
    return separator.join(sections)


def write_output(payload: str, output_path: str | None) -> None:
    if output_path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)
        output_file.write_text(payload + "\n", encoding="utf-8")
        print(f"Report written to {output_path}")
    elif payload:
        print(payload)


def exit_code_for(outcomes: List[ModuleOutcome]) -> int:
    if any(outcome.error is not None for outcome in outcomes):
        return EXIT_ERROR
    if all(outcome.passed for outcome in outcomes):
        return EXIT_PASS
    return EXIT_FAIL


def run_validate(args: argparse.Namespace) -> int:
    registry = load_registry(args.rules_path)
    outcomes = check_many(
        args.module_roots,
        registry,
        provider=args.provider,
        module_type=args.module_type,
        jobs=max(args.jobs, 1),
    )
    for outcome in outcomes:
        if outcome.error is not None:
            print(f"error: {outcome.error}", file=sys.stderr)
    write_output(render(outcomes, args.format), args.output_path)
    return exit_code_for(outcomes)


def run_rules(args: argparse.Namespace) -> int:
    registry = load_registry(args.rules_path)
    rules = list(registry)
    # An omitted scope field lists rules for every value of that field.
    if args.provider is not None:
        provider = Provider.parse(args.provider)
        rules = [rule for rule in rules if scope_matches(rule.provider, provider)]
    if args.module_type is not None:
        module_type = ModuleType.parse(args.module_type)
        rules = [rule for rule in rules if scope_matches(rule.module_type, module_type)]
    for rule in rules:
        required = "required" if rule.required else "optional"
        scope = f"{rule.provider.value}/{rule.module_type.value}"
        print(f"{rule.id:<10} {rule.kind.value:<16} {scope:<15} {required:<9} {rule.path}  {rule.description}".rstrip())
    return EXIT_PASS


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    try:
        if args.command == "rules":
            return run_rules(args)
        return run_validate(args)
    except RegistryLoadError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
