import pytest

from modcheck import checker
from modcheck.checker import check, check_many, check_module
from modcheck.inventory import ModuleInventory, scan
from modcheck.registry import RuleKind, RuleRegistry, default_registry
from modcheck.scope import ModuleType, Provider
from modcheck.severity import Severity

PRIMITIVE_RULES = RuleRegistry.load(
    [
        {"id": "FILE001", "kind": "file-presence", "path": "main.tf"},
        {"id": "FILE002", "kind": "file-presence", "path": "variables.tf"},
        {"id": "FILE003", "kind": "file-presence", "path": "outputs.tf", "module_type": "primitive"},
        {"id": "NAME001", "kind": "naming-pattern", "path": "*.tf", "target": "resource", "forbidden": ["this"]},
        {
            "id": "CONTENT001",
            "kind": "content-pattern",
            "path": "variables.tf",
            "element": "variable.tags",
            "module_type": "primitive",
        },
        {"id": "AZ001", "kind": "file-presence", "path": "providers.tf", "provider": "azure"},
        {
            "id": "AZ002",
            "kind": "content-pattern",
            "path": "versions.tf",
            "provider": "azure",
            "text": "hashicorp/azurerm",
        },
    ]
)


def run(root):
    inventory = scan(root)
    return check(inventory, PRIMITIVE_RULES.rules_for(inventory.provider, inventory.module_type))


def test_missing_required_files_are_errors(make_module):
    root = make_module("tf-aws-module_primitive-s3_bucket", {"outputs.tf": 'output "id" {\n  value = 1\n}\n'})

    report = check(scan(root), [PRIMITIVE_RULES.get("FILE001"), PRIMITIVE_RULES.get("FILE002")])

    assert not report.passed
    assert report.summary.error == 2
    assert [v.rule_id for v in report.violations] == ["FILE001", "FILE002"]
    assert all(v.severity is Severity.ERROR for v in report.violations)


def test_generic_resource_name_is_flagged(make_module, primitive_files):
    primitive_files["main.tf"] = 'resource "aws_s3_bucket" "this" {\n  bucket = var.name\n}\n'
    root = make_module("tf-aws-module_primitive-s3_bucket", primitive_files)

    report = run(root)

    assert not report.passed
    assert len(report.violations) == 1
    violation = report.violations[0]
    assert violation.rule_id == "NAME001"
    assert violation.severity is Severity.ERROR
    assert violation.path == "main.tf"
    assert violation.line == 1
    assert "'this'" in violation.message


def test_conformant_primitive_passes(conformant_primitive):
    report = run(conformant_primitive)

    assert report.passed
    assert report.violations == ()


def test_provider_inference_excludes_other_provider_rules(make_module):
    root = make_module("tf-aws-module_primitive-s3_bucket", {})
    inventory = scan(root)

    report = check(inventory, list(PRIMITIVE_RULES))

    assert inventory.provider is Provider.AWS
    assert inventory.module_type is ModuleType.PRIMITIVE
    ids = report.rule_ids()
    assert "AZ001" not in ids
    assert "AZ002" not in ids
    assert "FILE003" in ids


def test_empty_directory_reports_every_required_rule_once(make_module):
    root = make_module("tf-aws-module_primitive-s3_bucket", {})

    report = run(root)

    expected = [rule.id for rule in PRIMITIVE_RULES.rules_for(Provider.AWS, ModuleType.PRIMITIVE)]
    assert report.rule_ids() == expected
    assert all(v.severity is Severity.ERROR for v in report.violations)
    assert not report.passed


def test_unknown_directory_only_gets_unscoped_rules(make_module):
    root = make_module("scratch", {})

    report = run(root)

    assert report.provider == "unknown"
    assert report.rule_ids() == ["FILE001", "FILE002", "NAME001"]


def test_check_is_deterministic(make_module, primitive_files):
    primitive_files["main.tf"] = 'resource "aws_s3_bucket" "this" {}\nresource "aws_s3_bucket_policy" "this" {}\n'
    del primitive_files["variables.tf"]
    root = make_module("tf-aws-module_primitive-s3_bucket", primitive_files)
    inventory = scan(root)
    rules = PRIMITIVE_RULES.rules_for(inventory.provider, inventory.module_type)

    first = check(inventory, rules)
    second = check(inventory, rules)

    assert first == second
    assert first.rule_ids() == ["FILE002", "NAME001", "NAME001", "CONTENT001"]


def test_optional_rules_only_warn(make_module):
    registry = RuleRegistry.load(
        [
            {"id": "FILE001", "kind": "file-presence", "path": "main.tf"},
            {"id": "FILE005", "kind": "file-presence", "path": "locals.tf", "required": False},
            {"id": "CONTENT009", "kind": "content-pattern", "path": "main.tf", "element": "module", "required": False},
        ]
    )
    root = make_module("module", {"main.tf": 'resource "null_resource" "marker" {}\n'})

    report = check(scan(root), list(registry))

    assert report.passed
    assert [(v.rule_id, v.severity) for v in report.violations] == [
        ("FILE005", Severity.WARNING),
        ("CONTENT009", Severity.WARNING),
    ]


def test_content_rule_matches_text_and_element(make_module):
    registry = RuleRegistry.load(
        [
            {
                "id": "CONTENT003",
                "kind": "content-pattern",
                "path": "versions.tf",
                "element": "terraform",
                "text": r"required_providers\s*\{",
            }
        ]
    )
    good = make_module("good", {"versions.tf": "terraform {\n  required_providers {\n  }\n}\n"})
    bad = make_module("bad", {"versions.tf": 'terraform {\n  required_version = ">= 1.5"\n}\n'})

    assert check(scan(good), list(registry)).passed
    report = check(scan(bad), list(registry))
    assert report.violations[0].path == "versions.tf"
    assert "not found in versions.tf" in report.violations[0].message


def test_name_pattern_enforced_per_declaration(make_module):
    registry = RuleRegistry.load(
        [
            {
                "id": "NAME003",
                "kind": "naming-pattern",
                "path": "variables.tf",
                "target": "variable",
                "forbidden": [],
                "name_pattern": "[a-z][a-z0-9_]*",
            }
        ]
    )
    root = make_module(
        "module",
        {"variables.tf": 'variable "name" {}\nvariable "storageAccount" {}\nvariable "Tags" {}\n'},
    )

    report = check(scan(root), list(registry))

    assert [(v.line, v.path) for v in report.violations] == [(2, "variables.tf"), (3, "variables.tf")]


def test_provider_placeholder_expands(make_module):
    registry = RuleRegistry.load([{"id": "DOC001", "kind": "file-presence", "path": "docs/{provider}/{resource}.md"}])
    present = make_module("tf-gcp-module_primitive-bucket", {"docs/gcp/bucket.md": "# bucket\n"})
    missing = make_module("tf-aws-module_primitive-bucket", {"docs/gcp/bucket.md": "# bucket\n"})

    assert check(scan(present), list(registry)).passed
    report = check(scan(missing), list(registry))
    assert "docs/aws/bucket.md" in report.violations[0].message


def test_evaluator_failure_becomes_violation(make_module, monkeypatch):
    class Exploding:
        kind = RuleKind.FILE_PRESENCE

        def evaluate(self, rule, inventory):
            raise RuntimeError("boom")

    monkeypatch.setitem(checker.CHECKS, RuleKind.FILE_PRESENCE, Exploding())
    root = make_module("module", {"variables.tf": 'variable "tags" {}\n'})
    registry = RuleRegistry.load(
        [
            {"id": "FILE001", "kind": "file-presence", "path": "main.tf"},
            {"id": "CONTENT001", "kind": "content-pattern", "path": "variables.tf", "element": "variable.tags"},
        ]
    )

    report = check(scan(root), list(registry))

    assert report.rule_ids() == ["FILE001"]
    assert "boom" in report.violations[0].message


def test_default_rules_accept_conformant_primitive(conformant_primitive):
    report = check_module(conformant_primitive, default_registry())

    assert report.passed
    assert report.violations == ()


def test_default_rules_flag_reference_without_modules(make_module, primitive_files):
    root = make_module("tf-aws-module_reference-static_site", primitive_files)

    report = check_module(root, default_registry())

    assert report.module_type == "reference"
    assert "CONTENT008" in report.rule_ids()
    assert "CONTENT001" not in report.rule_ids()


@pytest.mark.parametrize("jobs", [1, 4])
def test_check_many_isolates_scan_errors(conformant_primitive, tmp_path, jobs):
    roots = [conformant_primitive, tmp_path / "missing", conformant_primitive]

    outcomes = check_many(roots, PRIMITIVE_RULES, jobs=jobs)

    assert [outcome.module_root for outcome in outcomes] == [str(root) for root in roots]
    assert outcomes[0].passed and outcomes[2].passed
    assert outcomes[1].report is None
    assert outcomes[1].error.reason == "path does not exist"


def test_check_accepts_prebuilt_inventory():
    inventory = ModuleInventory(root_path="virtual", files=frozenset({"main.tf"}))

    report = check(inventory, PRIMITIVE_RULES.rules_for(inventory.provider, inventory.module_type))

    assert report.rule_ids() == ["FILE002", "NAME001"]


def test_generic_name_after_heredoc_is_flagged(make_module, primitive_files):
    primitive_files["main.tf"] = (
        'resource "aws_s3_bucket_policy" "policy" {\n'
        "  policy = <<POLICY\n"
        '  {"Version": "2012-10-17", "Statement": [{\n'
        "POLICY\n"
        "}\n"
        'resource "aws_s3_bucket" "this" {}\n'
    )
    root = make_module("tf-aws-module_primitive-s3_bucket", primitive_files)

    report = run(root)

    assert [(v.rule_id, v.line) for v in report.violations] == [("NAME001", 6)]
