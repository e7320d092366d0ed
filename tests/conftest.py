from pathlib import Path
from typing import Dict

import pytest

VERSIONS_TF = """
terraform {
  required_version = "~> 1.5"

  required_providers {
    aws = {
      source  = "hashicorp/aws"
      version = "~> 5.0"
    }
  }
}
""".lstrip()

MAIN_TF = """
resource "aws_s3_bucket" "bucket" {
  bucket = var.name
  tags   = var.tags
}
""".lstrip()

VARIABLES_TF = """
variable "name" {
  description = "Name of the bucket"
  type        = string
}

variable "tags" {
  description = "Tags applied to the bucket"
  type        = map(string)
  default     = {}
}
""".lstrip()

OUTPUTS_TF = """
output "id" {
  value = aws_s3_bucket.bucket.id
}

output "arn" {
  value = aws_s3_bucket.bucket.arn
}
""".lstrip()

CONFORMANT_PRIMITIVE: Dict[str, str] = {
    "main.tf": MAIN_TF,
    "variables.tf": VARIABLES_TF,
    "outputs.tf": OUTPUTS_TF,
    "versions.tf": VERSIONS_TF,
    "locals.tf": "locals {\n  default_tags = { provisioner = \"Terraform\" }\n}\n",
    "README.md": "# tf-aws-module_primitive-s3_bucket\n",
    "Makefile": "-include $(CONFIG_DIR)/common.mk\n",
    ".gitignore": ".terraform\n",
    "LICENSE": "Apache License 2.0\n",
    "NOTICE": "Copyright\n",
    ".tool-versions": "terraform 1.5.5\ngolang 1.21.0\n",
    "commitlint.config.js": "module.exports = {};\n",
    ".pre-commit-config.yaml": "repos: []\n",
    ".secrets.baseline": "{}\n",
    "examples/complete/main.tf": 'module "s3_bucket" {\n  source = "../.."\n  name   = var.name\n}\n',
    "examples/complete/test.tfvars": 'name = "demo"\n',
    "tests/post_deploy_functional/main_test.go": "package test\n",
    "tests/testimpl/test_impl.go": "package testimpl\n",
}


def write_files(root: Path, files: Dict[str, str]) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    for relative, content in files.items():
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return root


@pytest.fixture
def make_module(tmp_path):
    """Create a module directory named ``name`` holding ``files``."""

    def _make(name: str, files: Dict[str, str]) -> Path:
        return write_files(tmp_path / name, files)

    return _make


@pytest.fixture
def conformant_primitive(make_module):
    return make_module("tf-aws-module_primitive-s3_bucket", CONFORMANT_PRIMITIVE)


@pytest.fixture
def primitive_files():
    return dict(CONFORMANT_PRIMITIVE)
