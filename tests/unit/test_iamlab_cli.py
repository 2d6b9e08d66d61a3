"""Unit tests for iamlab.py CLI commands."""

import json
import os
import sys
import unittest
from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from iamlab import cli
from modules.exceptions import BackendUnavailableError, TerraformCommandError

LAB_DIR = str(Path(__file__).parent.parent.parent / "lab")
FIXTURES = Path(__file__).parent.parent / "fixtures"

ALIAS_PROVIDER_TF = """
provider "aws" {
  region = "us-east-1"

  endpoints {
    logs = "http://aws:4566"
  }
}

resource "aws_cloudwatch_log_group" "lab" {
  name = "lab"
}
"""


class TestExpandCommand(unittest.TestCase):
    """Test the expand command against the lab directory."""

    def setUp(self):
        self.runner = CliRunner()

    def test_expand_lists_five_users(self):
        result = self.runner.invoke(cli, ["expand", "--source", LAB_DIR])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("# aws_iam_user.lb[0] will be created", result.output)
        self.assertIn("# aws_iam_user.lb[4] will be created", result.output)
        self.assertIn('"Charlie"', result.output)
        self.assertIn("Plan: 5 to add, 0 to change, 0 to destroy.", result.output)

    def test_expand_json(self):
        result = self.runner.invoke(cli, ["expand", "--source", LAB_DIR, "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        instances = json.loads(result.stdout)
        self.assertEqual(
            [i["name"] for i in instances], ["Alice", "Bob", "Charlie", "Dan", "Eve"]
        )
        self.assertEqual(instances[2]["address"], "aws_iam_user.lb[2]")

    def test_expand_with_tfvars_override(self):
        source = str(FIXTURES / "tfvars_override")
        result = self.runner.invoke(cli, ["expand", "--source", source, "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        names = [i["name"] for i in json.loads(result.stdout)]
        self.assertEqual(names, ["lab-Zoe", "lab-Yan", "lab-Xia"])

    def test_expand_env_override(self):
        result = self.runner.invoke(
            cli,
            ["expand", "--source", LAB_DIR, "--json"],
            env={"TF_VAR_user_names": '["Mallory"]'},
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual([i["name"] for i in json.loads(result.stdout)], ["Mallory"])

    def test_expand_env_override_hcl_syntax(self):
        result = self.runner.invoke(
            cli,
            ["expand", "--source", LAB_DIR, "--json"],
            env={"TF_VAR_user_names": '["Zoe", "Yan",]'},
        )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual([i["name"] for i in json.loads(result.stdout)], ["Zoe", "Yan"])

    def test_expand_explicit_varfile(self):
        with self.runner.isolated_filesystem():
            with open("extra.tfvars", "w") as f:
                f.write('user_names = ["Trent", "Peggy"]\n')
            result = self.runner.invoke(
                cli,
                ["expand", "--source", LAB_DIR, "--varfile", "extra.tfvars", "--json"],
            )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertEqual(
            [i["name"] for i in json.loads(result.stdout)], ["Trent", "Peggy"]
        )

    def test_expand_missing_varfile_shows_error(self):
        result = self.runner.invoke(
            cli, ["expand", "--source", LAB_DIR, "--varfile", "/nope/missing.tfvars"]
        )
        self.assertEqual(result.exit_code, 1)
        self.assertIn("ERROR", result.output)
        self.assertIn("Variable file not found", result.output)

    def test_expand_json_progress_kept_off_stdout(self):
        result = self.runner.invoke(cli, ["expand", "--source", LAB_DIR, "--json"])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertNotIn("Parsing Terraform Source Files", result.stdout)
        self.assertIn("Parsing Terraform Source Files", result.stderr)

    def test_expand_invalid_hcl_exits(self):
        source = str(FIXTURES / "bad_hcl")
        result = self.runner.invoke(cli, ["expand", "--source", source])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("ERROR", result.output)


class TestEndpointCommand(unittest.TestCase):
    """Test endpoint resolution from the lab's provider block."""

    def setUp(self):
        self.runner = CliRunner()

    def test_overridden_service(self):
        result = self.runner.invoke(cli, ["endpoint", "iam", "--source", LAB_DIR])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("iam: http://aws:4566 (override)", result.output)

    def test_default_service(self):
        result = self.runner.invoke(cli, ["endpoint", "S3", "--source", LAB_DIR])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn(
            "s3: https://s3.us-east-1.amazonaws.com (provider default)", result.output
        )

    def test_aliased_service_override(self):
        with self.runner.isolated_filesystem():
            with open("main.tf", "w") as f:
                f.write(ALIAS_PROVIDER_TF)
            result = self.runner.invoke(
                cli, ["endpoint", "cloudwatchlogs", "--source", os.getcwd()]
            )
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("logs: http://aws:4566 (override)", result.output)

    def test_missing_provider(self):
        source = str(FIXTURES / "no_provider")
        result = self.runner.invoke(cli, ["endpoint", "iam", "--source", source])
        self.assertEqual(result.exit_code, 1)
        self.assertIn('No provider "aws" block found', result.output)


class TestValidateCommand(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()

    def test_lab_is_ready(self):
        result = self.runner.invoke(cli, ["validate", "--source", LAB_DIR])
        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn("Lab configuration is ready.", result.output)

    def test_no_provider_fails(self):
        source = str(FIXTURES / "no_provider")
        result = self.runner.invoke(cli, ["validate", "--source", source])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Problems found:", result.output)


class TestCheckCommand(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()

    @patch("iamlab.backend.check_backend", return_value={"iam": "available"})
    def test_backend_ready(self, mock_check):
        result = self.runner.invoke(cli, ["check"])
        self.assertEqual(result.exit_code, 0, result.output)
        mock_check.assert_called_once_with(None)
        self.assertIn("Mock backend is ready.", result.output)

    @patch("iamlab.backend.check_backend", return_value={"iam": "disabled"})
    def test_service_not_ready(self, mock_check):
        result = self.runner.invoke(cli, ["check", "--service", "iam"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("WARNING", result.output)

    @patch(
        "iamlab.backend.check_backend",
        side_effect=BackendUnavailableError("Cannot reach mock backend at http://aws:4566"),
    )
    def test_backend_down(self, mock_check):
        result = self.runner.invoke(cli, ["check", "--url", "http://aws:4566"])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("Cannot reach mock backend", result.output)


class TestProvisionCommand(unittest.TestCase):
    def setUp(self):
        self.runner = CliRunner()

    @patch("iamlab.tfwrapper.provision", return_value=True)
    @patch("iamlab.backend.check_backend", return_value={"iam": "available"})
    @patch("iamlab.tfwrapper.check_terraform", return_value="/usr/bin/terraform")
    def test_provision_runs_sequence(self, mock_tf, mock_backend, mock_provision):
        result = self.runner.invoke(cli, ["provision", "--source", LAB_DIR, "--yes"])
        self.assertEqual(result.exit_code, 0, result.output)
        mock_backend.assert_called_once_with("http://aws:4566")
        mock_provision.assert_called_once_with(LAB_DIR, (), True)
        self.assertIn("Plan: 5 to add", result.output)
        self.assertIn("Completed!", result.output)

    @patch("iamlab.tfwrapper.provision")
    @patch("iamlab.backend.check_backend")
    @patch("iamlab.tfwrapper.check_terraform", return_value="/usr/bin/terraform")
    def test_skip_check(self, mock_tf, mock_backend, mock_provision):
        result = self.runner.invoke(
            cli, ["provision", "--source", LAB_DIR, "--yes", "--skip-check"]
        )
        self.assertEqual(result.exit_code, 0, result.output)
        mock_backend.assert_not_called()

    @patch("iamlab.tfwrapper.provision")
    def test_multiple_sources_rejected(self, mock_provision):
        result = self.runner.invoke(
            cli, ["provision", "--source", LAB_DIR, "--source", LAB_DIR, "--yes"]
        )
        self.assertEqual(result.exit_code, 2)
        self.assertIn("single lab directory", result.output)
        mock_provision.assert_not_called()

    @patch("iamlab.tfwrapper.provision")
    @patch(
        "iamlab.tfwrapper.check_terraform",
        side_effect=TerraformCommandError("terraform command executable not detected in path"),
    )
    def test_missing_terraform(self, mock_tf, mock_provision):
        result = self.runner.invoke(cli, ["provision", "--source", LAB_DIR])
        self.assertEqual(result.exit_code, 1)
        self.assertIn("not detected", result.output)
        mock_provision.assert_not_called()


if __name__ == "__main__":
    unittest.main()
