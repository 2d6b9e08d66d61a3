"""Unit tests for modules/utils/provider_utils.py and modules/provider_runtime.py"""

import unittest
import sys
from pathlib import Path

# Add modules directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from modules.exceptions import ProviderConfigError
from modules.provider_runtime import (
    ProviderConfig,
    get_provider_config,
    get_provider_configs,
    merge_endpoint_blocks,
)
from modules.utils.provider_utils import (
    canonical_service,
    default_service_url,
    resolve_endpoint,
)
from tests.fixtures.tfdata_samples import lab_tfdata, provider_block


class TestResolveEndpoint(unittest.TestCase):
    """Test resolve_endpoint() override lookup."""

    def setUp(self):
        self.config = ProviderConfig(
            region="us-east-1", endpoints={"iam": "http://aws:4566"}
        )

    def test_override_returned(self):
        """Test that an overridden service resolves to the mock URL."""
        self.assertEqual(resolve_endpoint(self.config, "iam"), "http://aws:4566")

    def test_case_insensitive_service(self):
        """Test service names are matched regardless of case."""
        self.assertEqual(resolve_endpoint(self.config, "IAM"), "http://aws:4566")

    def test_absent_service_uses_provider_default(self):
        """Test that services without override use the AWS default URL."""
        self.assertEqual(
            resolve_endpoint(self.config, "s3"), "https://s3.us-east-1.amazonaws.com"
        )

    def test_lookup_does_not_mutate_config(self):
        """Test resolution leaves the endpoint map untouched."""
        resolve_endpoint(self.config, "sqs")
        self.assertEqual(self.config.endpoints, {"iam": "http://aws:4566"})

    def test_alias_key_in_override_map(self):
        """Test legacy endpoint key names still match."""
        config = ProviderConfig(endpoints={"cloudwatchlogs": "http://aws:4566"})
        self.assertEqual(resolve_endpoint(config, "logs"), "http://aws:4566")

    def test_endpoint_for_method(self):
        """Test ProviderConfig.endpoint_for delegates to resolve_endpoint."""
        self.assertEqual(self.config.endpoint_for("iam"), "http://aws:4566")


class TestDefaultServiceUrl(unittest.TestCase):
    """Test default_service_url() for regional and global services."""

    def test_regional_service(self):
        self.assertEqual(
            default_service_url("sqs", "eu-west-1"), "https://sqs.eu-west-1.amazonaws.com"
        )

    def test_global_service_ignores_region(self):
        self.assertEqual(
            default_service_url("iam", "eu-west-1"), "https://iam.amazonaws.com"
        )

    def test_empty_region_uses_default_region(self):
        self.assertEqual(
            default_service_url("s3", ""), "https://s3.us-east-1.amazonaws.com"
        )

    def test_canonical_service(self):
        self.assertEqual(canonical_service(" IAM "), "iam")
        self.assertEqual(canonical_service("CloudWatchEvents"), "events")


class TestProviderConfig(unittest.TestCase):
    """Test building ProviderConfig from parsed provider blocks."""

    def test_from_block(self):
        config = ProviderConfig.from_block("aws", provider_block())
        self.assertEqual(config.region, "us-east-1")
        self.assertEqual(config.access_key, "test")
        self.assertTrue(config.skip_credentials_validation)
        self.assertTrue(config.skip_metadata_api_check)
        self.assertFalse(config.force_path_style)
        self.assertTrue(config.uses_mock_credentials)
        self.assertEqual(config.endpoints, {"iam": "http://aws:4566"})

    def test_is_overridden_honours_aliases(self):
        config = ProviderConfig(endpoints={"logs": "http://aws:4566"})
        self.assertTrue(config.is_overridden("cloudwatchlogs"))
        self.assertTrue(config.is_overridden("LOGS"))
        self.assertFalse(config.is_overridden("iam"))

    def test_string_flags(self):
        block = provider_block(skip_metadata_api_check="true", s3_use_path_style="true")
        config = ProviderConfig.from_block("aws", block)
        self.assertTrue(config.skip_metadata_api_check)
        self.assertTrue(config.force_path_style)

    def test_region_from_variable(self):
        tfdata = {
            "variable_types": {"region": "string"},
            "variable_values": {"region": "eu-central-1"},
        }
        block = provider_block(region="${var.region}")
        config = ProviderConfig.from_block("aws", block, tfdata)
        self.assertEqual(config.region, "eu-central-1")

    def test_merge_endpoint_blocks(self):
        merged = merge_endpoint_blocks([{"IAM": "http://a"}, {"sts": "http://b", "iam": "http://c"}])
        self.assertEqual(merged, {"iam": "http://c", "sts": "http://b"})
        self.assertEqual(merge_endpoint_blocks({"s3": "http://s"}), {"s3": "http://s"})
        self.assertEqual(merge_endpoint_blocks([]), {})

    def test_get_provider_config(self):
        config = get_provider_config(lab_tfdata())
        self.assertEqual(config.name, "aws")
        self.assertEqual(config.endpoint_for("iam"), "http://aws:4566")

    def test_alias_selection(self):
        tfdata = lab_tfdata()
        tfdata["all_provider"]["lab/provider.tf"].append(
            {"aws": provider_block(alias="west", region="us-west-2")}
        )
        self.assertEqual(len(get_provider_configs(tfdata)), 2)
        self.assertEqual(get_provider_config(tfdata, alias="west").region, "us-west-2")
        self.assertEqual(get_provider_config(tfdata).region, "us-east-1")

    def test_missing_provider_raises(self):
        with self.assertRaises(ProviderConfigError):
            get_provider_config(lab_tfdata(with_provider=False))


if __name__ == "__main__":
    unittest.main()
