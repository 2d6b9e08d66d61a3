"""Local preflight of the lab configuration.

Reports, before the engine is run, the conditions the walkthrough fixes one
by one: a missing provider block, missing region, and credentials or
endpoints that would send the engine to real AWS instead of the mock.
"""

from typing import Any, Dict, List

from modules.config_loader import load_config
from modules.exceptions import ProviderConfigError
from modules.provider_runtime import get_provider_config

REAL_KEY_PREFIXES = ("AKIA", "ASIA")


def validate_lab(tfdata: Dict[str, Any]) -> List[str]:
    """Return human-readable problems with the lab configuration.

    Args:
        tfdata: Parsed data with variables resolved

    Returns:
        List of problems; empty when the lab is ready for the engine
    """
    config_module = load_config("aws")
    try:
        provider = get_provider_config(tfdata, config_module.PROVIDER_BLOCK)
    except ProviderConfigError as e:
        return [f"{e.message}. Add a provider block with region, mock credentials and endpoints."]

    problems = []
    if not provider.region:
        problems.append("Provider region is not set.")

    mocked = bool(provider.endpoints)
    if mocked and not provider.skip_credentials_validation:
        problems.append(
            "Endpoints are overridden but skip_credentials_validation is false; "
            "the provider will validate the mock credentials against real AWS."
        )
    if mocked and not provider.skip_metadata_api_check:
        problems.append(
            "Endpoints are overridden but skip_metadata_api_check is false; "
            "the provider will query the EC2 metadata service for credentials."
        )
    if provider.uses_mock_credentials and not (provider.access_key and provider.secret_key):
        problems.append("access_key and secret_key must be set (any placeholder value).")
    if mocked and provider.access_key.startswith(REAL_KEY_PREFIXES):
        problems.append("access_key looks like a real AWS key; use a placeholder for the mock.")

    resource_types = {t.type for t in tfdata.get("templates", [])}
    iam_prefix = config_module.PROVIDER_PREFIX[0] + "iam_"
    uses_iam = any(t.startswith(iam_prefix) for t in resource_types)
    if mocked and uses_iam and "iam" not in provider.endpoints:
        problems.append(
            f"IAM resources are declared but the iam endpoint is not overridden; "
            f"calls would go to {provider.endpoint_for('iam')}."
        )
    return problems
