"""
Provider configuration built from parsed ``provider`` blocks.

This module turns the provider stanzas found by the file parser into
ProviderConfig records: region, credentials, validation-skip flags and the
endpoint override map that redirects API calls to the mock backend.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from modules.exceptions import ProviderConfigError
from modules.tf_function_handlers import evaluate_template
from modules.utils.string_utils import as_bool


@dataclass
class ProviderConfig:
    """
    Settings of one Terraform provider block.

    Args:
        name: Provider name (e.g., "aws")
        region: Region the provider targets
        access_key: Access key; a placeholder when credentials validation is skipped
        secret_key: Secret key; a placeholder when credentials validation is skipped
        skip_credentials_validation: Do not call STS to validate the keys
        skip_metadata_api_check: Do not query the EC2 instance metadata service
        force_path_style: Use path-style S3 URLs (needed by most S3 mocks)
        endpoints: Service name -> URL override map
        alias: Provider alias, None for the default provider configuration
    """

    name: str = "aws"
    region: str = ""
    access_key: str = ""
    secret_key: str = ""
    skip_credentials_validation: bool = False
    skip_metadata_api_check: bool = False
    force_path_style: bool = False
    endpoints: Dict[str, str] = field(default_factory=dict)
    alias: Optional[str] = None

    @property
    def uses_mock_credentials(self) -> bool:
        return self.skip_credentials_validation

    def endpoint_for(self, service: str) -> str:
        """Resolve the URL API calls for ``service`` are sent to."""
        from modules.utils.provider_utils import resolve_endpoint

        return resolve_endpoint(self, service)

    def is_overridden(self, service: str) -> bool:
        """Return True if the endpoints map redirects ``service``, aliases included."""
        from modules.utils.provider_utils import canonical_service

        key = canonical_service(service, self.name)
        return any(canonical_service(name, self.name) == key for name in self.endpoints)

    @classmethod
    def from_block(
        cls, name: str, block: Dict[str, Any], tfdata: Optional[Dict[str, Any]] = None
    ) -> "ProviderConfig":
        """
        Build a ProviderConfig from one parsed provider block.

        Attribute values may reference variables, so they are evaluated
        against ``tfdata`` when it is given.
        """
        tfdata = tfdata or {}

        def attr(key: str, default: Any = "") -> Any:
            value = block.get(key, default)
            return evaluate_template(value, tfdata) if tfdata else value

        path_style = attr("s3_use_path_style", attr("s3_force_path_style", False))

        return cls(
            name=name,
            region=str(attr("region") or ""),
            access_key=str(attr("access_key") or ""),
            secret_key=str(attr("secret_key") or ""),
            skip_credentials_validation=as_bool(attr("skip_credentials_validation", False)),
            skip_metadata_api_check=as_bool(attr("skip_metadata_api_check", False)),
            force_path_style=as_bool(path_style),
            endpoints=merge_endpoint_blocks(attr("endpoints", [])),
            alias=block.get("alias"),
        )


def merge_endpoint_blocks(endpoints: Any) -> Dict[str, str]:
    """Flatten one or more ``endpoints {}`` blocks into a single map.

    The HCL parser returns nested blocks as a list of dicts; later blocks
    win when a service appears twice.
    """
    if isinstance(endpoints, dict):
        endpoints = [endpoints]
    merged: Dict[str, str] = {}
    for block in endpoints or []:
        for service, url in block.items():
            merged[str(service).lower()] = str(url)
    return merged


def get_provider_configs(tfdata: Dict[str, Any]) -> List[ProviderConfig]:
    """Return every provider block found in the parsed files, in file order."""
    configs = []
    for _file, provider_list in tfdata.get("all_provider", {}).items():
        for stanza in provider_list:
            for name, block in stanza.items():
                configs.append(ProviderConfig.from_block(name, block, tfdata))
    return configs


def get_provider_config(
    tfdata: Dict[str, Any], name: str = "aws", alias: Optional[str] = None
) -> ProviderConfig:
    """
    Return the provider configuration for ``name`` (and ``alias``).

    Raises:
        ProviderConfigError: If no matching provider block exists
    """
    for config in get_provider_configs(tfdata):
        if config.name == name and config.alias == alias:
            return config
    raise ProviderConfigError(
        f"No provider \"{name}\" block found",
        context={"provider": name, "alias": alias} if alias else {"provider": name},
    )
