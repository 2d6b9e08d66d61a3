"""Provider endpoint utilities for iamlab.

This module resolves which URL a provider sends a service's API calls to,
honoring the ``endpoints`` override map of the provider block.
"""

from typing import Any, Optional

from modules.config_loader import load_config


def canonical_service(service: str, provider: str = "aws") -> str:
    """Normalise a service identifier to the key used in endpoint maps.

    Args:
        service: Service identifier as written by the user, e.g. 'IAM'
        provider: Provider whose alias table applies

    Returns:
        Lowercase service key with legacy aliases mapped
    """
    config = load_config(provider)
    key = str(service).strip().lower()
    return getattr(config, "ENDPOINT_ALIASES", {}).get(key, key)


def default_service_url(service: str, region: Optional[str], provider: str = "aws") -> str:
    """Return the provider's own URL for a service.

    Args:
        service: Service identifier, e.g. 'iam' or 's3'
        region: Provider region; the configured default applies when empty
        provider: Provider name

    Returns:
        Default service URL
    """
    config = load_config(provider)
    key = canonical_service(service, provider)
    if key in config.GLOBAL_SERVICES:
        return config.GLOBAL_SERVICE_URL_TEMPLATE.format(service=key)
    return config.SERVICE_URL_TEMPLATE.format(
        service=key, region=region or config.DEFAULT_REGION
    )


def resolve_endpoint(provider_config: Any, service: str) -> str:
    """Resolve the URL used for a service.

    Returns the override from ``provider_config.endpoints`` when one is
    present for the service, otherwise the provider default. Pure lookup;
    the provider configuration is not modified.

    Args:
        provider_config: ProviderConfig instance
        service: Service identifier, e.g. 'iam'

    Returns:
        Endpoint URL

    Examples:
        >>> cfg = ProviderConfig(region="us-east-1", endpoints={"iam": "http://aws:4566"})
        >>> resolve_endpoint(cfg, "iam")
        'http://aws:4566'
        >>> resolve_endpoint(cfg, "s3")
        'https://s3.us-east-1.amazonaws.com'
    """
    key = canonical_service(service, provider_config.name)
    for name, url in provider_config.endpoints.items():
        if canonical_service(name, provider_config.name) == key:
            return url
    return default_service_url(key, provider_config.region, provider_config.name)
