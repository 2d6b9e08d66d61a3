"""
Configuration Loader Module for iamlab

This module provides dynamic loading of provider-specific configuration files.
Provider constants (default region, endpoint URL templates, mock backend
location) live in modules/config/cloud_config_<provider>.py and are imported
at runtime by name.

"""

from typing import Any
import importlib
import logging

# Configure logging
logger = logging.getLogger(__name__)

# Module name mapping for each provider
PROVIDER_CONFIG_MODULES = {
    "aws": "modules.config.cloud_config_aws",
}

# Supported providers
SUPPORTED_PROVIDERS = ["aws"]

# Attributes every provider configuration module must define
REQUIRED_ATTRS = [
    "PROVIDER_NAME",
    "PROVIDER_BLOCK",
    "DEFAULT_REGION",
    "SERVICE_URL_TEMPLATE",
    "GLOBAL_SERVICE_URL_TEMPLATE",
    "GLOBAL_SERVICES",
]


class ConfigurationError(Exception):
    """Raised when configuration loading fails."""

    pass


def load_config(provider: str) -> Any:
    """
    Load provider-specific configuration module dynamically.

    Args:
        provider: Terraform provider name ('aws')

    Returns:
        Provider-specific configuration module with constants

    Raises:
        ValueError: If provider not supported
        ConfigurationError: If configuration module cannot be loaded

    Examples:
        >>> aws_config = load_config('aws')
        >>> aws_config.PROVIDER_NAME
        'AWS'
    """
    provider = provider.lower()
    if provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"Provider '{provider}' not supported. "
            f"Must be one of: {', '.join(SUPPORTED_PROVIDERS)}"
        )

    module_name = PROVIDER_CONFIG_MODULES.get(provider)
    if not module_name:
        raise ConfigurationError(
            f"No configuration module mapped for provider '{provider}'"
        )

    try:
        config_module = importlib.import_module(module_name)
        logger.info(
            f"Loaded configuration for provider '{provider}' from {module_name}"
        )
    except ImportError as e:
        logger.error(f"Failed to import configuration for provider '{provider}': {e}")
        raise ConfigurationError(
            f"Could not load configuration for provider '{provider}'. "
            f"Module '{module_name}' not found or has import errors. "
            f"Error: {e}"
        ) from e

    validate_config_module(config_module, provider)
    return config_module


def validate_config_module(config_module: Any, provider: str) -> bool:
    """
    Validate that a configuration module has required attributes.

    Args:
        config_module: Configuration module to validate
        provider: Provider name (for error messages)

    Returns:
        True if validation passes

    Raises:
        ConfigurationError: If validation fails
    """
    missing_attrs = [attr for attr in REQUIRED_ATTRS if not hasattr(config_module, attr)]

    if missing_attrs:
        raise ConfigurationError(
            f"Configuration module for provider '{provider}' is missing required attributes: "
            f"{', '.join(missing_attrs)}. Please ensure cloud_config_{provider}.py defines all required constants."
        )

    logger.debug(f"Configuration module for '{provider}' passed validation")
    return True


def get_aws_config() -> Any:
    """Shorthand for load_config('aws')."""
    return load_config("aws")
