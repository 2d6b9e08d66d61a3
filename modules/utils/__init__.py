"""Utility modules for iamlab.

This package contains utility modules for string manipulation, Terraform
variable handling and provider endpoint resolution.
"""

from .string_utils import as_bool, split_top_level, strip_interpolation, unquote
from .terraform_utils import decode_env_value, getvar, normalize, tfvar_read
from .provider_utils import canonical_service, default_service_url, resolve_endpoint

__all__ = [
    # String utilities
    "as_bool",
    "split_top_level",
    "strip_interpolation",
    "unquote",
    # Terraform utilities
    "decode_env_value",
    "getvar",
    "normalize",
    "tfvar_read",
    # Provider utilities
    "canonical_service",
    "default_service_url",
    "resolve_endpoint",
]
