"""Terraform-specific utility functions for iamlab.

This module provides utilities for working with Terraform variables,
variable files and TF_VAR_ environment overrides.
"""

import json
import os
from contextlib import suppress
from pathlib import Path
from typing import Any, Dict

import hcl2

from modules.exceptions import TerraformParsingError
from modules.utils.string_utils import unquote

NOTFOUND = "NOTFOUND"
COMPLEX_TYPE_PREFIXES = ("list", "set", "tuple", "map", "object")


def normalize(value: Any) -> Any:
    """Strip parser artefacts from a parsed HCL value.

    Newer python-hcl2 releases keep the quotes around string literals and
    add ``__start_line__`` style metadata keys; both are removed so the rest
    of iamlab sees plain Python values.
    """
    if isinstance(value, dict):
        return {
            unquote(k): normalize(v)
            for k, v in value.items()
            if not str(k).startswith("__")
        }
    if isinstance(value, list):
        return [normalize(v) for v in value]
    return unquote(value)


def getvar(
    variable_name: str, all_variables_dict: Dict[str, Any], default: Any = NOTFOUND
) -> Any:
    """Retrieve a Terraform variable value from environment or variables dictionary.

    Searches for variable values in the following order:
    1. Environment variable with TF_VAR_ prefix
    2. Exact match in all_variables_dict
    3. Case-insensitive match in all_variables_dict

    Args:
        variable_name: Name of the variable (without leading ``var.`` prefix)
        all_variables_dict: Dictionary of resolved variable values
        default: Value returned when the variable cannot be resolved

    Returns:
        Resolved variable value or ``default`` when not found.
    """
    if not variable_name:
        return default

    env_var = os.getenv(f"TF_VAR_{variable_name}")
    if env_var is not None:
        return env_var

    if variable_name in all_variables_dict:
        return all_variables_dict[variable_name]
    for key in all_variables_dict:
        if key.lower() == variable_name.lower():
            return all_variables_dict[key]
    return default


def decode_env_value(raw: str, var_type: str = "string") -> Any:
    """Decode a TF_VAR_ environment string according to the declared type.

    Terraform reads primitive-typed variables literally and parses complex
    types (list, map, ...) as HCL expressions.

    Args:
        raw: Environment variable contents
        var_type: Declared variable type, e.g. ``list(string)``

    Returns:
        Decoded value

    Raises:
        TerraformParsingError: If a complex-typed value cannot be parsed
    """
    if not str(var_type).startswith(COMPLEX_TYPE_PREFIXES):
        return raw

    with suppress(json.JSONDecodeError):
        return json.loads(raw)

    try:
        parsed = hcl2.loads(f"value = {raw}\n")
    except Exception as e:
        raise TerraformParsingError(
            "Cannot parse environment variable value",
            context={"value": raw, "type": var_type, "error": str(e)},
        )
    value = normalize(parsed)["value"]
    if isinstance(value, list) and len(value) == 1 and isinstance(value[0], list):
        value = value[0]
    return value


def tfvar_read(filepath: str) -> Dict[str, Any]:
    """Read and parse a Terraform variable file (.tfvars).

    Args:
        filepath: Path to .tfvars file (HCL or JSON format)

    Returns:
        dict: Parsed variable definitions

    Raises:
        TerraformParsingError: If the file does not exist or cannot be parsed
    """
    if not Path(filepath).exists():
        raise TerraformParsingError(
            "Variable file not found", context={"filepath": filepath}
        )

    # Try parsing as JSON first
    with suppress(json.JSONDecodeError):
        with open(filepath, "r") as f:
            return json.load(f)

    try:
        with open(filepath, "r") as f:
            parsed_data = hcl2.load(f)
    except Exception as e:
        raise TerraformParsingError(
            f"Failed to parse variable file: {filepath}",
            context={"error": str(e), "filepath": filepath},
        )
    return normalize(parsed_data)
