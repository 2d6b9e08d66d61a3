"""Custom exception types for iamlab.

This module defines the exception hierarchy for iamlab errors, enabling
precise error handling and contextual error messages throughout the application.

Exception Hierarchy:
    IamLabError (base)
    ├── TerraformParsingError - Terraform / tfvars file parsing failures
    ├── VariableResolutionError - Referenced variable has no value
    ├── ExpressionError - Unsupported or invalid count/attribute expression
    ├── ProviderConfigError - Provider block missing or malformed
    ├── TerraformCommandError - terraform binary returned non-zero
    └── BackendUnavailableError - Mock backend cannot be reached
"""

from typing import Any, Dict, Optional


class IamLabError(Exception):
    """Base exception for all iamlab-specific errors.

    Attributes:
        message: Human-readable error description
        context: Additional contextual information (e.g., variable names, file paths)
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (context: {context_str})"
        return self.message


class TerraformParsingError(IamLabError):
    """Raised when Terraform file parsing fails.

    Examples:
        - Invalid HCL2 syntax
        - Unreadable .tfvars file
        - Malformed list value in a TF_VAR_ environment variable
    """

    pass


class VariableResolutionError(IamLabError):
    """Raised when a referenced variable has no default, tfvars or env value."""

    pass


class ExpressionError(IamLabError):
    """Raised when an expression cannot be evaluated.

    Examples:
        - count = length(var.missing_list) on a non-list value
        - Negative count
        - var.user_names[count.index] past the end of the list
        - Functions outside the supported subset
    """

    pass


class ProviderConfigError(IamLabError):
    """Raised when the provider block is missing or malformed."""

    pass


class TerraformCommandError(IamLabError):
    """Raised when a terraform CLI step exits with a non-zero code."""

    pass


class BackendUnavailableError(IamLabError):
    """Raised when the mock cloud backend does not answer its health check."""

    pass
