"""String manipulation utilities for iamlab.

This module provides string processing functions for cleaning values
returned by the HCL2 parser and splitting Terraform expressions.
"""

from typing import Any, List

TRUE_STRINGS = ("true", "1", "yes")


def unquote(text: Any) -> Any:
    """Remove one pair of surrounding double quotes from a string.

    Non-string values are returned untouched.

    Args:
        text: Value that may be a quoted HCL string literal

    Returns:
        The string without its enclosing quotes
    """
    if isinstance(text, str) and len(text) >= 2 and text[0] == '"' and text[-1] == '"':
        return text[1:-1]
    return text


def strip_interpolation(text: str) -> str:
    """Return the inner expression of a value that is one ``${...}`` wrapper.

    "${length(var.user_names)}" becomes "length(var.user_names)". Strings
    mixing literal text and interpolations are returned unchanged.

    Args:
        text: Raw attribute value

    Returns:
        Expression without the interpolation wrapper
    """
    text = str(text).strip()
    if text.startswith("${") and text.endswith("}") and find_closing(text, 1) == len(text) - 1:
        return text[2:-1].strip()
    return text


def find_closing(text: str, open_index: int) -> int:
    """Find the index of the bracket closing the one at ``open_index``.

    Args:
        text: Source text
        open_index: Position of an opening ``{``, ``[`` or ``(``

    Returns:
        Index of the matching closing bracket, or -1 if unbalanced
    """
    pairs = {"{": "}", "[": "]", "(": ")"}
    opener = text[open_index]
    closer = pairs[opener]
    depth = 0
    for i in range(open_index, len(text)):
        if text[i] == opener:
            depth += 1
        elif text[i] == closer:
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split text on ``sep`` ignoring separators nested in brackets or quotes.

    Args:
        text: Function argument list or list literal body
        sep: Single character separator

    Returns:
        List of stripped parts
    """
    parts = []
    depth = 0
    in_quotes = False
    current = ""
    for char in text:
        if char == '"':
            in_quotes = not in_quotes
        elif not in_quotes and char in "([{":
            depth += 1
        elif not in_quotes and char in ")]}":
            depth -= 1
        if char == sep and depth == 0 and not in_quotes:
            parts.append(current.strip())
            current = ""
        else:
            current += char
    if current.strip():
        parts.append(current.strip())
    return parts


def as_bool(value: Any) -> bool:
    """Interpret an HCL boolean that may arrive as bool or string."""
    if isinstance(value, bool):
        return value
    return str(unquote(value)).strip().lower() in TRUE_STRINGS
