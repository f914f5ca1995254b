import html
import re
from typing import Any, Optional


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(str(value), quote=True)


def sanitize_variables(variables: Optional[dict[str, Any]]) -> dict[str, str]:
    """
    Stringify and escape template variables before they are substituted into
    an HTML email body. None values become empty strings.
    """
    if not variables:
        return {}
    return {
        str(key): sanitize_string("" if value is None else str(value))
        for key, value in variables.items()
    }


def strip_control_characters(value: str) -> str:
    return re.sub(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]", "", value)
