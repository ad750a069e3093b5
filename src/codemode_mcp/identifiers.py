"""
Tool naming helpers.

Discovered tools are registered as ``<manual>.<tool>``. Upstream names may
contain characters that are awkward in code (dashes, spaces, leading digits),
so each tool also has an identifier-safe interface name, and lookups accept
either form.
"""

import re

_INVALID_CHARS = re.compile(r"[^a-zA-Z0-9_]")
_LEADING_DIGIT = re.compile(r"^[0-9]")


def sanitize_identifier(name: str) -> str:
    """Replace invalid identifier characters with '_' and guard a leading digit."""
    sanitized = _INVALID_CHARS.sub("_", name)
    return _LEADING_DIGIT.sub(lambda m: "_" + m.group(0), sanitized)


def to_interface_name(tool_name: str) -> str:
    """
    Convert a registered tool name to its interface name.

    Examples:
        >>> to_interface_name("github.create-issue")
        'github.create_issue'
        >>> to_interface_name("my-server.files.read")
        'my_server.files_read'
    """
    if "." not in tool_name:
        return sanitize_identifier(tool_name)
    manual, *tool_parts = tool_name.split(".")
    return f"{sanitize_identifier(manual)}.{'_'.join(sanitize_identifier(p) for p in tool_parts)}"
