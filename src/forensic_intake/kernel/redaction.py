"""Accessibility-tree redaction applied before any snapshot is journaled.

Interface labels and roles (name, role, structural state) are evidence and
are kept. User-entered or user-specific text is replaced with ``[REDACTED]``.
The input tree is never modified; a redacted copy is returned.
"""

from typing import Any

REDACTED = "[REDACTED]"

AX_KEEP_KEYS = frozenset({
    "role",
    "name",
    "value",
    "children",
    "checked",
    "pressed",
    "expanded",
    "selected",
    "disabled",
    "required",
    "invalid",
    "focused",
    "level",
})

AX_ALWAYS_REDACT_KEYS = frozenset({
    "description",
    "help",
    "url",
    "placeholder",
    "ariaLabel",
    "aria-label",
    "ariaDescription",
    "aria-describedby",
    "keyshortcuts",
})

# Roles whose value is typically user-entered text.
AX_REDACT_VALUE_ROLES = frozenset({"textbox", "searchbox", "combobox", "spinbutton"})

# Roles whose value is structural state rather than user data.
AX_PRESERVE_VALUE_ROLES = frozenset({
    "button",
    "checkbox",
    "radio",
    "switch",
    "slider",
    "progressbar",
    "scrollbar",
})


def _json_scalar(value: Any) -> Any:
    # Canonical JSON bans floats; snapshot numbers such as slider values become strings.
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return value


def _redact_value(role: str, value: Any) -> Any:
    if role in AX_REDACT_VALUE_ROLES:
        return REDACTED
    if role in AX_PRESERVE_VALUE_ROLES:
        return _json_scalar(value)
    if isinstance(value, str):
        return REDACTED
    return _json_scalar(value)


def redact_ax_tree(node: Any) -> Any:
    """Return a redacted copy of an accessibility snapshot (dict, list or None)."""
    if isinstance(node, list):
        return [redact_ax_tree(child) for child in node]
    if not isinstance(node, dict):
        return _json_scalar(node)

    role = node.get("role") if isinstance(node.get("role"), str) else ""
    redacted = {}
    for key, value in node.items():
        if key == "children":
            redacted[key] = redact_ax_tree(value)
        elif key in AX_ALWAYS_REDACT_KEYS:
            redacted[key] = REDACTED
        elif key not in AX_KEEP_KEYS:
            if isinstance(value, str):
                redacted[key] = REDACTED
            # other unknown keys are dropped
        elif key == "value":
            redacted[key] = _redact_value(role, value)
        else:
            redacted[key] = _json_scalar(value)
    return redacted
