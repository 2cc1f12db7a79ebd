import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

NOT_APPLICABLE = "N/A"

# 9999-12-31 23:59:59.999 UTC, the last instant datetime can represent
MAX_TIMESTAMP_MS = 253_402_300_799_999

COLOR_CODE_PATTERN = re.compile(r"§[0-9a-fk-or]", re.IGNORECASE)


def format_details(details: Any) -> str:
    """Render a violation details mapping as ``"key: value, key2: value2"``.

    Keys keep the mapping's insertion order.

    Args:
        details: Violation details of a detection check.

    Returns:
        The joined pairs, or ``"N/A"`` when ``details`` is empty, None or
        not a mapping.
    """
    if not isinstance(details, Mapping) or not details:
        return NOT_APPLICABLE
    return ", ".join(f"{key}: {value}" for key, value in details.items())


def format_message(template: str | None, actor_label: str, check_type: str, details: Any) -> str:
    """Fill a message template for a detected violation.

    ``{playerName}``, ``{checkType}`` and ``{detailsString}`` are substituted
    first, then every ``{key}`` found in ``details``. Every occurrence is
    replaced and values are inserted verbatim.

    Args:
        template: Template text. A falsy template renders as ``""``.
        actor_label: Player name, or ``"System"`` for world-level checks.
        check_type: Identifier of the check that fired.
        details: Violation details of the check.

    Returns:
        The rendered message.
    """
    if not template:
        return ""

    message = template.replace("{playerName}", actor_label)
    message = message.replace("{checkType}", check_type)
    message = message.replace("{detailsString}", format_details(details))

    if isinstance(details, Mapping):
        for key, value in details.items():
            message = message.replace(f"{{{key}}}", str(value))
    return message


def humanize_timestamp(epoch_ms: int) -> str:
    """Return a human-readable UTC timestamp (YYYY-MM-DD HH:MM:SS UTC) for an epoch-ms instant.

    Instants outside the range ``datetime`` can represent are shown as raw epoch milliseconds.
    """
    try:
        value = datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        return f"{epoch_ms} ms since epoch"
    return value.strftime("%Y-%m-%d %H:%M:%S UTC")


def strip_color_codes(text: str) -> str:
    """Remove ``§x`` chat formatting codes so text reads cleanly in the server log."""
    return COLOR_CODE_PATTERN.sub("", text)
