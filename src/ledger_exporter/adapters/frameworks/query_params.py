"""Query parameter parsing for the /logs endpoint."""

import math

# Levels as emitted by the stdlib logging module
VALID_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _parse_since_param(params: dict[str, list[str]]) -> float:
    """Parse and validate the 'since' query parameter.

    Args:
        params: Parsed query string parameters (as returned by urllib.parse.parse_qs).

    Returns:
        Timestamp as float. Missing, unparseable, negative, NaN and infinite
        values all fall back to 0.0.
    """
    # @tra: Adapter.Logs.SinceParam
    raw = params.get("since", ["0"])[0]
    try:
        value = float(raw)
    except ValueError:
        return 0.0
    if value < 0 or not math.isfinite(value):
        return 0.0
    return value


def _parse_level_param(params: dict[str, list[str]]) -> str | None:
    """Parse and validate the 'level' query parameter.

    Returns:
        Upper-cased level, or None if missing or not a known level.
        "WARN" is accepted as an alias for "WARNING".
    """
    # @tra: Adapter.Logs.LevelParam
    values = params.get("level") or [""]
    level = values[0].upper()
    if level == "WARN":
        level = "WARNING"
    return level if level in VALID_LEVELS else None
