"""Store-scoped topic names and MQTT-style pattern matching.

Topic levels are separated by ``/``. In subscription patterns ``+`` matches
exactly one level and ``#`` (only as the final level) matches zero or more
remaining levels.
"""

from __future__ import annotations

SINGLE_LEVEL_WILDCARD = "+"
MULTI_LEVEL_WILDCARD = "#"


class InvalidTopicPatternError(ValueError):
    pass


def printing(store_id: str) -> str:
    return f"stores/{store_id}/printing"


def orders_changed(store_id: str) -> str:
    return f"stores/{store_id}/orders/changed"


def menu_updated(store_id: str) -> str:
    return f"stores/{store_id}/menu/updated"


def table_ready(store_id: str, table_id: str) -> str:
    return f"stores/{store_id}/tables/{table_id}/ready"


def table_cancelled(store_id: str, table_id: str) -> str:
    return f"stores/{store_id}/tables/{table_id}/cancelled"


def table_queue(store_id: str, table_id: str) -> str:
    return f"stores/{store_id}/tables/{table_id}/queue"


def table_call(store_id: str, table_id: str) -> str:
    return f"stores/{store_id}/tables/{table_id}/call"


def table_call_accepted(store_id: str, table_id: str) -> str:
    return f"{table_call(store_id, table_id)}/accepted"


def table_call_cleared(store_id: str, table_id: str) -> str:
    return f"{table_call(store_id, table_id)}/cleared"


def store_wildcard(store_id: str) -> str:
    return f"stores/{store_id}/{MULTI_LEVEL_WILDCARD}"


def validate_pattern(pattern: str) -> list[str]:
    if not pattern:
        raise InvalidTopicPatternError("topic pattern must be non-empty")
    levels = pattern.split("/")
    for index, level in enumerate(levels):
        if MULTI_LEVEL_WILDCARD in level:
            if level != MULTI_LEVEL_WILDCARD or index != len(levels) - 1:
                raise InvalidTopicPatternError(
                    f"'#' must be a whole level at the end of the pattern: {pattern}"
                )
        elif SINGLE_LEVEL_WILDCARD in level and level != SINGLE_LEVEL_WILDCARD:
            raise InvalidTopicPatternError(f"'+' must occupy a whole level: {pattern}")
    return levels


def topic_matches(pattern: str, topic: str) -> bool:
    pattern_levels = validate_pattern(pattern)
    topic_levels = topic.split("/")

    for index, level in enumerate(pattern_levels):
        if level == MULTI_LEVEL_WILDCARD:
            return True
        if index >= len(topic_levels):
            return False
        if level != SINGLE_LEVEL_WILDCARD and level != topic_levels[index]:
            return False
    return len(pattern_levels) == len(topic_levels)


def to_redis_glob(pattern: str) -> str:
    """Broadest Redis PSUBSCRIBE glob covering ``pattern``.

    Redis ``*`` also crosses ``/`` so the glob may over-match; callers
    re-check every message with :func:`topic_matches`.
    """
    levels = validate_pattern(pattern)
    translated: list[str] = []
    for level in levels:
        if level == MULTI_LEVEL_WILDCARD:
            # "a/#" also matches "a" itself.
            prefix = "/".join(translated)
            return f"{prefix}*" if prefix else "*"
        if level == SINGLE_LEVEL_WILDCARD:
            translated.append("*")
        else:
            translated.append(_escape_glob(level))
    return "/".join(translated)


def table_id_from_topic(topic: str) -> str | None:
    """Return the table id of a ``stores/{s}/tables/{t}/...`` topic."""
    levels = topic.split("/")
    if len(levels) >= 4 and levels[0] == "stores" and levels[2] == "tables":
        return levels[3] or None
    return None


def _escape_glob(level: str) -> str:
    escaped = level
    for char in ("\\", "*", "?", "[", "]"):
        escaped = escaped.replace(char, f"\\{char}")
    return escaped
