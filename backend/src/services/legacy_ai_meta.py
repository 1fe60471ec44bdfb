"""
Legacy AI metadata packed into a version's custom name.

Older clients stored automation metadata as a custom name of the form
``AI_META|provider=OPENAI|model=gpt-4o|elapsedMs=1234``. Versions now carry
explicit ``ai_provider`` / ``ai_model`` / ``ai_duration_ms`` columns; this module
reads the old form so it can be migrated (see tasks.backfill_ai_meta).
"""
from dataclasses import dataclass

LEGACY_AI_META_PREFIX = "AI_META|"

MISSING_DURATION = "—"


@dataclass(frozen=True)
class AiMeta:
    """Automation metadata of a version."""

    provider: str | None = None
    model: str | None = None
    duration_ms: int | None = None


def is_legacy_ai_meta(custom_name: str | None) -> bool:
    """Whether a custom name uses the legacy metadata convention."""
    return bool(custom_name) and custom_name.startswith(LEGACY_AI_META_PREFIX)


def parse_legacy_ai_meta(custom_name: str | None) -> AiMeta | None:
    """
    Parse a legacy ``AI_META|key=value|...`` custom name.

    Unknown keys are ignored. A missing or non-numeric ``elapsedMs`` leaves the
    duration unset.

    Args:
        custom_name: Stored custom name.

    Returns:
        The parsed metadata, or None if the name does not use the convention.
    """
    if not is_legacy_ai_meta(custom_name):
        return None

    fields: dict[str, str] = {}
    for part in custom_name.removeprefix(LEGACY_AI_META_PREFIX).split("|"):
        key, sep, value = part.partition("=")
        if sep:
            fields[key.strip()] = value.strip()

    duration_ms: int | None = None
    try:
        duration_ms = int(fields["elapsedMs"])
    except (KeyError, ValueError):
        pass

    return AiMeta(
        provider=fields.get("provider") or None,
        model=fields.get("model") or None,
        duration_ms=duration_ms,
    )


def format_duration(duration_ms: int | None) -> str:
    """
    Render an automation duration for display.

    Examples: ``45 s``, ``2 min``, ``2 min 5 s``, ``1 h``, ``1 h 30 min``.
    Missing or non-positive durations render as an em dash.
    """
    if duration_ms is None or duration_ms <= 0:
        return MISSING_DURATION
    seconds = duration_ms // 1000
    if seconds < 60:
        return f"{seconds} s"
    if seconds < 3600:
        minutes, rest = divmod(seconds, 60)
        return f"{minutes} min" if rest == 0 else f"{minutes} min {rest} s"
    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    return f"{hours} h" if minutes == 0 else f"{hours} h {minutes} min"
