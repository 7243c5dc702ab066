"""Calendar category options shown in the event form and legend."""

from __future__ import annotations

from app.domain.models import CategoryOption

_MUTED_COLOR = "hsl(var(--muted-foreground))"

CATEGORY_OPTIONS: list[CategoryOption] = [
    CategoryOption(value="client_meeting", label="Client Meetings", color="hsl(var(--chart-1))"),
    CategoryOption(value="internal", label="Internal", color="hsl(var(--chart-2))"),
    CategoryOption(value="deadline", label="Deadlines", color="hsl(var(--chart-3))"),
    CategoryOption(value="personal", label="Personal", color="hsl(var(--chart-4))"),
    CategoryOption(value="focus_time", label="Focus Time", color="hsl(var(--chart-5))"),
    CategoryOption(value="general", label="General", color=_MUTED_COLOR),
]

_BY_VALUE = {option.value: option for option in CATEGORY_OPTIONS}


def get_category_color(category: str) -> str:
    option = _BY_VALUE.get(category)
    return option.color if option else _MUTED_COLOR


def get_category_label(category: str) -> str:
    option = _BY_VALUE.get(category)
    return option.label if option else "General"
