"""Badge definitions and the read-only registry handed to rules and presenters."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType

DEFAULT_BADGE_ICON = "seal.fill"


@dataclass(frozen=True, slots=True)
class BadgeDefinition:
    """Display metadata for one badge. Keys are localization keys."""

    badge_id: str
    title_key: str
    description_key: str
    icon: str


BADGE_SEED_DATA: list[dict] = [
    {
        "badge_id": "level_milestone",
        "title_key": "badge_level_milestone_title",
        "description_key": "badge_level_milestone_desc",
        "icon": "star.fill",
    },
    {
        "badge_id": "first_task",
        "title_key": "badge_first_task_title",
        "description_key": "badge_first_task_desc",
        "icon": "checkmark.seal.fill",
    },
    {
        "badge_id": "task_collector",
        "title_key": "badge_task_collector_title",
        "description_key": "badge_task_collector_desc",
        "icon": "tray.full.fill",
    },
    {
        "badge_id": "logger_novice",
        "title_key": "badge_logger_novice_title",
        "description_key": "badge_logger_novice_desc",
        "icon": "book.fill",
    },
    {
        "badge_id": "logger_master",
        "title_key": "badge_logger_master_title",
        "description_key": "badge_logger_master_desc",
        "icon": "book.circle.fill",
    },
    {
        "badge_id": "explorer",
        "title_key": "badge_explorer_title",
        "description_key": "badge_explorer_desc",
        "icon": "leaf.fill",
    },
]


class BadgeRegistry(Mapping[str, BadgeDefinition]):
    """Immutable badge_id -> BadgeDefinition mapping, built once at startup."""

    def __init__(self, definitions: Iterable[BadgeDefinition]) -> None:
        entries: dict[str, BadgeDefinition] = {}
        for definition in definitions:
            if definition.badge_id in entries:
                msg = f"Duplicate badge definition: {definition.badge_id}"
                raise ValueError(msg)
            entries[definition.badge_id] = definition
        self._entries = MappingProxyType(entries)

    def __getitem__(self, badge_id: str) -> BadgeDefinition:
        return self._entries[badge_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def title_key(self, badge_id: str) -> str:
        """Localization key for the badge title, falling back to the raw ID."""
        definition = self._entries.get(badge_id)
        return definition.title_key if definition else badge_id

    def icon(self, badge_id: str) -> str:
        definition = self._entries.get(badge_id)
        return definition.icon if definition else DEFAULT_BADGE_ICON


def default_registry() -> BadgeRegistry:
    """Registry populated with the built-in badges."""
    return BadgeRegistry(BadgeDefinition(**data) for data in BADGE_SEED_DATA)
