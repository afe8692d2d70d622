"""
Per-guild configuration values.

Database schema:
- guild_settings table with columns: guild_id, enabled_services, mention_users, delete_original
- channel_states table with columns: channel_id, state
"""
from dataclasses import dataclass, field, replace
from typing import Iterable, Tuple

# Order here is the order services are listed in the settings panel
DEFAULT_SERVICES: Tuple[str, ...] = ("Twitter", "Instagram", "Reddit", "Threads", "Pixiv", "Bluesky")


def normalize_services(services: Iterable[str] | None) -> Tuple[str, ...]:
    """Drop unknown names and duplicates, keep order, and fall back to every service when empty."""
    if not services:
        return DEFAULT_SERVICES

    seen: list[str] = []
    for name in services:
        if name in DEFAULT_SERVICES and name not in seen:
            seen.append(name)
    return tuple(seen) if seen else DEFAULT_SERVICES


@dataclass(frozen=True, slots=True)
class GuildSettings:
    """Immutable per-guild configuration; updates go through :meth:`with_changes`."""

    enabled_services: Tuple[str, ...] = field(default=DEFAULT_SERVICES)
    mention_users: bool = True
    delete_original: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "enabled_services", normalize_services(self.enabled_services))

    @classmethod
    def defaults(cls) -> "GuildSettings":
        return cls()

    def is_service_enabled(self, service: str) -> bool:
        return service in self.enabled_services

    def with_changes(self, **changes) -> "GuildSettings":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)
