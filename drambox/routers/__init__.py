"""API routers for DramBox."""

from drambox.routers import activities, auth, bottles, catalog, cron, pour_sessions, pours

__all__ = ["activities", "auth", "bottles", "catalog", "cron", "pour_sessions", "pours"]
