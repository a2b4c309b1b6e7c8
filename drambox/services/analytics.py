"""PostHog analytics service for DramBox.

Provides server-side event tracking for pour and bottle actions.
"""

import logging
from typing import Any

from drambox.config import settings

logger = logging.getLogger(__name__)


class PostHogService:
    """PostHog analytics service.

    All methods are no-ops if PostHog is not configured or disabled.
    """

    def __init__(self) -> None:
        self._client: Any = None
        self._initialized = False

    def _ensure_initialized(self) -> bool:
        """Lazily initialize the PostHog client.

        Returns:
            True if client is available and ready.
        """
        if self._initialized:
            return self._client is not None

        self._initialized = True

        if not self.is_available():
            logger.debug("PostHog analytics disabled or not configured")
            return False

        import posthog

        posthog.api_key = settings.posthog_api_key
        posthog.host = settings.posthog_host
        posthog.debug = settings.posthog_debug
        posthog.sync_mode = False

        self._client = posthog
        logger.info(
            "PostHog analytics initialized (host=%s, debug=%s)",
            settings.posthog_host,
            settings.posthog_debug,
        )
        return True

    def is_available(self) -> bool:
        """Check if PostHog analytics is configured and enabled."""
        return settings.posthog_enabled and bool(settings.posthog_api_key)

    def capture(
        self,
        distinct_id: str,
        event: str,
        properties: dict[str, Any] | None = None,
    ) -> None:
        """Capture an analytics event.

        Args:
            distinct_id: Unique identifier for the user (typically user ID).
            event: Event name (e.g., "pour_recorded", "bottle_opened").
            properties: Optional dictionary of event properties.
        """
        if not self._ensure_initialized():
            return

        try:
            self._client.capture(
                event,
                distinct_id=distinct_id,
                properties=properties or {},
            )
            if settings.posthog_debug:
                logger.debug(
                    "PostHog event captured: %s (user=%s, props=%s)",
                    event,
                    distinct_id,
                    properties,
                )
        except Exception as e:
            # Analytics must never fail a user request
            logger.error("Failed to capture PostHog event %s: %s", event, e)

    def shutdown(self) -> None:
        """Flush pending events and shutdown the client."""
        if not self._initialized or self._client is None:
            return

        try:
            self._client.flush()
            self._client.shutdown()
            logger.info("PostHog client shutdown complete")
        except Exception as e:
            logger.error("Error during PostHog shutdown: %s", e)


# Global service instance
posthog_service = PostHogService()
