"""ntfy.sh notification integration."""

import logging

import httpx

from autorip import __version__
from autorip.config import AutoRipConfig

logger = logging.getLogger(__name__)


class NtfyNotifier:
    """Sends notifications via ntfy.sh service."""

    def __init__(self, config: AutoRipConfig):
        self.config = config
        self.topic_url = config.ntfy_topic
        self.client = httpx.Client(
            timeout=config.ntfy_request_timeout,
            headers={"User-Agent": f"autorip/{__version__}"},
        )

    def send_notification(
        self,
        message: str,
        title: str | None = None,
        priority: str = "default",
        tags: str | None = None,
    ) -> bool:
        """Send a notification via ntfy."""
        if not self.topic_url:
            logger.debug("No ntfy topic configured, skipping notification")
            return False

        try:
            headers = {}

            if title:
                # HTTP headers must be latin-1; drop anything else
                try:
                    headers["Title"] = title.encode("latin1").decode("latin1")
                except UnicodeEncodeError:
                    headers["Title"] = title.encode("ascii", errors="ignore").decode(
                        "ascii",
                    )

            if priority != "default":
                headers["Priority"] = priority

            if tags:
                headers["Tags"] = tags

            response = self.client.post(
                self.topic_url,
                content=message.encode("utf-8"),
                headers=headers,
            )

            response.raise_for_status()
            logger.debug("Sent notification: %s", title or message[:50])
            return True

        except httpx.HTTPStatusError as e:
            logger.exception(
                "Notification service error %s: %s",
                e.response.status_code,
                e.response.text,
            )
            return False
        except httpx.HTTPError as e:
            logger.exception("Failed to send notification: %s", e)
            return False

    def notify_processing_started(self, disc_titles: str, mode: str) -> bool:
        """Send notification when a batch is dispatched."""
        return self.send_notification(
            f"Started {mode}: {disc_titles}",
            title="Auto-rip Started",
            tags="autorip,started",
        )

    def notify_processing_complete(self, disc_titles: str, mode: str) -> bool:
        """Send notification when a batch finishes."""
        return self.send_notification(
            f"Finished {mode}: {disc_titles}",
            title="Auto-rip Complete",
            tags="autorip,completed",
        )

    def notify_error(self, error_message: str, context: str | None = None) -> bool:
        """Send error notification."""
        message = f"Error: {error_message}"
        if context:
            message += f"\nContext: {context}"

        return self.send_notification(
            message,
            title="Auto-rip Error",
            priority="high",
            tags="autorip,error,alert",
        )

    def test_notification(self) -> bool:
        """Send a test notification."""
        return self.send_notification(
            "autorip notification system is working correctly!",
            title="Test Notification",
            tags="autorip,test",
        )

    def close(self) -> None:
        self.client.close()
