"""
faims2mzml Notifications

Optional webhook notifications sent after each input file is processed.
Supports Discord, Slack, and generic JSON webhooks.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional

import requests

logger = logging.getLogger(__name__)


class NotificationType(Enum):
    """Type of notification event."""
    FILE_CONVERTED = "file_converted"
    FILE_FAILED = "file_failed"


@dataclass
class NotificationPayload:
    """Payload for a notification."""
    type: NotificationType
    title: str
    message: str
    file_path: Optional[Path] = None
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)


class Notifier:
    """
    Sends webhook notifications for processed files.

    The payload layout is picked from the URL:
    - Discord: discord.com/api/webhooks
    - Slack: hooks.slack.com
    - Generic: any other URL (sends JSON)
    """

    def __init__(self, webhook_url: str):
        self.webhook_url = webhook_url
        self.webhook_type = self._detect_webhook_type()
        logger.info(f"Notifications enabled ({self.webhook_type})")

    def _detect_webhook_type(self) -> str:
        url_lower = self.webhook_url.lower()
        if "discord.com/api/webhooks" in url_lower:
            return "discord"
        if "hooks.slack.com" in url_lower:
            return "slack"
        return "generic"

    def send(self, payload: NotificationPayload) -> bool:
        """Send a notification. Failures are logged, never raised."""
        builders = {
            "discord": self._discord_body,
            "slack": self._slack_body,
            "generic": self._generic_body,
        }
        body = builders[self.webhook_type](payload)

        try:
            response = requests.post(self.webhook_url, json=body, timeout=10)
        except requests.RequestException as e:
            logger.error(f"Failed to send notification: {e}")
            return False

        if response.status_code not in (200, 201, 204):
            logger.warning(f"Webhook returned HTTP {response.status_code}")
            return False
        return True

    def _discord_body(self, payload: NotificationPayload) -> dict:
        color = 0x00FF00 if payload.type == NotificationType.FILE_CONVERTED else 0xFF0000
        embed = {
            "title": payload.title,
            "description": payload.message,
            "color": color,
            "timestamp": payload.timestamp.isoformat(),
            "footer": {"text": "faims2mzml"},
            "fields": [],
        }
        if payload.file_path:
            embed["fields"].append({"name": "File", "value": f"`{payload.file_path.name}`", "inline": False})
        if payload.error:
            embed["fields"].append({"name": "Error", "value": f"```{payload.error[:500]}```", "inline": False})
        return {"embeds": [embed]}

    def _slack_body(self, payload: NotificationPayload) -> dict:
        blocks = [
            {"type": "header", "text": {"type": "plain_text", "text": payload.title}},
            {"type": "section", "text": {"type": "mrkdwn", "text": payload.message}},
        ]
        if payload.file_path:
            blocks.append({
                "type": "section",
                "fields": [{"type": "mrkdwn", "text": f"*File:*\n`{payload.file_path.name}`"}]
            })
        if payload.error:
            blocks.append({
                "type": "section",
                "text": {"type": "mrkdwn", "text": f"*Error:*\n```{payload.error[:500]}```"}
            })
        return {"blocks": blocks}

    def _generic_body(self, payload: NotificationPayload) -> dict:
        data = {
            "event": payload.type.value,
            "title": payload.title,
            "message": payload.message,
            "timestamp": payload.timestamp.isoformat(),
            "source": "faims2mzml",
        }
        if payload.file_path:
            data["file_path"] = str(payload.file_path)
            data["file_name"] = payload.file_path.name
        if payload.error:
            data["error"] = payload.error
        return data

    # -------------------------------------------------------------------------
    # Convenience methods
    # -------------------------------------------------------------------------

    def notify_file_converted(self, file_path: Path, files_created: int) -> bool:
        """Send notification that every CV value of a file was converted."""
        return self.send(NotificationPayload(
            type=NotificationType.FILE_CONVERTED,
            title="FAIMS Split Complete",
            message=f"Created {files_created} mzML files from **{file_path.name}**",
            file_path=file_path
        ))

    def notify_file_failed(self, file_path: Path, error: str) -> bool:
        """Send notification that a file could not be fully converted."""
        return self.send(NotificationPayload(
            type=NotificationType.FILE_FAILED,
            title="FAIMS Split Failed",
            message=f"Failed to split **{file_path.name}**",
            file_path=file_path,
            error=error
        ))
