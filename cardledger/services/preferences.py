"""
Local Preferences Store

Session preferences (currency, default card, notification settings) are
kept in a JSON file on this device, never in the remote store.

Files written by older clients stored each notification as a plain
boolean. Those are migrated on load to {enabled, frequency}.
"""

import json
from pathlib import Path
from typing import Optional, Union

import structlog
from pydantic import ValidationError

from cardledger.config import get_settings
from cardledger.models.preferences import NotificationFrequency, UserPreferences

logger = structlog.get_logger()

# Frequency given to each legacy boolean flag
LEGACY_FREQUENCIES = {
    "billReminders": NotificationFrequency.WEEKLY,
    "lowBalance": NotificationFrequency.DAILY,
    "weeklyReport": NotificationFrequency.WEEKLY,
}


def migrate_legacy_preferences(data: dict) -> tuple[dict, bool]:
    """
    Convert the boolean notification shape to the current one.

    Returns the (possibly new) data and whether a migration happened.
    The input dict is not modified.
    """
    notifications = data.get("notifications")
    if not isinstance(notifications, dict):
        return data, False
    if not isinstance(notifications.get("billReminders"), bool):
        return data, False

    migrated = {
        key: {
            "enabled": bool(notifications.get(key, False)),
            "frequency": frequency.value,
        }
        for key, frequency in LEGACY_FREQUENCIES.items()
    }
    return {**data, "notifications": migrated}, True


class LocalPreferencesStore:
    """
    JSON file backed preferences.

    `migrated` is True after a load() that converted a legacy file.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path or get_settings().app.preferences_path)
        self.migrated = False

    def load(self) -> UserPreferences:
        """Read preferences, falling back to defaults when missing or unreadable."""
        self.migrated = False
        if not self.path.exists():
            return UserPreferences()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("preferences_unreadable", path=str(self.path), error=str(e))
            return UserPreferences()

        if not isinstance(data, dict):
            logger.warning("preferences_unreadable", path=str(self.path), error="not an object")
            return UserPreferences()

        data, self.migrated = migrate_legacy_preferences(data)
        if self.migrated:
            logger.info("preferences_migrated", path=str(self.path))

        try:
            return UserPreferences.model_validate(data)
        except ValidationError as e:
            logger.warning("preferences_invalid", path=str(self.path), error=str(e))
            return UserPreferences()

    def save(self, preferences: UserPreferences) -> None:
        """Write preferences as camelCase JSON."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = preferences.model_dump(mode="json", by_alias=True)
        self.path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
