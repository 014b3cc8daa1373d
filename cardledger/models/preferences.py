"""
User Preferences Models

Preferences live on the user's device, not in the remote store.
They are serialized with camelCase keys so files written by older
clients keep loading.
"""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class Currency(str, Enum):
    """Display currency."""
    CLP = "CLP"
    USD = "USD"


class NotificationFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class NotificationKind(str, Enum):
    """Notification kinds the user can configure."""
    BILL_REMINDERS = "bill_reminders"
    LOW_BALANCE = "low_balance"
    WEEKLY_REPORT = "weekly_report"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class NotificationSetting(_CamelModel):
    enabled: bool = True
    frequency: NotificationFrequency = NotificationFrequency.WEEKLY


class NotificationSettings(_CamelModel):
    bill_reminders: NotificationSetting = Field(
        default_factory=lambda: NotificationSetting(
            enabled=True, frequency=NotificationFrequency.WEEKLY
        )
    )
    low_balance: NotificationSetting = Field(
        default_factory=lambda: NotificationSetting(
            enabled=True, frequency=NotificationFrequency.DAILY
        )
    )
    weekly_report: NotificationSetting = Field(
        default_factory=lambda: NotificationSetting(
            enabled=False, frequency=NotificationFrequency.WEEKLY
        )
    )

    def get(self, kind: NotificationKind) -> NotificationSetting:
        return getattr(self, kind.value)


class UserPreferences(_CamelModel):
    """Session settings for the signed-in user on this device."""

    currency: Currency = Currency.CLP
    default_card_id: str = ""
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)


# =============================================================================
# NOTIFICATION UPDATES
# =============================================================================

class EnabledUpdate(BaseModel):
    """Turn a notification kind on or off."""

    kind: NotificationKind
    field: Literal["enabled"] = "enabled"
    value: bool


class FrequencyUpdate(BaseModel):
    """Change how often a notification kind fires."""

    kind: NotificationKind
    field: Literal["frequency"] = "frequency"
    value: NotificationFrequency


NotificationUpdate = Annotated[
    Union[EnabledUpdate, FrequencyUpdate],
    Field(discriminator="field"),
]


def apply_notification_update(
    preferences: UserPreferences,
    update: Union[EnabledUpdate, FrequencyUpdate],
) -> UserPreferences:
    """
    Return new preferences with a single notification field changed.

    The input is left untouched.
    """
    current = preferences.notifications.get(update.kind)
    changed = current.model_copy(update={update.field: update.value})
    notifications = preferences.notifications.model_copy(
        update={update.kind.value: changed}
    )
    return preferences.model_copy(update={"notifications": notifications})


_update_adapter = TypeAdapter(NotificationUpdate)


def parse_notification_update(data: dict) -> Union[EnabledUpdate, FrequencyUpdate]:
    """
    Build a typed update from untyped input (e.g. a settings form).

    Raises pydantic.ValidationError if the value does not fit the field.
    """
    return _update_adapter.validate_python(data)
