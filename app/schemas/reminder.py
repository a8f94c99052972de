# app/schemas/reminder.py
from pydantic import BaseModel, ValidationError as PydanticValidationError, model_validator
from typing import Any, Dict, Optional

from app.errors import ValidationError

DEFAULT_POLICY = {
    "on_start": True,
    "on_deliverable_due": True,
    "reminder_hours_before": 24,
    "overdue_reminders": {
        "first": 1,
        "second": 3,
        "third": 7,
    },
}


class OverdueReminders(BaseModel):
    """Days past a deliverable's due date at which a reminder fires"""

    first: int = 1
    second: int = 3
    third: int = 7

    @model_validator(mode="after")
    def check_increasing(self):
        if not 0 < self.first < self.second < self.third:
            raise ValueError("Overdue reminders must satisfy 0 < first < second < third")
        return self

    def thresholds(self):
        return (self.first, self.second, self.third)


class ReminderPolicy(BaseModel):
    on_start: bool = True
    on_deliverable_due: bool = True
    reminder_hours_before: int = 24
    overdue_reminders: OverdueReminders = OverdueReminders()

    @model_validator(mode="after")
    def check_hours_before(self):
        if self.reminder_hours_before <= 0:
            raise ValueError("reminder_hours_before must be greater than 0")
        return self

    @classmethod
    def from_settings(cls, stored: Optional[Dict[str, Any]]) -> "ReminderPolicy":
        """
        Build a policy from a project's stored notification settings.

        Missing keys fall back to the defaults; the nested overdue reminders
        are merged key by key. Raises ValidationError for malformed settings.
        """
        stored = stored or {}
        merged = {**DEFAULT_POLICY, **stored}
        merged["overdue_reminders"] = {
            **DEFAULT_POLICY["overdue_reminders"],
            **(stored.get("overdue_reminders") or {}),
        }
        try:
            return cls.model_validate(merged)
        except PydanticValidationError as e:
            raise ValidationError(_first_message(e))

    def bucket_for(self, days_overdue: int) -> int:
        """How many overdue thresholds have been reached (0-3)"""
        return sum(1 for threshold in self.overdue_reminders.thresholds() if days_overdue >= threshold)


class ReminderPolicyUpdate(BaseModel):
    on_start: Optional[bool] = None
    on_deliverable_due: Optional[bool] = None
    reminder_hours_before: Optional[int] = None
    overdue_reminders: Optional[Dict[str, int]] = None


def _first_message(error: PydanticValidationError) -> str:
    errors = error.errors()
    if not errors:
        return str(error)
    message = errors[0].get("msg", str(error))
    # pydantic prefixes errors raised from validators
    return message.replace("Value error, ", "")
