# app/schemas/alerts.py
from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime
import enum


class Severity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ReminderOutcome(str, enum.Enum):
    SENT = "sent"
    SKIPPED = "skipped"
    FAILED = "failed"


class OverdueDeliverable(BaseModel):
    id: int
    name: str
    status: str
    due_date: date
    project_id: int
    project_name: str
    client_name: Optional[str] = None
    client_email: Optional[str] = None
    days_overdue: int
    severity: Severity


class UpcomingDeadline(BaseModel):
    id: int
    name: str
    end_date: datetime
    client_name: Optional[str] = None
    progress: int = 0
    days_until: int
    severity: Severity


class AlertsOut(BaseModel):
    overdue_deliverables: List[OverdueDeliverable]
    upcoming_deadlines: List[UpcomingDeadline]
    generated_at: datetime

    @property
    def has_alerts(self) -> bool:
        return bool(self.overdue_deliverables or self.upcoming_deadlines)


class ReminderResult(BaseModel):
    deliverable_id: int
    outcome: ReminderOutcome
    reason: Optional[str] = None
    notification_id: Optional[int] = None


class ReminderSummary(BaseModel):
    results: List[ReminderResult]
    sent: int = 0
    skipped: int = 0
    failed: int = 0

    @classmethod
    def from_results(cls, results: List[ReminderResult]) -> "ReminderSummary":
        return cls(
            results=results,
            sent=sum(1 for r in results if r.outcome == ReminderOutcome.SENT),
            skipped=sum(1 for r in results if r.outcome == ReminderOutcome.SKIPPED),
            failed=sum(1 for r in results if r.outcome == ReminderOutcome.FAILED),
        )
