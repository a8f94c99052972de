# app/services/alert_aggregator.py
"""
Overdue deliverables and upcoming project deadlines for the alerts dashboard,
and reminder notifications for overdue deliverables.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

from app.config import settings
from app.errors import HubError, NotFoundError
from app.models.deliverable import DeliverableStatus
from app.models.notification import NotificationType
from app.models.project import ProjectStatus
from app.schemas.alerts import (
    AlertsOut,
    OverdueDeliverable,
    ReminderOutcome,
    ReminderResult,
    ReminderSummary,
    Severity,
    UpcomingDeadline,
)
from app.schemas.reminder import ReminderPolicy
from app.services.gateway import Filter
from app.services.projects import load_policy
from app.utils.dates import ensure_utc, utcnow
from app.utils.notifications import already_notified, create_notification, overdue_reminder_text, project_link

logger = logging.getLogger(__name__)

DAY = timedelta(days=1)


def overdue_severity(days_overdue: int) -> Severity:
    if days_overdue >= 7:
        return Severity.HIGH
    if days_overdue >= 3:
        return Severity.MEDIUM
    return Severity.LOW


def deadline_severity(days_until: int) -> Severity:
    return Severity.HIGH if days_until <= 2 else Severity.MEDIUM


def reminder_key(deliverable_id: int, bucket: int) -> str:
    return f"deliverable:{deliverable_id}:overdue:{bucket}"


class AlertAggregator:
    def __init__(
        self,
        gateway,
        overdue_limit: Optional[int] = None,
        upcoming_limit: Optional[int] = None,
        window_days: Optional[int] = None,
    ):
        self.gateway = gateway
        self.overdue_limit = overdue_limit or settings.OVERDUE_ALERT_LIMIT
        self.upcoming_limit = upcoming_limit or settings.UPCOMING_DEADLINE_LIMIT
        self.window_days = window_days or settings.UPCOMING_WINDOW_DAYS

    async def compute_alerts(self, now: Optional[datetime] = None) -> AlertsOut:
        now = ensure_utc(now) if now else utcnow()
        return AlertsOut(
            overdue_deliverables=await self.overdue_deliverables(now, limit=self.overdue_limit),
            upcoming_deadlines=await self.upcoming_deadlines(now),
            generated_at=now,
        )

    async def overdue_deliverables(
        self,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        deliverable_ids: Optional[Iterable[int]] = None,
    ) -> List[OverdueDeliverable]:
        """Deliverables past their due date and not approved, most overdue first"""
        now = ensure_utc(now) if now else utcnow()
        today = now.date()

        filters = [
            Filter("status", "neq", DeliverableStatus.APPROVED.value),
            Filter("due_date", "not_is", None),
            Filter("due_date", "lt", today),
        ]
        if deliverable_ids is not None:
            filters.append(Filter("id", "in", list(deliverable_ids)))
        deliverables = (await self.gateway.select("deliverables", filters)).unwrap()
        if not deliverables:
            return []

        projects = await self._rows_by_id("projects", {d["project_id"] for d in deliverables})
        clients = await self._rows_by_id(
            "clients",
            {p["client_id"] for p in projects.values() if p.get("client_id") is not None},
        )

        items = []
        for d in deliverables:
            project = projects.get(d["project_id"], {})
            client = clients.get(project.get("client_id"), {})
            days_overdue = (today - d["due_date"]).days
            items.append(OverdueDeliverable(
                id=d["id"],
                name=d["name"],
                status=d["status"],
                due_date=d["due_date"],
                project_id=d["project_id"],
                project_name=project.get("name", ""),
                client_name=client.get("name"),
                client_email=client.get("email"),
                days_overdue=days_overdue,
                severity=overdue_severity(days_overdue),
            ))

        items.sort(key=lambda item: (-item.days_overdue, item.id))
        return items[:limit] if limit is not None else items

    async def upcoming_deadlines(self, now: Optional[datetime] = None) -> List[UpcomingDeadline]:
        """Active projects ending within the window, soonest first"""
        now = ensure_utc(now) if now else utcnow()
        window_end = now + self.window_days * DAY

        projects = (await self.gateway.select(
            "projects",
            [
                Filter("status", "eq", ProjectStatus.ACTIVE.value),
                Filter("end_date", "not_is", None),
                Filter("end_date", "gte", now),
                Filter("end_date", "lte", window_end),
            ],
            order_by=("end_date", "id"),
        )).unwrap()

        clients = await self._rows_by_id(
            "clients",
            {p["client_id"] for p in projects if p.get("client_id") is not None},
        )

        deadlines = []
        for p in projects:
            end_date = ensure_utc(p["end_date"])
            if not now <= end_date <= window_end:
                continue
            days_until = math.ceil((end_date - now) / DAY)
            deadlines.append(UpcomingDeadline(
                id=p["id"],
                name=p["name"],
                end_date=end_date,
                client_name=clients.get(p.get("client_id"), {}).get("name"),
                progress=p.get("progress") or 0,
                days_until=days_until,
                severity=deadline_severity(days_until),
            ))

        deadlines.sort(key=lambda d: (d.end_date, d.id))
        return deadlines[:self.upcoming_limit]

    async def get_overdue(self, deliverable_id: int, now: Optional[datetime] = None) -> OverdueDeliverable:
        items = await self.overdue_deliverables(now, deliverable_ids=[deliverable_id])
        if not items:
            raise NotFoundError("Overdue deliverable not found")
        return items[0]

    async def _rows_by_id(self, table: str, ids) -> Dict[int, dict]:
        ids = list(ids)
        if not ids:
            return {}
        rows = (await self.gateway.select(table, [Filter("id", "in", ids)])).unwrap()
        return {row["id"]: row for row in rows}

    async def send_reminder(self, deliverable: OverdueDeliverable, policy: Optional[ReminderPolicy] = None) -> ReminderResult:
        """
        Notify the client account linked to an overdue deliverable.

        One reminder is sent per deliverable and overdue bucket of the
        project's reminder policy; repeated calls within a bucket are skipped.
        """
        def result(outcome, reason=None, notification_id=None):
            return ReminderResult(
                deliverable_id=deliverable.id,
                outcome=outcome,
                reason=reason,
                notification_id=notification_id,
            )

        if not deliverable.client_email:
            return result(ReminderOutcome.SKIPPED, "Client has no email")

        try:
            profile = (await self.gateway.select_one("profiles", {"email": deliverable.client_email})).unwrap()
            if profile is None:
                logger.info(f"No linked account for {deliverable.client_email}, reminder for deliverable {deliverable.id} skipped")
                return result(ReminderOutcome.SKIPPED, "Client has no linked account")

            if policy is None:
                policy = await load_policy(self.gateway, deliverable.project_id)
            key = reminder_key(deliverable.id, policy.bucket_for(deliverable.days_overdue))

            if (await already_notified(self.gateway, profile["id"], key)).unwrap():
                return result(ReminderOutcome.SKIPPED, "Reminder already sent")

            title, message = overdue_reminder_text(deliverable.name, deliverable.project_name, deliverable.days_overdue)
            created = (await create_notification(
                self.gateway,
                user_id=profile["id"],
                title=title,
                message=message,
                notification_type=NotificationType.DEADLINE,
                link=project_link(deliverable.project_id),
                project_id=deliverable.project_id,
                reminder_key=key,
            )).unwrap()
        except HubError as e:
            logger.error(f"Error sending reminder for deliverable {deliverable.id}: {e.message}")
            return result(ReminderOutcome.FAILED, e.message)

        logger.info(f"Sent overdue reminder for deliverable {deliverable.id} to user {profile['id']}")
        return result(ReminderOutcome.SENT, notification_id=created["id"])

    async def send_reminders(self, deliverables: Iterable[OverdueDeliverable]) -> ReminderSummary:
        results = [await self.send_reminder(d) for d in deliverables]
        return ReminderSummary.from_results(results)
