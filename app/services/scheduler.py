# app/services/scheduler.py
"""
Scheduler service for reminder policies and post pre-notifications
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from app.config import settings
from app.errors import HubError
from app.models.deliverable import DeliverableStatus
from app.models.notification import NotificationType
from app.models.profile import ProfileRole
from app.models.project import ProjectStatus
from app.models.social_post import PostStatus
from app.schemas.alerts import ReminderResult, ReminderSummary
from app.schemas.reminder import ReminderPolicy
from app.services.alert_aggregator import AlertAggregator
from app.services.gateway import Filter
from app.services.projects import client_account
from app.utils.dates import combine_utc, ensure_utc, utcnow
from app.utils.notifications import (
    already_notified,
    create_notification,
    due_soon_text,
    project_link,
    project_start_text,
    upcoming_post_text,
)

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Periodic jobs firing the reminders configured on each project"""

    def __init__(self, gateway, interval_minutes: Optional[int] = None):
        self.gateway = gateway
        self.aggregator = AlertAggregator(gateway)
        self.interval_minutes = interval_minutes or settings.SCHEDULER_INTERVAL_MINUTES
        self.scheduler = AsyncIOScheduler()
        self.is_running = False

    def start(self):
        """Start the scheduler"""
        if self.is_running:
            return

        self.scheduler.add_job(
            self.check_overdue_deliverables,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id='check_overdue_deliverables',
            name='Check Overdue Deliverables',
            replace_existing=True
        )

        self.scheduler.add_job(
            self.check_deliverables_due_soon,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id='check_deliverables_due_soon',
            name='Check Deliverables Due Soon',
            replace_existing=True
        )

        # Project start notices go out at 9 AM
        self.scheduler.add_job(
            self.check_project_starts,
            trigger=CronTrigger(hour=9, minute=0),
            id='check_project_starts',
            name='Check Project Starts',
            replace_existing=True
        )

        self.scheduler.add_job(
            self.check_upcoming_posts,
            trigger=IntervalTrigger(minutes=self.interval_minutes),
            id='check_upcoming_posts',
            name='Check Upcoming Social Posts',
            replace_existing=True
        )

        self.scheduler.start()
        self.is_running = True
        logger.info("Reminder scheduler started successfully")

    def stop(self):
        """Stop the scheduler"""
        if self.is_running:
            self.scheduler.shutdown()
            self.is_running = False
            logger.info("Reminder scheduler stopped")

    async def _policies(self, project_ids) -> Dict[int, ReminderPolicy]:
        """Reminder policy per project; malformed settings fall back to the defaults"""
        ids = list(set(project_ids))
        if not ids:
            return {}
        rows = (await self.gateway.select("projects", [Filter("id", "in", ids)])).unwrap()
        policies = {}
        for row in rows:
            try:
                policies[row["id"]] = ReminderPolicy.from_settings(row.get("notification_settings"))
            except HubError as e:
                logger.warning(f"Project {row['id']} has invalid reminder settings ({e.message}), using defaults")
                policies[row["id"]] = ReminderPolicy()
        return policies

    async def _notify_once(self, user_id: int, key: str, **notification) -> bool:
        if (await already_notified(self.gateway, user_id, key)).unwrap():
            return False
        (await create_notification(self.gateway, user_id=user_id, reminder_key=key, **notification)).unwrap()
        return True

    async def check_overdue_deliverables(self, now: Optional[datetime] = None) -> ReminderSummary:
        """Send a reminder for each overdue threshold a deliverable has reached, once per threshold"""
        results: List[ReminderResult] = []
        try:
            logger.info("Checking for overdue deliverables...")
            now = ensure_utc(now) if now else utcnow()

            overdue = await self.aggregator.overdue_deliverables(now)
            policies = await self._policies(d.project_id for d in overdue)

            for deliverable in overdue:
                policy = policies.get(deliverable.project_id, ReminderPolicy())
                if policy.bucket_for(deliverable.days_overdue) == 0:
                    continue
                results.append(await self.aggregator.send_reminder(deliverable, policy))

            logger.info(f"Found {len(overdue)} overdue deliverables, {len(results)} due for a reminder")

        except HubError as e:
            logger.error(f"Error checking overdue deliverables: {e.message}")

        return ReminderSummary.from_results(results)

    async def check_deliverables_due_soon(self, now: Optional[datetime] = None) -> int:
        """Notify clients of deliverables due within their project's reminder window"""
        sent = 0
        try:
            logger.info("Checking for deliverables due soon...")
            now = ensure_utc(now) if now else utcnow()

            deliverables = (await self.gateway.select("deliverables", [
                Filter("status", "neq", DeliverableStatus.APPROVED.value),
                Filter("due_date", "not_is", None),
                Filter("due_date", "gte", now.date()),
            ])).unwrap()
            policies = await self._policies(d["project_id"] for d in deliverables)

            for deliverable in deliverables:
                policy = policies.get(deliverable["project_id"])
                if policy is None or not policy.on_deliverable_due:
                    continue

                # A deliverable is due by the end of its due date
                deadline = combine_utc(deliverable["due_date"] + timedelta(days=1))
                hours_left = (deadline - now) / timedelta(hours=1)
                if not 0 < hours_left <= policy.reminder_hours_before:
                    continue

                project, profile = await self._project_and_account(deliverable["project_id"])
                if profile is None:
                    continue

                title, message = due_soon_text(deliverable["name"], project["name"], int(hours_left))
                if await self._notify_once(
                    profile["id"],
                    f"deliverable:{deliverable['id']}:due_soon",
                    title=title,
                    message=message,
                    notification_type=NotificationType.DEADLINE,
                    link=project_link(project["id"]),
                    project_id=project["id"],
                ):
                    sent += 1

            logger.info(f"Sent {sent} due soon notifications")

        except HubError as e:
            logger.error(f"Error checking deliverables due soon: {e.message}")

        return sent

    async def check_project_starts(self, now: Optional[datetime] = None) -> int:
        """Notify clients of active projects starting today"""
        sent = 0
        try:
            logger.info("Checking for projects starting today...")
            now = ensure_utc(now) if now else utcnow()
            start_of_day = combine_utc(now.date())

            projects = (await self.gateway.select("projects", [
                Filter("status", "eq", ProjectStatus.ACTIVE.value),
                Filter("start_date", "gte", start_of_day),
                Filter("start_date", "lt", start_of_day + timedelta(days=1)),
            ])).unwrap()

            for project in projects:
                policy = (await self._policies([project["id"]])).get(project["id"])
                if policy is None or not policy.on_start:
                    continue
                _, profile = await self._project_and_account(project["id"], project)
                if profile is None:
                    continue

                title, message = project_start_text(project["name"])
                if await self._notify_once(
                    profile["id"],
                    f"project:{project['id']}:start",
                    title=title,
                    message=message,
                    notification_type=NotificationType.PROJECT_UPDATE,
                    link=project_link(project["id"]),
                    project_id=project["id"],
                ):
                    sent += 1

            logger.info(f"Sent {sent} project start notifications")

        except HubError as e:
            logger.error(f"Error checking project starts: {e.message}")

        return sent

    async def check_upcoming_posts(self, now: Optional[datetime] = None) -> int:
        """Notify admins of scheduled posts entering their notify-before window"""
        notified = 0
        try:
            logger.info("Checking for upcoming social posts...")
            now = ensure_utc(now) if now else utcnow()

            posts = (await self.gateway.select("social_media_posts", [
                Filter("status", "eq", PostStatus.SCHEDULED.value),
                Filter("notification_sent", "eq", False),
                Filter("scheduled_date", "gte", now.date()),
            ])).unwrap()
            if not posts:
                return 0

            admins = (await self.gateway.select("profiles", {
                "role": ProfileRole.ADMIN.value,
                "is_active": True,
            })).unwrap()

            for post in posts:
                publish_at = combine_utc(post["scheduled_date"], post.get("scheduled_time"))
                hours_left = (publish_at - now) / timedelta(hours=1)
                if not 0 < hours_left <= post["notify_before_hours"]:
                    continue

                title, message = upcoming_post_text(post["title"], post["platform"], max(1, round(hours_left)))
                failed = 0
                for admin in admins:
                    try:
                        await self._notify_once(
                            admin["id"],
                            f"post:{post['id']}:upcoming",
                            title=title,
                            message=message,
                            notification_type=NotificationType.PROJECT_UPDATE,
                            link=project_link(post["project_id"]),
                            project_id=post["project_id"],
                        )
                    except HubError as e:
                        failed += 1
                        logger.error(f"Could not notify admin {admin['id']} of post {post['id']}: {e.message}")

                # Left unsent so the next run retries the admins that were missed
                if failed:
                    continue

                (await self.gateway.update("social_media_posts", {"id": post["id"]}, {"notification_sent": True})).unwrap()
                notified += 1

            logger.info(f"Sent pre-notifications for {notified} social posts")

        except HubError as e:
            logger.error(f"Error checking upcoming posts: {e.message}")

        return notified

    async def _project_and_account(self, project_id: int, project: Optional[Dict[str, Any]] = None):
        if project is None:
            project = (await self.gateway.select_one("projects", {"id": project_id})).unwrap()
        if project is None or project.get("client_id") is None:
            return project, None
        client = (await self.gateway.select_one("clients", {"id": project["client_id"]})).unwrap()
        return project, await client_account(self.gateway, client)

    async def get_scheduler_status(self) -> Dict[str, Any]:
        """Get scheduler status and job information"""
        if not self.is_running:
            return {"status": "stopped", "jobs": []}

        jobs = []
        for job in self.scheduler.get_jobs():
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
                "trigger": str(job.trigger)
            })

        return {
            "status": "running",
            "jobs": jobs
        }
