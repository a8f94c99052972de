# app/routers/alerts.py
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from typing import List, Optional

from app.schemas.alerts import AlertsOut, ReminderResult, ReminderSummary
from app.schemas.profile import CurrentUser
from app.services.alert_aggregator import AlertAggregator
from app.utils.auth import get_gateway, require_admin

router = APIRouter(prefix="/alerts", tags=["alerts"])


class ReminderBatch(BaseModel):
    deliverable_ids: Optional[List[int]] = None


@router.get("/", response_model=AlertsOut)
async def get_alerts(
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(require_admin)
):
    """Overdue deliverables and project deadlines of the coming week"""
    return await AlertAggregator(gateway).compute_alerts()


@router.post("/deliverables/{deliverable_id}/remind", response_model=ReminderResult)
async def send_deliverable_reminder(
    deliverable_id: int,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(require_admin)
):
    """Send an overdue reminder to the deliverable's client"""
    aggregator = AlertAggregator(gateway)
    deliverable = await aggregator.get_overdue(deliverable_id)
    return await aggregator.send_reminder(deliverable)


@router.post("/remind", response_model=ReminderSummary)
async def send_overdue_reminders(
    batch: Optional[ReminderBatch] = None,
    gateway=Depends(get_gateway),
    current_user: CurrentUser = Depends(require_admin)
):
    """Send reminders for the given overdue deliverables, or for every overdue one"""
    aggregator = AlertAggregator(gateway)
    ids = batch.deliverable_ids if batch else None
    deliverables = await aggregator.overdue_deliverables(deliverable_ids=ids)
    return await aggregator.send_reminders(deliverables)
