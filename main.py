from fastapi import FastAPI, WebSocket, WebSocketDisconnect, Depends, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from typing import Awaitable, Callable, Dict
import json
import logging

from app.config import settings
from app.database import SessionLocal
from app.errors import HubError
from app.routers import alerts, comments, notifications, reminder, social_posts
from app.schemas.profile import CurrentUser
from app.services.comment_thread import CommentThread
from app.services.gateway import SqlGateway
from app.services.notification_store import NotificationStore
from app.services.realtime import ChangeFeed
from app.services.scheduler import ReminderScheduler
from app.services.websocket_manager import websocket_manager
from app.utils.auth import require_admin, resolve_user

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(title="Epikom Hub API")

# Gateway and scheduler are explicit application state so tests can swap them
app.state.gateway = SqlGateway(SessionLocal, ChangeFeed())
app.state.scheduler = ReminderScheduler(app.state.gateway)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HubError)
async def hub_error_handler(request, exc: HubError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# Route registration
app.include_router(notifications.router)
app.include_router(comments.router)
app.include_router(alerts.router)
app.include_router(reminder.router)
app.include_router(social_posts.router)


# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Start the reminder scheduler when the application starts"""
    logger.info("Starting Epikom Hub API...")
    if settings.SCHEDULER_ENABLED:
        app.state.scheduler.start()


@app.on_event("shutdown")
async def shutdown_event():
    """Stop the reminder scheduler when the application shuts down"""
    logger.info("Shutting down Epikom Hub API...")
    app.state.scheduler.stop()


@app.get("/")
def read_root():
    return {"message": "Epikom Hub API"}


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/scheduler/status")
async def get_scheduler_status(current_user: CurrentUser = Depends(require_admin)):
    """Get scheduler status and job information"""
    status = await app.state.scheduler.get_scheduler_status()
    status["connected_users"] = websocket_manager.get_connected_users()
    status["live_connections"] = websocket_manager.get_total_connections()
    status["live_feeds"] = websocket_manager.get_feed_counts()
    return status


SCHEDULER_JOBS = {
    "overdue": "check_overdue_deliverables",
    "due-soon": "check_deliverables_due_soon",
    "project-starts": "check_project_starts",
    "posts": "check_upcoming_posts",
}


@app.post("/scheduler/trigger/{job}")
async def trigger_scheduler_job(job: str, current_user: CurrentUser = Depends(require_admin)):
    """Manually run one of the reminder jobs"""
    if job not in SCHEDULER_JOBS:
        raise HTTPException(status_code=404, detail=f"Unknown job: {job}")
    result = await getattr(app.state.scheduler, SCHEDULER_JOBS[job])()
    if hasattr(result, "model_dump"):
        result = result.model_dump(mode="json")
    return {"message": f"{job} check triggered successfully", "result": result}


async def run_live_session(
    websocket: WebSocket,
    user: CurrentUser,
    state,
    commands: Dict[str, Callable[[dict], Awaitable[object]]],
):
    """
    Serve one synced view over a WebSocket.

    The client receives a snapshot after every state change and may send
    commands; a failed command is reported as an error message and leaves the
    connection open.
    """
    await websocket_manager.connect(websocket, user.id, state.channel_name)

    async def push():
        await websocket_manager.send_snapshot(websocket, state.snapshot())

    state.on_change(push)
    try:
        try:
            await state.initialize()
        except HubError as e:
            await websocket_manager.send_error(websocket, e.message)
        state.subscribe()

        while True:
            data = await websocket.receive_text()
            try:
                received = json.loads(data)
            except json.JSONDecodeError:
                await websocket_manager.send_error(websocket, "Messages must be JSON")
                continue

            handler = commands.get(received.get("type")) if isinstance(received, dict) else None
            if handler is None:
                await websocket_manager.send_error(websocket, "Unknown command")
                continue
            try:
                await handler(received)
            except HubError as e:
                await websocket_manager.send_error(websocket, e.message)
            except (KeyError, TypeError, ValueError):
                await websocket_manager.send_error(websocket, "Malformed command")

    except WebSocketDisconnect:
        pass
    finally:
        state.dispose()
        websocket_manager.disconnect(websocket, user.id)


async def authenticate_socket(websocket: WebSocket, token: str = None):
    await websocket.accept()
    user = await resolve_user(websocket.app.state.gateway, token)
    if user is None:
        await websocket_manager.send_error(websocket, "Could not validate credentials")
        await websocket.close(code=4401)
    return user


# Live inbox of the signed-in user
@app.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, token: str = None):
    user = await authenticate_socket(websocket, token)
    if user is None:
        return

    store = NotificationStore(websocket.app.state.gateway, user)
    commands = {
        "refresh": lambda msg: store.initialize(),
        "mark_read": lambda msg: store.mark_as_read(int(msg["id"])),
        "mark_all_read": lambda msg: store.mark_all_as_read(),
        "delete": lambda msg: store.delete(int(msg["id"])),
        "clear_all": lambda msg: store.clear_all(),
    }
    await run_live_session(websocket, user, store, commands)


# Live comment thread of a project
@app.websocket("/ws/projects/{project_id}/comments")
async def comments_socket(websocket: WebSocket, project_id: int, token: str = None):
    user = await authenticate_socket(websocket, token)
    if user is None:
        return

    thread = CommentThread(websocket.app.state.gateway, project_id, user)
    commands = {
        "refresh": lambda msg: thread.initialize(),
        "add_comment": lambda msg: thread.add_comment(
            msg["content"], msg.get("parent_id"), msg.get("mentions")
        ),
        "update_comment": lambda msg: thread.update_comment(int(msg["id"]), msg["content"]),
        "delete_comment": lambda msg: thread.delete_comment(int(msg["id"])),
    }
    await run_live_session(websocket, user, thread, commands)
