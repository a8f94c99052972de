# app/services/comment_thread.py
"""
Two-level comment tree of a project.

Any change on the project's comments (insert, update or delete, from this or
another session) triggers a full refetch, so the tree is always re-derived
from the database rather than patched incrementally.
"""

import logging
from typing import Any, Dict, List, Optional

from app.errors import HubError, NotFoundError, PermissionDeniedError, ValidationError
from app.models.notification import NotificationType
from app.schemas.comment import CommentOut
from app.schemas.profile import CurrentUser
from app.services.gateway import Filter
from app.services.live_state import LiveState
from app.services.realtime import ChangeEvent
from app.utils.dates import utcnow
from app.utils.mentions import parse_mentions
from app.utils.notifications import create_notification, mention_text, project_link

logger = logging.getLogger(__name__)


class CommentThread(LiveState):
    """Top-level comments newest first, each with its replies oldest first"""

    def __init__(self, gateway, project_id: int, user: Optional[CurrentUser] = None, loading_timeout: Optional[float] = None):
        super().__init__(loading_timeout)
        self.gateway = gateway
        self.project_id = project_id
        self.user = user
        self.comments: List[CommentOut] = []

    @classmethod
    async def for_comment(cls, gateway, comment_id: int, user: Optional[CurrentUser] = None) -> "CommentThread":
        """Build the thread of the project a comment belongs to"""
        row = (await gateway.select_one("comments", {"id": comment_id})).unwrap()
        if row is None:
            raise NotFoundError("Comment not found")
        return cls(gateway, row["project_id"], user)

    @property
    def channel_name(self) -> str:
        return f"comments:{self.project_id}"

    async def fetch(self) -> List[CommentOut]:
        rows = self._check(await self.gateway.select(
            "comments",
            [Filter("project_id", "eq", self.project_id), Filter("parent_id", "is", None)],
            order_by=("-created_at", "-id"),
        ))
        top_level = [CommentOut.model_validate(row) for row in rows]

        replies_by_parent: Dict[int, List[CommentOut]] = {c.id: [] for c in top_level}
        if top_level:
            reply_rows = self._check(await self.gateway.select(
                "comments",
                [Filter("parent_id", "in", list(replies_by_parent))],
                order_by=("created_at", "id"),
            ))
            for row in reply_rows:
                reply = CommentOut.model_validate(row)
                replies_by_parent[reply.parent_id].append(reply)

        self.comments = [c.model_copy(update={"replies": replies_by_parent[c.id]}) for c in top_level]
        return self.comments

    async def initialize(self) -> List[CommentOut]:
        comments = await self._load(self.fetch())
        await self._emit()
        return comments

    def subscribe(self) -> None:
        if self._unsubscribe is not None or self._disposed:
            return
        self._unsubscribe = self.gateway.subscribe(
            self.channel_name,
            "comments",
            {"project_id": self.project_id},
            self._on_event,
        )

    async def _on_event(self, event: ChangeEvent) -> None:
        if self._disposed:
            return
        try:
            await self.fetch()
        except HubError as e:
            logger.error(f"Refetch of comments for project {self.project_id} failed: {e.message}")
        await self._emit()

    def _find(self, comment_id: int) -> Optional[CommentOut]:
        for comment in self.comments:
            if comment.id == comment_id:
                return comment
            for reply in comment.replies:
                if reply.id == comment_id:
                    return reply
        return None

    def _merge(self, comment: CommentOut) -> None:
        """Place a comment in the local tree unless it is already there"""
        if self._find(comment.id) is not None:
            return
        if comment.parent_id is None:
            self.comments.insert(0, comment.model_copy(update={"replies": []}))
            return
        for i, parent in enumerate(self.comments):
            if parent.id == comment.parent_id:
                self.comments[i] = parent.model_copy(update={"replies": parent.replies + [comment]})
                return

    def _require_user(self) -> CurrentUser:
        if self.user is None:
            raise PermissionDeniedError("Not authenticated")
        return self.user

    def _require_author_or_admin(self, row: Dict[str, Any]) -> None:
        user = self._require_user()
        if not (user.is_admin or row["user_id"] == user.id):
            raise PermissionDeniedError("Only the author or an admin can change this comment")

    async def _get_row(self, comment_id: int) -> Dict[str, Any]:
        row = self._check(await self.gateway.select_one("comments", {"id": comment_id}))
        if row is None or row["project_id"] != self.project_id:
            raise NotFoundError("Comment not found")
        return row

    async def add_comment(self, content: str, parent_id: Optional[int] = None, mentions: Optional[List[int]] = None) -> CommentOut:
        user = self._require_user()
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment cannot be empty")

        if parent_id is not None:
            parent = await self._get_row(parent_id)
            if parent["parent_id"] is not None:
                raise ValidationError("Replies cannot be nested")

        if mentions is None:
            mentions = await self._resolve_mentions(content)
        mentions = list(dict.fromkeys(mentions))
        now = utcnow()
        row = self._check(await self.gateway.insert("comments", {
            "project_id": self.project_id,
            "user_id": user.id,
            "parent_id": parent_id,
            "content": content,
            "mentions": mentions,
            "is_edited": False,
            "created_at": now,
            "updated_at": now,
        }))
        created = CommentOut.model_validate(row)

        self._merge(created)
        await self._notify_mentions(created, user)
        await self._emit()
        return created

    async def _resolve_mentions(self, content: str) -> List[int]:
        """User ids named by @tokens in the content"""
        if "@" not in content:
            return []
        profiles = self._check(await self.gateway.select("profiles", {"is_active": True}))
        return parse_mentions(content, profiles)

    async def _notify_mentions(self, comment: CommentOut, author: CurrentUser) -> None:
        title, message = mention_text(author.full_name)
        for user_id in comment.mentions:
            if user_id == author.id:
                continue
            result = await create_notification(
                self.gateway,
                user_id=user_id,
                title=title,
                message=message,
                notification_type=NotificationType.MENTION,
                link=project_link(self.project_id),
                project_id=self.project_id,
                actor_id=author.id,
            )
            if not result.ok:
                logger.error(f"Could not notify user {user_id} of mention in comment {comment.id}: {result.error.message}")

    async def update_comment(self, comment_id: int, content: str) -> CommentOut:
        row = await self._get_row(comment_id)
        self._require_author_or_admin(row)
        content = (content or "").strip()
        if not content:
            raise ValidationError("Comment cannot be empty")

        rows = self._check(await self.gateway.update(
            "comments",
            {"id": comment_id},
            {"content": content, "is_edited": True, "updated_at": utcnow()},
        ))
        if not rows:
            raise NotFoundError("Comment not found")
        updated = CommentOut.model_validate(rows[0])

        for i, comment in enumerate(self.comments):
            if comment.id == comment_id:
                self.comments[i] = updated.model_copy(update={"replies": comment.replies})
            elif any(r.id == comment_id for r in comment.replies):
                replies = [updated if r.id == comment_id else r for r in comment.replies]
                self.comments[i] = comment.model_copy(update={"replies": replies})
        await self._emit()
        return updated

    async def delete_comment(self, comment_id: int) -> None:
        """Delete a comment; deleting a top-level comment also deletes its replies"""
        row = await self._get_row(comment_id)
        self._require_author_or_admin(row)

        ids = [comment_id]
        if row["parent_id"] is None:
            replies = self._check(await self.gateway.select("comments", {"parent_id": comment_id}))
            ids += [reply["id"] for reply in replies]
        self._check(await self.gateway.delete("comments", [Filter("id", "in", ids)]))

        remaining = []
        for comment in self.comments:
            if comment.id == comment_id:
                continue
            if any(r.id == comment_id for r in comment.replies):
                comment = comment.model_copy(update={"replies": [r for r in comment.replies if r.id != comment_id]})
            remaining.append(comment)
        self.comments = remaining
        await self._emit()

    def snapshot(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "comments": [c.model_dump(mode="json") for c in self.comments],
            "is_loading": self.is_loading,
            "error": self.error,
        }
