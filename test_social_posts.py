"""
Tests for scheduled social posts and the Kanban board

Tests cover:
- Creation defaults and schedule ordering
- Allowed and rejected status transitions
- published_at stamping
- Kanban drops: no-op, permission check, optimistic move and revert
"""

from datetime import date, time

import pytest
from pydantic import ValidationError as PydanticValidationError

from app.errors import NotFoundError, PermissionDeniedError, TransientIOError, ValidationError
from app.models.social_post import PostStatus, SocialPlatform
from app.schemas.social_post import SocialPostCreate, SocialPostUpdate
from app.services.social_posts import TRANSITIONS, SocialPostBoard, can_transition


def post_input(title="Teaser", day=date(2026, 3, 12), at=None, **fields):
    return SocialPostCreate(title=title, platform=SocialPlatform.INSTAGRAM, scheduled_date=day, scheduled_time=at, **fields)


@pytest.fixture
def board(gateway, project, admin):
    return SocialPostBoard(gateway, project["id"], admin)


class TestTransitions:
    @pytest.mark.parametrize("current, new", [
        (PostStatus.DRAFT, PostStatus.SCHEDULED),
        (PostStatus.DRAFT, PostStatus.CANCELLED),
        (PostStatus.SCHEDULED, PostStatus.PUBLISHED),
        (PostStatus.SCHEDULED, PostStatus.CANCELLED),
        (PostStatus.SCHEDULED, PostStatus.DRAFT),
        (PostStatus.CANCELLED, PostStatus.DRAFT),
    ])
    def test_allowed(self, current, new):
        assert can_transition(current, new)

    @pytest.mark.parametrize("current, new", [
        (PostStatus.DRAFT, PostStatus.PUBLISHED),
        (PostStatus.CANCELLED, PostStatus.SCHEDULED),
        (PostStatus.CANCELLED, PostStatus.PUBLISHED),
        (PostStatus.PUBLISHED, PostStatus.DRAFT),
        (PostStatus.PUBLISHED, PostStatus.SCHEDULED),
        (PostStatus.PUBLISHED, PostStatus.CANCELLED),
    ])
    def test_rejected(self, current, new):
        assert not can_transition(current, new)

    def test_same_status_is_allowed(self):
        assert all(can_transition(status, status) for status in TRANSITIONS)


class TestCreateAndUpdate:
    def test_required_fields(self):
        with pytest.raises(PydanticValidationError):
            SocialPostCreate(title="", platform="instagram", scheduled_date=date(2026, 3, 12))
        with pytest.raises(PydanticValidationError):
            SocialPostCreate(title="No date", platform="instagram")

    async def test_defaults(self, board):
        post = await board.create_post(post_input())

        assert post.status == PostStatus.DRAFT
        assert post.notify_before_hours == 2
        assert post.notification_sent is False
        assert post.published_at is None

    async def test_created_as_published_is_stamped(self, board):
        post = await board.create_post(post_input(status=PostStatus.PUBLISHED))
        assert post.published_at is not None

    async def test_kept_sorted_by_schedule(self, board):
        late = await board.create_post(post_input("Late", date(2026, 3, 20)))
        evening = await board.create_post(post_input("Evening", date(2026, 3, 12), time(18, 0)))
        morning = await board.create_post(post_input("Morning", date(2026, 3, 12), time(9, 0)))

        assert [p.id for p in board.posts] == [morning.id, evening.id, late.id]
        await board.fetch_posts()
        assert [p.id for p in board.posts] == [morning.id, evening.id, late.id]

    async def test_client_cannot_create(self, gateway, project, client_user):
        with pytest.raises(PermissionDeniedError):
            await SocialPostBoard(gateway, project["id"], client_user).create_post(post_input())

    async def test_update_fields(self, board):
        post = await board.create_post(post_input())

        updated = await board.update_post(post.id, SocialPostUpdate(title="Final teaser", hashtags=["#launch"]))

        assert updated.title == "Final teaser"
        assert updated.hashtags == ["#launch"]
        assert updated.status == PostStatus.DRAFT

    async def test_required_field_cannot_be_cleared(self, board):
        post = await board.create_post(post_input())

        with pytest.raises(ValidationError):
            await board.update_post(post.id, SocialPostUpdate(scheduled_date=None))

    async def test_delete(self, gateway, board, project, admin):
        post = await board.create_post(post_input())

        await board.delete_post(post.id)

        assert board.posts == []
        with pytest.raises(NotFoundError):
            await SocialPostBoard.for_post(gateway, post.id, admin)


class TestStatusUpdates:
    async def test_published_at_stamped_once(self, board):
        post = await board.create_post(post_input())
        await board.update_status(post.id, PostStatus.SCHEDULED)

        published = await board.update_status(post.id, PostStatus.PUBLISHED)
        again = await board.update_status(post.id, PostStatus.PUBLISHED)

        assert published.published_at is not None
        assert again.published_at == published.published_at

    async def test_nothing_leaves_published(self, board):
        post = await board.create_post(post_input(status=PostStatus.SCHEDULED))
        await board.update_status(post.id, PostStatus.PUBLISHED)

        with pytest.raises(ValidationError):
            await board.update_status(post.id, PostStatus.DRAFT)

    async def test_draft_cannot_be_published(self, board):
        post = await board.create_post(post_input())

        with pytest.raises(ValidationError):
            await board.update_status(post.id, PostStatus.PUBLISHED)
        assert board.posts_by_status(PostStatus.DRAFT)[0].id == post.id


class TestKanbanDrop:
    async def test_same_column_is_a_noop(self, gateway, board, project, client_user):
        post = await board.create_post(post_input())
        viewer = SocialPostBoard(gateway, project["id"], client_user)
        await viewer.fetch_posts()

        assert (await viewer.drop_post(post.id, PostStatus.DRAFT)).status == PostStatus.DRAFT

    async def test_client_cannot_move_cards(self, gateway, board, project, client_user):
        post = await board.create_post(post_input())
        viewer = SocialPostBoard(gateway, project["id"], client_user)
        await viewer.fetch_posts()

        with pytest.raises(PermissionDeniedError):
            await viewer.drop_post(post.id, PostStatus.SCHEDULED)

    async def test_drop_moves_card(self, board):
        post = await board.create_post(post_input())

        moved = await board.drop_post(post.id, PostStatus.SCHEDULED)

        assert moved.status == PostStatus.SCHEDULED
        assert board.columns()["scheduled"] == [moved]
        assert board.columns()["draft"] == []

    async def test_illegal_drop_is_rejected(self, board):
        post = await board.create_post(post_input())

        with pytest.raises(ValidationError):
            await board.drop_post(post.id, PostStatus.PUBLISHED)
        assert board.posts_by_status(PostStatus.DRAFT)[0].id == post.id

    async def test_failed_drop_reverts(self, flaky_gateway, project, admin):
        board = SocialPostBoard(flaky_gateway, project["id"], admin)
        post = await board.create_post(post_input())
        flaky_gateway.fail_writes = True

        with pytest.raises(TransientIOError):
            await board.drop_post(post.id, PostStatus.SCHEDULED)

        assert [p.id for p in board.posts_by_status(PostStatus.DRAFT)] == [post.id]
        assert board.posts_by_status(PostStatus.SCHEDULED) == []


class TestViews:
    async def test_by_date_and_month(self, board):
        march = await board.create_post(post_input("March", date(2026, 3, 12)))
        april = await board.create_post(post_input("April", date(2026, 4, 2)))

        assert board.posts_by_date(date(2026, 3, 12)) == [march]
        assert board.posts_for_month(2026, 4) == [april]
        assert board.posts_for_month(2026, 5) == []
