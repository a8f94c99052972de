"""
Tests for the project comment thread

Tests cover:
- Tree shape and ordering
- Live refetch when another session writes
- Reply nesting, permissions and cascading deletes
- Mention notifications and @name resolution
"""

import pytest

from app.errors import NotFoundError, PermissionDeniedError, TransientIOError, ValidationError
from app.models import Project
from app.schemas.profile import CurrentUser
from app.services.comment_thread import CommentThread
from app.services.gateway import GatewayResult, SqlGateway
from app.utils.mentions import parse_mentions


@pytest.fixture
def outsider(seed):
    return CurrentUser.model_validate(seed.profile("marco@verdeestudio.mx", "Marco Diaz"))


class TestTree:
    async def test_top_level_newest_first_replies_oldest_first(self, gateway, project, admin, client_user):
        thread = CommentThread(gateway, project["id"], admin)
        older = await thread.add_comment("Kickoff notes")
        newer = await thread.add_comment("Second round")
        first_reply = await CommentThread(gateway, project["id"], client_user).add_comment("Looks good", older.id)
        second_reply = await thread.add_comment("Thanks", older.id)

        comments = await CommentThread(gateway, project["id"], client_user).initialize()

        assert [c.id for c in comments] == [newer.id, older.id]
        assert [r.id for r in comments[1].replies] == [first_reply.id, second_reply.id]
        assert comments[0].replies == []

    async def test_comments_of_other_projects_are_excluded(self, gateway, seed, project, admin):
        other = seed.add(Project(name="Other", status="active"))
        await CommentThread(gateway, other["id"], admin).add_comment("Elsewhere")

        assert await CommentThread(gateway, project["id"], admin).initialize() == []


class TestLiveRefetch:
    async def test_reply_from_another_session_appears_once(self, gateway, project, admin, client_user):
        watcher = CommentThread(gateway, project["id"], admin)
        parent = await watcher.add_comment("Please review the logo")
        await watcher.initialize()
        watcher.subscribe()
        pushes = []

        async def on_change():
            pushes.append(len(watcher.comments[0].replies))

        watcher.on_change(on_change)

        author = CommentThread(gateway, project["id"], client_user)
        await author.initialize()
        author.subscribe()
        reply = await author.add_comment("Approved from my side", parent.id)

        assert [r.id for r in watcher.comments[0].replies] == [reply.id]
        assert [r.id for r in author.comments[0].replies] == [reply.id]
        assert pushes == [1]

    async def test_delete_from_another_session_is_reflected(self, gateway, project, admin):
        watcher = CommentThread(gateway, project["id"], admin)
        comment = await watcher.add_comment("Temporary")
        await watcher.initialize()
        watcher.subscribe()

        await CommentThread(gateway, project["id"], admin).delete_comment(comment.id)

        assert watcher.comments == []

    async def test_disposed_thread_stops_refetching(self, gateway, feed, project, admin):
        watcher = CommentThread(gateway, project["id"], admin)
        await watcher.initialize()
        watcher.subscribe()
        watcher.dispose()

        await CommentThread(gateway, project["id"], admin).add_comment("After dispose")

        assert watcher.comments == []
        assert feed.listener_count(watcher.channel_name) == 0


class TestAddComment:
    async def test_requires_signed_in_user(self, gateway, project):
        with pytest.raises(PermissionDeniedError):
            await CommentThread(gateway, project["id"]).add_comment("Hello")

    async def test_blank_content_rejected(self, gateway, project, admin):
        with pytest.raises(ValidationError):
            await CommentThread(gateway, project["id"], admin).add_comment("   ")

    async def test_replies_cannot_nest(self, gateway, project, admin):
        thread = CommentThread(gateway, project["id"], admin)
        parent = await thread.add_comment("Top")
        reply = await thread.add_comment("Reply", parent.id)

        with pytest.raises(ValidationError):
            await thread.add_comment("Reply to reply", reply.id)

    async def test_parent_must_belong_to_project(self, gateway, seed, project, admin):
        other = seed.add(Project(name="Other", status="active"))
        foreign = await CommentThread(gateway, other["id"], admin).add_comment("Elsewhere")

        with pytest.raises(NotFoundError):
            await CommentThread(gateway, project["id"], admin).add_comment("Reply", foreign.id)

    async def test_mentions_notify_everyone_but_the_author(self, gateway, project, admin, client_user, outsider):
        thread = CommentThread(gateway, project["id"], admin)

        comment = await thread.add_comment("See above", mentions=[client_user.id, admin.id, client_user.id])

        assert comment.mentions == [client_user.id, admin.id]
        rows = (await gateway.select("notifications")).unwrap()
        assert [(r["user_id"], r["type"], r["actor_id"]) for r in rows] == [(client_user.id, "mention", admin.id)]
        assert rows[0]["link"] == f"/projects/{project['id']}"

    async def test_mentions_resolved_from_content(self, gateway, project, admin, client_user, outsider):
        comment = await CommentThread(gateway, project["id"], admin).add_comment("@lucia and @Marco please check")

        assert comment.mentions == [client_user.id, outsider.id]

    async def test_explicit_empty_mentions_skip_resolution(self, gateway, project, admin, client_user):
        comment = await CommentThread(gateway, project["id"], admin).add_comment("@lucia fyi", mentions=[])

        assert comment.mentions == []
        assert (await gateway.select("notifications")).unwrap() == []


class TestEditAndDelete:
    async def test_author_can_edit(self, gateway, project, client_user):
        thread = CommentThread(gateway, project["id"], client_user)
        comment = await thread.add_comment("Typo")

        updated = await thread.update_comment(comment.id, "Fixed")

        assert updated.content == "Fixed"
        assert updated.is_edited is True
        assert thread.comments[0].content == "Fixed"

    async def test_other_client_cannot_edit_or_delete(self, gateway, project, client_user, outsider):
        comment = await CommentThread(gateway, project["id"], client_user).add_comment("Mine")
        thread = CommentThread(gateway, project["id"], outsider)

        with pytest.raises(PermissionDeniedError):
            await thread.update_comment(comment.id, "Hijacked")
        with pytest.raises(PermissionDeniedError):
            await thread.delete_comment(comment.id)

    async def test_admin_delete_cascades_to_replies(self, gateway, project, admin, client_user):
        parent = await CommentThread(gateway, project["id"], client_user).add_comment("Top")
        await CommentThread(gateway, project["id"], client_user).add_comment("Reply", parent.id)
        thread = CommentThread(gateway, project["id"], admin)
        await thread.initialize()

        await thread.delete_comment(parent.id)

        assert thread.comments == []
        assert (await gateway.select("comments")).unwrap() == []

    async def test_failed_delete_keeps_thread_whole(self, flaky_gateway, project, admin, client_user):
        parent = await CommentThread(flaky_gateway, project["id"], client_user).add_comment("Top")
        reply = await CommentThread(flaky_gateway, project["id"], client_user).add_comment("Reply", parent.id)
        thread = CommentThread(flaky_gateway, project["id"], admin)
        await thread.initialize()
        flaky_gateway.fail_writes = True

        with pytest.raises(TransientIOError):
            await thread.delete_comment(parent.id)

        rows = (await flaky_gateway.select("comments")).unwrap()
        assert sorted(r["id"] for r in rows) == [parent.id, reply.id]
        assert [c.id for c in thread.comments] == [parent.id]
        assert [r.id for r in thread.comments[0].replies] == [reply.id]
        assert thread.error == "Connection lost"

    async def test_cascade_is_one_delete(self, session_factory, feed, project, admin, client_user):
        class OneDeleteGateway(SqlGateway):
            deletes = 0

            async def delete(self, table, filters):
                self.deletes += 1
                if self.deletes > 1:
                    return GatewayResult(error=TransientIOError("Connection lost"))
                return await super().delete(table, filters)

        gateway = OneDeleteGateway(session_factory, feed)
        parent = await CommentThread(gateway, project["id"], client_user).add_comment("Top")
        await CommentThread(gateway, project["id"], client_user).add_comment("Reply", parent.id)
        thread = CommentThread(gateway, project["id"], admin)
        await thread.initialize()

        await thread.delete_comment(parent.id)

        assert gateway.deletes == 1
        assert thread.comments == []
        assert (await gateway.select("comments")).unwrap() == []

    async def test_deleting_reply_keeps_parent(self, gateway, project, client_user):
        thread = CommentThread(gateway, project["id"], client_user)
        parent = await thread.add_comment("Top")
        reply = await thread.add_comment("Reply", parent.id)

        await thread.delete_comment(reply.id)

        assert [c.id for c in thread.comments] == [parent.id]
        assert thread.comments[0].replies == []

    async def test_for_comment_unknown_id(self, gateway, admin):
        with pytest.raises(NotFoundError):
            await CommentThread.for_comment(gateway, 404, admin)


class TestParseMentions:
    users = [
        {"id": 1, "full_name": "Lucia Herrera"},
        {"id": 2, "full_name": "Marco Diaz"},
    ]

    def test_first_name_and_partial_match(self):
        assert parse_mentions("@marco ping @herrera", self.users) == [2, 1]

    def test_unknown_and_repeated_names(self):
        assert parse_mentions("@nobody @Lucia @lucia", self.users) == [1]

    def test_no_tokens(self):
        assert parse_mentions("plain text", self.users) == []
