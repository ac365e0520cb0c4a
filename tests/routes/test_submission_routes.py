"""Tests for the submission HTTP routes."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from newsniche.app import create_app
from newsniche.auth.credentials import Authenticated, EditToken, Role
from newsniche.auth.middleware import get_account
from newsniche.errors import NotFoundError, ValidationError
from newsniche.models.base import LocalizedText
from newsniche.models.post import Post
from newsniche.models.submission import (
    PostPayload,
    Submission,
    SubmissionKind,
    SubmissionStatus,
    SubmitterProfile,
)
from newsniche.services.workflow import PublishResult, ReconcileReport, TransitionResult

MODERATOR = Authenticated(account_id="mod-1", role=Role.MODERATOR)
ADMIN = Authenticated(account_id="admin-1", role=Role.ADMIN)
USER = Authenticated(account_id="user-1")


def _settings() -> SimpleNamespace:
    return SimpleNamespace(
        app=SimpleNamespace(
            secret_key="route-test-secret",
            is_development=True,
            log_level="INFO",
            env="test",
            maintenance_interval_seconds=0,
            frontend_url="http://localhost:3000",
        ),
    )


def _submission(kind: SubmissionKind = SubmissionKind.GUEST, **overrides) -> Submission:
    data = {
        "id": "sub-1",
        "kind": kind,
        "submitter": SubmitterProfile(name="Ada", email="ada@example.com", bio="Writer"),
        "post": PostPayload(title=LocalizedText(en="Title")),
    }
    data.update(overrides)
    return Submission(**data)


@pytest.fixture
def workflow() -> MagicMock:
    return MagicMock()


@pytest.fixture
def cosmos() -> MagicMock:
    cosmos = MagicMock()
    cosmos.database.read = AsyncMock(return_value={"id": "newsniche"})
    cosmos.close = AsyncMock()
    return cosmos


@pytest.fixture
def app(workflow, cosmos):
    notifier = MagicMock()
    notifier.drain = AsyncMock()
    with (
        patch("newsniche.app.load_settings", return_value=_settings()),
        patch("newsniche.app.configure_logging"),
        patch("newsniche.app.check_emulators", new=AsyncMock(return_value=True)),
        patch("newsniche.app.init_database", new=AsyncMock(return_value=cosmos)),
        patch("newsniche.app.init_workflow", return_value=(workflow, notifier)),
    ):
        yield create_app()


@pytest.fixture
def client(app):
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client


def _login(app, account: Authenticated | None) -> None:
    app.dependency_overrides[get_account] = lambda: account


@pytest.mark.unit
class TestSubmit:
    def test_anonymous_submit(self, client, workflow) -> None:
        workflow.submit = AsyncMock(return_value=_submission())

        response = client.post(
            "/api/guest-posts/submit",
            json={
                "submitter": {"name": "Ada", "email": "ada@example.com", "bio": "Writer"},
                "post": {"title": {"en": "Title"}},
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"] == {"id": "sub-1", "status": "pending"}
        assert "5-7 business days" in body["message"]
        args, kwargs = workflow.submit.call_args
        assert args[0] == SubmissionKind.GUEST
        assert kwargs["owner"] is None

    def test_logged_in_submit_records_owner(self, app, client, workflow) -> None:
        _login(app, USER)
        workflow.submit = AsyncMock(return_value=_submission(kind=SubmissionKind.SPONSORED))

        response = client.post(
            "/api/sponsored-posts/submit",
            json={
                "submitter": {"name": "Grace", "email": "g@acme.io"},
                "post": {},
                "sponsorship": {"budget": 100},
            },
        )

        assert response.status_code == 201
        assert workflow.submit.call_args.kwargs["owner"] == USER
        assert workflow.submit.call_args.kwargs["sponsorship"].budget == 100

    def test_workflow_validation_error_is_400(self, client, workflow) -> None:
        workflow.submit = AsyncMock(
            side_effect=ValidationError("bad", ["English content is required"])
        )

        response = client.post(
            "/api/guest-posts/submit", json={"submitter": {}, "post": {}}
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "message": "bad",
            "errors": ["English content is required"],
        }

    def test_malformed_body_is_400(self, client) -> None:
        response = client.post("/api/guest-posts/submit", json={"post": {}})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Validation failed"


@pytest.mark.unit
class TestModeration:
    def test_queue_requires_login(self, client) -> None:
        response = client.get("/api/guest-posts/")
        assert response.status_code == 401
        assert response.json()["message"] == "Authentication required"

    def test_queue_requires_moderator(self, app, client) -> None:
        _login(app, USER)
        assert client.get("/api/guest-posts/").status_code == 403

    def test_queue_lists_with_pagination(self, app, client, workflow) -> None:
        _login(app, MODERATOR)
        workflow.list_submissions = AsyncMock(return_value=([_submission()], 11))

        response = client.get(
            "/api/guest-posts/", params={"status": "pending", "page": 2, "limit": 5}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["pagination"] == {"page": 2, "limit": 5, "total": 11, "pages": 3}
        criteria = workflow.list_submissions.call_args.args[0]
        assert criteria.kind == SubmissionKind.GUEST
        assert criteria.status == SubmissionStatus.PENDING
        assert criteria.page == 2

    def test_my_submissions(self, app, client, workflow) -> None:
        _login(app, USER)
        workflow.list_mine = AsyncMock(return_value=([], 0))

        response = client.get("/api/guest-posts/my")

        assert response.status_code == 200
        workflow.list_mine.assert_awaited_once_with(USER, SubmissionKind.GUEST, page=1, limit=10)

    def test_stats_for_sponsored(self, app, client, workflow) -> None:
        _login(app, MODERATOR)
        workflow.stats = AsyncMock(return_value={"total_submissions": 3})

        response = client.get("/api/sponsored-posts/stats/overview")

        assert response.json()["data"] == {"total_submissions": 3}
        workflow.stats.assert_awaited_once_with(SubmissionKind.SPONSORED)

    def test_get_missing_is_404(self, app, client, workflow) -> None:
        _login(app, MODERATOR)
        workflow.get = AsyncMock(side_effect=NotFoundError("Guest submission"))

        response = client.get("/api/guest-posts/nope")

        assert response.status_code == 404
        assert response.json()["message"] == "Guest submission not found"

    def test_status_update(self, app, client, workflow) -> None:
        _login(app, MODERATOR)
        approved = _submission(status=SubmissionStatus.APPROVED)
        workflow.transition_status = AsyncMock(
            return_value=TransitionResult(submission=approved, edit_token="tok")
        )

        response = client.put(
            "/api/guest-posts/sub-1/status", json={"status": "approved", "admin_notes": "ok"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["data"]["status"] == "approved"
        assert "tok" not in response.text
        args, kwargs = workflow.transition_status.call_args
        assert args == ("sub-1", SubmissionStatus.APPROVED, MODERATOR)
        assert kwargs["expected_kind"] == SubmissionKind.GUEST
        assert kwargs["admin_notes"] == "ok"

    def test_status_update_rejects_unknown_status(self, app, client) -> None:
        _login(app, MODERATOR)
        response = client.put("/api/guest-posts/sub-1/status", json={"status": "archived"})
        assert response.status_code == 400

    def test_publish(self, app, client, workflow) -> None:
        _login(app, MODERATOR)
        published = _submission(status=SubmissionStatus.PUBLISHED, published_post_id="post-1")
        workflow.publish = AsyncMock(
            return_value=PublishResult(submission=published, post=Post(id="post-1"))
        )

        response = client.post("/api/guest-posts/sub-1/publish")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["post"]["id"] == "post-1"
        assert data["submission"]["published_post_id"] == "post-1"

    def test_delete_requires_admin(self, app, client) -> None:
        _login(app, MODERATOR)
        assert client.delete("/api/guest-posts/sub-1").status_code == 403

    def test_admin_delete(self, app, client, workflow) -> None:
        _login(app, ADMIN)
        workflow.delete = AsyncMock()

        response = client.delete("/api/guest-posts/sub-1")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "message": "Guest submission deleted successfully",
        }
        workflow.delete.assert_awaited_once_with("sub-1", ADMIN, expected_kind=SubmissionKind.GUEST)


@pytest.mark.unit
class TestContentRevision:
    def test_edit_token_header(self, client, workflow) -> None:
        workflow.revise_content = AsyncMock(return_value=_submission())

        response = client.put(
            "/api/guest-posts/sub-1/content",
            json={"content": {"en": "x" * 800}},
            headers={"x-edit-token": "tok"},
        )

        assert response.status_code == 200
        args = workflow.revise_content.call_args.args
        assert args[1] == LocalizedText(en="x" * 800)
        assert args[2] == EditToken(raw="tok")

    def test_without_token_or_session_is_403(self, client) -> None:
        response = client.put("/api/guest-posts/sub-1/content", json={"content": {"en": "x"}})
        assert response.status_code == 403
        assert response.json()["message"] == "Edit token required"

    def test_moderator_session(self, app, client, workflow) -> None:
        _login(app, MODERATOR)
        workflow.revise_content = AsyncMock(return_value=_submission())

        response = client.put("/api/guest-posts/sub-1/content", json={"content": {"en": "x"}})

        assert response.status_code == 200
        assert workflow.revise_content.call_args.args[2] == MODERATOR


@pytest.mark.unit
class TestMaintenanceAndHealth:
    def test_reconcile_requires_admin(self, app, client) -> None:
        _login(app, MODERATOR)
        assert client.post("/api/maintenance/reconcile").status_code == 403

    def test_reconcile(self, app, client, workflow) -> None:
        _login(app, ADMIN)
        workflow.reconcile_publications = AsyncMock(
            return_value=ReconcileReport(removed_orphans=["p-1"], missing_posts=[])
        )

        response = client.post("/api/maintenance/reconcile")

        assert response.json()["data"] == {"removed_orphans": ["p-1"], "missing_posts": []}

    def test_expire(self, app, client, workflow) -> None:
        _login(app, ADMIN)
        workflow.expire_sponsorships = AsyncMock(return_value=["sub-9"])

        response = client.post("/api/maintenance/expire")

        assert response.json()["data"] == {"expired": ["sub-9"]}

    def test_health_ok(self, client) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "environment": "test",
            "checks": {"cosmos": True},
        }

    def test_health_degraded(self, client, cosmos) -> None:
        cosmos.database.read = AsyncMock(side_effect=OSError("unreachable"))
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["status"] == "degraded"

    def test_unhandled_error_is_500(self, app, client, workflow) -> None:
        _login(app, MODERATOR)
        workflow.stats = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get("/api/guest-posts/stats/overview")

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}
