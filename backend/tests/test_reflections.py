"""
Tests for daily reflections, crisis events, profile and privacy routes
======================================================================
Covers:
- Daily reflections: create (201), list newest first, today's reflection
  or null, empty question rejected
- Crisis events: create unresolved (201), list, resolve, resolve of a
  missing/not-owned event is 404
- Profile: get (row or null), upsert on id, bad image URL rejected
- Privacy: account deletion needs {"confirm": true}, deletes the auth
  user, clears cookies; provider failure is 500
- Auth required throughout

Run: pytest backend/tests/test_reflections.py -v
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from supabase import AuthError

from conftest import AUTH_HEADER, USER_ID, mock_auth_db

_NOW_ISO = datetime.now(timezone.utc).isoformat()

_REFLECTION_ROW = {
    "id": str(uuid.uuid4()),
    "user_id": USER_ID,
    "question": "What made you smile today?",
    "answer": "A call with my sister.",
    "date": _NOW_ISO,
}

_CRISIS_ROW = {
    "id": str(uuid.uuid4()),
    "user_id": USER_ID,
    "timestamp": _NOW_ISO,
    "resolved": False,
}

_PROFILE_ROW = {
    "id": USER_ID,
    "first_name": "Ada",
    "last_name": "Lovelace",
    "profile_image_url": None,
}


def _result(data) -> MagicMock:
    result = MagicMock()
    result.data = data
    return result


def _client_for(module: str, mock_db: MagicMock):
    return (
        patch("app.security.get_supabase_client", return_value=mock_db),
        patch(f"app.routers.{module}.get_supabase_client", return_value=mock_db),
    )


def _client() -> TestClient:
    from app.main import app
    return TestClient(app)


# ---------------------------------------------------------------------------
# Daily reflections
# ---------------------------------------------------------------------------

class TestDailyReflections:

    def test_create(self):
        mock_db = mock_auth_db()
        mock_db.table.return_value.insert.return_value.execute.return_value = _result([_REFLECTION_ROW])

        auth_patch, db_patch = _client_for("reflections", mock_db)
        with auth_patch, db_patch:
            resp = _client().post(
                "/api/daily-reflections",
                json={"question": "What made you smile today?", "answer": "A call with my sister."},
                headers=AUTH_HEADER,
            )

        assert resp.status_code == 201
        assert resp.json()["question"] == "What made you smile today?"
        mock_db.table.assert_called_with("daily_reflections")
        inserted = mock_db.table.return_value.insert.call_args.args[0]
        assert inserted["user_id"] == USER_ID
        assert "date" in inserted

    def test_empty_question_rejected(self):
        mock_db = mock_auth_db()
        auth_patch, db_patch = _client_for("reflections", mock_db)
        with auth_patch, db_patch:
            resp = _client().post("/api/daily-reflections", json={"question": ""}, headers=AUTH_HEADER)
        assert resp.status_code == 400

    def test_list(self):
        mock_db = mock_auth_db()
        chain = mock_db.table.return_value.select.return_value.eq.return_value.order.return_value
        chain.execute.return_value = _result([_REFLECTION_ROW])

        auth_patch, db_patch = _client_for("reflections", mock_db)
        with auth_patch, db_patch:
            resp = _client().get("/api/daily-reflections", headers=AUTH_HEADER)

        assert resp.status_code == 200
        assert len(resp.json()) == 1
        mock_db.table.return_value.select.return_value.eq.return_value.order.assert_called_with("date", desc=True)

    def test_today(self):
        mock_db = mock_auth_db()
        chain = mock_db.table.return_value.select.return_value.eq.return_value.gte.return_value
        chain.order.return_value.limit.return_value.execute.return_value = _result([_REFLECTION_ROW])

        auth_patch, db_patch = _client_for("reflections", mock_db)
        with auth_patch, db_patch:
            resp = _client().get("/api/daily-reflections/today", headers=AUTH_HEADER)

        assert resp.status_code == 200
        assert resp.json()["id"] == _REFLECTION_ROW["id"]
        since = mock_db.table.return_value.select.return_value.eq.return_value.gte.call_args.args[1]
        assert since.startswith(datetime.now(timezone.utc).date().isoformat() + "T00:00:00")

    def test_today_none(self):
        mock_db = mock_auth_db()
        chain = mock_db.table.return_value.select.return_value.eq.return_value.gte.return_value
        chain.order.return_value.limit.return_value.execute.return_value = _result([])

        auth_patch, db_patch = _client_for("reflections", mock_db)
        with auth_patch, db_patch:
            resp = _client().get("/api/daily-reflections/today", headers=AUTH_HEADER)

        assert resp.status_code == 200
        assert resp.json() is None

    def test_requires_auth(self):
        assert _client().get("/api/daily-reflections").status_code == 401


# ---------------------------------------------------------------------------
# Crisis events
# ---------------------------------------------------------------------------

class TestCrisisEvents:

    def test_create_unresolved(self):
        mock_db = mock_auth_db()
        mock_db.table.return_value.insert.return_value.execute.return_value = _result([_CRISIS_ROW])

        auth_patch, db_patch = _client_for("crisis", mock_db)
        with auth_patch, db_patch:
            resp = _client().post("/api/crisis-events", headers=AUTH_HEADER)

        assert resp.status_code == 201
        assert resp.json()["resolved"] is False
        inserted = mock_db.table.return_value.insert.call_args.args[0]
        assert inserted["resolved"] is False
        assert inserted["user_id"] == USER_ID

    def test_list(self):
        mock_db = mock_auth_db()
        chain = mock_db.table.return_value.select.return_value.eq.return_value.order.return_value
        chain.execute.return_value = _result([_CRISIS_ROW, {**_CRISIS_ROW, "id": str(uuid.uuid4())}])

        auth_patch, db_patch = _client_for("crisis", mock_db)
        with auth_patch, db_patch:
            resp = _client().get("/api/crisis-events", headers=AUTH_HEADER)

        assert resp.status_code == 200
        assert len(resp.json()) == 2

    def test_resolve(self):
        mock_db = mock_auth_db()
        update = mock_db.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = _result(
            [{**_CRISIS_ROW, "resolved": True}]
        )

        auth_patch, db_patch = _client_for("crisis", mock_db)
        with auth_patch, db_patch:
            resp = _client().patch(f"/api/crisis-events/{_CRISIS_ROW['id']}/resolve", headers=AUTH_HEADER)

        assert resp.status_code == 200
        assert resp.json()["resolved"] is True
        update.assert_called_once_with({"resolved": True})
        update.return_value.eq.return_value.eq.assert_called_with("user_id", USER_ID)

    def test_resolve_missing_is_404(self):
        mock_db = mock_auth_db()
        update = mock_db.table.return_value.update
        update.return_value.eq.return_value.eq.return_value.execute.return_value = _result([])

        auth_patch, db_patch = _client_for("crisis", mock_db)
        with auth_patch, db_patch:
            resp = _client().patch(f"/api/crisis-events/{uuid.uuid4()}/resolve", headers=AUTH_HEADER)

        assert resp.status_code == 404
        assert resp.json()["detail"]["code"] == "not_found"


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

class TestProfile:

    def test_get(self):
        mock_db = mock_auth_db()
        chain = mock_db.table.return_value.select.return_value.eq.return_value.maybe_single.return_value
        chain.execute.return_value = _result(_PROFILE_ROW)

        auth_patch, db_patch = _client_for("profile", mock_db)
        with auth_patch, db_patch:
            resp = _client().get("/api/profile/me", headers=AUTH_HEADER)

        assert resp.status_code == 200
        assert resp.json() == {"profile": _PROFILE_ROW}

    def test_get_without_row(self):
        mock_db = mock_auth_db()
        chain = mock_db.table.return_value.select.return_value.eq.return_value.maybe_single.return_value
        chain.execute.return_value = None

        auth_patch, db_patch = _client_for("profile", mock_db)
        with auth_patch, db_patch:
            resp = _client().get("/api/profile/me", headers=AUTH_HEADER)

        assert resp.json() == {"profile": None}

    def test_update(self):
        mock_db = mock_auth_db()
        mock_db.table.return_value.upsert.return_value.execute.return_value = _result([_PROFILE_ROW])

        auth_patch, db_patch = _client_for("profile", mock_db)
        with auth_patch, db_patch:
            resp = _client().put(
                "/api/profile/me",
                json={"firstName": "Ada", "lastName": "Lovelace"},
                headers=AUTH_HEADER,
            )

        assert resp.status_code == 200
        assert resp.json()["profile"]["first_name"] == "Ada"
        mock_db.table.return_value.upsert.assert_called_once_with(
            {"id": USER_ID, "first_name": "Ada", "last_name": "Lovelace"},
            on_conflict="id",
        )

    @pytest.mark.parametrize(
        "body",
        [
            {"firstName": "", "lastName": "Lovelace"},
            {"firstName": "Ada"},
            {"firstName": "Ada", "lastName": "Lovelace", "profileImageUrl": "javascript:alert(1)"},
        ],
    )
    def test_update_validation(self, body: dict):
        mock_db = mock_auth_db()
        auth_patch, db_patch = _client_for("profile", mock_db)
        with auth_patch, db_patch:
            resp = _client().put("/api/profile/me", json=body, headers=AUTH_HEADER)

        assert resp.status_code == 400
        mock_db.table.return_value.upsert.assert_not_called()


# ---------------------------------------------------------------------------
# Privacy
# ---------------------------------------------------------------------------

class TestDeleteAccount:

    def test_delete(self):
        mock_db = mock_auth_db()
        auth_patch, db_patch = _client_for("profile", mock_db)
        with auth_patch, db_patch:
            resp = _client().request(
                "DELETE", "/api/privacy/account", json={"confirm": True}, headers=AUTH_HEADER
            )

        assert resp.status_code == 204
        mock_db.auth.admin.delete_user.assert_called_once_with(USER_ID)
        cookies = resp.headers.get_list("set-cookie")
        assert any(c.startswith("sb-access-token=") and "Max-Age=0" in c for c in cookies)

    @pytest.mark.parametrize("body", [None, {}, {"confirm": False}])
    def test_requires_confirmation(self, body):
        mock_db = mock_auth_db()
        auth_patch, db_patch = _client_for("profile", mock_db)
        with auth_patch, db_patch:
            resp = _client().request("DELETE", "/api/privacy/account", json=body, headers=AUTH_HEADER)

        assert resp.status_code == 400
        mock_db.auth.admin.delete_user.assert_not_called()

    def test_provider_failure(self):
        class _DeleteFailed(AuthError):
            def __init__(self) -> None:
                Exception.__init__(self, "User not allowed")

        mock_db = mock_auth_db()
        mock_db.auth.admin.delete_user.side_effect = _DeleteFailed()
        auth_patch, db_patch = _client_for("profile", mock_db)
        with auth_patch, db_patch:
            resp = _client().request(
                "DELETE", "/api/privacy/account", json={"confirm": True}, headers=AUTH_HEADER
            )

        assert resp.status_code == 500
        assert resp.json()["detail"]["code"] == "db_error"
