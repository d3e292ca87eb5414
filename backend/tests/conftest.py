"""
Shared fixtures
===============
Process-wide state (IP rate-limit windows, the login governor singleton)
is reset around every test so ordering never matters.
"""

from __future__ import annotations

from typing import Optional
from unittest.mock import MagicMock

import pytest

import app.services.login_governor as login_governor_module
from app.services.rate_limit import reset_rate_limits

USER_ID = "7b0f6a3e-2c1d-4e5f-9a8b-0c1d2e3f4a5b"
USER_EMAIL = "test@moodwave.app"
AUTH_HEADER = {"Authorization": "Bearer fake-valid-token"}


@pytest.fixture(autouse=True)
def _reset_process_state():
    reset_rate_limits()
    login_governor_module._default_governor = None
    yield
    reset_rate_limits()
    login_governor_module._default_governor = None


def mock_auth_db(user_id: Optional[str] = USER_ID, email: str = USER_EMAIL) -> MagicMock:
    """A mock service-role client whose ``auth.get_user`` accepts any token.

    Pass ``user_id=None`` to simulate a rejected token.
    """
    mock_db = MagicMock()
    if user_id:
        auth_response = MagicMock()
        auth_response.user.id = user_id
        auth_response.user.email = email
        mock_db.auth.get_user.return_value = auth_response
    else:
        mock_db.auth.get_user.side_effect = Exception("Invalid token")
    return mock_db
