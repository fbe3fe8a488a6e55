"""Fixtures for CLI unit tests."""

from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import Mock

from src.auth.models import AuthSession
from src.cli.config import ConfigLoader
from src.cli.models import CmsConfig
from src.github_client.errors import AuthFailureError
from tests.helpers.recording_output import RecordingOutput


@pytest.fixture
def output():
    return RecordingOutput()


@pytest.fixture
def config_path(tmp_path):
    path = str(tmp_path / ".cms-sync" / "config.yaml")
    ConfigLoader.save(path, CmsConfig(repository="acme/site"))
    return path


@pytest.fixture
def signed_in_gate():
    gate = Mock()
    gate.require_user.return_value = AuthSession(
        email="owner@example.org",
        user_id="uid-1",
        id_token="id",
        refresh_token="refresh",
        expires_at=datetime.now(timezone.utc) + timedelta(hours=1),
    )
    gate.current_user.return_value = gate.require_user.return_value
    return gate


@pytest.fixture
def signed_out_gate():
    gate = Mock()
    gate.require_user.side_effect = AuthFailureError(
        "https://identitytoolkit.googleapis.com/v1", "not signed in"
    )
    gate.current_user.return_value = None
    return gate
