"""Session reducer, invariants and file storage"""

import json
import os

import pytest

from portal.domain.errors import StorageUnavailableError
from portal.session.state import (
    EMPTY_SESSION, ImpersonationStopped, Impersonated, LoggedOut, LoginSucceeded, ProfileUpdated,
    SessionState, reduce,
)
from portal.session.storage import FileSessionStorage


def impersonated(principal):
    return principal.model_copy(update={"impersonated": True})


class TestReducer:

    def test_login_replaces_state(self, admin):
        state = reduce(EMPTY_SESSION, LoginSucceeded(principal=admin, access_token="t"))
        assert state.is_authenticated and state.principal == admin and state.access_token == "t"
        assert EMPTY_SESSION.principal is None

    def test_impersonate_and_stop(self, admin, client_principal):
        logged_in = reduce(EMPTY_SESSION, LoginSucceeded(principal=admin, access_token="t"))
        overlay = reduce(logged_in, Impersonated(principal=impersonated(client_principal)))
        assert overlay.original_principal == admin
        assert overlay.access_token == "t"
        assert reduce(overlay, ImpersonationStopped()) == logged_in

    def test_second_overlay_rejected(self, admin, client_principal, member):
        logged_in = reduce(EMPTY_SESSION, LoginSucceeded(principal=admin))
        overlay = reduce(logged_in, Impersonated(principal=impersonated(client_principal)))
        with pytest.raises(ValueError):
            reduce(overlay, Impersonated(principal=impersonated(member)))

    def test_non_admin_cannot_impersonate(self, member, client_principal):
        logged_in = reduce(EMPTY_SESSION, LoginSucceeded(principal=member))
        with pytest.raises(ValueError):
            reduce(logged_in, Impersonated(principal=impersonated(client_principal)))

    def test_logout(self, admin):
        logged_in = reduce(EMPTY_SESSION, LoginSucceeded(principal=admin))
        assert reduce(logged_in, LoggedOut()) == EMPTY_SESSION

    def test_profile_update(self, admin):
        logged_in = reduce(EMPTY_SESSION, LoginSucceeded(principal=admin))
        updated = reduce(logged_in, ProfileUpdated(name="New", email="new@x.test"))
        assert updated.principal.name == "New"
        assert logged_in.principal.name == "Ada Admin"


def test_state_is_frozen(admin):
    state = SessionState(principal=admin, is_authenticated=True)
    with pytest.raises(ValueError):
        state.is_authenticated = False


def test_impersonating_requires_original(client_principal):
    with pytest.raises(ValueError):
        SessionState(principal=impersonated(client_principal), is_authenticated=True, impersonating=True)


class TestFileStorage:

    def test_set_get_remove(self, tmp_path):
        storage = FileSessionStorage(str(tmp_path / "nested" / "session.json"))
        storage.set("auth_user", '{"id": "u1"}')
        storage.set("auth_token", "tok")
        assert storage.get("auth_user") == '{"id": "u1"}'
        storage.remove("auth_user")
        assert storage.get("auth_user") is None
        assert storage.get("auth_token") == "tok"

    def test_missing_file_reads_empty(self, tmp_path):
        assert FileSessionStorage(str(tmp_path / "none.json")).get("auth_user") is None

    def test_corrupt_file_reads_empty(self, tmp_path):
        path = tmp_path / "session.json"
        path.write_text("{oops", encoding="utf-8")
        storage = FileSessionStorage(str(path))
        assert storage.get("auth_user") is None
        storage.set("auth_user", "x")
        assert json.loads(path.read_text(encoding="utf-8")) == {"auth_user": "x"}

    def test_no_temp_files_left_behind(self, tmp_path):
        storage = FileSessionStorage(str(tmp_path / "session.json"))
        storage.set("a", "1")
        storage.set("b", "2")
        assert os.listdir(tmp_path) == ["session.json"]

    def test_unreadable_path_raises(self, tmp_path):
        # A directory where the file should be
        path = tmp_path / "session.json"
        path.mkdir()
        storage = FileSessionStorage(str(path))
        with pytest.raises(StorageUnavailableError):
            storage.get("auth_user")
