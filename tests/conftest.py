"""
Pytest Configuration and Fixtures

Shared principals, in-memory repositories and an API client whose
repository dependencies are swapped for the in-memory fakes.
"""

import pytest

from portal.domain.enums import Role
from portal.domain.models import AdminPrincipal, ClientPrincipal, TeamMemberPrincipal
from portal.session.identity import SessionIdentity
from portal.session.storage import MemorySessionStorage
from portal.utils.jwt import JWTValidator

from .fakes import (
    FakeTransport, InMemoryActivityRepository, InMemoryRequestRepository, InMemoryUserRepository,
)


@pytest.fixture
def admin():
    return AdminPrincipal(id="admin1", email="ada@agency.test", name="Ada Admin")


@pytest.fixture
def member():
    return TeamMemberPrincipal(id="tm1", email="mo@agency.test", name="Mo Member", role=Role.MEMBER)


@pytest.fixture
def viewer():
    return TeamMemberPrincipal(id="tv1", email="vi@agency.test", name="Vi Viewer", role=Role.VIEWER)


@pytest.fixture
def client_principal():
    return ClientPrincipal(
        id="c42",
        email="hello@acme.test",
        name="Acme",
        client_record_id="c42",
        client_name="Acme",
        client_company="Acme Ltd",
    )


@pytest.fixture
def storage():
    return MemorySessionStorage()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def navigations():
    return []


@pytest.fixture
def identity(transport, storage, navigations):
    return SessionIdentity(transport, storage=storage, navigator=navigations.append)


@pytest.fixture
def user_repo():
    return InMemoryUserRepository()


@pytest.fixture
def request_repo():
    return InMemoryRequestRepository()


@pytest.fixture
def activity_repo():
    return InMemoryActivityRepository()


@pytest.fixture
def api(user_repo, request_repo, activity_repo):
    """TestClient over the real app (no lifespan, so no MongoDB)"""
    from fastapi.testclient import TestClient
    from portal.api.deps import get_activity_repo, get_request_repo, get_user_repo
    from portal.main import app

    app.dependency_overrides[get_user_repo] = lambda: user_repo
    app.dependency_overrides[get_request_repo] = lambda: request_repo
    app.dependency_overrides[get_activity_repo] = lambda: activity_repo
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    """Bearer header for a principal, as issued at login"""
    validator = JWTValidator()

    def _headers(principal):
        return {"Authorization": f"Bearer {validator.issue_token(principal)}"}

    return _headers
