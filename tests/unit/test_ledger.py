"""Client activity ledger and request store"""

import asyncio
from datetime import timedelta

import pytest

from portal.client.ledger import ActivityLedger
from portal.client.store import RequestStore
from portal.domain.errors import ActivityNotFoundError, PermissionDeniedError, ValidationError
from portal.domain.models import ActivityLogEntry, ActorSnapshot
from portal.session.identity import LoginCredentials
from portal.utils.time import utc_now

MEMBER_USER = {"id": "tm1", "email": "mo@agency.test", "name": "Mo Member", "role": "member"}
ADMIN_USER = {"id": "admin1", "email": "ada@agency.test", "name": "Ada Admin", "role": "admin"}


def sign_in(identity, transport, user):
    transport.login_result = (dict(user), "tok")
    asyncio.run(identity.login(LoginCredentials(email=user["email"], password="secret1")))


@pytest.fixture
def store():
    return RequestStore()


@pytest.fixture
def ledger(transport, identity, store):
    return ActivityLedger(transport, identity, store)


def test_post_message_stamps_current_identity(ledger, identity, transport, store):
    sign_in(identity, transport, MEMBER_USER)
    entry = asyncio.run(ledger.post_message("r7", "Any update?"))
    assert entry.action == "message_posted"
    assert entry.entity_type == "message"
    assert entry.actor_snapshot.user_id == "tm1"
    assert ledger.entries("r7") == [entry]


def test_empty_message_rejected(ledger, identity, transport):
    sign_in(identity, transport, MEMBER_USER)
    with pytest.raises(ValidationError):
        asyncio.run(ledger.post_message("r7", "  "))
    assert transport.appends == []


def test_refresh_sorts_ascending_and_is_stable(ledger, transport, store):
    now = utc_now()

    def make(entry_id, offset):
        return ActivityLogEntry(id=entry_id, request_id="r7", action="x", created_at=now + timedelta(seconds=offset))

    transport.server_ledger = [make("c", 5), make("a", 0), make("b1", 2), make("b2", 2)]
    entries = asyncio.run(ledger.refresh("r7"))
    assert [e.id for e in entries] == ["a", "b1", "b2", "c"]


def test_author_can_edit_own_message(ledger, identity, transport, store):
    sign_in(identity, transport, MEMBER_USER)
    posted = asyncio.run(ledger.post_message("r7", "frist"))
    edited = asyncio.run(ledger.edit_message("r7", posted.id, "first"))

    assert edited.description == "first"
    assert edited.actor_snapshot == posted.actor_snapshot
    assert edited.created_at == posted.created_at
    assert store.find_entry("r7", posted.id).description == "first"


def test_other_member_cannot_delete(ledger, identity, transport, store):
    foreign = ActivityLogEntry(
        id="ACT-x", request_id="r7", action="message_posted", entity_type="message",
        description="mine", created_at=utc_now(),
        actor_snapshot=ActorSnapshot(user_id="someone", user_name="S", user_role="member"),
    )
    store.add_entry(foreign)
    sign_in(identity, transport, MEMBER_USER)
    with pytest.raises(PermissionDeniedError):
        asyncio.run(ledger.delete_message("r7", "ACT-x"))
    assert store.find_entry("r7", "ACT-x") is not None


def test_admin_deletes_any_entry(ledger, identity, transport, store):
    sign_in(identity, transport, MEMBER_USER)
    posted = asyncio.run(ledger.post_message("r7", "hello"))
    identity.logout()
    sign_in(identity, transport, ADMIN_USER)

    asyncio.run(ledger.delete_message("r7", posted.id))
    assert ledger.entries("r7") == []
    assert transport.server_ledger == []


def test_admin_cannot_edit_field_entry(ledger, identity, transport, store):
    field_entry = ActivityLogEntry(
        id="ACT-f", request_id="r7", action="field_updated", entity_type="field",
        description="status updated to completed", created_at=utc_now(),
        actor_snapshot=ActorSnapshot(user_id="tm1", user_name="Mo Member", user_role="member"),
    )
    store.add_entry(field_entry)
    transport.server_ledger.append(field_entry)
    sign_in(identity, transport, ADMIN_USER)

    with pytest.raises(ValidationError):
        asyncio.run(ledger.edit_message("r7", "ACT-f", "status updated to cancelled"))
    assert transport.server_ledger[0].description == "status updated to completed"
    assert store.find_entry("r7", "ACT-f").description == "status updated to completed"


def test_unknown_entry(ledger, identity, transport):
    sign_in(identity, transport, ADMIN_USER)
    with pytest.raises(ActivityNotFoundError):
        asyncio.run(ledger.delete_message("r7", "ACT-missing"))


def test_store_drop_clears_ledger(store):
    from tests.fakes import make_record

    store.put(make_record())
    store.mark_ledger_stale("r7")
    store.drop("r7")
    assert store.get("r7") is None
    assert not store.is_ledger_stale("r7")
