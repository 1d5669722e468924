"""
Seed Data Script - Creates an admin account and a sample client request
Run: python -m scripts.seed_data [admin-email] [admin-password]
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from portal.repositories.mongo_client import get_collection, create_indexes
from portal.repositories.user_repo import UserRepository
from portal.repositories.request_repo import RequestRepository
from portal.engine.activity_writer import ActivityWriter
from portal.domain.models import UserAccount, RequestRecord, ActorSnapshot
from portal.domain.enums import Role, RequestPriority
from portal.utils.idgen import generate_user_id, generate_request_id
from portal.utils.passwords import hash_password
from portal.utils.time import utc_now

DEFAULT_ADMIN_EMAIL = "admin@agency.local"
DEFAULT_ADMIN_PASSWORD = "changeme"


def create_admin(email: str, password: str) -> UserAccount:
    """Create the first admin (verified, so it can log in straight away)"""
    users = UserRepository()
    existing = users.get_by_email(email)
    if existing:
        print(f"Admin already exists: {existing.email} ({existing.user_id})")
        return existing

    account = users.create_user(UserAccount(
        user_id=generate_user_id(),
        email=email,
        name="Portal Admin",
        role=Role.ADMIN,
        password_hash=hash_password(password),
        is_verified=True,
        created_at=utc_now()
    ))
    print(f"Created admin: {account.email} ({account.user_id})")
    return account


def create_sample_client() -> UserAccount:
    """Verified client account 'Acme' with one submitted request"""
    users = UserRepository()
    existing = users.get_by_email("hello@acme.test")
    if existing:
        print("Sample client already exists. Skipping.")
        return existing

    user_id = generate_user_id()
    client = users.create_user(UserAccount(
        user_id=user_id,
        email="hello@acme.test",
        name="Acme",
        role=Role.CLIENT,
        password_hash=hash_password("acme123"),
        client_id=user_id,
        is_verified=True,
        created_at=utc_now()
    ))
    print(f"Created client: {client.email} ({client.user_id})")

    now = utc_now()
    record = RequestRepository().create_request(RequestRecord(
        id=generate_request_id(),
        title="Website refresh",
        description="Update the landing page copy and hero image.",
        priority=RequestPriority.MEDIUM,
        client_id=client.client_id,
        created_at=now,
        updated_at=now
    ))
    ActivityWriter().write_request_submitted(
        record.id,
        ActorSnapshot(user_id=client.user_id, user_name=client.name, user_role=Role.CLIENT.value)
    )
    print(f"Created request: {record.id}")
    return client


def main():
    email = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_ADMIN_EMAIL
    password = sys.argv[2] if len(sys.argv) > 2 else DEFAULT_ADMIN_PASSWORD

    print("=== Seeding database ===")
    print("-" * 40)

    # Create indexes first
    create_indexes()

    create_admin(email, password)
    create_sample_client()

    print("-" * 40)
    print(f"Users: {get_collection('users').count_documents({})}, "
          f"requests: {get_collection('requests').count_documents({})}")
    print("Done!")


if __name__ == "__main__":
    main()
