"""Check current admin accounts"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from portal.repositories.mongo_client import get_collection
from portal.domain.enums import Role

print("=== Current Admin Accounts ===")
admins = list(get_collection("users").find({"role": {"$in": [Role.ADMIN.value, Role.PORTAL_ADMIN.value]}}))
if admins:
    for admin in admins:
        print(f"  - {admin.get('email', 'N/A')}")
        print(f"    Role: {admin.get('role', 'N/A')}")
        print(f"    Verified: {admin.get('is_verified', False)}")
else:
    print("  No admin accounts configured.")
    print("  Run: python -m scripts.seed_data <email> <password>")
