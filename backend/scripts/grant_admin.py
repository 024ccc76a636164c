"""
Grant Admin Script - Adds an entry to the admin allow-list
Run: python -m scripts.grant_admin --actor-id U123 --email someone@example.com
"""
import argparse
import sys

from docrequest.config.settings import get_settings
from docrequest.domain.enums import AdminRole
from docrequest.repositories.mongo_client import close_connection
from docrequest.services.container import build_container
from docrequest.utils.logger import setup_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Add an admin allow-list entry")
    parser.add_argument("--actor-id", required=True, help="LINE user id of the admin")
    parser.add_argument("--email", required=True, help="Google account email bound to the entry")
    parser.add_argument("--role", default=AdminRole.ADMIN.value, help="Role label (default: admin)")
    parser.add_argument("--inactive", action="store_true", help="Add the entry disabled")
    args = parser.parse_args()

    setup_logging()
    container = build_container(get_settings())
    try:
        container.schema.ensure_ready()
        existing = container.admins.get_entry(args.actor_id.strip())
        if existing is not None and existing.is_active and not args.inactive:
            print(f"Active entry already exists for {args.actor_id} ({existing.email})")
            return 0
        entry = container.admins.add_entry(
            args.actor_id, args.email, role=args.role, is_active=not args.inactive
        )
    finally:
        container.close()
        close_connection()

    print("=== Admin Allow-list Entry ===")
    print(f"  Actor: {entry.owner_id}")
    print(f"  Email: {entry.email}")
    print(f"  Role: {entry.role}")
    print(f"  Active: {entry.is_active}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
