"""
Reset an admin account's password directly in the database.
Works without the API running; refuses accounts that are not admins.

Usage:
  python scripts/admin/reset_admin_password.py admin@example.com 'N3w-Passw0rd'
  python scripts/admin/reset_admin_password.py --list
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import argparse

from vehicle_portal.database import SessionLocal
from vehicle_portal.services import errors
from vehicle_portal.services.auth_service import list_admins, reset_admin_password


def print_admins(db):
    admins = list_admins(db)
    if not admins:
        print("No admins found in database.")
        return
    print("Existing Admins:")
    for admin in admins:
        print(f"- {admin.name} ({admin.email})")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Reset an admin account's password")
    parser.add_argument("email", nargs="?", help="Email of the admin account")
    parser.add_argument("new_password", nargs="?", help="New password")
    parser.add_argument("--list", action="store_true", help="List existing admin accounts and exit")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        if args.list:
            print_admins(db)
            return 0
        if not args.email or not args.new_password:
            parser.print_usage()
            print()
            print_admins(db)
            return 1
        try:
            account = reset_admin_password(db, args.email, args.new_password)
        except errors.PortalError as e:
            print(f"❌ {e.detail}")
            return 1
        print(f"✅ Password updated for admin: {account.name} ({account.email})")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
