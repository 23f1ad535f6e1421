"""
Seed Super Admin

Creates a super admin account. Super admins cannot be created through the API.

Usage:
    python scripts/seed_super_admin.py --email ops@example.org --name "Ops Team"

The password is read from SUPER_ADMIN_PASSWORD, or prompted for when unset.
"""

import argparse
import asyncio
import getpass
import os

from mosque_registry.core.database import async_session_maker, engine
from mosque_registry.core.security import hash_password
from mosque_registry.modules.super_admins import SuperAdminRepository

MIN_PASSWORD_LENGTH = 12


def _read_password() -> str:
    password = os.getenv("SUPER_ADMIN_PASSWORD") or getpass.getpass("Password: ")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise SystemExit(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return password


async def seed_super_admin(email: str, name: str, password: str) -> None:
    """Create the super admin unless the email is already taken."""
    async with async_session_maker() as db:
        existing = await SuperAdminRepository.get_by_email(db, email)
        if existing:
            print(f"Super admin already exists: {existing.email}")
            print(f"  ID: {existing.id}")
            return

        super_admin = await SuperAdminRepository.create(
            db,
            email=email,
            name=name,
            password_hash=hash_password(password),
        )
        await db.commit()

        print("Super admin created successfully!")
        print(f"  Email: {super_admin.email}")
        print(f"  Name: {super_admin.name}")
        print(f"  ID: {super_admin.id}")

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a super admin account")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    args = parser.parse_args()

    asyncio.run(seed_super_admin(args.email, args.name, _read_password()))


if __name__ == "__main__":
    main()
