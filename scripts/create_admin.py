#!/usr/bin/env python3
"""
CLI script to create the first organization and its administrator.

Usage (interactive):
    python scripts/create_admin.py

Usage (non-interactive):
    python scripts/create_admin.py --email admin@example.com --password yourpassword \
        --short-name DEMO --long-name "Demo Association"
"""

import argparse
import asyncio
import sys
from getpass import getpass
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from memberhub.config import settings
from memberhub.database import async_session_factory, engine
from memberhub.exceptions import MemberHubException
from memberhub.models import User
from memberhub.services.i18n_service import get_i18n_service
from memberhub.services.organization_service import OrganizationService
from memberhub.utils.security import create_access_token, hash_password


async def create_admin(
    email: str | None = None,
    password: str | None = None,
    first_name: str = "Admin",
    last_name: str = "User",
    short_name: str | None = None,
    long_name: str | None = None,
) -> bool:
    """Create an administrator user together with a new organization."""
    print("\n" + "=" * 50)
    print(f"{settings.app_name} - Administrator Setup")
    print("=" * 50 + "\n")

    if not email:
        while True:
            email = input("Enter email address: ").strip().lower()
            if "@" in email and "." in email:
                break
            print("Please enter a valid email address.")
    else:
        email = email.strip().lower()
        if "@" not in email or "." not in email:
            print("Invalid email address.")
            return False

    if not password:
        while True:
            password = getpass("Enter password (min 8 characters): ")
            if len(password) >= 8:
                break
            print("Password must be at least 8 characters.")

        password_confirm = getpass("Confirm password: ")
        if password != password_confirm:
            print("\nPasswords do not match. Aborting.")
            return False
    elif len(password) < 8:
        print("Password must be at least 8 characters.")
        return False

    if not short_name:
        short_name = input("Enter organization short name: ").strip()
    if not long_name:
        long_name = input("Enter organization name: ").strip()

    async with async_session_factory() as session:
        result = await session.execute(select(User).where(User.email == email))
        if result.scalar_one_or_none():
            print(f"\nUser with email {email} already exists.")
            return False

        user = User(
            email=email,
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            is_active=True,
            language=settings.default_language,
        )
        session.add(user)
        await session.flush()

        try:
            organization_id = await OrganizationService(session).create(
                short_name=short_name,
                long_name=long_name,
                admin_email=email,
                system_language=settings.default_language,
                created_by=user,
            )
        except MemberHubException as e:
            print(f"\n{e.translate(get_i18n_service(), settings.default_language)}")
            return False

        token = create_access_token(user.id, organization_id)

        print("\n" + "=" * 50)
        print("Administrator Created Successfully!")
        print("=" * 50)
        print(f"  Email: {email}")
        print(f"  Organization: {short_name} ({organization_id})")
        print(f"  Access token: {token}")
        print("=" * 50 + "\n")

        return True


async def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Create an organization and its administrator")
    parser.add_argument("--email", "-e", help="Admin email address")
    parser.add_argument("--password", "-p", help="Admin password (min 8 chars)")
    parser.add_argument("--first-name", "-f", help="First name", default="Admin")
    parser.add_argument("--last-name", "-l", help="Last name", default="User")
    parser.add_argument("--short-name", "-s", help="Organization short name")
    parser.add_argument("--long-name", "-n", help="Organization name")

    args = parser.parse_args()

    try:
        success = await create_admin(
            email=args.email,
            password=args.password,
            first_name=args.first_name,
            last_name=args.last_name,
            short_name=args.short_name,
            long_name=args.long_name,
        )
        sys.exit(0 if success else 1)
    except KeyboardInterrupt:
        print("\n\nAborted by user.")
        sys.exit(1)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
