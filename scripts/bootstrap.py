#!/usr/bin/env python3
"""Bootstrap script to create an initial admin user and organization.

Usage:
    python scripts/bootstrap.py
"""

import asyncio
import os
import sys

from sqlalchemy import func, select

from taskshift.core.database import close_db, get_session_factory, init_db
from taskshift.models.organization import Organization
from taskshift.models.user import User, UserRole, UserStatus
from taskshift.services.membership import MembershipService
from taskshift.services.user import UserService


async def bootstrap() -> None:
    """Create a verified admin user, an organization, and its admin membership."""
    admin_username = os.environ.get("ADMIN_USERNAME", "admin")
    admin_email = os.environ.get("ADMIN_EMAIL", "admin@example.com").lower()
    admin_password = os.environ.get("ADMIN_PASSWORD", "changeme123")
    admin_full_name = os.environ.get("ADMIN_FULL_NAME", "Administrator")
    org_name = os.environ.get("ORG_NAME", "Default Organization")

    print("=" * 60)
    print("TaskShift Bootstrap")
    print("=" * 60)
    print()

    await init_db()
    session_factory = get_session_factory()

    async with session_factory() as session:
        try:
            users = UserService(session)
            user = await users.get_user_by_email(admin_email)
            if user:
                print(f"User '{admin_email}' already exists. Skipping user creation.")
            else:
                user = await users.create_user(
                    username=admin_username,
                    email=admin_email,
                    full_name=admin_full_name,
                    password=admin_password,
                    status=UserStatus.VERIFIED,
                )
                user.role = UserRole.ADMIN.value
                print(f"Created admin user: {admin_username} <{admin_email}>")

            result = await session.execute(
                select(Organization).where(func.lower(Organization.name) == org_name.lower())
            )
            org = result.scalar_one_or_none()
            memberships = MembershipService(session)

            if org:
                print(f"Organization '{org_name}' already exists. Skipping org creation.")
            else:
                org = Organization(name=org_name, created_by=user.id, status="active")
                session.add(org)
                await session.flush()
                print(f"Created organization: {org_name}")

            if await memberships.get_active_membership(org.id, user.id):
                print("User already has membership in organization. Skipping.")
            else:
                await memberships.add_admin_member(org, user)
                print("Created admin membership for user in organization")

            await session.commit()

            print()
            print("=" * 60)
            print("Bootstrap Complete!")
            print("=" * 60)
            print()
            print("Admin credentials:")
            print(f"  Username: {admin_username}")
            print(f"  Email:    {admin_email}")
            print(f"  Password: {admin_password}")
            print()
            print("Organization:")
            print(f"  Name: {org_name}")
            print(f"  ID:   {org.id}")
            print()
            print("IMPORTANT: Change the admin password in production!")
            print()

        except Exception as e:
            await session.rollback()
            print(f"Error during bootstrap: {e}", file=sys.stderr)
            raise

    await close_db()


if __name__ == "__main__":
    asyncio.run(bootstrap())
