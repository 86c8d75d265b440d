"""Seed script to bootstrap a database with starter roles and a super admin.

Usage:
    python scripts/seed_data.py populate --admin-email root@example.com --admin-password '...'
    python scripts/seed_data.py populate --force ...
    python scripts/seed_data.py clear
"""

import argparse
import asyncio

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenantdesk.core.config import get_settings
from tenantdesk.core.passwords import hash_password
from tenantdesk.db.session import Database
from tenantdesk.models import Admin, AdminRole, ApiSession, Role, User

STARTER_ROLES = [
    {
        'name': 'Member',
        'slug': 'member',
        'description': 'Default role for self-registered users.',
        'permissions': ('profile:read', 'profile:write'),
        'is_default': True,
    },
    {
        'name': 'Editor',
        'slug': 'editor',
        'description': 'Can read the user directory and moderate comments.',
        'permissions': ('profile:read', 'profile:write', 'users:read', 'write:comments'),
        'is_default': False,
    },
]


async def create_roles(session: AsyncSession) -> None:
    """Create the starter roles."""
    for data in STARTER_ROLES:
        session.add(Role(**data))
    await session.flush()
    print(f'  Created {len(STARTER_ROLES)} roles')


async def create_super_admin(session: AsyncSession, email: str, password: str, rounds: int) -> None:
    """Create the first SUPER_ADMIN."""
    session.add(Admin(
        email=email.strip().lower(),
        password_hash=hash_password(password, rounds),
        name='Super Admin',
        role=AdminRole.SUPER_ADMIN.value,
    ))
    await session.flush()
    print(f'  Created super admin {email}')


async def clear_data(session: AsyncSession) -> None:
    """Delete every row (users before roles, which RESTRICT)."""
    for model in (ApiSession, User, Admin, Role):
        await session.execute(delete(model))
    await session.flush()
    print('Clear complete.')


async def populate(email: str, password: str, force: bool = False) -> None:
    """Populate the database with seed data."""
    settings = get_settings()
    database = Database(settings)
    await database.connect()

    async with database.session_factory() as session:
        try:
            role_count = (await session.execute(
                select(func.count()).select_from(Role)
            )).scalar()

            if role_count and role_count > 0:
                if force:
                    print('Existing data found, clearing first (--force)...')
                    await clear_data(session)
                else:
                    print(
                        f'Data already exists ({role_count} roles). '
                        f'Use --force to clear and re-seed.'
                    )
                    return

            print('Populating seed data...')
            await create_roles(session)
            await create_super_admin(session, email, password, settings.bcrypt_rounds)
            await session.commit()
            print('Seed data created successfully.')
        except Exception:
            await session.rollback()
            raise
        finally:
            await database.close()


async def clear() -> None:
    """Remove all rows."""
    database = Database(get_settings())
    await database.connect()

    async with database.session_factory() as session:
        try:
            await clear_data(session)
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await database.close()


def main() -> None:
    """CLI entry point."""
    settings = get_settings()
    if settings.is_production:
        print(
            "ERROR: Seed script refuses to run with ENVIRONMENT=production.\n"
            "It deletes data directly and must only run against a local database."
        )
        raise SystemExit(1)

    parser = argparse.ArgumentParser(description='Seed the database with starter data.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    populate_parser = subparsers.add_parser('populate', help='Create starter roles and a super admin')
    populate_parser.add_argument('--admin-email', required=True)
    populate_parser.add_argument('--admin-password', required=True)
    populate_parser.add_argument(
        '--force', action='store_true',
        help='Clear existing data before populating',
    )

    subparsers.add_parser('clear', help='Remove all data')

    args = parser.parse_args()

    if args.command == 'populate':
        asyncio.run(populate(args.admin_email, args.admin_password, force=args.force))
    elif args.command == 'clear':
        asyncio.run(clear())


if __name__ == '__main__':
    main()
