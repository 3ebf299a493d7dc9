"""
Initialize the database: create all tables and optionally seed an admin account.
Run with: python -m scripts.init_db --admin-email admin@medibook.io --admin-password <password>
"""

import argparse
import asyncio
from sqlalchemy import select
from medibook.database import engine, Base, async_session
from medibook.models import User, Doctor, Booking  # noqa: F401
from medibook.services.password_service import hash_password


async def seed_admin(email: str, password: str, username: str):
    """Create the admin account if it doesn't exist. Idempotent."""
    async with async_session() as session:
        existing = await session.scalar(select(User).where(User.email == email))
        if existing:
            if not existing.is_admin:
                existing.is_admin = True
                print(f"Promoted {email} to admin.")
            else:
                print(f"Admin {email} already exists.")
        else:
            session.add(User(username=username, email=email, password=hash_password(password), is_admin=True))
            print(f"Created admin {email}.")
        await session.commit()


async def init(args):
    print("Creating database tables...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print("All tables created successfully.")
    if args.admin_email and args.admin_password:
        await seed_admin(args.admin_email, args.admin_password, args.admin_username)
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create MediBook tables and seed an admin")
    parser.add_argument("--admin-email", default=None)
    parser.add_argument("--admin-password", default=None)
    parser.add_argument("--admin-username", default="admin")
    asyncio.run(init(parser.parse_args()))
