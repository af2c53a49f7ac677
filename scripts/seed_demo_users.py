#!/usr/bin/env python3
"""Seed the demo members (alice, bob, carol) into an empty users table."""
import asyncio

from sqlalchemy import func, select

from forum.core.database import async_session_factory, init_db
from forum.core.security import hash_password
from forum.models.user import User

DEMO_USERS = [
    ("alice", "alice@example.com"),
    ("bob", "bob@example.com"),
    ("carol", "carol@example.com"),
]

DEMO_PASSWORD = "lions-demo-password"


async def seed_users() -> None:
    await init_db()

    async with async_session_factory() as db:
        count = (await db.execute(select(func.count(User.id)))).scalar_one()
        if count:
            print(f"Users table already has {count} rows, nothing to do")
            return

        for username, email in DEMO_USERS:
            db.add(
                User(
                    username=username,
                    email=email,
                    password_hash=hash_password(DEMO_PASSWORD),
                )
            )
        await db.commit()

    print(f"Inserted {len(DEMO_USERS)} demo users (password: {DEMO_PASSWORD})")


if __name__ == "__main__":
    asyncio.run(seed_users())
