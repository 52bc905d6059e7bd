"""
Promote an existing account to the admin role.

Usage:
    python scripts/make_admin.py user@example.com
"""

import argparse
import asyncio

import models  # noqa
from loggers import get_logger
from src.core.database.engine import engine
from src.core.database.session import async_session
from src.core.database.uow import ApplicationUnitOfWork
from src.core.utils.security import mask_email
from src.user.enums import UserRole

logger = get_logger("scripts.make_admin", plain_format=True)


async def make_admin(email: str) -> bool:
    async with async_session() as session:
        async with ApplicationUnitOfWork(session) as uow:
            user = await uow.users.get_by_email(uow.session, email)
            if user is None:
                logger.error("User %s not found.", mask_email(email))
                return False
            await uow.users.update(uow.session, {"role": UserRole.ADMIN}, id=user.id)
            await uow.commit()
    logger.info("User %s (%s) is now an admin.", mask_email(email), user.id)
    return True


async def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("email")
    args = parser.parse_args()
    try:
        promoted = await make_admin(args.email.strip().lower())
    finally:
        await engine.dispose()
    return 0 if promoted else 1


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
