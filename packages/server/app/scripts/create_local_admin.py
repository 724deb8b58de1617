"""
Create a local user on a given tier and print a bearer token for it.

    python -m app.scripts.create_local_admin --email admin@example.com --tier super_admin
"""

import argparse
import asyncio

from sqlmodel import select

from app.core.auth import create_jwt
from app.core.config import get_settings
from app.core.database import get_session_context, init_db
from app.models.user import User
from app.services import users as user_service
from rosterhub_shared.schemas.organizations import SportCategory
from rosterhub_shared.schemas.subscriptions import Tier
from rosterhub_shared.schemas.users import UserCreateRequest

settings = get_settings()


async def create_user(email: str, tier: Tier, first_name: str, last_name: str) -> str:
    if settings.auto_create_tables:
        await init_db()

    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            user = await user_service.create_user(
                UserCreateRequest(
                    email=email,
                    first_name=first_name,
                    last_name=last_name,
                    sport_category=SportCategory.FOOTBALL,
                    role=tier,
                ),
                session,
            )
            print(f"Created {tier.value} user: {email}")
        else:
            print(f"User {email} already exists ({user.role}).")

        return create_jwt(user.id, user.role)


def main() -> None:
    parser = argparse.ArgumentParser(description="Create a local user and print a token.")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument(
        "--tier",
        default=Tier.SUPER_ADMIN.value,
        choices=[t.value for t in Tier],
        help="Subscription tier",
    )
    parser.add_argument("--first-name", default="Local")
    parser.add_argument("--last-name", default="Admin")
    args = parser.parse_args()

    token = asyncio.run(create_user(args.email, Tier(args.tier), args.first_name, args.last_name))
    print(f"Bearer token: {token}")


if __name__ == "__main__":
    main()
