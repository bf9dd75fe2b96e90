"""
Создаёт (или сбрасывает) администратора для первого входа.

    python create_dev_user.py [email] [password]
"""

import asyncio
import sys
import os

# Add project root to path
sys.path.append(os.getcwd())

from src.common.constants import UserRole
from src.config import settings
from src.infra.database import get_db
from src.services.fleet_api.auth import hash_password
from src.services.fleet_api.repository import FleetRepository

DEFAULT_EMAIL = "admin@taxinort.cl"
DEFAULT_PASSWORD = "admin123"


async def main(email: str = DEFAULT_EMAIL, password: str = DEFAULT_PASSWORD):
    db = get_db()
    await db.connect(
        dsn=settings.database.dsn,
        min_size=1,
        max_size=1,
    )

    print("Connected to DB")

    repository = FleetRepository(db, timezone=settings.domain.TIMEZONE)
    password_hash = hash_password(password)

    existing = await repository.get_user_by_email(email)
    if existing is None:
        await repository.create_user(
            email=email,
            password_hash=password_hash,
            name="Administrador Principal",
            role=UserRole.ADMIN,
        )
        print(f"Admin {email} created")
    else:
        await repository.set_user_password(existing.id, password_hash, UserRole.ADMIN)
        print(f"Admin {email} password reset")

    await db.disconnect()

if __name__ == "__main__":
    asyncio.run(main(*sys.argv[1:3]))
