"""Database seeder: fills the subscriptions table with random, valid data."""
import argparse
import asyncio
import random
import time
import uuid

from subtracker.config import settings
from subtracker.database import Base, build_engine, build_session_factory
from subtracker.repositories import SQLAlchemySubscriptionRepository
from subtracker.services.subscription_service import SubscriptionService

import subtracker.models  # noqa: F401

SERVICES = {
    "Yandex Plus": 400,
    "Netflix": 999,
    "Spotify": 299,
    "Kinopoisk": 349,
    "YouTube Premium": 299,
    "Apple Music": 169,
    "VK Music": 199,
    "Okko": 399,
}


def _random_period() -> tuple[str, str | None]:
    year = random.randint(2023, 2025)
    month = random.randint(1, 12)
    start = f"{month:02d}-{year}"
    if random.random() < 0.4:
        return start, None  # open-ended
    length = random.randint(0, 18)
    end_index = year * 12 + (month - 1) + length
    return start, f"{end_index % 12 + 1:02d}-{end_index // 12}"


async def seed(small: bool = False, reset: bool = False):
    num_users = 10 if small else 200
    per_user = 3 if small else 8

    print(f"Seeding: {num_users} users, up to {num_users * per_user} subscriptions")
    start = time.perf_counter()

    engine = build_engine(settings)
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    created = 0
    session_factory = build_session_factory(engine)
    async with session_factory() as session:
        service = SubscriptionService(SQLAlchemySubscriptionRepository(session))
        for _ in range(num_users):
            user_id = uuid.uuid4()
            for name in random.sample(list(SERVICES), k=random.randint(1, per_user)):
                start_date, end_date = _random_period()
                await service.new_subscription(
                    service_name=name,
                    price=SERVICES[name],
                    user_id=user_id,
                    start_date=start_date,
                    end_date=end_date,
                )
                created += 1
        await session.commit()

    await engine.dispose()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Subscriptions: {created}")


def main():
    parser = argparse.ArgumentParser(description="Seed the subscriptions database")
    parser.add_argument("--small", action="store_true", help="Use a small dataset (10 users)")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate tables first")
    args = parser.parse_args()
    asyncio.run(seed(small=args.small, reset=args.reset))


if __name__ == "__main__":
    main()
