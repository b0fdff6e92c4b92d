"""Seed the administrator, default locations and sample members."""
from __future__ import annotations

import asyncio

from app.db.session import get_sessionmaker
from app.services import bootstrap_service


async def seed_sample_data() -> None:
    sessionmaker = get_sessionmaker()
    async with sessionmaker() as session:
        admin = await bootstrap_service.ensure_default_admin(session)
        locations = await bootstrap_service.seed_default_locations(session)
        members = await bootstrap_service.seed_sample_members(session)
    print(f"Administrator {'created' if admin else 'already present'}.")
    print(f"Seeded {len(locations)} location(s) and {len(members)} sample member(s).")


def main() -> None:
    asyncio.run(seed_sample_data())


if __name__ == "__main__":
    main()
