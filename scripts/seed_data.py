"""Seed the database with demo accounts and a handful of issues across the lifecycle."""

import asyncio

from urbancare.db import crud
from urbancare.db.engine import async_session_factory, create_all
from urbancare.lifecycle.roles import Actor, Role
from urbancare.services import issues as svc
from urbancare.services.accounts import create_account

DEMO_PASSWORD = "changeme123"


async def seed():
    await create_all()

    async with async_session_factory() as db:
        if await crud.get_user_by_email(db, "authority@urbancare.local"):
            print("Demo data already exists, skipping seed.")
            return

        authority = await create_account(
            db, "authority@urbancare.local", DEMO_PASSWORD, Role.authority,
            full_name="City Desk", department="Public Works",
        )
        roads = await create_account(
            db, "roads@urbancare.local", DEMO_PASSWORD, Role.worker,
            full_name="Ravi Kumar", department="Roads", employee_id="W-001",
        )
        water = await create_account(
            db, "water@urbancare.local", DEMO_PASSWORD, Role.worker,
            full_name="Meera Iyer", department="Water", employee_id="W-002",
        )
        citizen = await create_account(
            db, "citizen@urbancare.local", DEMO_PASSWORD, Role.citizen, full_name="Asha Rao",
        )

        a = Actor(authority.id, Role.authority)
        c = Actor(citizen.id, Role.citizen)

        pothole = await svc.report_issue(
            db, c, category="Infrastructure", location="MG Road near bus stop 14",
            description="Deep pothole in the left lane, two bikes have skidded this week.",
        )
        leak = await svc.report_issue(
            db, c, category="Water", location="5th Cross, Indiranagar",
            description="Water main leaking onto the street since Monday.",
            image="https://example.org/demo/leak.jpg",
        )
        await svc.report_issue(
            db, c, category="Trash", location="Corner of 12th Main",
            description="Overflowing garbage bin attracting stray dogs.",
        )

        await svc.transition(db, pothole.id, "assigned", a, assigned_to=roads.id)
        await svc.transition(db, pothole.id, "in_progress", Actor(roads.id, Role.worker))

        await svc.transition(db, leak.id, "assigned", a, assigned_to=water.id)
        await svc.transition(db, leak.id, "in_progress", Actor(water.id, Role.worker))
        await svc.transition(
            db, leak.id, "completed_by_worker", Actor(water.id, Role.worker),
            after_image="https://example.org/demo/leak-fixed.jpg",
            worker_notes="Replaced the cracked joint.",
        )
        await svc.transition(db, leak.id, "resolved", a, note="Verified on site.")

    print("Seed complete. Accounts (password: %s):" % DEMO_PASSWORD)
    for email in ("authority", "roads", "water", "citizen"):
        print(f"  {email}@urbancare.local")
    print("Start the server with: python -m urbancare.cli serve")


if __name__ == "__main__":
    asyncio.run(seed())
