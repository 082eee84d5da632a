"""
Create Admin Script

Creates an admin account (a tenant) and, with --seed, a small demo menu
and two tables so the customer app has something to show.
Run from project root: python scripts/create_admin.py owner@example.com
"""

import argparse
import asyncio
import getpass
import sys

from sqlalchemy import select

from tableside.core.config import get_settings, setup_logging
from tableside.core.security import hash_password
from tableside.database import dispose_engine, get_session_maker, init_db
from tableside.models import AdminUser, Category, MenuItem
from tableside.services.branding import update_restaurant_name
from tableside.services.tables import create_table

DEMO_MENU = {
    "Starters": [
        ("Paneer Tikka", 220.0, "Char-grilled cottage cheese", ["spicy", "veg"]),
        ("Chicken 65", 260.0, "Crispy fried chicken", ["spicy"]),
    ],
    "Mains": [
        ("Butter Chicken", 340.0, "Creamy tomato gravy", ["bestseller"]),
        ("Dal Makhani", 240.0, "Slow-cooked black lentils", ["veg"]),
    ],
    "Breads": [
        ("Butter Naan", 50.0, "Tandoor baked", ["veg"]),
        ("Garlic Naan", 60.0, "Tandoor baked with garlic", ["veg"]),
    ],
    "Drinks": [
        ("Sweet Lassi", 90.0, "Chilled yogurt drink", ["cold", "veg"]),
        ("Masala Chai", 40.0, "Spiced tea", ["hot", "veg"]),
    ],
}

# Breads and drinks are suggested with the mains.
DEMO_PAIRINGS = {
    "Butter Chicken": ["Butter Naan", "Garlic Naan", "Sweet Lassi"],
    "Dal Makhani": ["Garlic Naan"],
    "Paneer Tikka": ["Masala Chai"],
}


async def seed_demo(session, user_id: str, restaurant_name: str) -> None:
    await update_restaurant_name(session, user_id, restaurant_name)

    by_name: dict[str, MenuItem] = {}
    for position, (category_name, items) in enumerate(DEMO_MENU.items()):
        category = Category(user_id=user_id, name=category_name, sort_order=position)
        session.add(category)
        await session.flush()
        for name, price, description, tags in items:
            item = MenuItem(
                user_id=user_id,
                category_id=category.id,
                name=name,
                price=price,
                description=description,
                tags=tags,
                pairings=[],
            )
            session.add(item)
            by_name[name] = item
    await session.flush()

    for name, partners in DEMO_PAIRINGS.items():
        by_name[name].pairings = [by_name[p].id for p in partners]
    await session.commit()

    base_url = get_settings().app_base_url
    for table_name in ("T1", "T2"):
        table = await create_table(session, user_id, table_name, base_url)
        print(f"   🪑 {table.name}: {table.qr_code_url}")


async def main(email: str, password: str, seed: bool, restaurant_name: str) -> int:
    await init_db()

    try:
        async with get_session_maker()() as session:
            email = email.strip().lower()
            existing = await session.execute(select(AdminUser).where(AdminUser.email == email))
            if existing.scalar_one_or_none() is not None:
                print(f"❌ An admin with email {email} already exists")
                return 1

            admin = AdminUser(email=email, password_hash=hash_password(password))
            session.add(admin)
            await session.commit()
            print(f"✅ Admin {email} created (tenant id {admin.id})")

            if seed:
                await seed_demo(session, admin.id, restaurant_name)
                print("✅ Demo menu and tables created")
    finally:
        await dispose_engine()

    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create an admin account")
    parser.add_argument("email")
    parser.add_argument("--password", help="Prompted for when omitted")
    parser.add_argument("--seed", action="store_true", help="Add a demo menu and tables")
    parser.add_argument("--restaurant-name", default="Tableside Kitchen")
    args = parser.parse_args()

    setup_logging()
    password = args.password or getpass.getpass("Password: ")
    if not password:
        print("❌ Password must not be empty")
        sys.exit(1)

    sys.exit(asyncio.run(main(args.email, password, args.seed, args.restaurant_name)))
