#!/usr/bin/env python3
"""
Seed script to create a demo establishment, staff accounts and menu
"""

import asyncio
import uuid

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from kwikqueue.database import SessionLocal, engine, Base
    from kwikqueue.models import Company, Product, User, UserRole

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        result = await db.execute(select(Company).where(Company.code == "TEST01"))
        if result.scalar_one_or_none():
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo company...")

        # TEST-prefixed codes skip the presence check, handy on a laptop
        company = Company(
            code="TEST01",
            name="Kwik Burger Talatona",
            location="Rua do Talatona, Luanda",
            city="Luanda",
            province="Luanda",
            type="Hamburgueria",
            lat=-8.9159,
            lng=13.1817,
            marketing_enabled=True,
        )
        db.add(company)
        await db.flush()

        print(f"Created company: {company.name} (ID: {company.id}, code: {company.code})")

        db.add(User(
            id=uuid.uuid4(),
            email="admin@kwikqueue.local",
            hashed_password=pwd_context.hash("admin123"),
            full_name="Platform Admin",
            role=UserRole.SUPER_ADMIN,
        ))
        db.add(User(
            id=uuid.uuid4(),
            company_id=company.id,
            email="gerente@kwikburger.local",
            hashed_password=pwd_context.hash("demo123"),
            full_name="Gerente",
            role=UserRole.COMPANY_ADMIN,
        ))

        menu = [
            ("Hambúrguer Clássico", "Hambúrgueres", 2500),
            ("Hambúrguer Duplo", "Hambúrgueres", 3500),
            ("Batata Frita", "Acompanhamentos", 1000),
            ("Refrigerante", "Bebidas", 500),
            ("Sumo Natural", "Bebidas", 800),
        ]
        for name, category, price in menu:
            db.add(Product(company_id=company.id, name=name, category=category, price=price))

        await db.commit()

        print("Demo data created successfully!")
        print("\nLogin credentials:")
        print("  Super Admin: admin@kwikqueue.local / admin123")
        print("  Company Admin: gerente@kwikburger.local / demo123")
        print(f"\nJoin code: {company.code}")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
