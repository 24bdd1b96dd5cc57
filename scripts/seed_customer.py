"""
Seed a portal customer, optionally linked to a ServiceM8 company.

Usage:
    python scripts/seed_customer.py --email jane@example.com --name "Jane Smith"
    python scripts/seed_customer.py --email jane@example.com --name "Jane Smith" --company-uuid <uuid>
"""
import argparse
import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from portal.config import get_settings
from portal.models.customer import Customer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def seed(email: str, name: str, phone: str | None, company_uuid: str | None):
    settings = get_settings()
    engine = create_async_engine(settings.database_url, echo=False)
    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        result = await session.execute(select(Customer).where(Customer.email == email))
        customer = result.scalar_one_or_none()

        if customer:
            logger.info("Customer %s already exists (id=%s).", email, customer.id)
            if company_uuid and customer.servicem8_company_uuid != company_uuid:
                customer.servicem8_company_uuid = company_uuid
                logger.info("Linked customer %s to ServiceM8 company %s.", customer.id, company_uuid)
        else:
            customer = Customer(
                name=name,
                email=email,
                phone=phone,
                servicem8_company_uuid=company_uuid or None,
            )
            session.add(customer)
            await session.flush()
            logger.info("Created customer %s (id=%s).", email, customer.id)

        await session.commit()

    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a portal customer")
    parser.add_argument("--email", required=True)
    parser.add_argument("--name", required=True)
    parser.add_argument("--phone", default=None)
    parser.add_argument("--company-uuid", default=None, help="ServiceM8 company UUID to link")
    args = parser.parse_args()
    asyncio.run(seed(args.email, args.name, args.phone, args.company_uuid))
