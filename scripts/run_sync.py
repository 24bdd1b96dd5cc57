"""
Run a ServiceM8 sync pass from the command line.

Usage:
    python scripts/run_sync.py                  # every linked customer
    python scripts/run_sync.py --customer-id 7  # one customer
"""
import argparse
import asyncio
import logging
import sys

from portal.database import async_session_factory, dispose_engine
from portal.integrations.servicem8 import get_servicem8_client
from portal.models.customer import Customer
from portal.services.job_sync import sync_all_customers, sync_customer

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


async def run(customer_id: int | None = None) -> int:
    provider = get_servicem8_client()
    failures = 0

    async with async_session_factory() as db:
        if customer_id is None:
            result = await sync_all_customers(db, provider)
            await db.commit()
            print(f"Customers synced: {result.customers_synced}/{result.customers_attempted}")
            print(f"Bookings created: {result.total_created}")
            print(f"Bookings updated: {result.total_updated}")
            for error in result.errors:
                print(f"  customer {error.customer_id}: {error.error}")
            for error in result.job_errors:
                print(f"  customer {error.customer_id} job {error.job_uuid}: {error.error}")
            failures = len(result.errors) + len(result.job_errors)
        else:
            customer = await db.get(Customer, customer_id)
            if not customer:
                logger.error("Customer %s not found", customer_id)
                return 1
            result = await sync_customer(db, customer, provider)
            await db.commit()
            if not result.linked:
                print(f"Customer {customer_id} is not linked to ServiceM8")
            print(f"Jobs: {result.total_jobs}  created: {result.created}  "
                  f"updated: {result.updated}  failed: {result.failed}")
            failures = result.failed

    await dispose_engine()
    return failures


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sync bookings from ServiceM8")
    parser.add_argument("--customer-id", type=int, default=None, help="Sync only this customer")
    args = parser.parse_args()
    failure_count = asyncio.run(run(args.customer_id))
    sys.exit(1 if failure_count > 0 else 0)
