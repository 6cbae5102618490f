import asyncio
import logging
import random
import sys

from sqlalchemy import select, func

from dashboard.config import config
from dashboard.database.core import AsyncSessionLocal, init_store, engine
from dashboard.database.models import Tenant, Subscription, Device, User, BillingRecord
from dashboard.database.seed import seed_mock_data
from dashboard.schemas.query import QueryRequest, SortSpec
from dashboard.services.billing_service import get_billing_items


async def main():
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL, logging.INFO),
        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        stream=sys.stdout,
    )

    await init_store()

    async with AsyncSessionLocal() as session:
        await seed_mock_data(
            session,
            tenant_count=config.MOCK_TENANT_COUNT,
            subscription_count=config.MOCK_SUBSCRIPTION_COUNT,
            rng=random.Random(config.MOCK_SEED),
        )

        for model in (Subscription, Tenant, User, Device, BillingRecord):
            count = (await session.execute(select(func.count()).select_from(model))).scalar()
            logging.info(f"{model.__tablename__}: {count}")

        request = QueryRequest(page=1, limit=10, sort=SortSpec(field="next_billing_date", order="asc"))
        result = await get_billing_items(session, request)
        logging.info(f"Billing page 1/{result.meta.total_pages} ({result.meta.total} records)")
        for row in result.data:
            logging.info(
                f"{row['tenant_name']} | {row['payment_settings']} | "
                f"next {row['next_billing_date']} ({row['next_billing_month']}) | {row['contract_period']}"
            )

    await engine.dispose()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        logging.info("Stopped.")
