from typing import Dict, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.database.models import Subscription
from dashboard.schemas.query import QueryRequest, QueryResult
from dashboard.services.latency import simulate_latency
from dashboard.services.query_engine import EntityQuery, query
from dashboard.services.results import ItemResult, not_found
from dashboard.utils.formatting import format_date

SUBSCRIPTION_QUERY = EntityQuery(
    name="subscription",
    text_fields=frozenset({"name"}),
    sort_aliases={"contract_start": "start_date", "contract_end": "end_date"},
)

FEATURE_FLAGS = (
    "enabled_app_dms", "enabled_app_evms", "enabled_app_cvr", "enabled_app_aiams",
    "config_ssh_terminal", "config_aiapp_installer",
)


def subscription_row(subscription: Subscription) -> Dict:
    row = {
        "id": subscription.id,
        "name": subscription.name,
        "description": subscription.description or "",
        "type": subscription.type,
        "status": subscription.status,
        "start_date": format_date(subscription.start_date),
        "end_date": format_date(subscription.end_date),
    }
    for flag in FEATURE_FLAGS:
        row[flag] = bool(getattr(subscription, flag))
    return row


async def get_subscription_by_id(session: AsyncSession, subscription_id: str) -> ItemResult:
    await simulate_latency()
    subscription = await session.get(Subscription, subscription_id)
    if subscription is None:
        return not_found("Subscription", subscription_id)
    return ItemResult(subscription_row(subscription), True)


async def get_subscriptions(session: AsyncSession, request: QueryRequest) -> QueryResult:
    """Paginated subscriptions; name (contains), type and status filters."""
    await simulate_latency()
    result = await session.execute(select(Subscription))
    rows = [subscription_row(sub) for sub in result.scalars().all()]
    return query(rows, request, SUBSCRIPTION_QUERY)


async def get_all_subscriptions(session: AsyncSession) -> List[Dict]:
    await simulate_latency()
    result = await session.execute(select(Subscription))
    return [subscription_row(sub) for sub in result.scalars().all()]
