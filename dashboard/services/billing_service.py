"""
Billing Service - list, export and maintain tenant billing records
"""
from datetime import date
from typing import Dict, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.database.models import BillingRecord, Tenant
from dashboard.schemas.query import QueryRequest, QueryResult
from dashboard.schemas.validation import BillingIn, BillingUpdate
from dashboard.services.billing_calendar import (
    DASH, next_billing_date, next_billing_month, contract_period, total_devices
)
from dashboard.services.latency import simulate_latency
from dashboard.services.query_engine import (
    EntityQuery, query, date_sort_key, billing_value_sort_key
)
from dashboard.services.results import ItemResult, not_found, store_operation
from dashboard.utils.formatting import format_date, format_payment_settings, format_device_contract


def billing_row(record: BillingRecord, tenant_name: str, as_of: Optional[date] = None) -> Dict:
    """Flatten a billing record plus its computed billing fields for listing."""
    row = {
        "id": record.id,
        "tenant_id": record.tenant_id,
        "tenant_name": tenant_name,
        "payment_type": record.payment_type,
        "start_date": format_date(record.start_date),
        "end_date": format_date(record.end_date),
        "due_day": record.due_day,
        "due_month": record.due_month,
        "device_contract": [dict(item) for item in (record.device_contract or [])],
        "description": record.description,
    }
    row["total_devices"] = total_devices(row)
    row["next_billing_date"] = next_billing_date(row, as_of)
    row["next_billing_month"] = next_billing_month(row, as_of)
    row["contract_period"] = contract_period(row["start_date"], row["end_date"])
    row["payment_settings"] = format_payment_settings(row)
    return row


def billing_query(as_of: Optional[date] = None) -> EntityQuery:
    """Filter/sort rules for billing listings evaluated at as_of."""
    def next_date(record):
        return next_billing_date(record, as_of)

    def next_month(record):
        return next_billing_month(record, as_of)

    def billing_from(record, value):
        computed = next_date(record)
        return computed != DASH and computed >= str(value)

    def billing_to(record, value):
        computed = next_date(record)
        return computed != DASH and computed <= str(value)

    return EntityQuery(
        name="billing",
        search_key="unified_search",
        search_fields=("tenant_name", "id"),
        text_fields=frozenset({"tenant_name", "id", "description"}),
        filters={
            "next_billing_from": billing_from,
            "next_billing_to": billing_to,
        },
        sort_aliases={
            "payment_settings": "payment_type",
            "contract_start": "start_date",
            "contract_end": "end_date",
        },
        sort_keys={
            "next_billing_date": billing_value_sort_key(next_date),
            "next_billing_month": billing_value_sort_key(next_month),
            "start_date": date_sort_key("start_date"),
            "end_date": date_sort_key("end_date"),
        },
    )


async def _tenant_names(session: AsyncSession) -> Dict[str, str]:
    result = await session.execute(select(Tenant.id, Tenant.name))
    return {tenant_id: name for tenant_id, name in result.all()}


async def _billing_rows(session: AsyncSession, tenant_id: Optional[str] = None, as_of: Optional[date] = None) -> List[Dict]:
    """Billing rows joined with tenant names; records of unknown tenants are dropped."""
    names = await _tenant_names(session)
    stmt = select(BillingRecord)
    if tenant_id is not None:
        stmt = stmt.where(BillingRecord.tenant_id == tenant_id)
    result = await session.execute(stmt)

    rows = []
    for record in result.scalars().all():
        tenant_name = names.get(record.tenant_id)
        if tenant_name is None:
            continue
        rows.append(billing_row(record, tenant_name, as_of))
    return rows


async def get_billing_items(session: AsyncSession, request: QueryRequest, as_of: Optional[date] = None) -> QueryResult:
    """Paginated billing records across all tenants."""
    await simulate_latency()
    rows = await _billing_rows(session, as_of=as_of)
    return query(rows, request, billing_query(as_of))


async def get_billing_for_tenant(
    session: AsyncSession,
    tenant_id: str,
    request: QueryRequest,
    as_of: Optional[date] = None
) -> QueryResult:
    """Paginated billing records of one tenant; unknown tenant gives an empty page."""
    await simulate_latency()
    if await session.get(Tenant, tenant_id) is None:
        return QueryResult.empty(request)
    rows = await _billing_rows(session, tenant_id=tenant_id, as_of=as_of)
    return query(rows, request, billing_query(as_of))


async def get_all_billing_items(session: AsyncSession, as_of: Optional[date] = None) -> List[Dict]:
    """
    All billing records flattened for export, no paging.
    Payment settings carry only the payment type here.
    """
    await simulate_latency()
    rows = await _billing_rows(session, as_of=as_of)
    return [
        {
            "tenant_id": row["tenant_id"],
            "tenant_name": row["tenant_name"],
            "id": row["id"],
            "start_date": row["start_date"] or "",
            "end_date": row["end_date"] or "",
            "next_billing_date": row["next_billing_date"],
            "payment_settings": row["payment_type"] or "N/A",
            "number_of_devices": row["total_devices"],
            "device_contract_details": format_device_contract(row["device_contract"]),
        }
        for row in rows
    ]


async def next_billing_id_for_tenant(session: AsyncSession, tenant_id: str) -> str:
    count_stmt = select(func.count(BillingRecord.id)).where(BillingRecord.tenant_id == tenant_id)
    count = (await session.execute(count_stmt)).scalar() or 0

    # Count-based ids can collide after deletes
    while True:
        candidate = f"billing-{tenant_id}-{count}"
        if await session.get(BillingRecord, candidate) is None:
            return candidate
        count += 1


@store_operation("adding billing record")
async def add_billing(session: AsyncSession, payload: BillingIn) -> ItemResult:
    await simulate_latency()

    tenant = await session.get(Tenant, payload.tenant_id)
    if tenant is None:
        return not_found("Tenant", payload.tenant_id)

    record_id = payload.id or await next_billing_id_for_tenant(session, payload.tenant_id)
    if await session.get(BillingRecord, record_id) is not None:
        return ItemResult(None, False, f"Billing record with ID {record_id} already exists")

    record = BillingRecord(id=record_id, **payload.model_dump(exclude={"id"}))
    session.add(record)
    await session.commit()
    return ItemResult(billing_row(record, tenant.name), True)


@store_operation("updating billing record")
async def update_billing(session: AsyncSession, payload: BillingUpdate) -> ItemResult:
    await simulate_latency()

    record = await session.get(BillingRecord, payload.id)
    if record is None:
        return not_found("Billing record", payload.id)

    tenant = await session.get(Tenant, payload.tenant_id)
    if tenant is None:
        return not_found("Tenant", payload.tenant_id)

    for key, value in payload.model_dump(exclude={"id"}).items():
        setattr(record, key, value)
    await session.commit()
    return ItemResult(billing_row(record, tenant.name), True)


@store_operation("deleting billing record", failure_data=False)
async def delete_billing(session: AsyncSession, billing_id: str) -> ItemResult:
    await simulate_latency()

    record = await session.get(BillingRecord, billing_id)
    if record is None:
        return not_found("Billing record", billing_id, data=False)

    await session.delete(record)
    await session.commit()
    return ItemResult(True, True)
