"""
Tenant Service - tenant listing, detail view and maintenance
"""
import logging
import uuid
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from dashboard.database.models import Tenant, Subscription, User
from dashboard.schemas.query import QueryRequest, QueryResult
from dashboard.schemas.validation import TenantIn, TenantUpdate, SubscriptionIn
from dashboard.services.latency import simulate_latency
from dashboard.services.query_engine import EntityQuery, query, get_field
from dashboard.services.results import ItemResult, not_found, store_operation
from dashboard.services.user_service import find_owner_for_tenant, user_row
from dashboard.services.device_service import device_row
from dashboard.services.billing_service import billing_row
from dashboard.utils.formatting import format_contact_name

CONTACT_FIELDS = (
    "first_name", "last_name", "department", "email", "phone_office", "phone_mobile",
    "company", "address1", "address2", "city", "state_prefecture", "country", "postal_code"
)

NO_OWNER = {"name": "No Owner Assigned", "email": "no-owner@example.com"}


def _subscription_matches(attribute: str):
    def predicate(record, value):
        return get_field(record, attribute) == value
    return predicate


TENANT_QUERY = EntityQuery(
    name="tenant",
    search_key="text_search",
    search_fields=(
        "name", "id", "contact.first_name", "contact.last_name", "contact.email",
        "owner.name", "owner.email",
    ),
    text_fields=frozenset({"name", "description"}),
    filters={
        "contract_type": _subscription_matches("subscription_type"),
        "status": _subscription_matches("subscription_status"),
    },
    sort_aliases={
        "tenant": "name",
        "contact": "contact.last_name",
        "email": "contact.email",
        "owner": "owner.name",
        "type": "subscription_type",
        "status": "subscription_status",
    },
)


def tenant_contact(tenant: Tenant) -> Dict:
    contact = {name: getattr(tenant, f"contact_{name}") or "" for name in CONTACT_FIELDS}
    contact["language"] = tenant.language
    return contact


def tenant_row(tenant: Tenant, subscription: Optional[Subscription] = None, owner: Optional[User] = None) -> Dict:
    """Tenant with nested contact, owner summary and subscription type/status."""
    contact = tenant_contact(tenant)
    return {
        "id": tenant.id,
        "name": tenant.name,
        "description": tenant.description or "",
        "language": tenant.language,
        "contact": contact,
        "contact_name": format_contact_name(contact["first_name"], contact["last_name"], tenant.language),
        "subscription_id": tenant.subscription_id,
        "subscription_type": subscription.type if subscription else None,
        "subscription_status": subscription.status if subscription else None,
        "owner": {"name": owner.name, "email": owner.email} if owner else dict(NO_OWNER),
    }


def _apply_contact(tenant: Tenant, payload: TenantIn) -> None:
    tenant.name = payload.name
    tenant.description = payload.description
    tenant.language = payload.contact.language
    for name in CONTACT_FIELDS:
        setattr(tenant, f"contact_{name}", getattr(payload.contact, name))


async def _tenant_rows(session: AsyncSession) -> List[Dict]:
    subs_result = await session.execute(select(Subscription))
    subscriptions = {sub.id: sub for sub in subs_result.scalars().all()}

    users_result = await session.execute(select(User))
    users = list(users_result.scalars().all())

    tenants_result = await session.execute(select(Tenant))
    return [
        tenant_row(
            tenant,
            subscriptions.get(tenant.subscription_id),
            find_owner_for_tenant(tenant.id, users),
        )
        for tenant in tenants_result.scalars().all()
    ]


async def get_tenants(session: AsyncSession, request: QueryRequest) -> QueryResult:
    """Paginated tenant list with text search, subscription filters and sorting."""
    await simulate_latency()
    rows = await _tenant_rows(session)
    return query(rows, request, TENANT_QUERY)


async def get_all_tenants(session: AsyncSession) -> List[Dict]:
    """All tenants, no paging (used for export)."""
    await simulate_latency()
    return await _tenant_rows(session)


async def get_tenant_by_id(
    session: AsyncSession,
    tenant_id: str,
    include_users: bool = False,
    include_devices: bool = False,
    include_billing: bool = False
) -> ItemResult:
    """Tenant detail, optionally with its users, devices and billing records."""
    await simulate_latency()

    stmt = (
        select(Tenant)
        .where(Tenant.id == tenant_id)
        .options(
            selectinload(Tenant.subscription),
            selectinload(Tenant.users),
            selectinload(Tenant.devices),
            selectinload(Tenant.billing_records),
        )
    )
    result = await session.execute(stmt)
    tenant = result.scalar_one_or_none()

    if not tenant:
        return not_found("Tenant", tenant_id)

    row = tenant_row(tenant, tenant.subscription, find_owner_for_tenant(tenant.id, tenant.users))

    if include_users:
        row["users"] = [user_row(user, tenant.name) for user in tenant.users]
    if include_devices:
        row["devices"] = [device_row(device, tenant.name) for device in tenant.devices]
    if include_billing:
        row["billing_details"] = [billing_row(record, tenant.name) for record in tenant.billing_records]

    return ItemResult(row, True)


async def next_tenant_id(session: AsyncSession) -> str:
    result = await session.execute(select(Tenant.id))
    existing = set(result.scalars().all())
    number = len(existing) + 1
    while f"tenant-{number}" in existing:
        number += 1
    return f"tenant-{number}"


@store_operation("adding tenant")
async def add_tenant(session: AsyncSession, tenant: TenantIn, subscription: SubscriptionIn) -> ItemResult:
    """Create a tenant together with the subscription it is attached to."""
    await simulate_latency()

    tenant_id = tenant.id or await next_tenant_id(session)
    if await session.get(Tenant, tenant_id) is not None:
        return ItemResult(None, False, f"Tenant with ID {tenant_id} already exists")

    sub = Subscription(
        id=subscription.id or str(uuid.uuid4()),
        **subscription.model_dump(exclude={"id"})
    )
    session.add(sub)

    new_tenant = Tenant(id=tenant_id, subscription_id=sub.id)
    _apply_contact(new_tenant, tenant)
    session.add(new_tenant)
    await session.commit()

    logging.info(f"Tenant {new_tenant.id} created with subscription {sub.id}")
    return ItemResult(tenant_row(new_tenant, sub), True)


@store_operation("updating tenant")
async def update_tenant(session: AsyncSession, payload: TenantUpdate) -> ItemResult:
    await simulate_latency()

    tenant = await session.get(Tenant, payload.id)
    if tenant is None:
        return not_found("Tenant", payload.id)

    _apply_contact(tenant, payload)
    await session.commit()

    subscription = await session.get(Subscription, tenant.subscription_id) if tenant.subscription_id else None
    users_result = await session.execute(select(User).where(User.tenant_id == tenant.id))
    owner = find_owner_for_tenant(tenant.id, list(users_result.scalars().all()))
    return ItemResult(tenant_row(tenant, subscription, owner), True)


@store_operation("deleting tenant", failure_data=False)
async def delete_tenant(session: AsyncSession, tenant_id: str) -> ItemResult:
    """Delete a tenant; its devices, users and billing records go with it."""
    await simulate_latency()

    stmt = (
        select(Tenant)
        .where(Tenant.id == tenant_id)
        .options(
            selectinload(Tenant.users),
            selectinload(Tenant.devices),
            selectinload(Tenant.billing_records),
        )
    )
    result = await session.execute(stmt)
    tenant = result.scalar_one_or_none()
    if tenant is None:
        return not_found("Tenant", tenant_id, data=False)

    counts = (len(tenant.devices), len(tenant.users), len(tenant.billing_records))
    await session.delete(tenant)
    await session.commit()

    logging.info(
        f"Tenant {tenant_id} deleted with {counts[0]} devices, {counts[1]} users, {counts[2]} billing records"
    )
    return ItemResult(True, True)
