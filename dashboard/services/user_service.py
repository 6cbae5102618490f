"""
User Service - tenant users (owners, engineers, members)
"""
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.database.models import User, Tenant, UserRoleName
from dashboard.schemas.query import QueryRequest, QueryResult
from dashboard.schemas.validation import UserIn, UserUpdate
from dashboard.services.latency import simulate_latency
from dashboard.services.query_engine import EntityQuery, query
from dashboard.services.results import ItemResult, not_found, store_operation

UNKNOWN_TENANT = "Unknown Tenant"


def _has_role(record, value) -> bool:
    return value in (record.get("roles") or [])


USER_QUERY = EntityQuery(
    name="user",
    text_fields=frozenset({"name", "email"}),
    filters={"role": _has_role},
)


def user_row(user: User, tenant_name: Optional[str] = None) -> Dict:
    row = {
        "id": user.id,
        "tenant_id": user.tenant_id,
        "name": user.name,
        "email": user.email,
        "roles": list(user.roles or []),
        "ip_whitelist": list(user.ip_whitelist or []),
        "mfa_enabled": bool(user.mfa_enabled),
    }
    if tenant_name is not None:
        row["tenant_name"] = tenant_name
    return row


def find_owner_for_tenant(tenant_id: str, users: Iterable[User]) -> Optional[User]:
    """First user of the tenant holding the Owner role"""
    for user in users:
        if user.tenant_id == tenant_id and UserRoleName.owner.value in (user.roles or []):
            return user
    return None


async def get_users_for_tenant(session: AsyncSession, tenant_id: str, request: QueryRequest) -> QueryResult:
    """Paginated users of one tenant; filters name/email (contains) and role."""
    await simulate_latency()

    stmt = select(User).where(User.tenant_id == tenant_id)
    result = await session.execute(stmt)
    rows = [user_row(user) for user in result.scalars().all()]

    if not rows:
        return QueryResult.empty(request)
    return query(rows, request, USER_QUERY)


async def get_all_users(session: AsyncSession) -> List[Dict]:
    """All users with their tenant name, for export."""
    await simulate_latency()

    names_result = await session.execute(select(Tenant.id, Tenant.name))
    names = {tenant_id: name for tenant_id, name in names_result.all()}

    result = await session.execute(select(User))
    return [user_row(user, names.get(user.tenant_id, UNKNOWN_TENANT)) for user in result.scalars().all()]


async def next_user_id_for_tenant(session: AsyncSession, tenant_id: str) -> str:
    result = await session.execute(select(User.id).where(User.tenant_id == tenant_id))
    existing = set(result.scalars().all())
    number = len(existing)
    while f"user-{tenant_id}-{number}" in existing or await session.get(User, f"user-{tenant_id}-{number}"):
        number += 1
    return f"user-{tenant_id}-{number}"


@store_operation("adding user")
async def add_user(session: AsyncSession, payload: UserIn) -> ItemResult:
    await simulate_latency()

    tenant = await session.get(Tenant, payload.tenant_id)
    if tenant is None:
        return not_found("Tenant", payload.tenant_id)

    user_id = payload.id or await next_user_id_for_tenant(session, payload.tenant_id)
    if await session.get(User, user_id) is not None:
        return ItemResult(None, False, f"User with ID {user_id} already exists")

    user = User(id=user_id, **payload.model_dump(exclude={"id"}))
    session.add(user)
    await session.commit()
    return ItemResult(user_row(user, tenant.name), True)


@store_operation("updating user")
async def update_user(session: AsyncSession, payload: UserUpdate) -> ItemResult:
    await simulate_latency()

    user = await session.get(User, payload.id)
    if user is None:
        return not_found("User", payload.id)

    tenant = await session.get(Tenant, payload.tenant_id)
    if tenant is None:
        return not_found("Tenant", payload.tenant_id)

    for key, value in payload.model_dump(exclude={"id"}).items():
        setattr(user, key, value)
    await session.commit()
    return ItemResult(user_row(user, tenant.name), True)


@store_operation("deleting user", failure_data=False)
async def delete_user(session: AsyncSession, user_id: str) -> ItemResult:
    await simulate_latency()

    user = await session.get(User, user_id)
    if user is None:
        return not_found("User", user_id, data=False)

    await session.delete(user)
    await session.commit()
    return ItemResult(True, True)
