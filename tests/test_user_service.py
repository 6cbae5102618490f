import pytest
import pytest_asyncio

from dashboard.database.models import Tenant, User
from dashboard.schemas.query import QueryRequest, SortSpec
from dashboard.schemas.validation import UserIn, UserUpdate
from dashboard.services.user_service import (
    get_users_for_tenant, get_all_users, find_owner_for_tenant, add_user, update_user, delete_user
)


@pytest_asyncio.fixture
async def user_data(async_session):
    async_session.add_all([
        Tenant(id="tenant-1", name="Acme Logistics"),
        User(id="user-tenant-1-0", tenant_id="tenant-1", name="Alice Owner", email="alice@acme.example.com",
             roles=["Owner", "Engineer"], mfa_enabled=True),
        User(id="user-tenant-1-1", tenant_id="tenant-1", name="Bob Member", email="bob@acme.example.com",
             roles=["Member"]),
        User(id="user-tenant-1-2", tenant_id="tenant-1", name="Carol Engineer", email="carol@contractor.example.com",
             roles=["Engineer"]),
        User(id="user-ghost-0", tenant_id="ghost", name="Dan Nobody", email="dan@example.com", roles=["Owner"]),
    ])
    await async_session.commit()
    return async_session


@pytest.mark.asyncio
async def test_users_for_tenant_filters(user_data):
    result = await get_users_for_tenant(user_data, "tenant-1", QueryRequest())
    assert result.meta.total == 3

    result = await get_users_for_tenant(user_data, "tenant-1", QueryRequest(filters={"role": "Engineer"}))
    assert [row["id"] for row in result.data] == ["user-tenant-1-0", "user-tenant-1-2"]

    result = await get_users_for_tenant(user_data, "tenant-1", QueryRequest(filters={"email": "CONTRACTOR"}))
    assert [row["name"] for row in result.data] == ["Carol Engineer"]

    empty = await get_users_for_tenant(user_data, "tenant-9", QueryRequest())
    assert empty.data == [] and empty.meta.total_pages == 0


@pytest.mark.asyncio
async def test_sort_by_roles(user_data):
    result = await get_users_for_tenant(user_data, "tenant-1", QueryRequest(sort=SortSpec(field="roles")))
    assert [row["roles"][0] for row in result.data] == ["Engineer", "Member", "Owner"]


@pytest.mark.asyncio
async def test_all_users_with_unknown_tenant(user_data):
    rows = {row["id"]: row for row in await get_all_users(user_data)}
    assert rows["user-tenant-1-0"]["tenant_name"] == "Acme Logistics"
    assert rows["user-ghost-0"]["tenant_name"] == "Unknown Tenant"


def test_find_owner_for_tenant():
    users = [
        User(id="u1", tenant_id="t1", name="A", email="a@x", roles=["Member"]),
        User(id="u2", tenant_id="t2", name="B", email="b@x", roles=["Owner"]),
        User(id="u3", tenant_id="t1", name="C", email="c@x", roles=["Engineer", "Owner"]),
        User(id="u4", tenant_id="t1", name="D", email="d@x", roles=["Owner"]),
    ]
    assert find_owner_for_tenant("t1", users).id == "u3"
    assert find_owner_for_tenant("t3", users) is None


@pytest.mark.asyncio
async def test_add_update_delete_user(user_data):
    added = await add_user(user_data, UserIn(tenant_id="tenant-1", name="Eve", email="eve@acme.example.com"))
    assert added.success
    assert added.data["id"] == "user-tenant-1-3"
    assert added.data["roles"] == ["Member"]

    unknown = await add_user(user_data, UserIn(tenant_id="nope", name="Eve", email="eve@acme.example.com"))
    assert unknown.message == "Tenant with ID nope not found"

    updated = await update_user(user_data, UserUpdate(id="user-tenant-1-3", tenant_id="tenant-1", name="Eve",
                                                      email="eve@acme.example.com", roles=["Owner"],
                                                      ip_whitelist=["10.0.0.0/8"]))
    assert updated.success
    assert updated.data["roles"] == ["Owner"]
    assert updated.data["ip_whitelist"] == ["10.0.0.0/8"]

    assert (await delete_user(user_data, "user-tenant-1-3")).success
    assert not (await delete_user(user_data, "user-tenant-1-3")).success


def test_user_email_is_validated():
    with pytest.raises(ValueError):
        UserIn(tenant_id="tenant-1", name="Eve", email="not-an-email")


@pytest.mark.asyncio
async def test_update_user_rejects_unknown_tenant(user_data):
    result = await update_user(user_data, UserUpdate(id="user-tenant-1-1", tenant_id="ghost", name="Bob Member",
                                                     email="bob@acme.example.com"))
    assert not result.success
    assert result.message == "Tenant with ID ghost not found"

    users = await get_users_for_tenant(user_data, "tenant-1", QueryRequest())
    assert users.meta.total == 3


@pytest.mark.asyncio
async def test_update_user_returns_tenant_name(user_data):
    result = await update_user(user_data, UserUpdate(id="user-tenant-1-1", tenant_id="tenant-1", name="Bob M.",
                                                     email="bob@acme.example.com"))
    assert result.success
    assert result.data["tenant_name"] == "Acme Logistics"
