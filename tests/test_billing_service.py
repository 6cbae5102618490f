import pytest
import pytest_asyncio
from datetime import date

from dashboard.database.models import Tenant, BillingRecord
from dashboard.schemas.query import QueryRequest, SortSpec
from dashboard.schemas.validation import BillingIn, BillingUpdate
from dashboard.services.billing_calendar import DASH, ENDED
from dashboard.services.billing_service import (
    get_billing_items, get_billing_for_tenant, get_all_billing_items,
    add_billing, update_billing, delete_billing
)

AS_OF = date(2024, 1, 15)


@pytest_asyncio.fixture
async def billing_data(async_session):
    async_session.add(Tenant(id="tenant-1", name="Acme Logistics"))
    async_session.add(Tenant(id="tenant-2", name="Blue Harbor"))
    async_session.add_all([
        BillingRecord(
            id="billing-tenant-1-0", tenant_id="tenant-1", payment_type="Monthly",
            start_date=date(2023, 1, 1), end_date=date(2025, 3, 20), due_day="20",
            device_contract=[{"type": "AG10", "quantity": 3}, {"type": "AR10", "quantity": 2}],
        ),
        BillingRecord(
            id="billing-tenant-1-1", tenant_id="tenant-1", payment_type="Annually",
            start_date=date(2023, 2, 1), end_date=date(2026, 1, 31), due_day="1", due_month=3,
            device_contract=[{"type": "AX11", "quantity": 10}],
        ),
        BillingRecord(
            id="billing-tenant-1-2", tenant_id="tenant-1", payment_type="One-time",
            start_date=date(2023, 5, 1), end_date=None, device_contract=[],
        ),
        BillingRecord(
            id="billing-tenant-2-0", tenant_id="tenant-2", payment_type="Monthly",
            start_date=date(2022, 1, 1), end_date=date(2023, 6, 30),
            device_contract=[{"type": "AC15", "quantity": 1}],
        ),
        # Parent tenant does not exist
        BillingRecord(id="billing-ghost-0", tenant_id="ghost", payment_type="Monthly"),
    ])
    await async_session.commit()
    return async_session


@pytest.mark.asyncio
async def test_listing_joins_tenant_and_computes_fields(billing_data):
    result = await get_billing_items(billing_data, QueryRequest(limit=10), as_of=AS_OF)

    assert result.meta.total == 4
    rows = {row["id"]: row for row in result.data}
    assert "billing-ghost-0" not in rows

    monthly = rows["billing-tenant-1-0"]
    assert monthly["tenant_name"] == "Acme Logistics"
    assert monthly["total_devices"] == 5
    assert monthly["next_billing_date"] == "2024-01-20"
    assert monthly["next_billing_month"] == "2024-01"
    assert monthly["contract_period"] == "26 months (809 days)"
    assert monthly["payment_settings"] == "Monthly | Due Day: 20"

    annual = rows["billing-tenant-1-1"]
    assert annual["next_billing_date"] == "2025-12-31"
    assert annual["next_billing_month"] == "2026-01"
    assert annual["payment_settings"] == "Annually | Due Day: 1 | Due Month: March"

    assert rows["billing-tenant-1-2"]["next_billing_date"] == DASH
    assert rows["billing-tenant-1-2"]["contract_period"] == "N/A"

    ended = rows["billing-tenant-2-0"]
    assert ended["next_billing_date"] == DASH
    assert ended["next_billing_month"] == ENDED


@pytest.mark.asyncio
async def test_sort_by_next_billing_tiers(billing_data):
    request = QueryRequest(sort=SortSpec(field="nextBillingMonth", order="asc"))
    result = await get_billing_items(billing_data, request, as_of=AS_OF)
    assert [row["next_billing_month"] for row in result.data] == ["2024-01", "2026-01", DASH, ENDED]

    request = QueryRequest(sort=SortSpec(field="next_billing_date", order="desc"))
    result = await get_billing_items(billing_data, request, as_of=AS_OF)
    assert [row["next_billing_date"] for row in result.data][2:] == ["2025-12-31", "2024-01-20"]


@pytest.mark.asyncio
async def test_sort_alias_contract_start(billing_data):
    request = QueryRequest(sort=SortSpec(field="contractStart"))
    result = await get_billing_items(billing_data, request, as_of=AS_OF)
    assert [row["id"] for row in result.data][0] == "billing-tenant-2-0"


@pytest.mark.asyncio
async def test_next_billing_range_filters(billing_data):
    request = QueryRequest(filters={"nextBillingFrom": "2024-02-01"})
    result = await get_billing_items(billing_data, request, as_of=AS_OF)
    assert [row["id"] for row in result.data] == ["billing-tenant-1-1"]

    request = QueryRequest(filters={"next_billing_to": "2024-12-31"})
    result = await get_billing_items(billing_data, request, as_of=AS_OF)
    assert [row["id"] for row in result.data] == ["billing-tenant-1-0"]


@pytest.mark.asyncio
async def test_unified_search_and_payment_type(billing_data):
    result = await get_billing_items(billing_data, QueryRequest(filters={"unifiedSearch": "acme"}), as_of=AS_OF)
    assert result.meta.total == 3

    result = await get_billing_items(billing_data, QueryRequest(filters={"unified_search": "TENANT-2"}), as_of=AS_OF)
    assert [row["id"] for row in result.data] == ["billing-tenant-2-0"]

    result = await get_billing_items(billing_data, QueryRequest(filters={"payment_type": "Monthly"}), as_of=AS_OF)
    assert result.meta.total == 2


@pytest.mark.asyncio
async def test_billing_for_tenant(billing_data):
    result = await get_billing_for_tenant(billing_data, "tenant-1", QueryRequest(limit=2), as_of=AS_OF)
    assert result.meta.total == 3
    assert result.meta.total_pages == 2
    assert len(result.data) == 2

    missing = await get_billing_for_tenant(billing_data, "nope", QueryRequest(), as_of=AS_OF)
    assert missing.data == []
    assert missing.meta.total == 0


@pytest.mark.asyncio
async def test_export_rows(billing_data):
    rows = await get_all_billing_items(billing_data, as_of=AS_OF)
    assert len(rows) == 4
    first = next(row for row in rows if row["id"] == "billing-tenant-1-0")
    assert first["payment_settings"] == "Monthly"
    assert first["number_of_devices"] == 5
    assert first["device_contract_details"] == "AG10: 3, AR10: 2"
    one_time = next(row for row in rows if row["id"] == "billing-tenant-1-2")
    assert one_time["end_date"] == ""


@pytest.mark.asyncio
async def test_add_update_delete(billing_data):
    payload = BillingIn(
        tenant_id="tenant-1", payment_type="Monthly",
        start_date="2024-01-01", end_date="2025-01-31", due_day="End of Month",
        device_contract=[{"type": "AG10", "quantity": 4}],
    )
    added = await add_billing(billing_data, payload)
    assert added.success
    assert added.data["id"] == "billing-tenant-1-3"
    assert added.data["due_day"] == "EndOfMonth"
    assert added.data["total_devices"] == 4

    update = BillingUpdate(id="billing-tenant-1-3", tenant_id="tenant-1", payment_type="Annually",
                           end_date="2026-06-30", due_month=6)
    updated = await update_billing(billing_data, update)
    assert updated.success
    assert updated.data["payment_type"] == "Annually"

    deleted = await delete_billing(billing_data, "billing-tenant-1-3")
    assert deleted.success and deleted.data is True

    again = await delete_billing(billing_data, "billing-tenant-1-3")
    assert not again.success
    assert again.data is False
    assert again.message == "Billing record with ID billing-tenant-1-3 not found"


@pytest.mark.asyncio
async def test_add_for_unknown_tenant_or_duplicate_id(billing_data):
    result = await add_billing(billing_data, BillingIn(tenant_id="nope"))
    assert not result.success
    assert result.message == "Tenant with ID nope not found"

    result = await add_billing(billing_data, BillingIn(id="billing-tenant-1-0", tenant_id="tenant-1"))
    assert not result.success
    assert "already exists" in result.message


@pytest.mark.asyncio
async def test_store_error_is_reported(billing_data, monkeypatch):
    async def broken_commit():
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(billing_data, "commit", broken_commit)
    result = await add_billing(billing_data, BillingIn(tenant_id="tenant-1"))
    assert not result.success
    assert result.data is None
    assert result.message == "Error adding billing record: disk on fire"


@pytest.mark.asyncio
async def test_update_rejects_unknown_tenant(billing_data):
    result = await update_billing(
        billing_data, BillingUpdate(id="billing-tenant-1-0", tenant_id="ghost", payment_type="Monthly")
    )
    assert not result.success
    assert result.message == "Tenant with ID ghost not found"

    listing = await get_billing_for_tenant(billing_data, "tenant-1", QueryRequest(), as_of=AS_OF)
    assert "billing-tenant-1-0" in [row["id"] for row in listing.data]
