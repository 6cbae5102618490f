"""
Device Service - tenant devices, unregistered stock and assignment
"""
import logging
from typing import Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.database.models import Device, Tenant, DeviceStatus
from dashboard.schemas.query import QueryRequest, QueryResult
from dashboard.schemas.validation import DeviceIn, DeviceUpdate
from dashboard.services.latency import simulate_latency
from dashboard.services.query_engine import EntityQuery, query
from dashboard.services.results import ItemResult, not_found, store_operation

DEVICE_TYPES = [
    {"name": "AG10", "option": "Standard", "description": "Edge AI gateway"},
    {"name": "AR10", "option": "Standard", "description": "Compact edge router"},
    {"name": "AX11", "option": "Standard", "description": "Extended I/O controller"},
    {"name": "AC15", "option": "Standard", "description": "Camera controller"},
    {"name": "AB11", "option": "Standard", "description": "Battery powered sensor box"},
]

DEVICE_QUERY = EntityQuery(
    name="device",
    text_fields=frozenset({"name"}),
)


def device_row(device: Device, tenant_name: Optional[str] = None) -> Dict:
    return {
        "id": device.id,
        "tenant_id": device.tenant_id,
        "tenant_name": tenant_name,
        "name": device.name,
        "type": device.type,
        "serial_no": device.serial_no,
        "description": device.description or "",
        "status": device.status,
        "attributes": [dict(item) for item in (device.attributes or [])],
        "is_unregistered": device.tenant_id is None,
    }


async def _device_rows(session: AsyncSession, tenant_id: Optional[str] = None) -> List[Dict]:
    """
    Tenant devices with their tenant name, followed by unregistered devices.
    Devices pointing at a tenant that no longer exists are skipped.
    """
    names_result = await session.execute(select(Tenant.id, Tenant.name))
    names = {tid: name for tid, name in names_result.all()}

    stmt = select(Device)
    if tenant_id is not None:
        stmt = stmt.where(Device.tenant_id == tenant_id)
    result = await session.execute(stmt)

    assigned, unregistered = [], []
    for device in result.scalars().all():
        if device.tenant_id is None:
            unregistered.append(device_row(device))
        elif device.tenant_id in names:
            assigned.append(device_row(device, names[device.tenant_id]))
    return assigned + unregistered


async def get_devices(session: AsyncSession, request: QueryRequest) -> QueryResult:
    """Paginated devices across tenants, unregistered ones included."""
    await simulate_latency()
    rows = await _device_rows(session)
    return query(rows, request, DEVICE_QUERY)


async def get_devices_for_tenant(session: AsyncSession, tenant_id: str, request: QueryRequest) -> QueryResult:
    await simulate_latency()
    if await session.get(Tenant, tenant_id) is None:
        return QueryResult.empty(request)
    rows = await _device_rows(session, tenant_id=tenant_id)
    return query(rows, request, DEVICE_QUERY)


async def get_all_devices(session: AsyncSession) -> List[Dict]:
    await simulate_latency()
    return await _device_rows(session)


async def get_device_types() -> List[Dict]:
    await simulate_latency()
    return [dict(item) for item in DEVICE_TYPES]


@store_operation("adding device")
async def add_device(session: AsyncSession, payload: DeviceIn) -> ItemResult:
    await simulate_latency()

    tenant_name = None
    if payload.tenant_id is not None:
        tenant = await session.get(Tenant, payload.tenant_id)
        if tenant is None:
            return not_found("Tenant", payload.tenant_id)
        tenant_name = tenant.name

    if payload.id:
        device_id = payload.id
    elif payload.tenant_id:
        device_id = f"device-{payload.tenant_id}-{payload.serial_no or payload.name}"
    else:
        device_id = f"unregistered-device-{payload.serial_no or payload.name}"

    if await session.get(Device, device_id) is not None:
        return ItemResult(None, False, f"Device with ID {device_id} already exists")

    device = Device(id=device_id, **payload.model_dump(exclude={"id"}))
    session.add(device)
    await session.commit()
    return ItemResult(device_row(device, tenant_name), True)


@store_operation("updating device")
async def update_device(session: AsyncSession, payload: DeviceUpdate) -> ItemResult:
    await simulate_latency()

    device = await session.get(Device, payload.id)
    if device is None:
        return not_found("Device", payload.id)

    tenant_name = None
    if payload.tenant_id is not None:
        tenant = await session.get(Tenant, payload.tenant_id)
        if tenant is None:
            return not_found("Tenant", payload.tenant_id)
        tenant_name = tenant.name

    for key, value in payload.model_dump(exclude={"id"}).items():
        setattr(device, key, value)
    await session.commit()
    return ItemResult(device_row(device, tenant_name), True)


@store_operation("deleting device", failure_data=False)
async def delete_device(session: AsyncSession, device_id: str) -> ItemResult:
    await simulate_latency()

    device = await session.get(Device, device_id)
    if device is None:
        return not_found("Device", device_id, data=False)

    await session.delete(device)
    await session.commit()
    return ItemResult(True, True)


@store_operation("assigning device")
async def assign_device_to_tenant(session: AsyncSession, device_id: str, tenant_id: str) -> ItemResult:
    """Hand an unregistered device over to a tenant; its status becomes Assigned."""
    await simulate_latency()

    device = await session.get(Device, device_id)
    if device is None:
        return not_found("Device", device_id)
    if device.tenant_id is not None:
        return ItemResult(None, False, f"Device {device_id} is already assigned to {device.tenant_id}")

    tenant = await session.get(Tenant, tenant_id)
    if tenant is None:
        return not_found("Tenant", tenant_id)

    device.tenant_id = tenant_id
    device.status = DeviceStatus.assigned.value
    await session.commit()

    logging.info(f"Device {device_id} assigned to tenant {tenant_id}")
    return ItemResult(device_row(device, tenant.name), True)
