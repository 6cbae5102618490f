"""
Mock data for the in-memory store.

Everything is drawn from one random.Random, so the same seed and the same
reference day give the same data set.
"""
import logging
import random
from collections import Counter
from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from dashboard.database.models import (
    Subscription, Tenant, Device, User, BillingRecord,
    PaymentType, SubscriptionType, SubscriptionStatus, DeviceStatus,
    UserRoleName, Language, END_OF_MONTH
)

DEVICE_TYPE_NAMES = ["AG10", "AR10", "AX11", "AC15", "AB11"]

PLAN_NAMES = ["Basic", "Standard", "Premium", "Enterprise"]

COMPANY_WORDS = [
    "Apex", "Blue", "Cedar", "Delta", "Ember", "Falcon", "Granite", "Harbor",
    "Iris", "Juniper", "Kite", "Lumen", "Maple", "Nova", "Orbit", "Pioneer",
]
COMPANY_SUFFIXES = ["Systems", "Logistics", "Holdings", "Labs", "Industries", "Works"]

EN_FIRST_NAMES = ["James", "Mary", "Robert", "Linda", "Michael", "Sarah", "David", "Emma", "Daniel", "Olivia"]
EN_LAST_NAMES = ["Smith", "Johnson", "Brown", "Taylor", "Miller", "Wilson", "Moore", "Clark", "Hall", "Young"]
EN_CITIES = [("Seattle", "WA"), ("Austin", "TX"), ("Denver", "CO"), ("Boston", "MA"), ("Chicago", "IL")]

JA_FIRST_NAMES = ["太郎", "花子", "健太", "美咲", "翔太", "陽菜", "大輔", "さくら"]
JA_LAST_NAMES = ["佐藤", "鈴木", "高橋", "田中", "伊藤", "渡辺", "山本", "中村"]
JA_CITIES = [("渋谷区", "東京都"), ("大阪市", "大阪府"), ("名古屋市", "愛知県"), ("福岡市", "福岡県")]

DEPARTMENTS = ["IT", "Engineering", "Operations", "Sales", "Facilities"]

ATTRIBUTE_CHOICES = {
    "Connectivity": ["WiFi", "Ethernet", "LTE", "LoRaWAN"],
    "Power": ["AC", "PoE", "Battery", "Solar"],
    "Location": ["Warehouse", "Lobby", "Floor 2", "Server Room", "Parking"],
}


def _random_date(rng: random.Random, around: date, min_days: int, max_days: int) -> date:
    return around + timedelta(days=rng.randint(min_days, max_days))


def _company_name(rng: random.Random) -> str:
    return f"{rng.choice(COMPANY_WORDS)} {rng.choice(COMPANY_SUFFIXES)}"


def _make_subscription(rng: random.Random, index: int, today: date) -> Subscription:
    sub_type = rng.choice(list(SubscriptionType))
    start = _random_date(rng, today, -730, -1)
    return Subscription(
        id=f"subscription-{index}",
        name=f"{rng.choice(PLAN_NAMES)} Plan",
        description=f"{sub_type.value} contract",
        type=sub_type.value,
        status=rng.choices(list(SubscriptionStatus), weights=[0.85, 0.15])[0].value,
        start_date=start,
        end_date=_random_date(rng, today, -60, 730) if sub_type == SubscriptionType.termed else None,
        enabled_app_dms=rng.random() < 0.7,
        enabled_app_evms=rng.random() < 0.5,
        enabled_app_cvr=rng.random() < 0.4,
        enabled_app_aiams=rng.random() < 0.3,
        config_ssh_terminal=rng.random() < 0.5,
        config_aiapp_installer=rng.random() < 0.3,
    )


def _make_tenant(rng: random.Random, index: int, subscription_id: Optional[str]) -> Tenant:
    language = rng.choice(list(Language))
    if language == Language.japanese:
        first, last = rng.choice(JA_FIRST_NAMES), rng.choice(JA_LAST_NAMES)
        city, state = rng.choice(JA_CITIES)
        country, postal = "日本", f"{rng.randint(100, 999)}-{rng.randint(1000, 9999)}"
        email_local = f"contact{index}"
    else:
        first, last = rng.choice(EN_FIRST_NAMES), rng.choice(EN_LAST_NAMES)
        city, state = rng.choice(EN_CITIES)
        country, postal = "USA", f"{rng.randint(10000, 99999)}"
        email_local = f"{first}.{last}".lower()

    company = _company_name(rng)
    domain = company.lower().replace(" ", "") + ".example.com"
    return Tenant(
        id=f"tenant-{index}",
        name=company,
        description=f"{company} managed site",
        language=language.value,
        contact_first_name=first,
        contact_last_name=last,
        contact_department=rng.choice(DEPARTMENTS),
        contact_email=f"{email_local}@{domain}",
        contact_phone_office=f"03-{rng.randint(1000, 9999)}-{rng.randint(1000, 9999)}",
        contact_phone_mobile=f"090-{rng.randint(1000, 9999)}-{rng.randint(1000, 9999)}",
        contact_company=company,
        contact_address1=f"{rng.randint(1, 999)} Main Street",
        contact_address2="",
        contact_city=city,
        contact_state_prefecture=state,
        contact_country=country,
        contact_postal_code=postal,
        subscription_id=subscription_id,
    )


def _make_users(rng: random.Random, tenant: Tenant) -> List[User]:
    users = []
    domain = tenant.contact_email.split("@")[-1]
    for i in range(rng.randint(1, 5)):
        if i == 0 and rng.random() < 0.8:
            roles = [UserRoleName.owner.value]
        else:
            roles = [rng.choice([UserRoleName.engineer.value, UserRoleName.member.value])]
        name = f"{rng.choice(EN_FIRST_NAMES)} {rng.choice(EN_LAST_NAMES)}"
        users.append(User(
            id=f"user-{tenant.id}-{i}",
            tenant_id=tenant.id,
            name=name,
            email=f"{name.lower().replace(' ', '.')}{i}@{domain}",
            roles=roles,
            ip_whitelist=[f"192.168.{rng.randint(0, 255)}.0/24"] if rng.random() < 0.3 else [],
            mfa_enabled=rng.random() < 0.5,
        ))
    return users


def _attributes(rng: random.Random) -> List[Dict[str, str]]:
    keys = rng.sample(sorted(ATTRIBUTE_CHOICES), rng.randint(0, len(ATTRIBUTE_CHOICES)))
    return [{"key": key, "value": rng.choice(ATTRIBUTE_CHOICES[key])} for key in keys]


def _make_device(rng: random.Random, device_id: str, tenant_id: Optional[str], status: DeviceStatus) -> Device:
    device_type = rng.choice(DEVICE_TYPE_NAMES)
    serial = f"{device_type}-{rng.randint(100000, 999999)}"
    return Device(
        id=device_id,
        tenant_id=tenant_id,
        name=f"{device_type} {serial[-4:]}",
        type=device_type,
        serial_no=serial,
        description="",
        status=status.value,
        attributes=_attributes(rng),
    )


def _make_billing(rng: random.Random, tenant_id: str, index: int, device_mix: Counter, today: date) -> BillingRecord:
    payment_type = rng.choice(list(PaymentType))
    start = _random_date(rng, today, -730, -1)
    end = _random_date(rng, today, -90, 1095) if rng.random() < 0.8 else None

    # Contracted quantities drift up to 20% from what is actually installed
    contract = [
        {"type": device_type, "quantity": max(1, round(count * (1 + rng.randint(-20, 20) / 100)))}
        for device_type, count in sorted(device_mix.items())
    ]

    record = BillingRecord(
        id=f"billing-{tenant_id}-{index}",
        tenant_id=tenant_id,
        payment_type=payment_type.value,
        start_date=start,
        end_date=end,
        device_contract=contract,
        description=f"{payment_type.value} billing",
    )
    if payment_type in (PaymentType.monthly, PaymentType.annually):
        record.due_day = END_OF_MONTH if rng.random() < 0.2 else str(rng.randint(1, 28))
    if payment_type == PaymentType.annually:
        record.due_month = rng.randint(1, 12)
    return record


async def seed_mock_data(
    session: AsyncSession,
    tenant_count: int = 100,
    subscription_count: int = 100,
    rng: Optional[random.Random] = None,
    devices_per_tenant: Tuple[int, int] = (10, 100),
    unregistered_devices: int = 20,
    loose_registered_devices: int = 30,
    today: Optional[date] = None
) -> Dict[str, int]:
    """Fill the store with random data; returns the number of rows per entity."""
    rng = rng or random.Random()
    today = today or date.today()

    subscriptions = [_make_subscription(rng, i + 1, today) for i in range(subscription_count)]
    session.add_all(subscriptions)

    counts = Counter()
    counts["subscriptions"] = len(subscriptions)

    for i in range(tenant_count):
        subscription_id = rng.choice(subscriptions).id if subscriptions else None
        tenant = _make_tenant(rng, i + 1, subscription_id)
        session.add(tenant)
        counts["tenants"] += 1

        users = _make_users(rng, tenant)
        session.add_all(users)
        counts["users"] += len(users)

        devices = [
            _make_device(rng, f"device-{tenant.id}-{n}", tenant.id, rng.choice(list(DeviceStatus)))
            for n in range(rng.randint(*devices_per_tenant))
        ]
        session.add_all(devices)
        counts["devices"] += len(devices)

        device_mix = Counter(device.type for device in devices)
        for n in range(rng.randint(1, 3)):
            session.add(_make_billing(rng, tenant.id, n, device_mix, today))
            counts["billing_records"] += 1

    for n in range(unregistered_devices):
        session.add(_make_device(rng, f"unregistered-device-{n}", None, DeviceStatus.registered))
    for n in range(loose_registered_devices):
        session.add(_make_device(rng, f"registered-device-{n}", None, DeviceStatus.registered))
    counts["unregistered_devices"] = unregistered_devices + loose_registered_devices

    await session.commit()

    logging.info(
        f"Mock data seeded: {counts['tenants']} tenants, {counts['subscriptions']} subscriptions, "
        f"{counts['users']} users, {counts['devices']} tenant devices, "
        f"{counts['unregistered_devices']} unregistered devices, {counts['billing_records']} billing records"
    )
    return dict(counts)
