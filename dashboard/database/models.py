import enum
from datetime import date
from typing import Optional, List
from sqlalchemy import String, Boolean, ForeignKey, Integer, Date, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from dashboard.database.core import Base

# Enums
class PaymentType(str, enum.Enum):
    one_time = "One-time"
    monthly = "Monthly"
    annually = "Annually"

class SubscriptionType(str, enum.Enum):
    evergreen = "Evergreen"
    termed = "Termed"

class SubscriptionStatus(str, enum.Enum):
    active = "Active"
    cancelled = "Cancelled"

class DeviceStatus(str, enum.Enum):
    registered = "Registered"
    assigned = "Assigned"
    activated = "Activated"

class UserRoleName(str, enum.Enum):
    owner = "Owner"
    engineer = "Engineer"
    member = "Member"

class Language(str, enum.Enum):
    japanese = "日本語"
    english = "English"

END_OF_MONTH = "EndOfMonth"


# Subscription (contract plan a tenant is attached to)
class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    description: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[SubscriptionType] = mapped_column(String, default=SubscriptionType.evergreen.value)
    status: Mapped[SubscriptionStatus] = mapped_column(String, default=SubscriptionStatus.active.value)
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)  # Termed only

    enabled_app_dms: Mapped[bool] = mapped_column(Boolean, default=False)
    enabled_app_evms: Mapped[bool] = mapped_column(Boolean, default=False)
    enabled_app_cvr: Mapped[bool] = mapped_column(Boolean, default=False)
    enabled_app_aiams: Mapped[bool] = mapped_column(Boolean, default=False)
    config_ssh_terminal: Mapped[bool] = mapped_column(Boolean, default=False)
    config_aiapp_installer: Mapped[bool] = mapped_column(Boolean, default=False)

    tenants: Mapped[List["Tenant"]] = relationship(back_populates="subscription")


class Tenant(Base):
    __tablename__ = "tenants"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(String)
    description: Mapped[Optional[str]] = mapped_column(Text)
    language: Mapped[Language] = mapped_column(String, default=Language.english.value)

    # Contact person, stored flat
    contact_first_name: Mapped[Optional[str]] = mapped_column(String)
    contact_last_name: Mapped[Optional[str]] = mapped_column(String)
    contact_department: Mapped[Optional[str]] = mapped_column(String)
    contact_email: Mapped[Optional[str]] = mapped_column(String)
    contact_phone_office: Mapped[Optional[str]] = mapped_column(String)
    contact_phone_mobile: Mapped[Optional[str]] = mapped_column(String)
    contact_company: Mapped[Optional[str]] = mapped_column(String)
    contact_address1: Mapped[Optional[str]] = mapped_column(String)
    contact_address2: Mapped[Optional[str]] = mapped_column(String)
    contact_city: Mapped[Optional[str]] = mapped_column(String)
    contact_state_prefecture: Mapped[Optional[str]] = mapped_column(String)
    contact_country: Mapped[Optional[str]] = mapped_column(String)
    contact_postal_code: Mapped[Optional[str]] = mapped_column(String)

    subscription_id: Mapped[Optional[str]] = mapped_column(ForeignKey("subscriptions.id"), nullable=True)

    subscription: Mapped[Optional["Subscription"]] = relationship(back_populates="tenants")
    devices: Mapped[List["Device"]] = relationship(back_populates="tenant", cascade="all, delete-orphan")
    users: Mapped[List["User"]] = relationship(back_populates="tenant", cascade="all, delete-orphan")
    billing_records: Mapped[List["BillingRecord"]] = relationship(back_populates="tenant", cascade="all, delete-orphan")


class Device(Base):
    __tablename__ = "devices"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    # NULL tenant = unregistered device waiting for assignment
    tenant_id: Mapped[Optional[str]] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String)
    type: Mapped[str] = mapped_column(String)  # DeviceType name
    serial_no: Mapped[str] = mapped_column(String)
    description: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[DeviceStatus] = mapped_column(String, default=DeviceStatus.registered.value)
    attributes: Mapped[list] = mapped_column(JSON, default=list)  # [{"key": ..., "value": ...}]

    tenant: Mapped[Optional["Tenant"]] = relationship(back_populates="devices")


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String)
    email: Mapped[str] = mapped_column(String)
    roles: Mapped[list] = mapped_column(JSON, default=list)
    ip_whitelist: Mapped[list] = mapped_column(JSON, default=list)
    mfa_enabled: Mapped[bool] = mapped_column(Boolean, default=False)

    tenant: Mapped["Tenant"] = relationship(back_populates="users")


class BillingRecord(Base):
    __tablename__ = "billing_records"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    tenant_id: Mapped[str] = mapped_column(ForeignKey("tenants.id", ondelete="CASCADE"), index=True)
    payment_type: Mapped[PaymentType] = mapped_column(String, default=PaymentType.monthly.value)
    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)  # NULL = evergreen
    due_day: Mapped[Optional[str]] = mapped_column(String, nullable=True)  # "1".."31" or END_OF_MONTH
    due_month: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    device_contract: Mapped[list] = mapped_column(JSON, default=list)  # [{"type": ..., "quantity": ...}]
    description: Mapped[Optional[str]] = mapped_column(Text)

    tenant: Mapped["Tenant"] = relationship(back_populates="billing_records")
