from datetime import date
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from dashboard.database.models import (
    PaymentType, SubscriptionType, SubscriptionStatus, DeviceStatus,
    UserRoleName, Language, END_OF_MONTH
)


class _Payload(BaseModel):
    model_config = ConfigDict(use_enum_values=True)


class DeviceContractItem(_Payload):
    type: str = Field(min_length=1, description="Device type name")
    quantity: int = Field(gt=0, description="Positive quantity")


class BillingIn(_Payload):
    id: Optional[str] = None
    tenant_id: str
    payment_type: PaymentType = PaymentType.monthly.value
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    due_day: Optional[Union[int, str]] = None
    due_month: Optional[int] = Field(default=None, ge=1, le=12)
    device_contract: List[DeviceContractItem] = Field(default_factory=list)
    description: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    def empty_date(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("due_day", mode="before")
    def parse_due_day(cls, v):
        if v is None or v == "":
            return None
        if isinstance(v, str):
            compact = v.replace(" ", "").lower()
            if compact == END_OF_MONTH.lower():
                return END_OF_MONTH
            assert compact.isdigit(), "Must be a day number or EndOfMonth"
            v = int(compact)
        day = int(v)
        assert 1 <= day <= 31, "Day of month must be 1-31"
        return str(day)


class BillingUpdate(BillingIn):
    id: str


class ContactIn(_Payload):
    first_name: str = ""
    last_name: str = ""
    department: str = ""
    language: Language = Language.english.value
    email: str = ""
    phone_office: str = ""
    phone_mobile: str = ""
    company: str = ""
    address1: str = ""
    address2: str = ""
    city: str = ""
    state_prefecture: str = ""
    country: str = ""
    postal_code: str = ""


class TenantIn(_Payload):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    description: str = ""
    contact: ContactIn = Field(default_factory=ContactIn)


class TenantUpdate(TenantIn):
    id: str


class SubscriptionIn(_Payload):
    id: Optional[str] = None
    name: str = Field(min_length=1)
    description: str = ""
    type: SubscriptionType = SubscriptionType.evergreen.value
    status: SubscriptionStatus = SubscriptionStatus.active.value
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    enabled_app_dms: bool = False
    enabled_app_evms: bool = False
    enabled_app_cvr: bool = False
    enabled_app_aiams: bool = False
    config_ssh_terminal: bool = False
    config_aiapp_installer: bool = False

    @field_validator("start_date", "end_date", mode="before")
    def empty_date(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v


class AttributeItem(_Payload):
    key: str
    value: str


class DeviceIn(_Payload):
    id: Optional[str] = None
    tenant_id: Optional[str] = None
    name: str = Field(min_length=1)
    type: str = Field(min_length=1)
    serial_no: str = ""
    description: str = ""
    status: DeviceStatus = DeviceStatus.registered.value
    attributes: List[AttributeItem] = Field(default_factory=list)


class DeviceUpdate(DeviceIn):
    id: str


class UserIn(_Payload):
    id: Optional[str] = None
    tenant_id: str
    name: str = Field(min_length=1)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+$")
    roles: List[UserRoleName] = Field(default_factory=lambda: [UserRoleName.member.value])
    ip_whitelist: List[str] = Field(default_factory=list)
    mfa_enabled: bool = False


class UserUpdate(UserIn):
    id: str
