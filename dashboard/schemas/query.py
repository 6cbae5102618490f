import re
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def to_snake(name: str) -> str:
    """nextBillingFrom -> next_billing_from; dotted paths are converted per segment."""
    return ".".join(_CAMEL_BOUNDARY.sub("_", part).lower() for part in name.split("."))


class SortSpec(BaseModel):
    field: str
    order: Literal["asc", "desc"] = "asc"

    @field_validator("field", mode="before")
    def normalize_field(cls, v):
        if isinstance(v, str):
            return to_snake(v.strip())
        return v

    @field_validator("order", mode="before")
    def normalize_order(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @property
    def descending(self) -> bool:
        return self.order == "desc"


class QueryRequest(BaseModel):
    page: int = Field(default=1, ge=1, description="1-based page number")
    limit: int = Field(default=10, ge=0, description="Page size; 0 yields no pages")
    filters: Dict[str, Any] = Field(default_factory=dict)
    sort: Optional[SortSpec] = None

    @field_validator("filters", mode="before")
    def normalize_filter_keys(cls, v):
        if v is None:
            return {}
        if isinstance(v, dict):
            return {to_snake(str(key)): value for key, value in v.items()}
        return v


class QueryMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class QueryResult(BaseModel):
    data: List[Any]
    meta: QueryMeta

    @classmethod
    def empty(cls, request: QueryRequest) -> "QueryResult":
        return cls(data=[], meta=QueryMeta(total=0, page=request.page, limit=request.limit, total_pages=0))
