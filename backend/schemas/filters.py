# backend/schemas/filters.py
import enum
from datetime import datetime
from typing import Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from models.product import ProductType
from utils.errors import FilterValidationError

DEFAULT_LIMIT = 20
MAX_LIMIT = 100

# Filters only an admin session may apply; silently dropped for everyone else
ADMIN_ONLY_PARAMS = (
    "titleSearch",
    "createdAfter",
    "createdBefore",
    "updatedAfter",
    "updatedBefore",
    "active",
)


class SortField(str, enum.Enum):
    PRICE = "price"
    CREATED_AT = "createdAt"
    UPDATED_AT = "updatedAt"
    TITLE = "title"
    ACTIVE = "active"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


class ProductFilters(BaseModel):
    """Normalized product listing filters.

    ``is_admin`` comes from the server-side session, never from the query string.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    is_admin: bool = False
    product_type: Optional[ProductType] = Field(None, alias="productType")
    cursor: int = Field(0, ge=0)
    limit: int = Field(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT)
    min_price: Optional[int] = Field(None, ge=0, alias="minPrice")
    max_price: Optional[int] = Field(None, ge=0, alias="maxPrice")
    tags: Optional[List[str]] = None
    search: Optional[str] = None

    # Admin only
    title_search: Optional[str] = Field(None, alias="titleSearch")
    created_after: Optional[datetime] = Field(None, alias="createdAfter")
    created_before: Optional[datetime] = Field(None, alias="createdBefore")
    updated_after: Optional[datetime] = Field(None, alias="updatedAfter")
    updated_before: Optional[datetime] = Field(None, alias="updatedBefore")
    active: Optional[bool] = None

    sort_by: SortField = Field(SortField.CREATED_AT, alias="sortBy")
    sort_order: SortOrder = Field(SortOrder.DESC, alias="sortOrder")

    @property
    def needs_price_join(self) -> bool:
        return (
            self.min_price is not None
            or self.max_price is not None
            or self.sort_by == SortField.PRICE
        )


def _split_tags(raw: str) -> Optional[List[str]]:
    tags: List[str] = []
    for chunk in raw.split(","):
        tag = chunk.strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tags or None


def _parse_limit(raw: Optional[str]) -> int:
    if raw is None or raw.strip() == "":
        return DEFAULT_LIMIT
    try:
        limit = int(raw)
    except ValueError:
        raise FilterValidationError("limit must be an integer", field="limit")
    # Out-of-range values fall back to the default instead of failing the request
    if limit < 1 or limit > MAX_LIMIT:
        return DEFAULT_LIMIT
    return limit


def build_product_filters(params: Mapping[str, str], is_admin: bool) -> ProductFilters:
    """Validate raw query parameters into a ``ProductFilters`` record.

    Raises FilterValidationError for malformed values. Empty strings count as absent.
    """
    data: Dict[str, object] = {
        key: value for key, value in params.items()
        if value is not None and str(value).strip() != ""
    }
    if not is_admin:
        for key in ADMIN_ONLY_PARAMS:
            data.pop(key, None)

    data["limit"] = _parse_limit(params.get("limit"))
    if "tags" in data:
        tags = _split_tags(str(data["tags"]))
        if tags is None:
            data.pop("tags")
        else:
            data["tags"] = tags
    for key in ("search", "titleSearch"):
        if key in data:
            data[key] = str(data[key]).strip()
    data["is_admin"] = is_admin

    try:
        filters = ProductFilters.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"])
        raise FilterValidationError(f"Invalid value for {field}: {first['msg']}", field=field) from e

    if not is_admin and filters.product_type is None:
        raise FilterValidationError("productType is required", field="productType")
    return filters
