# backend/schemas/product.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from models.product import ProductType


# Base configuration: camelCase on the wire, snake_case in Python
class APIModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Shown in listings; identical for public and admin callers
class ProductListItem(APIModel):
    id: str
    title: str
    description: str
    price: int
    thumbnail_url: str
    tags: Optional[List[str]] = None
    created_at: datetime
    updated_at: datetime
    active: bool


class ProductVariantPhotoOut(APIModel):
    id: str
    url: str
    sort_order: int
    featured: bool


class ProductVariantAssetOut(APIModel):
    url: Optional[str] = None
    name: str
    type: str
    size: int


class ProductVariantOut(APIModel):
    id: str
    title: str
    price: int
    sort_order: int
    photos: List[ProductVariantPhotoOut]
    # Admin only
    digital_asset: Optional[ProductVariantAssetOut] = None
    active: Optional[bool] = None


class ProductOut(APIModel):
    id: str
    title: str
    description: str
    tags: List[str]
    thumbnail_url: str
    featured_image_id: str
    variants: List[ProductVariantOut]
    # Admin only
    active: Optional[bool] = None


class ProductListPage(APIModel):
    products: List[ProductListItem]
    next_cursor: Optional[int] = None
    count: int


class ProductResponse(APIModel):
    product: ProductOut


class ProductCreated(APIModel):
    product_id: str


# ---- Creation form payload (JSON parts of the multipart request) ----

class PhotoPayload(APIModel):
    id: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    sort_order: int = 0


class VariantPayload(APIModel):
    title: str = Field(..., min_length=1)
    price: int = Field(..., ge=0)
    sort_order: int = 0
    active: bool = True
    metadata: Dict[str, Any] = Field(default_factory=dict)
    digital_asset_file_name: Optional[str] = None
    photos: List[PhotoPayload] = Field(..., min_length=1)


class ProductCreatePayload(APIModel):
    type: ProductType
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    tags: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    active: bool = True
    featured_image_id: str = Field(..., min_length=1)
    variants: List[VariantPayload] = Field(..., min_length=1)
