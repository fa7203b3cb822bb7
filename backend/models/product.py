# backend/models/product.py
import enum
import uuid

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, DateTime, Enum, ForeignKey,
    Integer, Text, Uuid, func,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB
from sqlalchemy.orm import relationship

from database import Base

# Tags are a native TEXT[] on PostgreSQL; SQLite (local runs, tests) stores a JSON list
TagList = ARRAY(Text).with_variant(JSON(), "sqlite")
Metadata = JSON().with_variant(JSONB(), "postgresql")


class ProductType(str, enum.Enum):
    DIGITAL_PRINTABLE = "DIGITAL_PRINTABLE"
    WEDDING_INVITATION = "WEDDING_INVITATION"


# A catalog product. Its price is not stored here: it belongs to the
# variant that owns the featured photo.
class Product(Base):
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    thumbnail_url = Column(Text, nullable=False)

    # Set as the last step of creation, after the photo row exists
    featured_photo_id = Column(
        Uuid,
        ForeignKey("variant_photos.id", use_alter=True, name="fk_products_featured_photo"),
        nullable=True,
    )

    active = Column("is_active", Boolean, nullable=False, default=True, index=True)
    meta = Column("metadata", Metadata, nullable=False, default=dict)
    tags = Column(TagList, nullable=True)
    type = Column(Enum(ProductType, name="product_type"), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        foreign_keys="ProductVariant.product_id",
    )


class ProductVariant(Base):
    __tablename__ = "product_variants"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    title = Column(Text, nullable=False)

    # Smallest currency unit
    price = Column(Integer, CheckConstraint("price >= 0"), nullable=False)

    digital_asset_file_name = Column(Text, nullable=False)
    digital_asset_size = Column(Integer, nullable=False)
    digital_asset_url = Column(Text, nullable=False)

    active = Column("is_active", Boolean, nullable=False, default=True)
    meta = Column("metadata", Metadata, nullable=False, default=dict)
    sort_order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="variants", foreign_keys=[product_id])
    photos = relationship("VariantPhoto", back_populates="variant", cascade="all, delete-orphan")


class VariantPhoto(Base):
    __tablename__ = "variant_photos"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    variant_id = Column(Uuid, ForeignKey("product_variants.id"), nullable=False, index=True)
    url = Column(Text, nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    variant = relationship("ProductVariant", back_populates="photos")
