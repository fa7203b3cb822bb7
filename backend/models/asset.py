# backend/models/asset.py
import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, Text, Uuid, func

from database import Base


class EntityType(str, enum.Enum):
    PRODUCT_THUMBNAIL = "product_thumbnail"
    VARIANT_PHOTO = "variant_photo"
    DIGITAL_ASSET = "digital_asset"


# Write-only ledger of every uploaded file and the product or variant it
# is attached to. Nothing on the read path queries it.
class AssetReference(Base):
    __tablename__ = "asset_references"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    url = Column(Text, nullable=False)
    entity_type = Column(
        Enum(EntityType, name="entity_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    entity_id = Column(Uuid, nullable=False, index=True)
    active = Column("is_active", Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
