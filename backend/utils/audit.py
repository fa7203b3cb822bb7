import uuid
from typing import Optional

from sqlalchemy.orm import Session

from models.asset import AssetReference, EntityType


# Records an uploaded file against its owner. Runs inside the caller's
# transaction: the caller flushes and commits.
def write_asset_reference(
    db: Session, *, url: str, entity_type: EntityType, entity_id: uuid.UUID,
    id: Optional[uuid.UUID] = None, active: bool = True,
) -> AssetReference:
    entry = AssetReference(
        id=id or uuid.uuid4(), url=url, entity_type=entity_type, entity_id=entity_id, active=active,
    )
    db.add(entry)
    return entry
