# backend/repository/product.py
import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Union

from sqlalchemy import and_, func, or_, select, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.sql.expression import ColumnElement

from models.asset import EntityType
from models.product import Product, ProductType, ProductVariant, VariantPhoto
from repository.expressions import tags_overlap
from schemas.filters import ProductFilters, SortField, SortOrder
from utils.audit import write_asset_reference
from utils.errors import ProductCreationError, ProductValidationError

logger = logging.getLogger(__name__)

# Every sortable field except price maps to a products column; price lives on
# the featured variant and is resolved against the joined projection.
SORT_COLUMNS: Dict[SortField, ColumnElement] = {
    SortField.CREATED_AT: Product.created_at,
    SortField.UPDATED_AT: Product.updated_at,
    SortField.TITLE: Product.title,
    SortField.ACTIVE: Product.active,
}


@dataclass
class DetailedVariant:
    variant: ProductVariant
    photos: List[VariantPhoto] = field(default_factory=list)


@dataclass
class DetailedProduct:
    product: Product
    variants: List[DetailedVariant] = field(default_factory=list)


@dataclass
class ProductPage:
    products: List[DetailedProduct]
    next_cursor: Optional[int]
    total_count: int


@dataclass
class PhotoDraft:
    # Temporary id chosen by the client, only used to pick the featured photo
    temp_id: str
    url: str
    sort_order: int = 0


@dataclass
class VariantDraft:
    title: str
    price: int
    digital_asset_url: str
    digital_asset_file_name: str
    digital_asset_size: int
    sort_order: int = 0
    active: bool = True
    metadata: dict = field(default_factory=dict)
    photos: List[PhotoDraft] = field(default_factory=list)


@dataclass
class ProductDraft:
    type: ProductType
    title: str
    description: str
    thumbnail_url: str
    featured_image_id: str
    variants: List[VariantDraft]
    tags: List[str] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)
    active: bool = True


class ProductRepository:
    """Product queries and the creation transaction over one SQLAlchemy session."""

    def __init__(self, db: Session, id_factory: Callable[[], uuid.UUID] = uuid.uuid4):
        self.db = db
        self.id_factory = id_factory

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_product(self, product_id: Union[str, uuid.UUID], is_admin: bool) -> Optional[DetailedProduct]:
        try:
            pid = product_id if isinstance(product_id, uuid.UUID) else uuid.UUID(str(product_id))
        except ValueError:
            logger.debug("Malformed product id %r", product_id)
            return None

        products = self.get_detailed_products([pid], is_admin)
        if not products:
            return None
        detailed = products[0]
        if not is_admin and not detailed.product.active:
            logger.debug("Product %s is inactive, hiding it from a public caller", pid)
            return None
        return detailed

    def get_products(self, filters: ProductFilters) -> ProductPage:
        conditions = self.build_conditions(filters)

        if filters.needs_price_join:
            featured = self.featured_variant_subquery(filters.is_admin)
            if filters.min_price is not None:
                conditions.append(featured.c.price >= filters.min_price)
            if filters.max_price is not None:
                conditions.append(featured.c.price <= filters.max_price)
            stmt = (
                select(Product.id, func.count().over().label("total_count"))
                .select_from(Product)
                .join(featured, featured.c.product_id == Product.id)
            )
            sort_column = featured.c.price if filters.sort_by == SortField.PRICE else SORT_COLUMNS[filters.sort_by]
        else:
            stmt = select(Product.id, func.count().over().label("total_count")).select_from(Product)
            sort_column = SORT_COLUMNS[filters.sort_by]

        direction = sort_column.asc() if filters.sort_order == SortOrder.ASC else sort_column.desc()
        stmt = (
            stmt.where(and_(true(), *conditions))
            .order_by(direction, Product.id.asc())
            .limit(filters.limit)
            .offset(filters.cursor)
        )

        rows = self.db.execute(stmt).all()
        product_ids = [row.id for row in rows]
        total_count = int(rows[0].total_count) if rows else 0

        products = self.get_detailed_products(product_ids, filters.is_admin)

        next_cursor = filters.cursor + len(products)
        return ProductPage(
            products=products,
            next_cursor=next_cursor if next_cursor < total_count else None,
            total_count=total_count,
        )

    def build_conditions(self, filters: ProductFilters) -> List[ColumnElement]:
        conditions: List[ColumnElement] = []

        if not filters.is_admin:
            conditions.append(Product.active.is_(True))
        else:
            if filters.active is not None:
                conditions.append(Product.active.is_(filters.active))
            if filters.created_after:
                conditions.append(Product.created_at >= filters.created_after)
            if filters.created_before:
                conditions.append(Product.created_at <= filters.created_before)
            if filters.updated_after:
                conditions.append(Product.updated_at >= filters.updated_after)
            if filters.updated_before:
                conditions.append(Product.updated_at <= filters.updated_before)
            if filters.title_search:
                conditions.append(Product.title.ilike(f"%{filters.title_search}%"))

        if filters.product_type is not None:
            conditions.append(Product.type == filters.product_type)

        if filters.search:
            like = f"%{filters.search}%"
            conditions.append(or_(Product.title.ilike(like), Product.description.ilike(like)))

        if filters.tags:
            conditions.append(tags_overlap(Product.tags, filters.tags))

        return conditions

    def featured_variant_subquery(self, is_admin: bool):
        """Per product, the price of the variant owning its featured photo."""
        owner = (
            select(ProductVariant.product_id.label("product_id"), ProductVariant.price.label("price"))
            .join(VariantPhoto, VariantPhoto.variant_id == ProductVariant.id)
            .join(
                Product,
                and_(
                    ProductVariant.product_id == Product.id,
                    VariantPhoto.id == Product.featured_photo_id,
                ),
            )
        )
        if not is_admin:
            owner = owner.where(ProductVariant.active.is_(True))
        return owner.subquery("featured_variant")

    def get_detailed_products(self, product_ids: Sequence[uuid.UUID], is_admin: bool) -> List[DetailedProduct]:
        if not product_ids:
            return []

        product_stmt = select(Product).where(Product.id.in_(product_ids))
        if not is_admin:
            product_stmt = product_stmt.where(Product.active.is_(True))
        products = self.db.execute(product_stmt).scalars().all()

        variant_stmt = (
            select(ProductVariant)
            .where(ProductVariant.product_id.in_(product_ids))
            .order_by(ProductVariant.sort_order, ProductVariant.id)
        )
        if not is_admin:
            variant_stmt = variant_stmt.where(ProductVariant.active.is_(True))
        variants = self.db.execute(variant_stmt).scalars().all()

        photos: Sequence[VariantPhoto] = []
        variant_ids = [v.id for v in variants]
        if variant_ids:
            photos = self.db.execute(
                select(VariantPhoto)
                .where(VariantPhoto.variant_id.in_(variant_ids))
                .order_by(VariantPhoto.sort_order, VariantPhoto.id)
            ).scalars().all()

        photos_by_variant: Dict[uuid.UUID, List[VariantPhoto]] = {}
        for photo in photos:
            photos_by_variant.setdefault(photo.variant_id, []).append(photo)

        variants_by_product: Dict[uuid.UUID, List[DetailedVariant]] = {}
        for variant in variants:
            variants_by_product.setdefault(variant.product_id, []).append(
                DetailedVariant(variant=variant, photos=photos_by_variant.get(variant.id, []))
            )

        detailed = [
            DetailedProduct(product=p, variants=variants_by_product.get(p.id, []))
            for p in products
        ]

        # IN (...) gives no ordering guarantee; restore the caller's order
        position = {pid: index for index, pid in enumerate(product_ids)}
        detailed.sort(key=lambda d: position[d.product.id])
        return detailed

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------
    def create_product(self, draft: ProductDraft) -> uuid.UUID:
        """Insert a product with its variants, photos and asset references atomically.

        The featured photo id is generated up front so the photo can be inserted
        with it directly; the product row points at it only once that row exists.
        """
        self._validate_draft(draft)
        db = self.db
        try:
            product = Product(
                id=self.id_factory(),
                title=draft.title,
                description=draft.description,
                thumbnail_url=draft.thumbnail_url,
                active=draft.active,
                meta=draft.metadata or {},
                tags=draft.tags,
                type=draft.type,
            )
            db.add(product)
            db.flush()
            product_id = product.id

            write_asset_reference(
                db, id=self.id_factory(), url=draft.thumbnail_url,
                entity_type=EntityType.PRODUCT_THUMBNAIL, entity_id=product_id,
            )

            new_featured_id = self.id_factory()

            for variant_draft in draft.variants:
                variant = ProductVariant(
                    id=self.id_factory(),
                    product_id=product_id,
                    title=variant_draft.title,
                    price=variant_draft.price,
                    digital_asset_file_name=variant_draft.digital_asset_file_name,
                    digital_asset_size=variant_draft.digital_asset_size,
                    digital_asset_url=variant_draft.digital_asset_url,
                    active=variant_draft.active,
                    meta=variant_draft.metadata or {},
                    sort_order=variant_draft.sort_order,
                )
                db.add(variant)
                db.flush()
                variant_id = variant.id

                if variant_draft.digital_asset_url:
                    write_asset_reference(
                        db, id=self.id_factory(), url=variant_draft.digital_asset_url,
                        entity_type=EntityType.DIGITAL_ASSET, entity_id=variant_id,
                    )

                photos = [
                    VariantPhoto(
                        id=new_featured_id if photo.temp_id == draft.featured_image_id else self.id_factory(),
                        variant_id=variant_id,
                        url=photo.url,
                        sort_order=photo.sort_order,
                    )
                    for photo in variant_draft.photos
                ]
                db.add_all(photos)
                db.flush()

                for photo in photos:
                    write_asset_reference(
                        db, id=self.id_factory(), url=photo.url,
                        entity_type=EntityType.VARIANT_PHOTO, entity_id=variant_id,
                    )
                db.flush()

            product.featured_photo_id = new_featured_id
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Product creation rolled back: %s", e, extra={"title": draft.title})
            raise ProductCreationError("Failed to create product") from e

        logger.info("Created product %s with %d variant(s)", product_id, len(draft.variants))
        return product_id

    @staticmethod
    def _validate_draft(draft: ProductDraft) -> None:
        if not draft.variants:
            raise ProductValidationError("A product needs at least one variant")
        temp_ids = [photo.temp_id for v in draft.variants for photo in v.photos]
        if not temp_ids:
            raise ProductValidationError("A product needs at least one photo")
        if len(set(temp_ids)) != len(temp_ids):
            raise ProductValidationError("Photo ids must be unique")
        if temp_ids.count(draft.featured_image_id) != 1:
            raise ProductValidationError("featuredImageId does not match any submitted photo")
        # Public reads resolve the price and cover image through the featured variant
        owner = next(v for v in draft.variants if any(p.temp_id == draft.featured_image_id for p in v.photos))
        if not owner.active:
            raise ProductValidationError("The featured photo must belong to an active variant")
