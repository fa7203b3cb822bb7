# backend/utils/product_mapper.py
import logging

from repository.product import DetailedProduct, DetailedVariant
from schemas.product import (
    ProductListItem, ProductOut, ProductVariantAssetOut, ProductVariantOut,
    ProductVariantPhotoOut,
)
from utils.errors import DataIntegrityError

logger = logging.getLogger(__name__)

FILE_TYPES = {
    "jpg": "image",
    "jpeg": "image",
    "png": "image",
    "gif": "image",
    "pdf": "pdf",
    "zip": "zip",
    "mp4": "video",
    "mp3": "audio",
}


def file_type_from_name(file_name: str) -> str:
    if not file_name or "." not in file_name:
        return "unknown"
    extension = file_name.rsplit(".", 1)[1].lower()
    return FILE_TYPES.get(extension, "unknown")


def _graph_context(detailed: DetailedProduct) -> dict:
    return {
        "product_id": str(detailed.product.id),
        "featured_photo_id": str(detailed.product.featured_photo_id),
        "variants": [
            {"id": str(v.variant.id), "photos": [str(p.id) for p in v.photos]}
            for v in detailed.variants
        ],
    }


def _featured_variant(detailed: DetailedProduct) -> DetailedVariant:
    featured_id = detailed.product.featured_photo_id
    for variant in detailed.variants:
        if any(photo.id == featured_id for photo in variant.photos):
            return variant

    context = _graph_context(detailed)
    logger.error("No variant owns the featured photo", extra={"product_graph": context})
    raise DataIntegrityError(
        "Unable to map product to list item: no variant owns the featured photo", context
    )


def to_list_item(detailed: DetailedProduct) -> ProductListItem:
    product = detailed.product
    owner = _featured_variant(detailed)
    featured_photo = next(p for p in owner.photos if p.id == product.featured_photo_id)

    return ProductListItem(
        id=str(product.id),
        title=product.title,
        description=product.description,
        price=owner.variant.price,
        thumbnail_url=featured_photo.url,
        tags=product.tags,
        created_at=product.created_at,
        updated_at=product.updated_at,
        active=product.active,
    )


def to_product_view(detailed: DetailedProduct, is_admin: bool = False) -> ProductOut:
    product = detailed.product
    if product.featured_photo_id is None:
        context = _graph_context(detailed)
        logger.error("Product has no featured photo id", extra={"product_graph": context})
        raise DataIntegrityError("Unable to map product: missing featured photo id", context)
    _featured_variant(detailed)

    variants = []
    for entry in detailed.variants:
        variant = entry.variant
        photos = [
            ProductVariantPhotoOut(
                id=str(photo.id),
                url=photo.url,
                sort_order=photo.sort_order,
                featured=photo.id == product.featured_photo_id,
            )
            for photo in entry.photos
        ]
        out = ProductVariantOut(
            id=str(variant.id),
            title=variant.title,
            price=variant.price,
            sort_order=variant.sort_order,
            photos=photos,
        )
        if is_admin:
            out.digital_asset = ProductVariantAssetOut(
                url=variant.digital_asset_url,
                name=variant.digital_asset_file_name,
                type=file_type_from_name(variant.digital_asset_file_name),
                size=variant.digital_asset_size,
            )
            out.active = variant.active
        variants.append(out)

    return ProductOut(
        id=str(product.id),
        title=product.title,
        description=product.description,
        tags=product.tags or [],
        thumbnail_url=product.thumbnail_url,
        featured_image_id=str(product.featured_photo_id),
        variants=variants,
        active=product.active if is_admin else None,
    )
