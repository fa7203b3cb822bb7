# backend/routes/products.py
import json
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile, status
from pydantic import ValidationError
from sqlalchemy.orm import Session

from database import get_db
from models.users import User
from repository.product import PhotoDraft, ProductDraft, ProductRepository, VariantDraft
from schemas.filters import build_product_filters
from schemas.product import (
    ProductCreated, ProductCreatePayload, ProductListPage, ProductResponse,
)
from utils.errors import ProductCreationError, ProductValidationError
from utils.file_storage import FileService
from utils.product_mapper import to_list_item, to_product_view
from utils.tokenJWT import get_optional_user, require_admin

router = APIRouter(prefix="/products", tags=["Products"])
logger = logging.getLogger(__name__)


def get_product_repository(db: Session = Depends(get_db)) -> ProductRepository:
    return ProductRepository(db)


def get_file_service(request: Request) -> FileService:
    return request.app.state.file_service


# ---- HELPERS ----
def _parse_json_field(raw: str, name: str):
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise HTTPException(status_code=400, detail=f"{name} must be valid JSON")


def _files_by_name(files: Optional[List[UploadFile]]) -> Dict[str, UploadFile]:
    indexed: Dict[str, UploadFile] = {}
    for f in files or []:
        if f.filename:
            indexed[f.filename] = f
    return indexed


def _upload_draft(
    payload: ProductCreatePayload,
    photos: Dict[str, UploadFile],
    assets: Dict[str, UploadFile],
    file_service: FileService,
    uploaded: List[str],
) -> ProductDraft:
    """Upload every referenced file and resolve the payload into a draft.

    Every stored URL is appended to ``uploaded`` so the caller can clean up.
    """
    featured_bytes: Optional[bytes] = None
    featured_name = ""
    variants: List[VariantDraft] = []

    for variant in payload.variants:
        asset_url, asset_name, asset_size = "", "", 0
        if variant.digital_asset_file_name:
            asset = assets.get(variant.digital_asset_file_name)
            if asset is None:
                raise HTTPException(status_code=400, detail=f"Missing digital asset file {variant.digital_asset_file_name}")
            # Variants may share one uploaded asset
            asset.file.seek(0)
            data = asset.file.read()
            asset_url = file_service.upload_file(asset.filename, data, asset.content_type)
            uploaded.append(asset_url)
            asset_name, asset_size = asset.filename, len(data)

        photo_drafts: List[PhotoDraft] = []
        for photo in variant.photos:
            upload = photos.get(photo.file_name)
            if upload is None:
                raise HTTPException(status_code=400, detail=f"Missing photo file {photo.file_name}")
            if upload.content_type not in ("image/jpeg", "image/png", "image/gif", "image/webp"):
                raise HTTPException(status_code=400, detail=f"Invalid file type for {photo.file_name}")
            upload.file.seek(0)
            data = upload.file.read()
            url = file_service.upload_file(upload.filename, data, upload.content_type)
            uploaded.append(url)
            if photo.id == payload.featured_image_id:
                featured_bytes, featured_name = data, upload.filename
            photo_drafts.append(PhotoDraft(temp_id=photo.id, url=url, sort_order=photo.sort_order))

        variants.append(VariantDraft(
            title=variant.title,
            price=variant.price,
            digital_asset_url=asset_url,
            digital_asset_file_name=asset_name,
            digital_asset_size=asset_size,
            sort_order=variant.sort_order,
            active=variant.active,
            metadata=variant.metadata,
            photos=photo_drafts,
        ))

    if featured_bytes is None:
        raise HTTPException(status_code=400, detail="featuredImageId does not match any submitted photo")
    thumbnail_url = file_service.create_thumbnail(featured_name, featured_bytes)
    uploaded.append(thumbnail_url)

    return ProductDraft(
        type=payload.type,
        title=payload.title,
        description=payload.description,
        thumbnail_url=thumbnail_url,
        featured_image_id=payload.featured_image_id,
        variants=variants,
        tags=payload.tags,
        metadata=payload.metadata,
        active=payload.active,
    )


# =========================
# LIST PRODUCTS
# =========================
@router.get("", response_model=ProductListPage)
def list_products(
    request: Request,
    repository: ProductRepository = Depends(get_product_repository),
    current_user: Optional[User] = Depends(get_optional_user),
):
    is_admin = bool(current_user and current_user.is_admin)
    filters = build_product_filters(dict(request.query_params), is_admin)

    page = repository.get_products(filters)
    return ProductListPage(
        products=[to_list_item(p) for p in page.products],
        next_cursor=page.next_cursor,
        count=page.total_count,
    )


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=ProductResponse, response_model_exclude_none=True)
def get_product(
    product_id: str,
    repository: ProductRepository = Depends(get_product_repository),
    current_user: Optional[User] = Depends(get_optional_user),
):
    is_admin = bool(current_user and current_user.is_admin)
    detailed = repository.get_product(product_id, is_admin)
    if detailed is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductResponse(product=to_product_view(detailed, is_admin))


# =========================
# CREATE PRODUCT
# =========================
@router.post("", response_model=ProductCreated, status_code=status.HTTP_201_CREATED)
def create_product(
    title: str = Form(...),
    description: str = Form(...),
    type: str = Form(...),
    featuredImageId: str = Form(...),
    variants: str = Form(...),
    tags: str = Form("[]"),
    metadata: str = Form("{}"),
    active: bool = Form(True),
    photos: List[UploadFile] = File(...),
    assets: Optional[List[UploadFile]] = File(None),
    repository: ProductRepository = Depends(get_product_repository),
    file_service: FileService = Depends(get_file_service),
    current_user: User = Depends(require_admin),
):
    try:
        payload = ProductCreatePayload.model_validate({
            "type": type,
            "title": title,
            "description": description,
            "featuredImageId": featuredImageId,
            "variants": _parse_json_field(variants, "variants"),
            "tags": _parse_json_field(tags, "tags"),
            "metadata": _parse_json_field(metadata, "metadata"),
            "active": active,
        })
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    uploaded: List[str] = []
    try:
        draft = _upload_draft(payload, _files_by_name(photos), _files_by_name(assets), file_service, uploaded)
        product_id = repository.create_product(draft)
    except Exception as e:
        # Nothing was committed, so every stored file is an orphan
        for url in uploaded:
            try:
                file_service.delete_file(url)
            except Exception:
                logger.exception("Failed to remove orphaned upload %s", url)
        if isinstance(e, ProductValidationError):
            raise HTTPException(status_code=400, detail=str(e))
        if isinstance(e, ProductCreationError):
            raise HTTPException(status_code=500, detail="Failed to create product")
        raise
    finally:
        for f in list(photos) + list(assets or []):
            f.file.close()

    logger.info("Product %s created by %s", product_id, current_user.email)
    return ProductCreated(product_id=str(product_id))
