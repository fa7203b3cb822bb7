"""Shared test fixtures."""

import io
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from config import Settings
from database import build_engine, build_session_factory, init_db
from main import create_app
from models.product import Product, ProductType, ProductVariant, VariantPhoto
from models.users import User
from utils.cache import InMemoryStateCache
from utils.file_storage import LocalFileService
from utils.google_oauth import GoogleOAuthClient, GoogleUserInfo, OAuthTokens
from utils.tokenJWT import SESSION_COOKIE, create_session_token


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret",
        ENV="test",
        FRONTEND_URL="http://shop.local",
        CMS_URL="http://cms.local",
        PUBLIC_BASE_URL="http://testserver",
    )


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    init_db(engine)
    yield build_session_factory(engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def file_service(tmp_path) -> LocalFileService:
    return LocalFileService(tmp_path / "media", "http://testserver")


@dataclass
class FakeOAuthClient(GoogleOAuthClient):
    """OAuth client that never leaves the process."""

    user_info: Optional[GoogleUserInfo] = None
    tokens: OAuthTokens = field(
        default_factory=lambda: OAuthTokens(access_token="access-1", refresh_token="refresh-1")
    )
    fail_exchange: bool = False
    exchanged: List[Tuple[str, str]] = field(default_factory=list)
    refreshed: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        super().__init__("client-id", "client-secret", "http://testserver/auth/callback")

    async def exchange_code(self, code: str, code_verifier: str) -> OAuthTokens:
        if self.fail_exchange:
            raise httpx.ConnectError("token endpoint down")
        self.exchanged.append((code, code_verifier))
        return self.tokens

    async def refresh(self, refresh_token: str) -> OAuthTokens:
        self.refreshed.append(refresh_token)
        return OAuthTokens(access_token="access-2", refresh_token="refresh-2")

    async def get_user_info(self, access_token: str) -> GoogleUserInfo:
        return self.user_info or GoogleUserInfo(
            sub="google-1", email="jane@example.com", name="Jane", picture="http://img/jane.png",
        )


@pytest.fixture
def oauth_client() -> FakeOAuthClient:
    return FakeOAuthClient()


@pytest.fixture
def state_cache() -> InMemoryStateCache:
    return InMemoryStateCache()


@pytest.fixture
def app(settings, session_factory, file_service, state_cache, oauth_client):
    return create_app(
        settings,
        session_factory=session_factory,
        file_service=file_service,
        state_cache=state_cache,
        oauth_client=oauth_client,
    )


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


# ---- Seed helpers ----

def add_user(db, email: str = "jane@example.com", is_admin: bool = False, is_deleted: bool = False) -> User:
    user = User(
        email=email, name=email.split("@")[0], picture="", google_id=f"g-{email}",
        is_admin=is_admin, is_deleted=is_deleted,
    )
    db.add(user)
    db.commit()
    return user


def login_as(client: TestClient, settings: Settings, email: str) -> None:
    client.cookies.set(SESSION_COOKIE, create_session_token(settings, email))


def add_product(
    db,
    title: str = "Botanical poster",
    prices: Sequence[int] = (1000,),
    featured_index: int = 0,
    active: bool = True,
    variant_active: Optional[Sequence[bool]] = None,
    tags: Optional[List[str]] = None,
    product_type: ProductType = ProductType.DIGITAL_PRINTABLE,
    description: str = "Printable wall art",
    created_at: Optional[datetime] = None,
    updated_at: Optional[datetime] = None,
) -> Product:
    """Insert a product with one photo per variant; the featured photo belongs to ``featured_index``."""
    product = Product(
        id=uuid.uuid4(), title=title, description=description,
        thumbnail_url=f"http://cdn/{title}/thumb.jpg", active=active, meta={},
        tags=tags, type=product_type,
    )
    if created_at is not None:
        product.created_at = created_at
    if updated_at is not None:
        product.updated_at = updated_at
    db.add(product)
    db.flush()

    featured_id = None
    for index, price in enumerate(prices):
        variant = ProductVariant(
            id=uuid.uuid4(), product_id=product.id, title=f"Size {index}", price=price,
            digital_asset_file_name=f"file-{index}.pdf", digital_asset_size=1024,
            digital_asset_url=f"http://cdn/{title}/file-{index}.pdf",
            active=variant_active[index] if variant_active else True,
            meta={}, sort_order=index,
        )
        db.add(variant)
        db.flush()
        photo = VariantPhoto(
            id=uuid.uuid4(), variant_id=variant.id,
            url=f"http://cdn/{title}/photo-{index}.jpg", sort_order=0,
        )
        db.add(photo)
        db.flush()
        if index == featured_index:
            featured_id = photo.id

    product.featured_photo_id = featured_id
    db.commit()
    return product


def image_bytes(color: str = "red", size: Tuple[int, int] = (800, 600), fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format=fmt)
    return buffer.getvalue()
