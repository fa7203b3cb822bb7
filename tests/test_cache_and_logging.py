"""Tests for the OAuth state cache and logging setup."""

import asyncio
import base64
import hashlib
import logging

from utils.cache import InMemoryStateCache
from utils.google_oauth import generate_pkce_pair
from utils.logging_config import HANDLER_NAME, LOGGER_NAMES, configure_logging


def test_in_memory_cache_set_get_delete() -> None:
    cache = InMemoryStateCache()

    async def scenario():
        await cache.set("oauth_verifier:abc", "verifier", ttl=60)
        found = await cache.get("oauth_verifier:abc")
        await cache.delete("oauth_verifier:abc")
        return found, await cache.get("oauth_verifier:abc")

    found, after_delete = asyncio.run(scenario())

    assert found == "verifier"
    assert after_delete is None


def test_in_memory_cache_entries_expire() -> None:
    cache = InMemoryStateCache()

    async def scenario():
        await cache.set("redirect_to:abc", "/cart", ttl=0)
        return await cache.get("redirect_to:abc")

    assert asyncio.run(scenario()) is None


def test_pkce_pair_is_s256() -> None:
    verifier, challenge = generate_pkce_pair()
    expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode()).digest()).decode().rstrip("=")

    assert challenge == expected
    assert 43 <= len(verifier) <= 128


def test_configure_logging_is_idempotent() -> None:
    configure_logging("debug")
    configure_logging("debug")

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        # The test runner attaches its own capture handlers
        ours = [h for h in logger.handlers if h.get_name() == HANDLER_NAME]
        assert len(ours) == 1
        assert logger.level == logging.DEBUG


def test_configure_logging_ignores_foreign_handlers() -> None:
    logger = logging.getLogger("utils")
    foreign = logging.NullHandler()
    logger.addHandler(foreign)
    try:
        configure_logging("info")
        assert any(h.get_name() == HANDLER_NAME for h in logger.handlers)
    finally:
        logger.removeHandler(foreign)
