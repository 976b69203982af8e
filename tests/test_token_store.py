import pytest

from files_manager.modules.cache import TokenStore


@pytest.fixture
def token_store(memory_redis):
    return TokenStore(memory_redis)


@pytest.mark.asyncio
async def test_set_uses_setex(mock_redis):
    """Entries are written with an absolute expiry."""
    store = TokenStore(mock_redis)

    await store.set("auth_abc", "user-1", 86400)

    mock_redis.setex.assert_called_once_with("auth_abc", 86400, "user-1")


@pytest.mark.asyncio
async def test_get_decodes_bytes(mock_redis):
    """Clients without decode_responses still yield strings."""
    mock_redis.get.return_value = b"user-1"
    store = TokenStore(mock_redis)

    assert await store.get("auth_abc") == "user-1"


@pytest.mark.asyncio
async def test_set_then_get(token_store):
    await token_store.set("k", "v", 60)

    assert await token_store.get("k") == "v"


@pytest.mark.asyncio
async def test_set_overwrites_existing_entry(token_store):
    await token_store.set("k", "first", 60)
    await token_store.set("k", "second", 60)

    assert await token_store.get("k") == "second"


@pytest.mark.asyncio
async def test_get_missing_key(token_store):
    assert await token_store.get("missing") is None


@pytest.mark.asyncio
async def test_expired_entry_behaves_as_absent(token_store, memory_redis):
    await token_store.set("k", "v", 10)

    memory_redis.advance(9)
    assert await token_store.get("k") == "v"

    memory_redis.advance(2)
    assert await token_store.get("k") is None


@pytest.mark.asyncio
async def test_delete_is_idempotent(token_store):
    await token_store.set("k", "v", 60)

    await token_store.delete("k")
    await token_store.delete("k")
    await token_store.delete("never-set")

    assert await token_store.get("k") is None


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl", [0, -1, 1.5, None])
async def test_invalid_ttl_rejected(token_store, ttl):
    with pytest.raises(ValueError):
        await token_store.set("k", "v", ttl)
