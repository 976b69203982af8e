from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo.errors import ServerSelectionTimeoutError

from files_manager.errors import TransientIOError
from files_manager.modules.storage import FileRecord, MongoFileStore, MongoUserStore, StorageModule, User


@pytest.fixture
def collection():
    coll = MagicMock()
    coll.find_one = AsyncMock(return_value=None)
    coll.insert_one = AsyncMock()
    coll.count_documents = AsyncMock(return_value=0)
    return coll


@pytest.fixture
def database(collection):
    db = MagicMock()
    db.__getitem__.return_value = collection
    return db


@pytest.mark.asyncio
async def test_find_user_by_email(database, collection):
    oid = ObjectId()
    collection.find_one.return_value = {"_id": oid, "email": "alice@x.com", "password": "abc"}

    user = await MongoUserStore(database).find_by_email("alice@x.com")

    assert user == User(id=str(oid), email="alice@x.com", password_hash="abc")
    database.__getitem__.assert_called_with("users")
    collection.find_one.assert_awaited_once_with({"email": "alice@x.com"})


@pytest.mark.asyncio
async def test_find_user_by_invalid_id_skips_query(database, collection):
    assert await MongoUserStore(database).find_by_id("not-an-object-id") is None
    assert await MongoUserStore(database).find_by_id(None) is None
    collection.find_one.assert_not_called()


@pytest.mark.asyncio
async def test_insert_user(database, collection):
    oid = ObjectId()
    collection.insert_one.return_value = MagicMock(inserted_id=oid)

    user_id = await MongoUserStore(database).insert("bob@x.com", "hash")

    assert user_id == str(oid)
    collection.insert_one.assert_awaited_once_with({"email": "bob@x.com", "password": "hash"})


@pytest.mark.asyncio
async def test_database_outage_is_transient(database, collection):
    collection.find_one.side_effect = ServerSelectionTimeoutError("no servers")

    with pytest.raises(TransientIOError):
        await MongoUserStore(database).find_by_email("alice@x.com")


@pytest.mark.asyncio
async def test_find_file_scoped_to_owner(database, collection):
    file_oid, user_oid = ObjectId(), ObjectId()
    collection.find_one.return_value = {
        "_id": file_oid,
        "userId": user_oid,
        "name": "cat.png",
        "type": "image",
        "localPath": "/tmp/files_manager/x",
    }

    record = await MongoFileStore(database).find_by_id_and_owner(str(file_oid), str(user_oid))

    assert record == FileRecord(
        id=str(file_oid), user_id=str(user_oid), local_path="/tmp/files_manager/x",
        name="cat.png", type="image",
    )
    database.__getitem__.assert_called_with("files")
    collection.find_one.assert_awaited_once_with({"_id": file_oid, "userId": user_oid})


@pytest.mark.asyncio
async def test_find_file_with_malformed_ids(database, collection):
    store = MongoFileStore(database)

    assert await store.find_by_id_and_owner("bad", str(ObjectId())) is None
    assert await store.find_by_id_and_owner(str(ObjectId()), None) is None
    collection.find_one.assert_not_called()


@pytest.mark.asyncio
async def test_storage_ping_without_connections():
    assert await StorageModule().ping() == {"redis": False, "db": False}
