"""
Base Repository Tests
Bulk insert is the only write path the collaborators use.
"""
import pytest
import datetime as dt
from bson import ObjectId
from unittest.mock import MagicMock

from prospect_radar.models.profile import Profile
from prospect_radar.repositories import BaseRepository


pytestmark = pytest.mark.asyncio


class TestBaseRepositoryWrites:

    async def test_no_single_document_insert(self):
        assert not hasattr(BaseRepository, "create")

    async def test_bulk_create_stamps_and_assigns_ids(self, database, collection):
        ids = [ObjectId()]
        collection.insert_many.return_value = MagicMock(inserted_ids=ids)
        stale = dt.datetime(2020, 1, 1, tzinfo=dt.UTC)
        profile = Profile(user_id="u1", organization_id="org_1", name="Ana", created_at=stale, updated_at=stale)
        repo = BaseRepository(database, "profiles", Profile)

        created = await repo.bulk_create([profile])

        assert created[0].id == str(ids[0])
        assert created[0].created_at > stale
        doc = collection.insert_many.call_args.args[0][0]
        assert "_id" not in doc
        assert doc["user_id"] == "u1"

    async def test_bulk_create_empty(self, database, collection):
        repo = BaseRepository(database, "profiles", Profile)

        assert await repo.bulk_create([]) == []
        collection.insert_many.assert_not_called()
