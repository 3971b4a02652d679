"""
Citizen Notify — Profile Model Tests
====================================

What:  ProfileModel over a real SqlDocumentStore (temporary SQLite file).

What we test:
    ✅ create → find → update: version 1 written, version 0 left untouched
    ✅ find_one_profile_by_fiscal_code returns the latest version
    ✅ two concurrent updates from version 0: one succeeds, one conflicts
    ✅ with a KeyedLock, concurrent upserts both land (versions 1 and 2)
    ✅ the `kind` discriminant never reaches the stored JSON
"""

import asyncio

import pytest

from citizen_notify.exceptions import ConflictError
from citizen_notify.models.keyed_lock import KeyedLock
from citizen_notify.models.profile import ProfileModel
from citizen_notify.results import Failure, Success
from citizen_notify.schemas.common import PreferredLanguage
from citizen_notify.schemas.profile import Profile
from citizen_notify.store.sql import SqlDocumentStore

FISCAL_CODE = "FRLFRC74E04B157I"
V0_ID = f"{FISCAL_CODE}-{'0' * 16}"
V1_ID = f"{FISCAL_CODE}-{'0' * 15}1"


class ReadBarrierStore:
    """
    Holds every read until `parties` reads have completed, so concurrent
    updates are guaranteed to start from the same version.
    """

    def __init__(self, store: SqlDocumentStore, parties: int):
        self._store = store
        self._parties = parties
        self._arrived = 0
        self._all_arrived = asyncio.Event()

    async def read_document(self, *args, **kwargs):
        result = await self._store.read_document(*args, **kwargs)
        self._arrived += 1
        if self._arrived >= self._parties:
            self._all_arrived.set()
        await self._all_arrived.wait()
        return result

    async def create_document(self, *args, **kwargs):
        return await self._store.create_document(*args, **kwargs)

    def query_documents(self, *args, **kwargs):
        return self._store.query_documents(*args, **kwargs)


class TestProfileLifecycle:
    @pytest.mark.asyncio
    async def test_create_find_update(self, sqlite_store):
        model = ProfileModel(sqlite_store)

        created = await model.create(Profile(fiscal_code=FISCAL_CODE), FISCAL_CODE)
        assert isinstance(created, Success)
        assert created.value.id == V0_ID
        assert created.value.version == 0

        found = await model.find(V0_ID, FISCAL_CODE)
        assert found.value == created.value

        updated = await model.update(
            V0_ID,
            FISCAL_CODE,
            lambda p: p.model_copy(update={"email": "y@example.com"}),
        )
        assert isinstance(updated, Success)
        assert updated.value.id == V1_ID
        assert updated.value.version == 1
        assert updated.value.fiscal_code == FISCAL_CODE
        assert updated.value.email == "y@example.com"

        original = await model.find(V0_ID, FISCAL_CODE)
        assert original.value.version == 0
        assert original.value.email is None
        assert original.value.etag == created.value.etag

    @pytest.mark.asyncio
    async def test_find_one_profile_by_fiscal_code(self, sqlite_store):
        model = ProfileModel(sqlite_store)
        await model.create(Profile(fiscal_code=FISCAL_CODE))
        for email in ("a@example.com", "b@example.com"):
            latest = await model.find_one_profile_by_fiscal_code(FISCAL_CODE)
            await model.update(
                latest.value.id,
                FISCAL_CODE,
                lambda p, email=email: p.model_copy(update={"email": email}),
            )

        result = await model.find_one_profile_by_fiscal_code(FISCAL_CODE)

        assert result.value.version == 2
        assert result.value.email == "b@example.com"

    @pytest.mark.asyncio
    async def test_find_one_profile_missing(self, sqlite_store):
        model = ProfileModel(sqlite_store)

        assert await model.find_one_profile_by_fiscal_code(FISCAL_CODE) == Success(None)

    @pytest.mark.asyncio
    async def test_update_missing_profile(self, sqlite_store):
        model = ProfileModel(sqlite_store)

        result = await model.update(V0_ID, FISCAL_CODE, lambda p: p)

        assert result == Success(None)
        assert await model.find_one_profile_by_fiscal_code(FISCAL_CODE) == Success(None)

    @pytest.mark.asyncio
    async def test_discriminant_is_not_stored(self, sqlite_store):
        model = ProfileModel(sqlite_store)
        created = await model.create(
            Profile(
                fiscal_code=FISCAL_CODE,
                preferred_languages=[PreferredLanguage.IT_IT],
                is_inbox_enabled=True,
            )
        )

        raw = await sqlite_store.read_document("profiles", created.value.id, FISCAL_CODE)

        assert "kind" not in raw.value
        assert raw.value["fiscalCode"] == FISCAL_CODE
        assert raw.value["preferredLanguages"] == ["it_IT"]
        assert raw.value["isInboxEnabled"] is True
        assert created.value.kind == "RetrievedProfile"

    @pytest.mark.asyncio
    async def test_create_twice_conflicts(self, sqlite_store):
        model = ProfileModel(sqlite_store)
        await model.create(Profile(fiscal_code=FISCAL_CODE))

        second = await model.create(Profile(fiscal_code=FISCAL_CODE))

        assert isinstance(second, Failure)
        assert isinstance(second.error, ConflictError)


class TestConcurrentWrites:
    @pytest.mark.asyncio
    async def test_concurrent_updates_one_conflicts(self, sqlite_store):
        await ProfileModel(sqlite_store).create(Profile(fiscal_code=FISCAL_CODE))
        model = ProfileModel(ReadBarrierStore(sqlite_store, parties=2))

        results = await asyncio.gather(
            model.update(V0_ID, FISCAL_CODE, lambda p: p.model_copy(update={"email": "a@example.com"})),
            model.update(V0_ID, FISCAL_CODE, lambda p: p.model_copy(update={"email": "b@example.com"})),
        )

        successes = [r for r in results if isinstance(r, Success)]
        failures = [r for r in results if isinstance(r, Failure)]
        assert len(successes) == 1
        assert len(failures) == 1
        assert successes[0].value.version == 1
        assert isinstance(failures[0].error, ConflictError)
        assert failures[0].error.code == 409

        latest = await ProfileModel(sqlite_store).find_one_profile_by_fiscal_code(FISCAL_CODE)
        assert latest.value.version == 1
        assert latest.value.email == successes[0].value.email

    @pytest.mark.asyncio
    async def test_stale_update_conflicts_with_lock(self, sqlite_store):
        model = ProfileModel(sqlite_store, lock=KeyedLock())
        await model.create(Profile(fiscal_code=FISCAL_CODE))

        first = await model.update(V0_ID, FISCAL_CODE, lambda p: p)
        stale = await model.update(V0_ID, FISCAL_CODE, lambda p: p)

        assert first.value.version == 1
        assert isinstance(stale.error, ConflictError)

    @pytest.mark.asyncio
    async def test_serialized_upserts_both_land(self, sqlite_store):
        model = ProfileModel(sqlite_store, lock=KeyedLock())
        await model.create(Profile(fiscal_code=FISCAL_CODE))

        results = await asyncio.gather(
            model.upsert(Profile(fiscal_code=FISCAL_CODE, email="a@example.com")),
            model.upsert(Profile(fiscal_code=FISCAL_CODE, email="b@example.com")),
        )

        assert all(isinstance(r, Success) for r in results)
        assert sorted(r.value.version for r in results) == [1, 2]

    @pytest.mark.asyncio
    async def test_upsert_creates_version_zero(self, sqlite_store):
        model = ProfileModel(sqlite_store)

        result = await model.upsert(Profile(fiscal_code=FISCAL_CODE, email="y@example.com"))

        assert result.value.id == V0_ID
        assert result.value.email == "y@example.com"
