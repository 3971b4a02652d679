"""
Citizen Notify — Organization Model Tests

What we test:
    ✅ find_last_version_by_id follows the version chain
    ✅ update_organization writes version+1 keyed by organizationId
    ✅ update_organization from a stale read conflicts
"""

import pytest

from citizen_notify.exceptions import ConflictError
from citizen_notify.models.organization import OrganizationModel
from citizen_notify.results import Failure, Success
from citizen_notify.schemas.organization import Organization

ORGANIZATION_ID = "agid-01"


class TestOrganizationModel:
    @pytest.mark.asyncio
    async def test_find_last_version_missing(self, sqlite_store):
        model = OrganizationModel(sqlite_store)

        assert await model.find_last_version_by_id(ORGANIZATION_ID) == Success(None)

    @pytest.mark.asyncio
    async def test_update_organization(self, sqlite_store):
        model = OrganizationModel(sqlite_store)
        created = await model.create(Organization(organization_id=ORGANIZATION_ID, name="AgID"))

        updated = await model.update_organization(
            created.value.model_copy(update={"name": "Agenzia per l'Italia Digitale"})
        )

        assert isinstance(updated, Success)
        assert updated.value.id == f"{ORGANIZATION_ID}-{'0' * 15}1"
        assert updated.value.version == 1
        assert updated.value.organization_id == ORGANIZATION_ID
        # partitioned by organizationId
        raw = await sqlite_store.read_document("organizations", updated.value.id, ORGANIZATION_ID)
        assert raw.value["name"] == "Agenzia per l'Italia Digitale"

        latest = await model.find_last_version_by_id(ORGANIZATION_ID)
        assert latest.value.version == 1
        assert latest.value.name == "Agenzia per l'Italia Digitale"

    @pytest.mark.asyncio
    async def test_update_organization_from_stale_read(self, sqlite_store):
        model = OrganizationModel(sqlite_store)
        created = await model.create(Organization(organization_id=ORGANIZATION_ID, name="AgID"))
        await model.update_organization(created.value)

        stale = await model.update_organization(created.value.model_copy(update={"name": "Other"}))

        assert isinstance(stale, Failure)
        assert isinstance(stale.error, ConflictError)
        latest = await model.find_last_version_by_id(ORGANIZATION_ID)
        assert latest.value.name == "AgID"
