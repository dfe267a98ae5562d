"""Tests for the staged-mutation state machine."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from geoadmin.errors import InvalidTransition, UnexpectedError, ValidationError
from geoadmin.mutations import IntentKind, MutationState, StagedMutationController
from tests.conftest import CITY_PARIS_ID


@pytest.fixture
def resource_api():
    api = MagicMock()
    api.create = AsyncMock(return_value={"_id": "new"})
    api.update = AsyncMock(return_value={"_id": CITY_PARIS_ID})
    api.delete = AsyncMock(return_value={})
    return api


@pytest.fixture
def refresh():
    return AsyncMock()


@pytest.fixture
def mutations(resource_api, refresh):
    return StagedMutationController(resource_api, "city", refresh=refresh)


class TestStaging:

    def test_stage_does_not_touch_network(self, mutations, resource_api):
        mutations.stage_create({"name": "Lyon"})
        mutations.stage_update(CITY_PARIS_ID, {"name": "Paris"})
        mutations.stage_delete(CITY_PARIS_ID)

        assert mutations.state is MutationState.STAGED
        resource_api.create.assert_not_called()
        resource_api.update.assert_not_called()
        resource_api.delete.assert_not_called()

    def test_last_stage_wins(self, mutations):
        mutations.stage_create({"name": "Lyon"})
        mutations.request_confirmation()
        mutations.stage_delete(CITY_PARIS_ID)

        assert mutations.state is MutationState.STAGED
        assert mutations.intent.kind is IntentKind.DELETE
        assert mutations.intent.record_id == CITY_PARIS_ID

    def test_payload_is_copied(self, mutations):
        form = {"name": "Lyon"}
        mutations.stage_create(form)
        form["name"] = "Changed"

        assert mutations.intent.payload == {"name": "Lyon"}

    @pytest.mark.parametrize("kind,prompt", [
        ("create", "Are you sure you want to add this city?"),
        ("update", "Are you sure you want to update this city?"),
        ("delete", "Are you sure you want to delete this city?"),
    ])
    def test_prompts(self, mutations, kind, prompt):
        if kind == "create":
            mutations.stage_create({})
        elif kind == "update":
            mutations.stage_update("x", {})
        else:
            mutations.stage_delete("x")

        assert mutations.request_confirmation() == prompt
        assert mutations.state is MutationState.CONFIRMING


class TestTransitions:

    @pytest.mark.asyncio
    async def test_confirm_while_idle_raises(self, mutations):
        with pytest.raises(InvalidTransition):
            await mutations.confirm()

    @pytest.mark.asyncio
    async def test_confirm_while_staged_raises(self, mutations, resource_api):
        mutations.stage_delete(CITY_PARIS_ID)

        with pytest.raises(InvalidTransition):
            await mutations.confirm()
        resource_api.delete.assert_not_called()

    def test_request_confirmation_while_idle_raises(self, mutations):
        with pytest.raises(InvalidTransition):
            mutations.request_confirmation()

    def test_cancel_drops_intent(self, mutations, resource_api):
        mutations.stage_delete(CITY_PARIS_ID)
        mutations.request_confirmation()

        mutations.cancel()

        assert mutations.state is MutationState.IDLE
        assert mutations.intent is None
        resource_api.delete.assert_not_called()


class TestConfirm:

    @pytest.mark.asyncio
    async def test_create_success(self, mutations, resource_api, refresh):
        mutations.stage_create({"name": "Lyon"})
        mutations.request_confirmation()

        outcome = await mutations.confirm()

        assert outcome.ok
        assert outcome.message == "City added successfully!"
        resource_api.create.assert_awaited_once_with({"name": "Lyon"})
        refresh.assert_awaited_once()
        assert mutations.state is MutationState.IDLE
        assert mutations.intent is None

    @pytest.mark.asyncio
    async def test_update_and_delete_messages(self, mutations, resource_api):
        mutations.stage_update(CITY_PARIS_ID, {"name": "Paris"})
        mutations.request_confirmation()
        updated = await mutations.confirm()

        mutations.stage_delete(CITY_PARIS_ID)
        mutations.request_confirmation()
        deleted = await mutations.confirm()

        assert updated.message == "City updated successfully!"
        assert deleted.message == "City deleted successfully!"
        resource_api.update.assert_awaited_once_with(CITY_PARIS_ID, {"name": "Paris"})
        resource_api.delete.assert_awaited_once_with(CITY_PARIS_ID)

    @pytest.mark.asyncio
    async def test_refresh_runs_after_mutation(self, resource_api):
        order = []
        resource_api.delete = AsyncMock(side_effect=lambda *_: order.append("delete"))

        async def _refresh():
            order.append("refresh")

        mutations = StagedMutationController(resource_api, "city", refresh=_refresh)
        mutations.stage_delete(CITY_PARIS_ID)
        mutations.request_confirmation()
        await mutations.confirm()

        assert order == ["delete", "refresh"]

    @pytest.mark.asyncio
    async def test_validation_failure(self, mutations, resource_api, refresh):
        resource_api.create = AsyncMock(side_effect=ValidationError("Name is required", 400))
        mutations.stage_create({"name": ""})
        mutations.request_confirmation()

        outcome = await mutations.confirm()

        assert not outcome.ok
        assert isinstance(outcome.error, ValidationError)
        assert outcome.message == "Name is required"
        refresh.assert_not_awaited()
        assert mutations.state is MutationState.IDLE

    @pytest.mark.asyncio
    async def test_unexpected_failure(self, mutations, resource_api):
        resource_api.update = AsyncMock(side_effect=ConnectionError("reset"))
        mutations.stage_update(CITY_PARIS_ID, {})
        mutations.request_confirmation()

        outcome = await mutations.confirm()

        assert isinstance(outcome.error, UnexpectedError)
        assert outcome.message == "An unexpected error occurred."

    @pytest.mark.asyncio
    async def test_label_capitalized(self, resource_api):
        mutations = StagedMutationController(resource_api, "SEO entry")
        mutations.stage_create({})
        mutations.request_confirmation()

        outcome = await mutations.confirm()

        assert outcome.message == "SEO entry added successfully!"
