"""Unit tests for the posting orchestrator."""

from unittest.mock import AsyncMock, patch

import pytest

from inventory_relay.config import RelaySettings
from inventory_relay.errors import MissingOwnerError, NotOnTargetPageError
from inventory_relay.posting.orchestrator import PostingOrchestrator, TaskState
from inventory_relay.relay.channel import MessageRelay
from inventory_relay.relay.messages import (
    PendingVehiclesResponse,
    PostVehicleResponse,
    RelayCommand,
    UpdateVehicleStatusResponse,
)

NO_DELAY = RelaySettings(inter_task_delay=0)


class FakeBackend:
    """Relay handlers backed by an in-memory queue."""

    def __init__(self, vehicles, failing_ids=(), pending_error=None) -> None:
        self.vehicles = vehicles
        self.failing_ids = set(failing_ids)
        self.pending_error = pending_error
        self.posted: list[int] = []
        self.statuses: list[tuple[int, str]] = []
        self.relay = MessageRelay()
        self.relay.register(RelayCommand.GET_PENDING_VEHICLES, self.pending)
        self.relay.register(RelayCommand.POST_VEHICLE_TO_FACEBOOK, self.post)
        self.relay.register(RelayCommand.UPDATE_VEHICLE_STATUS, self.update)

    async def pending(self, request) -> PendingVehiclesResponse:
        if self.pending_error is not None:
            raise self.pending_error
        return PendingVehiclesResponse(vehicles=self.vehicles)

    async def post(self, request) -> PostVehicleResponse:
        if request.vehicle.id in self.failing_ids:
            raise NotOnTargetPageError("Not on the marketplace create-listing page")
        self.posted.append(request.vehicle.id)
        return PostVehicleResponse(filled=["title"])

    async def update(self, request) -> UpdateVehicleStatusResponse:
        self.statuses.append((request.vehicle_id, request.status))
        return UpdateVehicleStatusResponse()


class TestPostingOrchestrator:
    """Tests for PostingOrchestrator.run."""

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_the_queue(self, make_vehicle) -> None:
        backend = FakeBackend([make_vehicle(1), make_vehicle(2), make_vehicle(3)], failing_ids={2})

        result = await PostingOrchestrator(backend.relay, NO_DELAY).run()

        assert result.posted == 2
        assert result.errored == 1
        assert backend.posted == [1, 3]
        assert backend.statuses == [(1, "posted"), (2, "error"), (3, "posted")]
        assert [task.attempt_index for task in result.tasks] == [1, 2, 3]
        assert result.tasks[1].state == TaskState.ERROR
        assert "create-listing" in result.tasks[1].error
        assert result.log[-1] == "Done: 2 posted, 1 failed."

    @pytest.mark.asyncio
    async def test_stop_takes_effect_between_tasks(self, make_vehicle) -> None:
        backend = FakeBackend([make_vehicle(1), make_vehicle(2), make_vehicle(3)])
        progress: list[tuple[int, int]] = []

        def on_progress(task, index, total) -> None:
            progress.append((index, total))
            orchestrator.stop()

        orchestrator = PostingOrchestrator(backend.relay, NO_DELAY, progress_callback=on_progress)
        result = await orchestrator.run()

        assert result.stopped is True
        assert progress == [(1, 3)]
        assert backend.posted == [1]
        assert "Stopped with 2 vehicles not attempted." in result.log
        assert orchestrator.is_running is False

    @pytest.mark.asyncio
    async def test_pending_fetch_failure(self) -> None:
        backend = FakeBackend([], pending_error=MissingOwnerError("Missing user"))

        result = await PostingOrchestrator(backend.relay, NO_DELAY).run()

        assert result.error == "Missing user"
        assert result.tasks == []
        assert backend.statuses == []

    @pytest.mark.asyncio
    async def test_empty_queue(self) -> None:
        backend = FakeBackend([])

        result = await PostingOrchestrator(backend.relay, NO_DELAY).run()

        assert result.tasks == []
        assert result.log == ["No pending vehicles to post."]

    @pytest.mark.asyncio
    async def test_failed_status_write_counts_as_failure(self, make_vehicle) -> None:
        backend = FakeBackend([make_vehicle(1), make_vehicle(2)])

        async def reject(request) -> UpdateVehicleStatusResponse:
            raise MissingOwnerError()

        backend.relay.register(RelayCommand.UPDATE_VEHICLE_STATUS, reject)
        result = await PostingOrchestrator(backend.relay, NO_DELAY).run()

        assert backend.posted == [1, 2]
        assert result.posted == 0
        assert result.errored == 2
        assert result.tasks[0].error.startswith("could not record posted")
        assert (
            "[1/2] Could not record posted for vehicle 1: "
            "Missing user; please authenticate before ingesting"
        ) in result.log
        assert result.log[-1] == "Done: 0 posted, 2 failed."

    @pytest.mark.asyncio
    async def test_unreachable_status_handler_does_not_stop_the_queue(self, make_vehicle) -> None:
        backend = FakeBackend([make_vehicle(1), make_vehicle(2)])
        relay = MessageRelay()
        relay.register(RelayCommand.GET_PENDING_VEHICLES, backend.pending)
        relay.register(RelayCommand.POST_VEHICLE_TO_FACEBOOK, backend.post)

        result = await PostingOrchestrator(relay, NO_DELAY).run()

        assert backend.posted == [1, 2]
        assert [task.state for task in result.tasks] == [TaskState.ERROR, TaskState.ERROR]
        assert any(line.startswith("[2/2] Could not record posted") for line in result.log)
        assert result.log[-1] == "Done: 0 posted, 2 failed."

    @pytest.mark.asyncio
    async def test_waits_between_tasks_but_not_after_the_last(self, make_vehicle) -> None:
        backend = FakeBackend([make_vehicle(1), make_vehicle(2), make_vehicle(3)])

        with patch(
            "inventory_relay.posting.orchestrator.asyncio.sleep", new_callable=AsyncMock
        ) as mock_sleep:
            await PostingOrchestrator(backend.relay, RelaySettings()).run()

        assert [c.args[0] for c in mock_sleep.await_args_list] == [1.2, 1.2]
