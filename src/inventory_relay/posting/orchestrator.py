"""Sequential posting of pending vehicles through the relay."""

import asyncio
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from inventory_relay.config import RelaySettings
from inventory_relay.errors import TransportError
from inventory_relay.models.pydantic_models import VehicleRead
from inventory_relay.relay.channel import MessageRelay
from inventory_relay.relay.messages import (
    GetPendingVehiclesRequest,
    PostVehicleRequest,
    PostVehicleResponse,
    UpdateVehicleStatusRequest,
    UpdateVehicleStatusResponse,
)

logger = logging.getLogger(__name__)


class TaskState(str, Enum):
    PENDING = "pending"
    FILLING = "filling"
    POSTED = "posted"
    ERROR = "error"


@dataclass
class PostingTask:
    """One vehicle's trip through the posting pipeline."""

    vehicle: VehicleRead
    attempt_index: int
    state: TaskState = TaskState.PENDING
    error: str | None = None

    @property
    def label(self) -> str:
        parts = (self.vehicle.year, self.vehicle.make, self.vehicle.model)
        return " ".join(str(part) for part in parts if part)


@dataclass
class PostingRunResult:
    """Outcome of one run: processed tasks plus the user-facing log."""

    tasks: list[PostingTask] = field(default_factory=list)
    log: list[str] = field(default_factory=list)
    stopped: bool = False
    error: str | None = None

    @property
    def posted(self) -> int:
        return sum(1 for task in self.tasks if task.state == TaskState.POSTED)

    @property
    def errored(self) -> int:
        return sum(1 for task in self.tasks if task.state == TaskState.ERROR)


ProgressCallback = Callable[[PostingTask, int, int], None]


class PostingOrchestrator:
    """Drains the pending queue one vehicle at a time.

    Tasks run strictly in order with a fixed pause between them. A failed
    task is recorded as ``error`` on the vehicle (so it is retried on a later
    run) and never stops the queue. ``stop()`` takes effect between tasks.
    """

    def __init__(
        self,
        relay: MessageRelay,
        settings: RelaySettings | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> None:
        self._relay = relay
        self._settings = settings or RelaySettings()
        self._progress_callback = progress_callback
        self._stop_requested = False
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def stop(self) -> None:
        """Ask the run to halt before the next task."""
        self._stop_requested = True

    async def run(self) -> PostingRunResult:
        result = PostingRunResult()
        self._stop_requested = False
        self._running = True
        try:
            pending = await self._relay.send(GetPendingVehiclesRequest())
            if not pending.ok:
                result.error = pending.error
                self._log(result, f"Could not fetch pending vehicles: {pending.error}")
                return result

            queue = deque(
                PostingTask(vehicle=vehicle, attempt_index=index)
                for index, vehicle in enumerate(pending.vehicles, start=1)
            )
            total = len(queue)
            if not queue:
                self._log(result, "No pending vehicles to post.")
                return result

            self._log(result, f"Posting {total} vehicles.")
            while queue:
                if self._stop_requested:
                    result.stopped = True
                    self._log(result, f"Stopped with {len(queue)} vehicles not attempted.")
                    break

                task = queue.popleft()
                await self._process(task, total, result)
                result.tasks.append(task)
                if self._progress_callback:
                    self._progress_callback(task, task.attempt_index, total)

                if queue and not self._stop_requested:
                    await asyncio.sleep(self._settings.inter_task_delay)

            self._log(result, f"Done: {result.posted} posted, {result.errored} failed.")
            return result
        finally:
            self._running = False

    async def _process(self, task: PostingTask, total: int, result: PostingRunResult) -> None:
        task.state = TaskState.FILLING
        self._log(result, f"[{task.attempt_index}/{total}] Filling {task.label}")

        try:
            response = await self._relay.send(PostVehicleRequest(vehicle=task.vehicle))
        except TransportError as e:
            response = PostVehicleResponse(ok=False, error=e.message, code=e.code)

        if response.ok:
            task.state = TaskState.POSTED
            self._log(result, f"[{task.attempt_index}/{total}] Filled {task.label}")
        else:
            task.state = TaskState.ERROR
            task.error = response.error or "unknown error"
            self._log(result, f"[{task.attempt_index}/{total}] Failed {task.label}: {task.error}")

        try:
            status = await self._relay.send(
                UpdateVehicleStatusRequest(vehicle_id=task.vehicle.id, status=task.state.value)
            )
        except TransportError as e:
            status = UpdateVehicleStatusResponse(ok=False, error=e.message, code=e.code)

        if not status.ok:
            outcome = task.state.value
            reason = status.error or "unknown error"
            logger.warning("Could not record %s for vehicle %d: %s", outcome, task.vehicle.id, reason)
            # The vehicle is still pending in the store, so it must not count as posted.
            task.state = TaskState.ERROR
            task.error = f"could not record {outcome}: {reason}"
            result.log.append(
                f"[{task.attempt_index}/{total}] Could not record {outcome} "
                f"for vehicle {task.vehicle.id}: {reason}"
            )

    def _log(self, result: PostingRunResult, line: str) -> None:
        logger.info(line)
        result.log.append(line)
