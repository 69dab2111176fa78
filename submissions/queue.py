"""
Sequential, pausable processing of submission batches.

A run is an explicit QueueRunState value: the queue takes it, advances it
item by item and hands it back. Nothing about a run lives in module
globals, so a paused state can be written out with ``to_json()`` and
picked up later, possibly by another process, with ``from_json()``.
"""

import logging
import threading
import time
from pathlib import Path
from typing import Callable, Iterable, Optional
from uuid import UUID

from verification.images import InvalidImageData, content_hash, decode_image

from .errors import SubmissionError
from .models import ItemStatus, QueueRunState, SubmissionItem, SubmissionOutcome, SubmissionPayload

logger = logging.getLogger(__name__)

ItemCallback = Callable[[QueueRunState, SubmissionItem], None]
RunCallback = Callable[[QueueRunState], None]


def _redundancy_key(payload: SubmissionPayload) -> Optional[tuple]:
    if payload.image_base64:
        try:
            return ("image", content_hash(decode_image(payload.image_base64)))
        except InvalidImageData:
            return None
    if payload.product_id and payload.price is not None:
        return ("fields", payload.product_id, payload.store_id, payload.price)
    return None


def build_run(payloads: Iterable[SubmissionPayload]) -> QueueRunState:
    """Create a run and flag items that repeat an earlier item of the same batch."""
    state = QueueRunState()
    seen: dict[tuple, UUID] = {}
    for payload in payloads:
        item = SubmissionItem(payload=payload)
        key = _redundancy_key(payload)
        if key is not None:
            if key in seen:
                item.duplicate_of = seen[key]
            else:
                seen[key] = item.item_id
        state.items.append(item)
    return state


class SubmissionQueue:
    def __init__(
        self,
        process: Callable[[SubmissionPayload], SubmissionOutcome],
        delay_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
        on_item: Optional[ItemCallback] = None,
        on_complete: Optional[RunCallback] = None,
    ):
        self.process = process
        self.delay_seconds = delay_seconds
        self.sleep = sleep
        self.on_item = on_item
        self.on_complete = on_complete
        self._pause_requested = threading.Event()

    def pause(self) -> None:
        """Ask the running loop to stop before its next item."""
        self._pause_requested.set()

    @property
    def pause_requested(self) -> bool:
        return self._pause_requested.is_set()

    def run(self, state: QueueRunState) -> QueueRunState:
        """Advance ``state`` from ``current_index``.

        A pause requested before the call is honoured before the first item.
        """
        state.paused = False
        state.completed = False
        total = len(state.items)
        logger.info("Run %s starting at item %d of %d", state.run_id, state.current_index + 1, total)

        for index in range(state.current_index, total):
            if self._pause_requested.is_set():
                self._pause_requested.clear()
                state.current_index = index
                state.paused = True
                logger.info("Run %s paused before item %d", state.run_id, index + 1)
                return state

            item = state.items[index]
            if item.status is not ItemStatus.QUEUED:
                continue

            processed = self._run_item(state, item)
            if self.on_item:
                self.on_item(state, item)

            if processed and self.delay_seconds > 0 and index < total - 1:
                self.sleep(self.delay_seconds)

        state.current_index = total
        state.completed = True
        self._pause_requested.clear()
        summary = state.summary()
        logger.info(
            "Run %s complete: %d succeeded, %d failed, %d skipped",
            state.run_id, summary.succeeded, summary.failed, summary.skipped,
        )
        if self.on_complete:
            self.on_complete(state)
        return state

    def _run_item(self, state: QueueRunState, item: SubmissionItem) -> bool:
        if item.duplicate_of is not None:
            item.status = ItemStatus.SKIPPED
            item.error = f"Same submission as item {item.duplicate_of} in this batch"
            item.error_type = "DuplicateInBatch"
            return False

        item.status = ItemStatus.PROCESSING
        try:
            item.outcome = self.process(item.payload)
        except SubmissionError as e:
            item.status = ItemStatus.FAILED
            item.error = str(e)
            item.error_type = type(e).__name__
            logger.warning("Run %s item %s failed: %s", state.run_id, item.item_id, e)
        except Exception as e:
            item.status = ItemStatus.FAILED
            item.error = str(e) or type(e).__name__
            item.error_type = type(e).__name__
            logger.exception("Run %s item %s raised", state.run_id, item.item_id)
        else:
            item.status = ItemStatus.SUCCEEDED
            item.error = None
            item.error_type = None
        return True


class RunStore:
    """Keeps run states between requests, on disk when a directory is given."""

    def __init__(self, directory: Optional[str] = None):
        self.directory = Path(directory) if directory else None
        self._states: dict[UUID, str] = {}
        self._queues: dict[UUID, SubmissionQueue] = {}
        self._lock = threading.Lock()

    def save(self, state: QueueRunState) -> None:
        data = state.to_json()
        with self._lock:
            self._states[state.run_id] = data
        if self.directory:
            self.directory.mkdir(parents=True, exist_ok=True)
            (self.directory / f"{state.run_id}.json").write_text(data, encoding="utf-8")

    def load(self, run_id: UUID) -> Optional[QueueRunState]:
        with self._lock:
            data = self._states.get(run_id)
        if data is None and self.directory:
            path = self.directory / f"{run_id}.json"
            if path.exists():
                data = path.read_text(encoding="utf-8")
        return QueueRunState.from_json(data) if data else None

    def attach_queue(self, run_id: UUID, queue: SubmissionQueue) -> bool:
        """Register the queue driving a run. False if another one already is."""
        with self._lock:
            if run_id in self._queues:
                return False
            self._queues[run_id] = queue
            return True

    def get_queue(self, run_id: UUID) -> Optional[SubmissionQueue]:
        with self._lock:
            return self._queues.get(run_id)

    def detach_queue(self, run_id: UUID) -> None:
        with self._lock:
            self._queues.pop(run_id, None)
