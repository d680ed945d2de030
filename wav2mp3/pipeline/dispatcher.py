import logging
import threading
from typing import Callable, Iterable, List, Union
from wav2mp3.domain.models import Job, SkippedEntry
from wav2mp3.domain.events import AdmissionThrottled, EntrySkipped, SpawnFailed
from wav2mp3.infrastructure.encoder import Encoder
from wav2mp3.infrastructure.event_bus import EventBus
from wav2mp3.pipeline.task import ConversionTask, OutcomeCollector
from wav2mp3.pipeline.tracker import WorkerSlotTracker

ThreadFactory = Callable[..., threading.Thread]


class DispatchStats:
    def __init__(self):
        self.admitted = 0
        self.skipped = 0
        self.spawn_failures: List[Job] = []


class Dispatcher:
    """Admits jobs one at a time, each on its own detached worker thread.

    Admission blocks while `concurrency_limit` tasks hold a slot. Threads
    are never joined here; completion is observed through the tracker.
    """

    def __init__(
        self,
        encoder: Encoder,
        tracker: WorkerSlotTracker,
        event_bus: EventBus,
        collector: OutcomeCollector,
        concurrency_limit: int,
        poll_interval: float = 1.0,
        thread_factory: ThreadFactory = threading.Thread,
    ):
        if concurrency_limit < 1:
            raise ValueError(f"concurrency_limit must be >= 1, got {concurrency_limit}")
        self.encoder = encoder
        self.tracker = tracker
        self.event_bus = event_bus
        self.collector = collector
        self.concurrency_limit = concurrency_limit
        self.poll_interval = poll_interval
        self.thread_factory = thread_factory
        self.logger = logging.getLogger(__name__)
        self._spawned = 0

    def dispatch(self, entries: Iterable[Union[Job, SkippedEntry]]) -> DispatchStats:
        stats = DispatchStats()
        for entry in entries:
            if isinstance(entry, SkippedEntry):
                stats.skipped += 1
                self.logger.debug(f"SKIP: {entry.path.name} ({entry.reason})")
                self.event_bus.publish(EntrySkipped(path=entry.path, reason=entry.reason))
                continue

            try:
                self.tracker.admit(
                    self.concurrency_limit,
                    lambda: self._spawn(entry),
                    interval=self.poll_interval,
                    on_wait=self._on_throttled,
                )
            except (RuntimeError, OSError) as e:
                stats.spawn_failures.append(entry)
                self.logger.error(f"Cannot start worker for {entry.source_path}: {e}")
                self.event_bus.publish(SpawnFailed(job=entry, error_message=str(e)))
                continue
            stats.admitted += 1
        return stats

    def _on_throttled(self, running: int):
        self.event_bus.publish(AdmissionThrottled(running=running, limit=self.concurrency_limit))

    def _spawn(self, job: Job) -> threading.Thread:
        task = ConversionTask(job, self.encoder, self.tracker, self.event_bus, self.collector)
        self._spawned += 1
        thread = self.thread_factory(
            target=task.run,
            name=f"encoder-{self._spawned}",
            daemon=True,
        )
        thread.start()
        return thread
