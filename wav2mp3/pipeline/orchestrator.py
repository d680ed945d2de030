"""Driver for one conversion run.

Coordinates the directory scan, the dispatcher and the final drain:

- Determine the concurrency limit (one worker per available processor)
- Open the source directory (fatal if it cannot be listed)
- Admit one detached task per matching file, never more than the limit at once
- Wait until every admitted task has released its slot
- Aggregate task outcomes into a RunSummary so failures can reach the exit status
"""

import logging
import os
import threading
from pathlib import Path
from typing import Optional
from wav2mp3.config.models import AppConfig
from wav2mp3.domain.models import JobStatus, RunSummary
from wav2mp3.domain.events import RunStarted, DrainWaiting, ProcessingFinished
from wav2mp3.infrastructure.encoder import Encoder
from wav2mp3.infrastructure.event_bus import EventBus
from wav2mp3.infrastructure.file_scanner import FileScanner
from wav2mp3.infrastructure.housekeeping import HousekeepingService
from wav2mp3.pipeline.dispatcher import Dispatcher, ThreadFactory
from wav2mp3.pipeline.task import OutcomeCollector
from wav2mp3.pipeline.tracker import WorkerSlotTracker


def detect_concurrency_limit() -> int:
    """Number of processors this process may run on, at least 1."""
    if hasattr(os, "sched_getaffinity"):
        try:
            return max(1, len(os.sched_getaffinity(0)))
        except OSError:
            pass
    return max(1, os.cpu_count() or 1)


class Orchestrator:
    """Runs the scan -> admit -> drain sequence for one directory.

    Args:
        config: AppConfig with suffixes, thread override and poll interval.
        event_bus: EventBus for publishing run, job and progress events.
        file_scanner: FileScanner that opens the directory and builds jobs.
        encoder: Encoder shared by every task.
        tracker: WorkerSlotTracker; created here if not given. Pass the same
            tracker to the console reporter so output shares its lock.
        housekeeper: Optional HousekeepingService for stale temp files.
        thread_factory: Callable building worker threads (threading.Thread).
    """

    def __init__(
        self,
        config: AppConfig,
        event_bus: EventBus,
        file_scanner: FileScanner,
        encoder: Encoder,
        tracker: Optional[WorkerSlotTracker] = None,
        housekeeper: Optional[HousekeepingService] = None,
        thread_factory: ThreadFactory = threading.Thread,
    ):
        self.config = config
        self.event_bus = event_bus
        self.file_scanner = file_scanner
        self.encoder = encoder
        self.tracker = tracker or WorkerSlotTracker()
        self.housekeeper = housekeeper
        self.thread_factory = thread_factory
        self.concurrency_limit = config.general.threads or detect_concurrency_limit()
        self.logger = logging.getLogger(__name__)

    def run(self, directory: Path) -> RunSummary:
        general = self.config.general
        if self.housekeeper and general.clean_temp:
            self.housekeeper.cleanup_temp_files(
                directory, target_suffix=general.target_suffix, source_suffix=general.source_suffix
            )

        # Raises DirectoryOpenError before any task exists
        entries = self.file_scanner.scan(directory)

        encoder_version = self.encoder.version()
        self.logger.info(
            f"Run started: dir={directory}, limit={self.concurrency_limit}, encoder={encoder_version}"
        )
        self.event_bus.publish(RunStarted(
            directory=directory,
            concurrency_limit=self.concurrency_limit,
            encoder_version=encoder_version,
        ))

        collector = OutcomeCollector()
        dispatcher = Dispatcher(
            encoder=self.encoder,
            tracker=self.tracker,
            event_bus=self.event_bus,
            collector=collector,
            concurrency_limit=self.concurrency_limit,
            poll_interval=general.poll_interval_s,
            thread_factory=self.thread_factory,
        )
        stats = dispatcher.dispatch(entries)
        self.logger.info(
            f"Dispatch finished: admitted={stats.admitted}, skipped={stats.skipped}, "
            f"spawn_failures={len(stats.spawn_failures)}"
        )

        self.tracker.wait_drained(
            interval=general.poll_interval_s,
            on_wait=lambda running: self.event_bus.publish(DrainWaiting(running=running)),
        )

        outcomes = collector.outcomes()
        summary = RunSummary(
            concurrency_limit=self.concurrency_limit,
            admitted=stats.admitted,
            skipped=stats.skipped,
            spawn_failures=stats.spawn_failures,
            succeeded=sum(1 for o in outcomes if o.status == JobStatus.SUCCEEDED),
            failed=[o for o in outcomes if o.status != JobStatus.SUCCEEDED],
            peak_running=self.tracker.peak,
            underflows=self.tracker.underflows,
        )
        self.logger.info(
            f"All tasks finished: succeeded={summary.succeeded}, failed={len(summary.failed)}, "
            f"peak_running={summary.peak_running}"
        )
        self.event_bus.publish(ProcessingFinished(summary=summary))
        return summary
