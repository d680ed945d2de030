import logging
import threading
import time
from typing import List
from wav2mp3.domain.models import Job, JobOutcome, JobStatus
from wav2mp3.domain.events import JobStarted, JobCompleted, JobFailed, SlotUnderflow
from wav2mp3.infrastructure.encoder import Encoder, EncodeError
from wav2mp3.infrastructure.event_bus import EventBus
from wav2mp3.pipeline.tracker import WorkerSlotTracker


def worker_identity() -> str:
    thread = threading.current_thread()
    return f"{thread.name} ({thread.ident})"


class OutcomeCollector:
    """Thread-safe sink for the terminal outcome of every task."""

    def __init__(self):
        self._lock = threading.Lock()
        self._outcomes: List[JobOutcome] = []

    def record(self, outcome: JobOutcome):
        with self._lock:
            self._outcomes.append(outcome)

    def outcomes(self) -> List[JobOutcome]:
        with self._lock:
            return list(self._outcomes)


class ConversionTask:
    """Runs the encoder for one job on a detached worker thread.

    The slot taken at admission is released on every exit path, and the
    finish notice is published in the same critical section so the driver
    cannot report the end of the run before the last task has reported.
    """

    def __init__(
        self,
        job: Job,
        encoder: Encoder,
        tracker: WorkerSlotTracker,
        event_bus: EventBus,
        collector: OutcomeCollector,
    ):
        self.job = job
        self.encoder = encoder
        self.tracker = tracker
        self.event_bus = event_bus
        self.collector = collector
        self.logger = logging.getLogger(__name__)

    def run(self):
        worker = worker_identity()
        outcome = JobOutcome(job=self.job, status=JobStatus.ENCODING, worker=worker)
        filename = self.job.source_path.name
        start_time = time.monotonic()

        try:
            self.logger.info(f"TASK_START: {filename} ({worker})")
            # Blocks until the admitting thread has released the lock
            with self.tracker.lock:
                self.event_bus.publish(JobStarted(job=self.job, worker=worker))
            self.encoder.encode(self.job.source_path, self.job.destination_path)
            outcome.status = JobStatus.SUCCEEDED
        except EncodeError as e:
            outcome.status = JobStatus.FAILED
            outcome.error_message = str(e)
            self.logger.error(f"Encoding {filename} failed: {e}")
        except Exception as e:
            # Log exception but don't crash the thread
            outcome.status = JobStatus.FAILED
            outcome.error_message = f"Exception: {e}"
            self.logger.exception(f"Exception processing {filename}")
        finally:
            if outcome.status == JobStatus.ENCODING:
                # BaseException escaped the encoder
                outcome.status = JobStatus.FAILED
                outcome.error_message = "Interrupted"
            outcome.duration_seconds = time.monotonic() - start_time
            self.collector.record(outcome)
            self._finish(outcome)

    def _finish(self, outcome: JobOutcome):
        with self.tracker.lock:
            if not self.tracker.decrement():
                self.event_bus.publish(SlotUnderflow(worker=outcome.worker))
            if outcome.status == JobStatus.SUCCEEDED:
                self.event_bus.publish(JobCompleted(outcome=outcome))
            else:
                self.event_bus.publish(JobFailed(outcome=outcome))
        self.logger.info(
            f"TASK_END: {self.job.source_path.name} status={outcome.status.value.lower()} "
            f"elapsed={outcome.duration_seconds:.2f}s"
        )
