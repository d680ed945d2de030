"""Domain events for the conversion pipeline.

Events flow through the EventBus from the pipeline (tracker, dispatcher,
tasks) to the console reporter, so the pipeline never prints directly.

See `infrastructure/event_bus.py` for the pub/sub mechanism.
"""

from pathlib import Path
from pydantic import BaseModel
from .models import Job, JobOutcome, RunSummary


class Event(BaseModel):
    """Base class for all domain events."""

    pass


class RunStarted(Event):
    """Emitted once the directory is open and the limit is known."""

    directory: Path
    concurrency_limit: int
    encoder_version: str


class EntrySkipped(Event):
    """Emitted for a directory entry that is not a source file."""

    path: Path
    reason: str


class AdmissionThrottled(Event):
    """Emitted while the dispatcher waits for a free worker slot."""

    running: int
    limit: int


class SpawnFailed(Event):
    """Emitted when a worker thread could not be started for a job."""

    job: Job
    error_message: str


class JobStarted(Event):
    job: Job
    worker: str


class JobCompleted(Event):
    outcome: JobOutcome


class JobFailed(Event):
    """Emitted when the encoder reports failure; the slot is already freed."""

    outcome: JobOutcome


class SlotUnderflow(Event):
    """Internal consistency defect: a slot was released with none held."""

    worker: str


class DrainWaiting(Event):
    """Emitted while the driver waits for the remaining tasks."""

    running: int


class ProcessingFinished(Event):
    """Emitted when every admitted task has finished."""

    summary: RunSummary
