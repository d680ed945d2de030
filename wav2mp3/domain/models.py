from enum import Enum
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field

class JobStatus(str, Enum):
    PENDING = "PENDING"
    ENCODING = "ENCODING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

class Job(BaseModel):
    """One source -> destination pair. Owned by a single task once spawned."""
    model_config = ConfigDict(frozen=True)

    source_path: Path
    destination_path: Path

class SkippedEntry(BaseModel):
    path: Path
    reason: str

class JobOutcome(BaseModel):
    job: Job
    status: JobStatus = JobStatus.PENDING
    worker: str = ""
    error_message: Optional[str] = None
    duration_seconds: Optional[float] = None

class RunSummary(BaseModel):
    concurrency_limit: int
    admitted: int = 0
    skipped: int = 0
    spawn_failures: List[Job] = Field(default_factory=list)
    succeeded: int = 0
    failed: List[JobOutcome] = Field(default_factory=list)
    peak_running: int = 0
    underflows: int = 0

    @property
    def has_errors(self) -> bool:
        return bool(self.failed or self.spawn_failures)
