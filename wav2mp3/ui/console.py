from typing import Optional
from rich.console import Console
from rich.markup import escape
from wav2mp3.infrastructure.event_bus import EventBus
from wav2mp3.pipeline.tracker import WorkerSlotTracker
from wav2mp3.domain.events import (
    RunStarted, EntrySkipped, AdmissionThrottled, SpawnFailed,
    JobStarted, JobCompleted, JobFailed, SlotUnderflow,
    DrainWaiting, ProcessingFinished,
)


class ConsoleReporter:
    """Subscribes to EventBus and prints one line per event.

    Every line is written while holding the tracker lock, the same lock
    that guards the running count, so lines from different workers never
    interleave.
    """

    def __init__(
        self,
        bus: EventBus,
        tracker: WorkerSlotTracker,
        console: Optional[Console] = None,
        err_console: Optional[Console] = None,
    ):
        self.bus = bus
        self.tracker = tracker
        self.console = console or Console(highlight=False)
        self.err_console = err_console or Console(stderr=True, highlight=False)
        self._setup_subscriptions()

    def _setup_subscriptions(self):
        self.bus.subscribe(RunStarted, self.on_run_started)
        self.bus.subscribe(EntrySkipped, self.on_entry_skipped)
        self.bus.subscribe(AdmissionThrottled, self.on_admission_throttled)
        self.bus.subscribe(SpawnFailed, self.on_spawn_failed)
        self.bus.subscribe(JobStarted, self.on_job_started)
        self.bus.subscribe(JobCompleted, self.on_job_completed)
        self.bus.subscribe(JobFailed, self.on_job_failed)
        self.bus.subscribe(SlotUnderflow, self.on_slot_underflow)
        self.bus.subscribe(DrainWaiting, self.on_drain_waiting)
        self.bus.subscribe(ProcessingFinished, self.on_processing_finished)

    def _print(self, message: str, err: bool = False):
        with self.tracker.lock:
            (self.err_console if err else self.console).print(message)

    def on_run_started(self, event: RunStarted):
        self._print(f"Using encoder: {escape(event.encoder_version)}")
        self._print(f"Number of cores to use: {event.concurrency_limit}")

    def on_entry_skipped(self, event: EntrySkipped):
        self._print(
            f"[dim]{escape(event.path.name)} is not a recognized source file, skipping "
            f"({escape(event.reason)})[/dim]"
        )

    def on_admission_throttled(self, event: AdmissionThrottled):
        self._print(f"[yellow]Number of active workers = {event.running}/{event.limit}, waiting for a free slot[/yellow]")

    def on_spawn_failed(self, event: SpawnFailed):
        self._print(
            f"[red]ERROR creating worker for {escape(str(event.job.source_path))}: "
            f"{escape(event.error_message)}[/red]",
            err=True,
        )

    def on_job_started(self, event: JobStarted):
        self._print(
            f"BEGIN: {escape(event.worker)} is encoding {escape(str(event.job.destination_path))} "
            f"from {escape(str(event.job.source_path))}"
        )

    def on_job_completed(self, event: JobCompleted):
        outcome = event.outcome
        self._print(
            f"[green]END: {escape(outcome.worker)} has encoded {escape(str(outcome.job.destination_path))} "
            f"successfully ({outcome.duration_seconds or 0.0:.1f}s)[/green]"
        )

    def on_job_failed(self, event: JobFailed):
        outcome = event.outcome
        self._print(
            f"[red]END: {escape(outcome.worker)} failed to encode {escape(str(outcome.job.source_path))}: "
            f"{escape(outcome.error_message or 'unknown error')}[/red]",
            err=True,
        )

    def on_slot_underflow(self, event: SlotUnderflow):
        self._print(f"[bold red]{escape(event.worker)}: ERROR running count is not > 0[/bold red]", err=True)

    def on_drain_waiting(self, event: DrainWaiting):
        self._print(f"[yellow]Number of active workers = {event.running}, waiting for them to finish[/yellow]")

    def on_processing_finished(self, event: ProcessingFinished):
        summary = event.summary
        self._print("All tasks finished, closing...")
        line = (
            f"Converted: {summary.succeeded} | Failed: {len(summary.failed)} | "
            f"Not started: {len(summary.spawn_failures)} | Skipped: {summary.skipped}"
        )
        self._print(f"[red]{line}[/red]" if summary.has_errors else line)
