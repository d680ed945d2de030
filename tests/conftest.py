import threading
import pytest
import yaml
from pathlib import Path
from typing import Dict, List, Optional, Set
from wav2mp3.config.models import AppConfig
from wav2mp3.infrastructure.encoder import EncodeError
from wav2mp3.infrastructure.event_bus import EventBus

# ============================================================================
# Encoder Fixtures
# ============================================================================

class FakeEncoder:
    """In-process encoder that records concurrency instead of running ffmpeg.

    `gates` maps a source file name to an Event the encode call waits on,
    so tests decide when each task may finish. Names in `fail` raise
    EncodeError, names in `crash` raise a plain RuntimeError.
    """

    def __init__(self, fail: Optional[Set[str]] = None, crash: Optional[Set[str]] = None,
                 gates: Optional[Dict[str, threading.Event]] = None, delay: float = 0.0):
        self.fail = fail or set()
        self.crash = crash or set()
        self.gates = gates or {}
        self.delay = delay
        self.calls: List[tuple] = []
        self.active = 0
        self.max_active = 0
        self.started = threading.Event()
        self._lock = threading.Lock()

    def version(self) -> str:
        return "fake-lame 3.100"

    def encode(self, source: Path, destination: Path) -> None:
        with self._lock:
            self.calls.append((source, destination))
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.started.set()
        try:
            gate = self.gates.get(source.name)
            if gate is not None:
                assert gate.wait(timeout=10), f"gate for {source.name} never opened"
            elif self.delay:
                threading.Event().wait(self.delay)
            if source.name in self.fail:
                raise EncodeError(f"cannot encode {source.name}")
            if source.name in self.crash:
                raise RuntimeError("encoder crashed")
            if destination.parent.is_dir():
                destination.write_bytes(b"ID3fake")
        finally:
            with self._lock:
                self.active -= 1


@pytest.fixture
def fake_encoder():
    return FakeEncoder()

@pytest.fixture
def make_encoder():
    """Returns the FakeEncoder class for tests that need gates or failures."""
    return FakeEncoder

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Returns a fast-polling AppConfig with two workers."""
    return AppConfig(
        general={
            "threads": 2,
            "source_suffix": ".wav",
            "target_suffix": ".mp3",
            "poll_interval_s": 0.01,
            "fail_on_error": False,
            "debug": False,
        },
        encoder={
            "bitrate_kbps": 128,
            "quality": 5,
        },
    )

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "wav2mp3.yaml"

    content = {
        'general': {
            'threads': 3,
            'source_suffix': 'flac',
            'target_suffix': '.mp3',
            'poll_interval_s': 0.5,
        },
        'encoder': {
            'bitrate_kbps': 192,
            'joint_stereo': False,
        },
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file

# ============================================================================
# EventBus Fixtures
# ============================================================================

@pytest.fixture
def event_bus():
    """Returns a fresh EventBus instance."""
    return EventBus()

@pytest.fixture
def recorded_events(event_bus):
    """Subscribes a recorder to every event type and returns its list."""
    from wav2mp3.domain import events as ev

    received = []
    lock = threading.Lock()

    def record(event):
        with lock:
            received.append(event)

    for event_type in (
        ev.RunStarted, ev.EntrySkipped, ev.AdmissionThrottled, ev.SpawnFailed,
        ev.JobStarted, ev.JobCompleted, ev.JobFailed, ev.SlotUnderflow,
        ev.DrainWaiting, ev.ProcessingFinished,
    ):
        event_bus.subscribe(event_type, record)
    return received

# ============================================================================
# File System Fixtures
# ============================================================================

@pytest.fixture
def source_dir(tmp_path):
    """Creates an empty source directory."""
    directory = tmp_path / "music"
    directory.mkdir()
    return directory

@pytest.fixture
def wav_files(source_dir):
    """Creates a.wav, b.wav and notes.txt in the source directory."""
    files = []
    for name in ("a.wav", "b.wav"):
        f = source_dir / name
        f.write_bytes(b"RIFF" + b"\x00" * 64)
        files.append(f)
    (source_dir / "notes.txt").write_text("liner notes")
    return files
