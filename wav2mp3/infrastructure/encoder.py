import logging
import subprocess
import time
from pathlib import Path
from typing import List, Optional, Protocol
from wav2mp3.config.models import EncoderConfig


class EncodeError(Exception):
    """The encoder could not produce the destination file."""


class Encoder(Protocol):
    def encode(self, source: Path, destination: Path) -> None:
        ...

    def version(self) -> str:
        ...


class FFmpegEncoder:
    """Wrapper around ffmpeg's libmp3lame encoder.

    Each call owns its own ffmpeg process, so one instance can be shared
    by every worker thread.
    """

    def __init__(self, config: Optional[EncoderConfig] = None):
        self.config = config or EncoderConfig()
        self.logger = logging.getLogger(__name__)

    def _build_command(self, source: Path, tmp_path: Path) -> List[str]:
        """Constructs the ffmpeg command line arguments."""
        cfg = self.config
        cmd = [
            cfg.ffmpeg_path,
            "-y",  # Overwrite output files
            "-nostdin",
            "-hide_banner",
            "-loglevel", "error",
            "-i", str(source),
            "-vn",
            "-c:a", "libmp3lame",
            "-b:a", f"{cfg.bitrate_kbps}k",
            "-ar", str(cfg.sample_rate),
            "-ac", str(cfg.channels),
            "-compression_level", str(cfg.quality),
        ]
        if cfg.channels == 2:
            cmd.extend(["-joint_stereo", "1" if cfg.joint_stereo else "0"])
        # .tmp extension does not indicate the format
        cmd.extend(["-f", "mp3", str(tmp_path)])
        return cmd

    def encode(self, source: Path, destination: Path) -> None:
        """Encodes `source` into `destination`; raises EncodeError on failure."""
        tmp_path = destination.with_name(destination.name + ".tmp")
        cmd = self._build_command(source, tmp_path)
        self.logger.debug(f"FFMPEG_CMD: {' '.join(cmd)}")

        start_time = time.monotonic()
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise EncodeError(f"Cannot run {self.config.ffmpeg_path}: {e}") from e

        if result.returncode != 0:
            # Cleanup tmp file on error
            if tmp_path.exists():
                tmp_path.unlink()
            detail = (result.stderr or "").strip().splitlines()
            message = f"ffmpeg exited with code {result.returncode}"
            if detail:
                message = f"{message}: {detail[-1]}"
            raise EncodeError(message)

        if not tmp_path.exists():
            raise EncodeError(f"ffmpeg produced no output for {source.name}")
        tmp_path.replace(destination)
        elapsed = time.monotonic() - start_time
        self.logger.info(f"FFMPEG_END: {source.name} -> {destination.name} elapsed={elapsed:.2f}s")

    def version(self) -> str:
        """First line of `ffmpeg -version`."""
        try:
            result = subprocess.run(
                [self.config.ffmpeg_path, "-version"], capture_output=True, text=True
            )
        except OSError:
            return "unknown (ffmpeg not found)"
        lines = (result.stdout or "").splitlines()
        if result.returncode != 0 or not lines:
            return "unknown"
        return lines[0].strip()
