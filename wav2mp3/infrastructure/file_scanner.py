import os
import logging
from pathlib import Path
from typing import Iterator, List, Union
from wav2mp3.config.models import normalize_suffix
from wav2mp3.domain.models import Job, SkippedEntry


class DirectoryOpenError(OSError):
    """The source directory could not be listed."""


def final_suffix(name: str) -> str:
    """Last `.`-delimited segment of `name` including the dot, or "" if there is none.

    Unlike `Path.suffix`, a leading dot counts: ".wav" has the suffix ".wav".
    """
    _, dot, tail = name.rpartition(".")
    return dot + tail if dot else ""


def derive_destination(source: Path, target_suffix: str) -> Path:
    """Replaces the final suffix of `source` with `target_suffix`, same directory."""
    name = source.name
    suffix = final_suffix(name)
    stem = name[:-len(suffix)] if suffix else name
    return source.with_name(stem + normalize_suffix(target_suffix))


class FileScanner:
    """Lists one directory (non-recursive) and turns entries into jobs."""

    def __init__(self, source_suffix: str = ".wav", target_suffix: str = ".mp3"):
        self.source_suffix = normalize_suffix(source_suffix)
        self.target_suffix = normalize_suffix(target_suffix)
        self.logger = logging.getLogger(__name__)

    def classify(self, path: Path, is_file: bool = True) -> Union[Job, SkippedEntry]:
        """Builds a Job for a matching source file, a SkippedEntry otherwise."""
        suffix = final_suffix(path.name)
        if not suffix:
            return SkippedEntry(path=path, reason="no file extension")
        # Case-sensitive on purpose: "a.WAV" is not a source file
        if suffix != self.source_suffix:
            return SkippedEntry(path=path, reason=f"extension {suffix} is not {self.source_suffix}")
        if not is_file:
            return SkippedEntry(path=path, reason="not a regular file")
        return Job(source_path=path, destination_path=derive_destination(path, self.target_suffix))

    def scan(self, directory: Path) -> Iterator[Union[Job, SkippedEntry]]:
        """Opens `directory` now and returns an iterator over its entries.

        Entries keep the order the OS lists them in. The listing is taken
        up front so files written by running encoders are not picked up.
        Raises DirectoryOpenError if the directory cannot be read.
        """
        try:
            with os.scandir(directory) as it:
                entries: List[os.DirEntry] = list(it)
        except OSError as e:
            raise DirectoryOpenError(f"Cannot open directory {directory}: {e.strerror or e}") from e

        self.logger.info(f"Scanned {directory}: {len(entries)} entries")
        return self._classify_entries(Path(directory), entries)

    def _classify_entries(self, directory: Path, entries: List[os.DirEntry]) -> Iterator[Union[Job, SkippedEntry]]:
        for entry in entries:
            try:
                is_file = entry.is_file()
            except OSError:
                is_file = False
            yield self.classify(directory / entry.name, is_file=is_file)
