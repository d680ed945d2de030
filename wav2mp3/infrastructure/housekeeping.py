import logging
import os
from pathlib import Path

class HousekeepingService:
    """Removes partial outputs left behind by an interrupted run."""

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def cleanup_temp_files(self, directory: Path, target_suffix: str = ".mp3", source_suffix: str = ".wav") -> int:
        """Removes `<stem><target_suffix>.tmp` files directly inside `directory`.

        Only temp files whose `<stem><source_suffix>` sits next to them are
        touched, since those are the ones a conversion would write.
        """
        pattern_end = f"{target_suffix}.tmp"
        removed = 0
        try:
            names = set(os.listdir(directory))
        except OSError:
            return 0
        for name in sorted(names):
            if not name.endswith(pattern_end):
                continue
            stem = name[:-len(pattern_end)]
            if f"{stem}{source_suffix}" not in names:
                self.logger.debug(f"Keeping {name}: no matching {source_suffix} file")
                continue
            try:
                (Path(directory) / name).unlink()
                removed += 1
            except OSError:
                pass
        if removed:
            self.logger.info(f"Removed {removed} stale temp file(s) from {directory}")
        return removed
