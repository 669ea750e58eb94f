"""Save and restore an in-progress race as JSON."""

from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from cyclesim.errors import StorageError
from cyclesim.models import RaceState


class StateStore:
    """Keeps one serialized RaceState on disk.

    Storage problems are logged and reported through return values; the race
    carries on in memory whatever happens here.
    """

    def __init__(self, path: str | Path = "output/race_state.json"):
        self.path = Path(path)

    def save(self, state: RaceState) -> bool:
        """Write the state. Returns False if it could not be saved."""
        try:
            self._write(state.model_dump_json())
        except StorageError as e:
            logger.error(f"Failed to save race state: {e}")
            return False
        logger.debug(f"Race state saved to {self.path} at {state.distance:.1f} km")
        return True

    def load(self) -> RaceState | None:
        """Read the saved state, or None if there is none or it is unreadable."""
        if not self.path.exists():
            return None
        try:
            return RaceState.model_validate_json(self._read())
        except StorageError as e:
            logger.error(f"Failed to load race state: {e}")
        except ValidationError as e:
            logger.error(f"Saved race state at {self.path} is invalid ({e.error_count()} errors)")
        return None

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Failed to clear race state at {self.path}: {e}")

    def _write(self, data: str) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(data, encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            raise StorageError(f"{self.path}: {e}") from e

    def _read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise StorageError(f"{self.path}: {e}") from e
