"""Local leaderboard with basic plausibility checks on submissions."""

import hashlib
import json
import uuid
from datetime import datetime, timezone
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from cyclesim.errors import ScoreValidationError, StorageError
from cyclesim.models.state import TOTAL_DISTANCE_KM
from cyclesim.simulation.race import RaceSummary
from cyclesim.simulation.scoring import ScoreResult

MIN_COMPLETION_SECONDS = 6 * 3600
MAX_COMPLETION_SECONDS = 24 * 3600
MIN_AVERAGE_SPEED = 15.0
MAX_AVERAGE_SPEED = 65.0


def compute_checksum(score: int, completion_time: float, team_finished: int, timestamp: str) -> str:
    """SHA-256 over the fields a tampered submission would change."""
    data = json.dumps(
        {
            "score": int(score),
            "time": round(float(completion_time), 3),
            "team": int(team_finished),
            "timestamp": timestamp,
        },
        sort_keys=True,
    )
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class ScorePayload(BaseModel):
    """A score submitted to the leaderboard."""

    player_name: str = Field(default="Anonymous", min_length=1, max_length=40)
    total_score: int
    completion_time: float = Field(..., description="Race time in seconds")
    team_finished: int = Field(..., ge=0)
    total_team_size: int = Field(..., ge=0)
    team: list[str] = Field(default_factory=list, description="Character types of the team")
    strategy: str = ""
    difficulty: str = "normal"
    timestamp: str
    checksum: str = ""

    @classmethod
    def from_result(
        cls,
        summary: RaceSummary,
        score: ScoreResult | int,
        player_name: str = "Anonymous",
        team: list[str] | None = None,
    ) -> "ScorePayload":
        """Build a signed payload from a finished race."""
        total = score.total_score if isinstance(score, ScoreResult) else int(score)
        timestamp = datetime.now(timezone.utc).isoformat()
        return cls(
            player_name=player_name,
            total_score=total,
            completion_time=summary.completion_time,
            team_finished=summary.team_finished,
            total_team_size=summary.total_team_size,
            team=team or [],
            strategy=summary.strategy.label,
            difficulty=summary.difficulty.value,
            timestamp=timestamp,
            checksum=compute_checksum(total, summary.completion_time, summary.team_finished, timestamp),
        )

    def expected_checksum(self) -> str:
        return compute_checksum(self.total_score, self.completion_time, self.team_finished, self.timestamp)


class LeaderboardEntry(ScorePayload):
    entry_id: str


class SubmissionResult(BaseModel):
    rank: int
    entry_id: str


class Leaderboard:
    """Leaderboard kept in a JSON file.

    Attributes:
        path: JSON file holding the entries
        entries: Accepted entries, highest score first
    """

    def __init__(self, path: str | Path = "output/leaderboard.json"):
        self.path = Path(path)
        self.entries: list[LeaderboardEntry] = self._load()

    def validate(self, payload: ScorePayload) -> list[str]:
        """Plausibility problems with a submission (empty if acceptable)."""
        problems = []
        if payload.total_score < 0:
            problems.append(f"score {payload.total_score} is negative")
        if not MIN_COMPLETION_SECONDS <= payload.completion_time <= MAX_COMPLETION_SECONDS:
            problems.append(f"completion time {payload.completion_time:.0f}s is outside 6-24 h")
        if payload.completion_time > 0:
            average_speed = TOTAL_DISTANCE_KM / (payload.completion_time / 3600)
            if not MIN_AVERAGE_SPEED <= average_speed <= MAX_AVERAGE_SPEED:
                problems.append(f"average speed {average_speed:.1f} km/h is outside 15-65 km/h")
        if payload.checksum != payload.expected_checksum():
            problems.append("checksum mismatch")
        return problems

    def submit(self, payload: ScorePayload) -> SubmissionResult:
        """Add a score.

        The entry is kept in memory even if the file cannot be written.

        Raises:
            ScoreValidationError: If the submission is implausible
        """
        problems = self.validate(payload)
        if problems:
            logger.warning(f"Rejected leaderboard submission from {payload.player_name}: {'; '.join(problems)}")
            raise ScoreValidationError(problems)

        rank = self.rank_of(payload.total_score)
        entry = LeaderboardEntry(**payload.model_dump(), entry_id=uuid.uuid4().hex)
        self.entries.append(entry)
        self.entries.sort(key=lambda e: e.total_score, reverse=True)
        try:
            self._save()
        except StorageError as e:
            logger.error(f"Leaderboard entry not persisted: {e}")

        logger.info(f"{payload.player_name} scored {payload.total_score} (rank #{rank})")
        return SubmissionResult(rank=rank, entry_id=entry.entry_id)

    def top(self, n: int = 10) -> list[LeaderboardEntry]:
        return self.entries[:n]

    def rank_of(self, score: int) -> int:
        """Number of strictly higher scores plus one."""
        return sum(1 for e in self.entries if e.total_score > score) + 1

    def scores(self) -> list[int]:
        return [e.total_score for e in self.entries]

    def _load(self) -> list[LeaderboardEntry]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            entries = [LeaderboardEntry.model_validate(item) for item in raw]
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Could not read leaderboard at {self.path}, starting empty: {e}")
            return []
        return sorted(entries, key=lambda e: e.total_score, reverse=True)

    def _save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump([e.model_dump(mode="json") for e in self.entries], f, indent=2)
        except OSError as e:
            raise StorageError(f"{self.path}: {e}") from e
