"""State storage and leaderboard collaborators."""

from .leaderboard import Leaderboard, LeaderboardEntry, ScorePayload, SubmissionResult
from .storage import StateStore

__all__ = ["Leaderboard", "LeaderboardEntry", "ScorePayload", "StateStore", "SubmissionResult"]
