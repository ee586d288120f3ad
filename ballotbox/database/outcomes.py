"""
Typed results returned by ElectionStore operations.

Expected domain outcomes (a voter who already voted, an unknown username,
a wrong admin password) are values, not exceptions, so callers can branch on
``result.outcome`` and render each case differently.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import Any, Dict, Optional


class LoginOutcome(str, Enum):
    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ALREADY_VOTED = "already_voted"


class CastOutcome(str, Enum):
    SUCCESS = "success"
    ALREADY_VOTED = "already_voted"
    VOTER_NOT_FOUND = "voter_not_found"
    CANDIDATE_NOT_FOUND = "candidate_not_found"


class ResetOutcome(str, Enum):
    SUCCESS = "success"
    NOT_VOTED = "not_voted"
    VOTER_NOT_FOUND = "voter_not_found"
    FAILED = "failed"


class AdminLoginOutcome(str, Enum):
    SUCCESS = "success"
    BAD_USERNAME = "bad_username"
    BAD_PASSWORD = "bad_password"


class _Result:
    outcome: Enum

    @property
    def success(self) -> bool:
        return self.outcome.value == "success"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = asdict(self)
        data['outcome'] = self.outcome.value
        data['success'] = self.success
        return data


@dataclass
class LoginResult(_Result):
    outcome: LoginOutcome
    message: str = ""
    voter: Optional[Dict[str, Any]] = None


@dataclass
class CastResult(_Result):
    """
    Attributes:
        receipt: vote_id, timestamp, candidate, candidate_number, votes,
            voter and voter_class, read back from the committed rows
        voter: voter snapshot, set for ALREADY_VOTED
    """
    outcome: CastOutcome
    message: str = ""
    receipt: Optional[Dict[str, Any]] = None
    voter: Optional[Dict[str, Any]] = None


@dataclass
class ResetResult(_Result):
    outcome: ResetOutcome
    message: str = ""


@dataclass
class AdminLoginResult(_Result):
    outcome: AdminLoginOutcome
    message: str = ""
    admin: Optional[Dict[str, Any]] = None


@dataclass
class RepairResult:
    success: bool
    error: Optional[str] = None
    snapshot: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {'success': self.success, 'error': self.error,
                'snapshot_taken': self.snapshot is not None}
