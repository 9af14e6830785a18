"""
YouTube Copyright Checker - Data Model
Copyright (c) 2026 beautifulplanet
Licensed under MIT License

Plain value types shared by the analyzer, the session and the API layer.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional


class RiskLevel(str, Enum):
    """Copyright risk, ordered low < medium < high."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def __lt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, RiskLevel):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}

# Display order of the analyzed facets
DIMENSIONS = ("title", "description", "music", "footage", "thumbnail", "text")


@dataclass(frozen=True)
class SubmissionInput:
    """
    Snapshot of the creator's upload form.

    Only presence of the thumbnail matters; file handles are carried
    through untouched. `tags` and `has_voiceover` are collected by the
    form but no rule reads them yet.
    """
    title: str = ""
    description: str = ""
    tags: str = ""
    uses_music: bool = False
    music_source: str = ""
    uses_footage: bool = False
    footage_source: str = ""
    has_text: bool = False
    text_source: str = ""
    has_voiceover: bool = False
    has_thumbnail: bool = False
    video_file: Optional[str] = None
    audio_file: Optional[str] = None
    thumbnail_file: Optional[str] = None

    @property
    def tag_list(self) -> list[str]:
        return [t.strip() for t in (self.tags or "").split(",") if t.strip()]


@dataclass(frozen=True)
class DimensionVerdict:
    risk: RiskLevel
    details: str


@dataclass(frozen=True)
class Issue:
    type: str
    severity: RiskLevel
    message: str
    details: str


@dataclass(frozen=True)
class Recommendation:
    priority: RiskLevel
    title: str
    description: str


@dataclass(frozen=True)
class AnalysisReport:
    """
    Result of one analysis run. A new run produces a new report;
    nothing here is updated in place. `dimensions` is stored as a
    read-only mapping and left out of the hash.
    """
    overall_risk: RiskLevel
    score: int
    issues: tuple[Issue, ...] = ()
    recommendations: tuple[Recommendation, ...] = ()
    dimensions: Mapping[str, DimensionVerdict] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "issues", tuple(self.issues))
        object.__setattr__(self, "recommendations", tuple(self.recommendations))
        object.__setattr__(self, "dimensions", MappingProxyType(dict(self.dimensions)))

    def to_dict(self) -> dict:
        """Plain JSON-ready dict with risk levels as strings."""
        return {
            "overall_risk": self.overall_risk.value,
            "score": self.score,
            "issues": [_plain(asdict(i)) for i in self.issues],
            "recommendations": [_plain(asdict(r)) for r in self.recommendations],
            "dimensions": {
                name: _plain(asdict(verdict))
                for name, verdict in self.dimensions.items()
            },
        }


def _plain(data: dict) -> dict:
    return {k: (v.value if isinstance(v, RiskLevel) else v) for k, v in data.items()}
