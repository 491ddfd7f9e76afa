"""
Constants used across the placement and matchmaking system.
"""

import os
from typing import Optional

# Match creation limits
MIN_MATCH_PLAYERS = 6
MAX_MATCH_PLAYERS = 22
DEFAULT_MAX_PLAYERS = 14
DEFAULT_MATCH_DURATION_MINUTES = 90

# Teams created alongside every new match: (name, color)
DEFAULT_TEAMS = [
    ("Team A", "#3B82F6"),
    ("Team B", "#0EEA4A"),
]

# Upper bound on candidates fetched for a single placement search
PLACEMENT_CANDIDATE_LIMIT = int(os.getenv("PLACEMENT_CANDIDATE_LIMIT", "10"))
PLACEMENT_ALTERNATIVES = 2

# Skill levels that earn partial credit for each other (either direction)
PARTIAL_SKILL_PAIRS = frozenset(
    [
        frozenset(["intermediate", "beginner"]),
    ]
)

# Time slot windows in venue-local hours [start, end)
TIME_SLOT_HOURS = {
    "morning": (6, 12),
    "afternoon": (12, 18),
    "night": (18, 24),
}

POSITION_LABELS = {
    "goalkeeper": "Goalkeeper",
    "defender": "Defender",
    "midfielder": "Midfielder",
    "forward": "Forward",
}

# Venues seeded on startup: (slug, name, address, latitude, longitude)
DEFAULT_FIELDS = [
    (
        "lubetkin",
        "Lubetkin Field at Mal Simon Stadium",
        "100 Lock Street, Newark, NJ 07102",
        40.74308793894847,
        -74.17997257559435,
    ),
    (
        "frederick-douglass",
        "Frederick Douglass Field (NJIT Newark)",
        "42 Warren Street, Newark, NJ 07102",
        40.73980320692472,
        -74.17576597493134,
    ),
]


class PlacementConfigError(RuntimeError):
    """A PLACEMENT_* environment override is not a number."""


def _env_number(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise PlacementConfigError(f"{key} must be a number, got {value!r}")


class PlacementWeights:
    """
    Point weights and thresholds used to score a candidate match.

    Every value has an environment override (see ``from_env``) so the policy
    can be tuned without code changes.
    """

    def __init__(
        self,
        skill_exact: int = 30,
        skill_partial: int = 15,
        slot_open: int = 40,
        fairness_high: int = 20,
        fairness_mid: int = 10,
        home_field: int = 10,
        fairness_high_threshold: float = 7,
        fairness_mid_threshold: float = 5,
        min_open_slots: int = 2,
        max_score: int = 100,
    ):
        self.skill_exact = skill_exact
        self.skill_partial = skill_partial
        self.slot_open = slot_open
        self.fairness_high = fairness_high
        self.fairness_mid = fairness_mid
        self.home_field = home_field
        self.fairness_high_threshold = fairness_high_threshold
        self.fairness_mid_threshold = fairness_mid_threshold
        self.min_open_slots = min_open_slots
        self.max_score = max_score

    @classmethod
    def from_env(cls, defaults: Optional["PlacementWeights"] = None) -> "PlacementWeights":
        """
        Build weights from PLACEMENT_* environment variables.

        Raises:
            PlacementConfigError: If an override is not numeric
        """
        base = defaults or cls()
        return cls(
            skill_exact=int(_env_number("PLACEMENT_WEIGHT_SKILL_EXACT", base.skill_exact)),
            skill_partial=int(_env_number("PLACEMENT_WEIGHT_SKILL_PARTIAL", base.skill_partial)),
            slot_open=int(_env_number("PLACEMENT_WEIGHT_SLOT_OPEN", base.slot_open)),
            fairness_high=int(_env_number("PLACEMENT_WEIGHT_FAIRNESS_HIGH", base.fairness_high)),
            fairness_mid=int(_env_number("PLACEMENT_WEIGHT_FAIRNESS_MID", base.fairness_mid)),
            home_field=int(_env_number("PLACEMENT_WEIGHT_HOME_FIELD", base.home_field)),
            fairness_high_threshold=_env_number(
                "PLACEMENT_FAIRNESS_HIGH_THRESHOLD", base.fairness_high_threshold
            ),
            fairness_mid_threshold=_env_number(
                "PLACEMENT_FAIRNESS_MID_THRESHOLD", base.fairness_mid_threshold
            ),
            min_open_slots=int(_env_number("PLACEMENT_MIN_OPEN_SLOTS", base.min_open_slots)),
            max_score=int(_env_number("PLACEMENT_MAX_SCORE", base.max_score)),
        )

    def __repr__(self) -> str:
        return (
            f"PlacementWeights(skill_exact={self.skill_exact}, skill_partial={self.skill_partial}, "
            f"slot_open={self.slot_open}, fairness_high={self.fairness_high}, "
            f"fairness_mid={self.fairness_mid}, home_field={self.home_field})"
        )


DEFAULT_PLACEMENT_WEIGHTS = PlacementWeights()
