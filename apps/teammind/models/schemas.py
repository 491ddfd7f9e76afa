"""
Pydantic models for API request/response validation and placement snapshots.
"""

from datetime import datetime, date
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict, field_validator

from teammind.database.models import (
    SkillLevel,
    PlayerPosition,
    MatchType,
    AppRole,
    TimeSlot,
)


# ============================================================================
# Placement snapshots
# ============================================================================


class CandidateMatch(BaseModel):
    """Point-in-time snapshot of an upcoming public match, used for scoring."""

    model_config = ConfigDict(frozen=True)

    id: int
    scheduled_at: datetime
    field_id: Optional[int] = None
    field_name: Optional[str] = None
    skill_level: Optional[SkillLevel] = None
    max_players: int
    current_players: int = 0
    fairness_score: Optional[float] = None

    @property
    def open_slots(self) -> int:
        return self.max_players - self.current_players


class PlacementPreferences(BaseModel):
    """The requesting user's preferences."""

    model_config = ConfigDict(frozen=True)

    skill_level: SkillLevel
    preferred_position: PlayerPosition
    home_field_id: Optional[int] = None


class ScoredMatch(BaseModel):
    """A candidate with its computed score and display fields."""

    model_config = ConfigDict(frozen=True)

    match: CandidateMatch
    score: int
    position_likely_open: bool
    field_name: str
    formatted_time: str
    role_label: str
    occupancy: str
    score_percent: str


class PlacementRanking(BaseModel):
    """Top recommendation plus runners-up."""

    recommended: ScoredMatch
    alternatives: List[ScoredMatch] = []


# ============================================================================
# Placement API
# ============================================================================


class PlacementSearchRequest(BaseModel):
    """Optional narrowing of the candidate set."""

    field_id: Optional[int] = None
    time_slot: Optional[TimeSlot] = None


class PlacementConfirmRequest(BaseModel):
    """Accept a recommended or alternative match."""

    match_id: int


class PlacementConfirmResponse(BaseModel):
    """Result of accepting a placement."""

    match_id: int
    team_id: int
    team_name: str
    position: str
    match_time: str
    field: str


# ============================================================================
# Profiles
# ============================================================================


class ProfileResponse(BaseModel):
    """Player profile."""

    id: str
    email: str
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    skill_level: Optional[str] = None
    preferred_position: Optional[str] = None
    preferred_match_type: Optional[str] = None
    home_field_id: Optional[int] = None
    games_played: Optional[int] = 0
    win_rate: Optional[float] = None
    attendance_rate: Optional[float] = None
    fair_play_rating: Optional[float] = None
    roles: List[str] = []


class OnboardingRequest(BaseModel):
    """First-run profile setup."""

    full_name: Optional[str] = None
    skill_level: SkillLevel
    preferred_position: PlayerPosition
    preferred_match_type: Optional[MatchType] = None
    home_field_id: Optional[int] = None
    role: AppRole = AppRole.PLAYER


class UpdateProfileRequest(BaseModel):
    """Partial profile update."""

    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    skill_level: Optional[SkillLevel] = None
    preferred_position: Optional[PlayerPosition] = None
    preferred_match_type: Optional[MatchType] = None
    home_field_id: Optional[int] = None


# ============================================================================
# Fields
# ============================================================================


class FieldResponse(BaseModel):
    """Playing field."""

    id: int
    name: str
    slug: Optional[str] = None
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    capacity: Optional[int] = None
    status: Optional[str] = None
    upcoming_matches: Optional[int] = None


# ============================================================================
# Matches & teams
# ============================================================================


class CreateMatchRequest(BaseModel):
    """Request to create a new match."""

    field_id: int
    scheduled_at: datetime
    match_type: MatchType = MatchType.CASUAL
    skill_level: SkillLevel = SkillLevel.INTERMEDIATE
    max_players: int = 14
    is_public: bool = True
    duration_minutes: Optional[int] = None


class MatchSummary(BaseModel):
    """Upcoming match list entry."""

    id: int
    scheduled_at: datetime
    field_id: Optional[int] = None
    field_name: Optional[str] = None
    match_type: Optional[str] = None
    skill_level: Optional[str] = None
    max_players: Optional[int] = None
    current_players: int = 0
    fairness_score: Optional[float] = None
    is_public: Optional[bool] = None


class TeamMemberResponse(BaseModel):
    """Roster entry."""

    user_id: str
    full_name: Optional[str] = None
    skill_level: Optional[str] = None
    preferred_position: Optional[str] = None
    assigned_position: Optional[str] = None
    is_captain: bool = False


class TeamResponse(BaseModel):
    """Team with roster."""

    id: int
    match_id: int
    name: str
    color: Optional[str] = None
    members: List[TeamMemberResponse] = []


class MatchDetailResponse(MatchSummary):
    """Match with field, creator and rosters."""

    field_location: Optional[str] = None
    created_by_name: Optional[str] = None
    duration_minutes: Optional[int] = None
    teams: List[TeamResponse] = []
    user_team_id: Optional[int] = None


class JoinMatchResponse(BaseModel):
    """Result of joining a match."""

    match_id: int
    team_id: int
    team_name: str
    assigned_position: Optional[str] = None


class TeamDetailResponse(TeamResponse):
    """Team, its match and the opposing team."""

    match: MatchSummary
    opponent: Optional[TeamResponse] = None


# ============================================================================
# Availability
# ============================================================================


class SetAvailabilityRequest(BaseModel):
    """Mark the caller as looking for a game today."""

    time_slot: TimeSlot


class AvailabilityResponse(BaseModel):
    """Daily availability status."""

    user_id: str
    date: date
    time_slot: str
    status: str


class AvailabilityStatsResponse(BaseModel):
    """Live community stats."""

    players_looking: int
    community_members: int
    games_today: int


# ============================================================================
# Feed
# ============================================================================


class CreatePostRequest(BaseModel):
    """New feed post."""

    content: str = Field(..., min_length=1, max_length=2000)
    media_url: Optional[str] = None
    match_tag: Optional[str] = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Post content cannot be empty")
        return v.strip()


class PostResponse(BaseModel):
    """Feed post with engagement counts."""

    id: int
    user_id: str
    author_name: Optional[str] = None
    content: str
    media_url: Optional[str] = None
    match_tag: Optional[str] = None
    created_at: Optional[datetime] = None
    like_count: int = 0
    comment_count: int = 0
    liked_by_me: bool = False


class LikeToggleResponse(BaseModel):
    """New like state."""

    post_id: int
    liked: bool
    like_count: int


class CreateCommentRequest(BaseModel):
    """New comment."""

    content: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    """Post comment."""

    id: int
    post_id: int
    user_id: str
    author_name: Optional[str] = None
    content: str
    created_at: Optional[datetime] = None


# ============================================================================
# Chat
# ============================================================================


class SendMessageRequest(BaseModel):
    """New team chat message."""

    content: str = Field(..., min_length=1, max_length=2000)
    is_captain_only: bool = False


class MessageResponse(BaseModel):
    """Team chat message."""

    id: int
    match_id: int
    team_id: Optional[int] = None
    sender_id: str
    sender_name: Optional[str] = None
    content: str
    message_type: Optional[str] = None
    is_captain_only: bool = False
    created_at: Optional[datetime] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    message: str
