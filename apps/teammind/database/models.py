"""
SQLAlchemy ORM models for the TeamMind pickup-soccer service.
"""

import enum
import uuid
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Float,
    Date,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
    Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from teammind.database.db import Base


class SkillLevel(str, enum.Enum):
    """Player / match skill level enum."""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class PlayerPosition(str, enum.Enum):
    """Preferred or assigned on-field position."""

    GOALKEEPER = "goalkeeper"
    DEFENDER = "defender"
    MIDFIELDER = "midfielder"
    FORWARD = "forward"


class MatchType(str, enum.Enum):
    """Match type enum."""

    CASUAL = "casual"
    COMPETITIVE = "competitive"


class AppRole(str, enum.Enum):
    """Application role enum."""

    PLAYER = "player"
    CAPTAIN = "captain"
    STAFF = "staff"


class ParticipantStatus(str, enum.Enum):
    """Match participation status."""

    JOINED = "joined"
    LEFT = "left"


class TimeSlot(str, enum.Enum):
    """Daily availability time slot."""

    MORNING = "morning"
    AFTERNOON = "afternoon"
    NIGHT = "night"


class AvailabilityStatus(str, enum.Enum):
    """Daily availability status."""

    LOOKING = "looking"
    NOT_LOOKING = "not_looking"


def _new_uuid() -> str:
    return str(uuid.uuid4())


class Field(Base):
    """Playing fields (venues)."""

    __tablename__ = "fields"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False, unique=True)
    slug = Column(String(100), nullable=True, unique=True)  # e.g. "lubetkin"
    location = Column(String, nullable=False)  # Street address
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    capacity = Column(Integer, nullable=True)
    status = Column(String(20), nullable=True, default="open")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    matches = relationship("Match", back_populates="field")
    home_players = relationship("Profile", back_populates="home_field")

    __table_args__ = (Index("idx_fields_name", "name"),)


class Profile(Base):
    """Player profiles keyed by the auth service's user id."""

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_new_uuid)
    email = Column(String, nullable=False)
    full_name = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    skill_level = Column(String(20), nullable=True)  # SkillLevel value
    preferred_position = Column(String(20), nullable=True)  # PlayerPosition value
    preferred_match_type = Column(String(20), nullable=True)  # MatchType value
    home_field_id = Column(Integer, ForeignKey("fields.id"), nullable=True)
    games_played = Column(Integer, default=0)
    win_rate = Column(Float, nullable=True)
    attendance_rate = Column(Float, nullable=True)
    fair_play_rating = Column(Float, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    home_field = relationship("Field", back_populates="home_players")
    roles = relationship("UserRole", back_populates="user", cascade="all, delete-orphan")
    team_memberships = relationship("TeamMember", back_populates="user")

    __table_args__ = (Index("idx_profiles_home_field", "home_field_id"),)


class UserRole(Base):
    """Application roles granted to a profile."""

    __tablename__ = "user_roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    role = Column(String(20), nullable=False)  # AppRole value

    user = relationship("Profile", back_populates="roles")

    __table_args__ = (UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),)


class Match(Base):
    """Scheduled pickup games."""

    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    field_id = Column(Integer, ForeignKey("fields.id"), nullable=True)
    scheduled_at = Column(DateTime(timezone=True), nullable=False)
    duration_minutes = Column(Integer, default=90)
    match_type = Column(String(20), nullable=True, default=MatchType.CASUAL.value)
    skill_level = Column(String(20), nullable=True)
    max_players = Column(Integer, nullable=True, default=14)
    is_public = Column(Boolean, default=True)
    auto_balance = Column(Boolean, default=False)
    fairness_score = Column(Float, nullable=True)  # 0-10 team balance rating
    created_by = Column(String(36), ForeignKey("profiles.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    field = relationship("Field", back_populates="matches")
    creator = relationship("Profile", foreign_keys=[created_by])
    teams = relationship(
        "Team", back_populates="match", cascade="all, delete-orphan", order_by="Team.id"
    )
    participants = relationship(
        "MatchParticipant", back_populates="match", cascade="all, delete-orphan"
    )
    messages = relationship("Message", back_populates="match", cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(
            "fairness_score IS NULL OR (fairness_score >= 0 AND fairness_score <= 10)",
            name="ck_matches_fairness_range",
        ),
        Index("idx_matches_scheduled_at", "scheduled_at"),
        Index("idx_matches_public_scheduled", "is_public", "scheduled_at"),
        Index("idx_matches_field", "field_id"),
    )


class Team(Base):
    """One side of a match."""

    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False)
    name = Column(String, nullable=False)
    color = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    match = relationship("Match", back_populates="teams")
    members = relationship(
        "TeamMember", back_populates="team", cascade="all, delete-orphan", order_by="TeamMember.id"
    )

    __table_args__ = (Index("idx_teams_match", "match_id"),)


class TeamMember(Base):
    """Roster entry for a team."""

    __tablename__ = "team_members"

    id = Column(Integer, primary_key=True, autoincrement=True)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    assigned_position = Column(String(20), nullable=True)  # PlayerPosition value
    is_captain = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    team = relationship("Team", back_populates="members")
    user = relationship("Profile", back_populates="team_memberships")

    __table_args__ = (
        UniqueConstraint("team_id", "user_id", name="uq_team_members_team_user"),
        Index("idx_team_members_user", "user_id"),
    )


class MatchParticipant(Base):
    """A user's participation record for a match."""

    __tablename__ = "match_participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    status = Column(String(20), nullable=False, default=ParticipantStatus.JOINED.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    match = relationship("Match", back_populates="participants")
    user = relationship("Profile")

    __table_args__ = (
        UniqueConstraint("match_id", "user_id", name="uq_match_participants_match_user"),
    )


class UserAvailability(Base):
    """Daily 'looking for a game' status, one row per user per day."""

    __tablename__ = "user_availability"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    date = Column(Date, nullable=False)
    time_slot = Column(String(20), nullable=False)  # TimeSlot value
    status = Column(String(20), nullable=False, default=AvailabilityStatus.LOOKING.value)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("Profile")

    __table_args__ = (
        UniqueConstraint("user_id", "date", name="uq_user_availability_user_date"),
        Index("idx_user_availability_date_status", "date", "status"),
    )


class Post(Base):
    """Community feed posts."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    content = Column(Text, nullable=False)
    media_url = Column(String, nullable=True)
    match_tag = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    author = relationship("Profile")
    likes = relationship("PostLike", back_populates="post", cascade="all, delete-orphan")
    comments = relationship("PostComment", back_populates="post", cascade="all, delete-orphan")

    __table_args__ = (Index("idx_posts_created_at", "created_at"),)


class PostLike(Base):
    """A like on a post."""

    __tablename__ = "post_likes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    post = relationship("Post", back_populates="likes")

    __table_args__ = (UniqueConstraint("post_id", "user_id", name="uq_post_likes_post_user"),)


class PostComment(Base):
    """A comment on a post."""

    __tablename__ = "post_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    post = relationship("Post", back_populates="comments")
    author = relationship("Profile")

    __table_args__ = (Index("idx_post_comments_post", "post_id"),)


class Message(Base):
    """Team chat messages."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False)
    team_id = Column(Integer, ForeignKey("teams.id"), nullable=True)
    sender_id = Column(String(36), ForeignKey("profiles.id"), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String(20), nullable=True, default="text")
    is_captain_only = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    match = relationship("Match", back_populates="messages")
    sender = relationship("Profile")

    __table_args__ = (
        Index("idx_messages_team_created", "team_id", "created_at"),
    )
