"""
Tests for the auto-placement scorer, ranking and placement flow.
"""

from datetime import datetime, timedelta

import pytest
import pytz

from teammind.models.schemas import CandidateMatch, PlacementPreferences
from teammind.services import match_service, placement_service
from teammind.services.placement_service import (
    NoMatchesAvailableError,
    rank_candidates,
    score_candidate,
)
from teammind.tests.conftest import add_profile, create_future_match
from teammind.utils.constants import PlacementConfigError, PlacementWeights
from teammind.utils.datetime_utils import format_match_time, to_local, utcnow

NOW = pytz.UTC.localize(datetime(2025, 6, 5, 12, 0))


def candidate(match_id=1, skill="intermediate", fairness=None, field_id=1, current=8, max_players=14,
              hours_ahead=6):
    return CandidateMatch(
        id=match_id,
        scheduled_at=NOW + timedelta(hours=hours_ahead),
        field_id=field_id,
        field_name=f"Field {field_id}",
        skill_level=skill,
        max_players=max_players,
        current_players=current,
        fairness_score=fairness,
    )


@pytest.fixture
def preferences():
    return PlacementPreferences(
        skill_level="intermediate", preferred_position="midfielder", home_field_id=1
    )


# ============================================================================
# score_candidate
# ============================================================================


class TestScoreCandidate:
    def test_perfect_match_scores_100(self):
        c = candidate(skill="intermediate", fairness=8, field_id=1, current=8)
        assert score_candidate(c, "intermediate", "midfielder", 1) == 100

    def test_nothing_matches_scores_0(self):
        c = candidate(skill="advanced", fairness=None, field_id=2, current=13)
        assert score_candidate(c, "intermediate", "midfielder", 1) == 0

    def test_exact_skill_adds_30_over_unrelated_skill(self):
        exact = candidate(skill="advanced", current=14)
        unrelated = candidate(skill="beginner", current=14)
        assert score_candidate(exact, "advanced") - score_candidate(unrelated, "advanced") == 30

    def test_partial_skill_is_symmetric(self):
        c_beginner = candidate(skill="beginner", current=14)
        c_intermediate = candidate(skill="intermediate", current=14)
        assert score_candidate(c_beginner, "intermediate") == 15
        assert score_candidate(c_intermediate, "beginner") == 15

    def test_advanced_and_intermediate_are_not_partial(self):
        c = candidate(skill="advanced", current=14)
        assert score_candidate(c, "intermediate") == 0

    def test_missing_skill_scores_no_skill_points(self):
        c = candidate(skill=None, current=14)
        assert score_candidate(c, "intermediate") == 0

    @pytest.mark.parametrize(
        "current,expected",
        [(12, 40), (13, 0), (14, 0), (0, 40)],
    )
    def test_open_slot_threshold(self, current, expected):
        c = candidate(skill=None, current=current, max_players=14)
        assert score_candidate(c, "intermediate") == expected

    def test_overfull_match_gets_no_slot_points(self):
        c = candidate(skill=None, current=16, max_players=14)
        assert score_candidate(c, "intermediate") == 0

    @pytest.mark.parametrize(
        "fairness,expected",
        [(None, 0), (5, 0), (5.5, 10), (7, 10), (7.1, 20), (10, 20)],
    )
    def test_fairness_bands(self, fairness, expected):
        c = candidate(skill=None, fairness=fairness, current=14)
        assert score_candidate(c, "intermediate") == expected

    def test_fairness_8_beats_fairness_4_by_at_least_10(self):
        high = candidate(fairness=8)
        low = candidate(fairness=4)
        assert score_candidate(high, "intermediate", None, 1) - score_candidate(low, "intermediate", None, 1) >= 10

    def test_home_field_adds_exactly_10(self):
        at_home = candidate(field_id=1, fairness=6)
        away = candidate(field_id=2, fairness=6)
        assert score_candidate(at_home, "beginner", None, 1) - score_candidate(away, "beginner", None, 1) == 10

    def test_no_home_field_means_no_bonus(self):
        c = candidate(skill=None, field_id=1, current=14)
        assert score_candidate(c, "intermediate", None, None) == 0

    def test_position_does_not_change_score(self):
        c = candidate(fairness=8)
        assert score_candidate(c, "intermediate", "goalkeeper", 1) == score_candidate(
            c, "intermediate", "forward", 1
        )

    def test_score_is_capped_at_max(self):
        generous = PlacementWeights(skill_exact=60, slot_open=60)
        c = candidate(fairness=9, field_id=1)
        assert score_candidate(c, "intermediate", None, 1, weights=generous) == 100

    def test_score_is_never_negative(self):
        negative = PlacementWeights(skill_exact=-50, slot_open=0)
        c = candidate(current=14)
        assert score_candidate(c, "intermediate", weights=negative) == 0

    def test_score_range_over_grid(self):
        for skill in ("beginner", "intermediate", "advanced", None):
            for fairness in (None, 0, 5, 6, 7, 8, 10):
                for current in (0, 12, 13, 14):
                    for field_id in (1, 2):
                        c = candidate(skill=skill, fairness=fairness, field_id=field_id, current=current)
                        for user_skill in ("beginner", "intermediate", "advanced"):
                            assert 0 <= score_candidate(c, user_skill, None, 1) <= 100

    def test_custom_weights_are_used(self):
        weights = PlacementWeights(home_field=25)
        c = candidate(skill=None, field_id=1, current=14)
        assert score_candidate(c, "intermediate", None, 1, weights=weights) == 25


class TestPlacementWeights:
    def test_defaults(self):
        w = PlacementWeights()
        assert (w.skill_exact, w.skill_partial, w.slot_open) == (30, 15, 40)
        assert (w.fairness_high, w.fairness_mid, w.home_field) == (20, 10, 10)
        assert w.max_score == 100

    def test_from_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PLACEMENT_WEIGHT_HOME_FIELD", "15")
        monkeypatch.setenv("PLACEMENT_FAIRNESS_HIGH_THRESHOLD", "8.5")
        w = PlacementWeights.from_env()
        assert w.home_field == 15
        assert w.fairness_high_threshold == 8.5
        assert w.skill_exact == 30

    def test_from_env_ignores_blank_values(self, monkeypatch):
        monkeypatch.setenv("PLACEMENT_WEIGHT_SLOT_OPEN", "")
        assert PlacementWeights.from_env().slot_open == 40

    def test_from_env_rejects_non_numeric(self, monkeypatch):
        monkeypatch.setenv("PLACEMENT_WEIGHT_SKILL_EXACT", "thirty")
        with pytest.raises(PlacementConfigError, match="PLACEMENT_WEIGHT_SKILL_EXACT"):
            PlacementWeights.from_env()

    def test_config_error_is_not_a_value_error(self):
        assert not issubclass(PlacementConfigError, ValueError)


# ============================================================================
# rank_candidates
# ============================================================================


class TestRankCandidates:
    def test_worked_scenario_recommends_a(self, preferences):
        a = candidate(match_id=1, skill="intermediate", fairness=8, field_id=1, current=8)
        b = candidate(match_id=2, skill="advanced", fairness=None, field_id=2, current=13)

        ranking = rank_candidates([b, a], preferences, now=NOW)

        assert ranking.recommended.match.id == 1
        assert ranking.recommended.score == 100
        assert [s.match.id for s in ranking.alternatives] == [2]
        assert ranking.alternatives[0].score == 0

    def test_empty_candidates_raise(self, preferences):
        with pytest.raises(NoMatchesAvailableError, match="No matches available"):
            rank_candidates([], preferences)

    def test_ties_keep_input_order(self, preferences):
        tied = [candidate(match_id=i, fairness=6) for i in (5, 3, 9, 1)]
        ranking = rank_candidates(tied, preferences, now=NOW)
        assert ranking.recommended.match.id == 5
        assert [s.match.id for s in ranking.alternatives] == [3, 9]

    def test_at_most_two_alternatives(self, preferences):
        many = [candidate(match_id=i) for i in range(1, 7)]
        ranking = rank_candidates(many, preferences, now=NOW)
        assert len(ranking.alternatives) == 2

    def test_single_candidate_has_no_alternatives(self, preferences):
        ranking = rank_candidates([candidate()], preferences, now=NOW)
        assert ranking.alternatives == []

    def test_ranked_by_score_descending(self, preferences):
        low = candidate(match_id=1, skill="advanced", field_id=2, current=13)
        mid = candidate(match_id=2, skill="beginner", field_id=2)
        high = candidate(match_id=3, skill="intermediate", field_id=1, fairness=9)
        ranking = rank_candidates([low, mid, high], preferences, now=NOW)
        scores = [ranking.recommended.score] + [s.score for s in ranking.alternatives]
        assert [ranking.recommended.match.id] + [s.match.id for s in ranking.alternatives] == [3, 2, 1]
        assert scores == sorted(scores, reverse=True)

    def test_display_fields(self, preferences, monkeypatch):
        monkeypatch.setenv("APP_TIMEZONE", "UTC")
        c = candidate(match_id=1, fairness=8, current=8, hours_ahead=7)
        scored = rank_candidates([c], preferences, now=NOW).recommended
        assert scored.occupancy == "8/14"
        assert scored.score_percent == "100%"
        assert scored.role_label == "Midfielder"
        assert scored.field_name == "Field 1"
        assert scored.formatted_time == "Today at 7:00 PM"
        assert scored.position_likely_open is True

    def test_role_label_defaults_to_midfielder(self):
        assert placement_service.role_label(None) == "Midfielder"
        assert placement_service.role_label("goalkeeper") == "Goalkeeper"


# ============================================================================
# Candidate fetch and placement flow (database)
# ============================================================================


@pytest.mark.asyncio
async def test_get_candidate_matches_filters_and_orders(db_session, organizer, home_field, away_field):
    later = await create_future_match(db_session, organizer.id, home_field.id, hours_ahead=48)
    sooner = await create_future_match(db_session, organizer.id, away_field.id, hours_ahead=24)
    await create_future_match(db_session, organizer.id, home_field.id, hours_ahead=30, is_public=False)

    candidates = await placement_service.get_candidate_matches(db_session)

    assert [c.id for c in candidates] == [sooner["id"], later["id"]]
    assert candidates[0].field_name == away_field.name
    assert candidates[0].current_players == 0
    assert candidates[0].scheduled_at.tzinfo is not None


@pytest.mark.asyncio
async def test_get_candidate_matches_counts_team_members(db_session, organizer, home_field):
    match = await create_future_match(db_session, organizer.id, home_field.id)
    for i in range(3):
        await add_profile(db_session, f"p{i}")
        await match_service.join_match(db_session, match["id"], f"p{i}")

    candidates = await placement_service.get_candidate_matches(db_session)

    assert candidates[0].current_players == 3


@pytest.mark.asyncio
async def test_get_candidate_matches_respects_limit_and_field(db_session, organizer, home_field, away_field):
    for hours in (10, 20, 30):
        await create_future_match(db_session, organizer.id, home_field.id, hours_ahead=hours)
    await create_future_match(db_session, organizer.id, away_field.id, hours_ahead=5)

    limited = await placement_service.get_candidate_matches(db_session, limit=2)
    at_home = await placement_service.get_candidate_matches(db_session, field_id=home_field.id)

    assert len(limited) == 2
    assert len(at_home) == 3
    assert all(c.field_id == home_field.id for c in at_home)


def local_time_tomorrow(hour, minute=0):
    tz = pytz.timezone("America/New_York")
    tomorrow = (utcnow().astimezone(tz) + timedelta(days=1)).date()
    return tz.localize(datetime(tomorrow.year, tomorrow.month, tomorrow.day, hour, minute))


@pytest.mark.asyncio
async def test_get_candidate_matches_time_slot(db_session, organizer, home_field, monkeypatch):
    monkeypatch.setenv("APP_TIMEZONE", "America/New_York")
    for hour in (9, 15, 20):
        await match_service.create_match(
            db_session, created_by=organizer.id, field_id=home_field.id,
            scheduled_at=local_time_tomorrow(hour),
        )

    morning = await placement_service.get_candidate_matches(db_session, time_slot="morning")
    afternoon = await placement_service.get_candidate_matches(db_session, time_slot="afternoon")
    night = await placement_service.get_candidate_matches(db_session, time_slot="night")

    assert [to_local(c.scheduled_at).hour for c in morning] == [9]
    assert [to_local(c.scheduled_at).hour for c in afternoon] == [15]
    assert [to_local(c.scheduled_at).hour for c in night] == [20]


@pytest.mark.asyncio
async def test_late_evening_game_is_a_night_game(db_session, organizer, home_field, monkeypatch):
    # 9 PM in New York is past midnight UTC
    monkeypatch.setenv("APP_TIMEZONE", "America/New_York")
    when = local_time_tomorrow(21)
    await match_service.create_match(
        db_session, created_by=organizer.id, field_id=home_field.id, scheduled_at=when
    )

    night = await placement_service.get_candidate_matches(db_session, time_slot="night")

    assert len(night) == 1
    assert night[0].scheduled_at.astimezone(pytz.UTC).hour in (1, 2)
    assert format_match_time(night[0].scheduled_at, now=when - timedelta(hours=1)) == "Today at 9:00 PM"


@pytest.mark.asyncio
async def test_find_placement_recommends_best_match(db_session, player, organizer, home_field, away_field):
    await create_future_match(db_session, organizer.id, away_field.id, hours_ahead=5, skill_level="advanced")
    best = await create_future_match(db_session, organizer.id, home_field.id, hours_ahead=10)

    ranking = await placement_service.find_placement(db_session, player["id"])

    assert ranking.recommended.match.id == best["id"]
    # intermediate (30) + open slots (40) + home field (10)
    assert ranking.recommended.score == 80
    assert len(ranking.alternatives) == 1


@pytest.mark.asyncio
async def test_find_placement_without_matches(db_session, player):
    with pytest.raises(NoMatchesAvailableError):
        await placement_service.find_placement(db_session, player["id"])


@pytest.mark.asyncio
async def test_find_placement_requires_onboarding(db_session, organizer):
    with pytest.raises(ValueError, match="Complete your profile"):
        await placement_service.find_placement(db_session, organizer.id)


@pytest.mark.asyncio
async def test_confirm_placement_joins_match(db_session, player, organizer, home_field):
    match = await create_future_match(db_session, organizer.id, home_field.id)

    result = await placement_service.confirm_placement(db_session, player["id"], match["id"])

    assert result["match_id"] == match["id"]
    assert result["team_name"] == "Team A"
    assert result["position"] == "Midfielder"
    assert result["field"] == home_field.name
    assert await match_service.is_team_member(db_session, result["team_id"], player["id"]) is not None
