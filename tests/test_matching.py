import pytest
from unittest.mock import AsyncMock, patch

from collab_match.models.models import MatchResult
from collab_match.services.matching import (
    BarterCheck,
    CollaborationMatcher,
    MatchFailureReason,
    apply_barter_adjustment,
    candidate_roles,
    check_barter_offer,
    check_intent_compatibility,
    check_payment_mode_compatibility,
    check_relationship_applicability,
)

from factories import make_opportunity, make_user


@pytest.fixture
def matcher(mock_store):
    return CollaborationMatcher(store=mock_store, trigger_delay=0)


def _wire(store, opportunity, user, applications=()):
    store.get_opportunity.return_value = opportunity
    store.get_user.return_value = user
    store.get_applications.return_value = list(applications)


class TestGates:

    @pytest.mark.parametrize("role, expected", [
        ("service_provider", True),
        ("individual", True),
        ("entity", True),
        ("beneficiary", False),
        ("project_lead", False),
    ])
    def test_request_service_needs_a_provider(self, role, expected):
        opportunity = make_opportunity(intentType="REQUEST_SERVICE")
        assert check_intent_compatibility(opportunity, make_user(role=role)) is expected

    @pytest.mark.parametrize("role, expected", [
        ("beneficiary", True),
        ("project_lead", True),
        ("vendor", True),
        ("individual", False),
        ("service_provider", False),
    ])
    def test_offer_service_needs_a_consumer(self, role, expected):
        opportunity = make_opportunity(intentType="OFFER_SERVICE")
        assert check_intent_compatibility(opportunity, make_user(role=role)) is expected

    @pytest.mark.parametrize("intent", ["BOTH", None, "SOMETHING_ELSE"])
    def test_lenient_intents(self, intent):
        opportunity = make_opportunity(intentType=intent)
        assert check_intent_compatibility(opportunity, make_user(role="anyone")) is True

    @pytest.mark.parametrize("mode, preference, expected", [
        (None, "Cash", True),
        ("Cash", None, True),
        ("Cash", "Cash", True),
        ("Cash", "Hybrid", True),
        ("Hybrid", "Barter", True),
        ("Cash", "Barter", False),
        ("Barter", "Cash", False),
    ])
    def test_payment_mode(self, mode, preference, expected):
        assert check_payment_mode_compatibility(mode, preference) is expected

    def test_relationship_applicability(self):
        assert check_relationship_applicability(make_opportunity("1.4", relationshipType="B2B")) is True
        assert check_relationship_applicability(make_opportunity("1.4", relationshipType="P2P")) is False
        assert check_relationship_applicability(make_opportunity("9.9")) is False

    def test_candidate_roles(self):
        assert candidate_roles("B2B") == ["entity"]
        assert candidate_roles("B2P") == ["entity"]
        assert candidate_roles("P2B") == ["individual"]
        assert candidate_roles("P2P") == ["individual"]
        assert candidate_roles(None) == []


class TestBarterAdjustment:

    def _result(self, final_score):
        return MatchResult(scores={"x": final_score}, final_score=final_score, meets_threshold=final_score >= 80)

    def test_cash_opportunity_has_no_barter_check(self):
        assert check_barter_offer(make_opportunity(paymentMode="Cash"), make_user()) is None

    def test_nothing_on_either_side_is_neutral(self):
        barter = check_barter_offer(make_opportunity(paymentMode="Barter"), make_user())
        assert barter.score == 50
        assert barter.compatible is True

    def test_preferences_matched_by_keyword(self):
        opportunity = make_opportunity(paymentMode="Barter", attributes={"barterOffer": "Office space"})
        user = make_user(barterPreferences=["office space", "vehicles"])

        barter = check_barter_offer(opportunity, user)

        assert barter.score == 50
        assert barter.matched_preferences == ["office space"]

    def test_unspecified_offer_satisfies_every_preference(self):
        opportunity = make_opportunity(paymentMode="Barter", attributes={})
        user = make_user(barterOffers=["office space"])

        barter = check_barter_offer(opportunity, user)

        assert barter.score == 100
        assert barter.compatible is True
        assert barter.matched_preferences == ["office space"]

    def test_falls_back_to_barter_offers(self):
        opportunity = make_opportunity(paymentMode="Hybrid", attributes={"barterOffer": "Warehouse storage"})
        user = make_user(barterOffers=[{"offer": "storage"}])
        assert check_barter_offer(opportunity, user).score == 100

    def test_incompatible_barter_penalises_and_recomputes_threshold(self):
        adjusted = apply_barter_adjustment(self._result(85), BarterCheck(score=0, compatible=False, matched_preferences=[]))

        assert adjusted.final_score == 65
        assert adjusted.meets_threshold is False
        assert adjusted.scores["barterOfferCompatibility"] == 0

    def test_penalty_floors_at_zero(self):
        adjusted = apply_barter_adjustment(self._result(10), BarterCheck(score=0, compatible=False, matched_preferences=[]))
        assert adjusted.final_score == 0

    def test_strong_barter_boosts_over_threshold(self):
        adjusted = apply_barter_adjustment(self._result(76), BarterCheck(score=100, compatible=True, matched_preferences=["x"]))

        assert adjusted.final_score == 81
        assert adjusted.meets_threshold is True

    def test_boost_caps_at_100(self):
        adjusted = apply_barter_adjustment(self._result(98), BarterCheck(score=80, compatible=True, matched_preferences=["x"]))
        assert adjusted.final_score == 100

    def test_moderate_barter_leaves_score(self):
        adjusted = apply_barter_adjustment(self._result(82), BarterCheck(score=50, compatible=True, matched_preferences=["x"]))
        assert adjusted.final_score == 82
        assert adjusted.scores["barterOfferCompatibility"] == 50


class TestMatchCollaborationOpportunity:

    @pytest.mark.asyncio
    async def test_match_is_persisted_and_notified(self, matcher, mock_store, task_opportunity, welder):
        _wire(mock_store, task_opportunity, welder)

        match = await matcher.match_collaboration_opportunity("opp-1", "user-1")

        assert match is not None
        assert match.score == 95
        assert match.notified is True
        assert match.opportunity_type == "collaboration"

        create_kwargs = mock_store.create_match.call_args.kwargs
        assert create_kwargs["project_id"] == "opp-1"
        assert create_kwargs["provider_id"] == "user-1"
        assert create_kwargs["model_type"] == "1.1"
        assert create_kwargs["weights"] == {
            "skillScopeMatchScore": 0.5, "financialCapacity": 0.3, "pastPerformanceScore": 0.2
        }

        notification = mock_store.create_notification.call_args.kwargs
        assert notification["user_id"] == "user-1"
        assert notification["title"] == "New Collaboration Match!"
        assert notification["message"] == 'You have a 95% match for "Task-Based Engagement"'
        assert notification["related_entity_id"] == "match-1"
        assert notification["action_url"].endswith("/opp-1")
        mock_store.mark_match_notified.assert_awaited_once_with("match-1")

    @pytest.mark.asyncio
    async def test_below_threshold_returns_none(self, matcher, mock_store, task_opportunity):
        _wire(mock_store, task_opportunity, make_user(skills=["Welding"], annualRevenueRange="5K"))

        outcome = await matcher.evaluate("opp-1", "user-1")

        assert outcome.match is None
        assert outcome.reason == MatchFailureReason.BELOW_THRESHOLD
        assert outcome.result.final_score == 71
        mock_store.create_match.assert_not_called()
        mock_store.create_notification.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_opportunity(self, matcher, mock_store):
        outcome = await matcher.evaluate("missing", "user-1")
        assert outcome.reason == MatchFailureReason.OPPORTUNITY_NOT_FOUND
        assert await matcher.match_collaboration_opportunity("missing", "user-1") is None

    @pytest.mark.asyncio
    async def test_missing_user(self, matcher, mock_store, task_opportunity):
        _wire(mock_store, task_opportunity, None)
        outcome = await matcher.evaluate("opp-1", "missing")
        assert outcome.reason == MatchFailureReason.USER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_intent_gate(self, matcher, mock_store):
        opportunity = make_opportunity(intentType="OFFER_SERVICE", attributes={"requiredSkills": ["welding"]})
        _wire(mock_store, opportunity, make_user(role="individual", skills=["welding"]))

        outcome = await matcher.evaluate("opp-1", "user-1")

        assert outcome.reason == MatchFailureReason.INTENT_INCOMPATIBLE
        mock_store.get_applications.assert_not_called()

    @pytest.mark.asyncio
    async def test_payment_gate(self, matcher, mock_store):
        opportunity = make_opportunity(paymentMode="Cash")
        _wire(mock_store, opportunity, make_user(paymentPreference="Barter"))

        outcome = await matcher.evaluate("opp-1", "user-1")

        assert outcome.reason == MatchFailureReason.PAYMENT_MODE_INCOMPATIBLE

    @pytest.mark.asyncio
    async def test_relationship_gate(self, matcher, mock_store, welder):
        # SPV only applies between businesses
        opportunity = make_opportunity("1.4", relationshipType="P2P")
        _wire(mock_store, opportunity, welder)

        outcome = await matcher.evaluate("opp-1", "user-1")

        assert outcome.reason == MatchFailureReason.RELATIONSHIP_NOT_APPLICABLE
        assert await matcher.match_collaboration_opportunity("opp-1", "user-1") is None

    @pytest.mark.asyncio
    async def test_unregistered_model_type_fails_relationship_gate(self, matcher, mock_store, welder):
        _wire(mock_store, make_opportunity("9.9"), welder)
        outcome = await matcher.evaluate("opp-1", "user-1")
        assert outcome.reason == MatchFailureReason.RELATIONSHIP_NOT_APPLICABLE
        assert outcome.match is None

    @pytest.mark.asyncio
    async def test_unknown_scorer_for_registered_model(self, matcher, mock_store, task_opportunity, welder):
        _wire(mock_store, task_opportunity, welder)

        with patch("collab_match.services.matching.get_scorer", return_value=None):
            outcome = await matcher.evaluate("opp-1", "user-1")

        assert outcome.reason == MatchFailureReason.UNKNOWN_MODEL

    @pytest.mark.asyncio
    async def test_incompatible_barter_drops_match(self, matcher, mock_store, welder):
        opportunity = make_opportunity(
            paymentMode="Barter",
            attributes={
                "requiredSkills": ["welding"],
                "budgetRange": {"max": 1000},
                "barterOffer": "Office space",
            },
        )
        user = make_user(skills=["Welding"], annualRevenueRange="50M", barterPreferences=["vehicles"])
        _wire(mock_store, opportunity, user)

        outcome = await matcher.evaluate("opp-1", "user-1")

        assert outcome.result.final_score == 75
        assert outcome.result.scores["barterOfferCompatibility"] == 0
        assert outcome.reason == MatchFailureReason.BELOW_THRESHOLD


    @pytest.mark.asyncio
    async def test_barter_opportunity_without_offer_boosts(self, matcher, mock_store):
        opportunity = make_opportunity(
            paymentMode="Barter",
            attributes={"requiredSkills": ["welding"], "budgetRange": {"max": 1000}},
        )
        user = make_user(skills=["Welding"], annualRevenueRange="5M", barterPreferences=["vehicles"])
        _wire(mock_store, opportunity, user)

        outcome = await matcher.evaluate("opp-1", "user-1")

        # 50 + 80*.3 + 15 = 89, plus the barter boost
        assert outcome.result.scores["barterOfferCompatibility"] == 100
        assert outcome.result.final_score == 94
        assert outcome.matched is True


class TestFindMatchesForOpportunity:

    @pytest.mark.asyncio
    async def test_inactive_opportunity_returns_empty(self, matcher, mock_store):
        mock_store.get_opportunity.return_value = make_opportunity(status="draft")

        assert await matcher.find_matches_for_opportunity("opp-1") == []
        mock_store.get_users_by_role.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_opportunity_returns_empty(self, matcher, mock_store):
        assert await matcher.find_matches_for_opportunity("missing") == []

    @pytest.mark.asyncio
    async def test_batch_filters_candidates_and_counts_matches(self, matcher, mock_store, task_opportunity):
        good = make_user("good", skills=["welding"], annualRevenueRange="50M")
        weak = make_user("weak", skills=["painting"], annualRevenueRange="5K")
        pending = make_user("pending", status="pending", skills=["welding"], annualRevenueRange="50M")
        creator = make_user("creator-1", skills=["welding"], annualRevenueRange="50M")
        users = {u.id: u for u in [good, weak, pending, creator]}

        mock_store.get_opportunity.return_value = task_opportunity
        mock_store.get_users_by_role.return_value = list(users.values())
        mock_store.get_user = AsyncMock(side_effect=lambda user_id: users.get(user_id))

        matches = await matcher.find_matches_for_opportunity("opp-1")

        assert [m.provider_id for m in matches] == ["good"]
        mock_store.get_users_by_role.assert_awaited_once_with("entity")
        evaluated = [c.args[0] for c in mock_store.get_user.await_args_list]
        assert "pending" not in evaluated
        assert "creator-1" not in evaluated
        mock_store.update_opportunity.assert_awaited_once_with("opp-1", {"matchesGenerated": 1})

    @pytest.mark.asyncio
    async def test_batch_survives_candidate_with_null_fields(self, matcher, mock_store, task_opportunity):
        good = make_user("good", skills=["welding"], annualRevenueRange="50M")
        legacy = make_user("u-legacy", skills=None, services=None, barterOffers=None, keyProjects=None)
        users = {u.id: u for u in [good, legacy]}

        mock_store.get_opportunity.return_value = task_opportunity
        mock_store.get_users_by_role.return_value = [good, legacy]
        mock_store.get_user = AsyncMock(side_effect=lambda user_id: users.get(user_id))

        matches = await matcher.find_matches_for_opportunity("opp-1")

        assert legacy.profile.skills == []
        assert [m.provider_id for m in matches] == ["good"]
        mock_store.update_opportunity.assert_awaited_once_with("opp-1", {"matchesGenerated": 1})

    @pytest.mark.asyncio
    async def test_opportunity_with_null_attributes_is_scored(self, matcher, mock_store, welder):
        _wire(mock_store, make_opportunity(attributes=None), welder)

        outcome = await matcher.evaluate("opp-1", "user-1")

        # no requirements, no budget: 100/100/75
        assert outcome.result.final_score == 95

    @pytest.mark.asyncio
    async def test_no_matches_leaves_counter(self, matcher, mock_store, task_opportunity):
        weak = make_user("weak", skills=["painting"], annualRevenueRange="5K")
        mock_store.get_opportunity.return_value = task_opportunity
        mock_store.get_users_by_role.return_value = [weak]
        mock_store.get_user.return_value = weak

        assert await matcher.find_matches_for_opportunity("opp-1") == []
        mock_store.update_opportunity.assert_not_called()

    @pytest.mark.asyncio
    async def test_individual_pool_for_p2p(self, matcher, mock_store):
        mock_store.get_opportunity.return_value = make_opportunity("2.3", relationshipType="P2P")

        await matcher.find_matches_for_opportunity("opp-1")

        mock_store.get_users_by_role.assert_awaited_once_with("individual")

    @pytest.mark.asyncio
    async def test_trigger_runs_batch_after_delay(self, matcher):
        with patch("collab_match.services.matching.asyncio.sleep", new_callable=AsyncMock) as mock_sleep, \
                patch.object(matcher, "find_matches_for_opportunity", new_callable=AsyncMock) as mock_find:
            mock_find.return_value = []

            result = await matcher.trigger_collaboration_matching("opp-1")

        assert result == []
        mock_sleep.assert_awaited_once_with(0)
        mock_find.assert_awaited_once_with("opp-1")
