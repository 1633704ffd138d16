"""
Matching orchestrator: compatibility gates, model dispatch, barter adjustment,
match persistence and the batch finder over candidate users.
"""
import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Set

from collab_match.models.collaboration_models import MATCH_THRESHOLD, get_model
from collab_match.models.models import (
    IntentType, MatchResult, Opportunity, PaymentMode, RelationshipType, User
)
from collab_match.models.schemas import MatchModel
from collab_match.services.model_scorers import get_scorer
from collab_match.services.scoring import clamp, item_text, overlaps
from collab_match.services.store import CollaborationStore
from collab_match.utils.config import get_settings
from collab_match.utils.logging_config import get_logger, log_function_call, PerformanceMonitor

logger = get_logger(__name__)

# Roles able to answer each intent
SERVICE_PROVIDING_ROLES = {"service_provider", "skill_service_provider", "vendor", "entity", "individual"}
SERVICE_CONSUMING_ROLES = {"entity", "beneficiary", "vendor", "project_lead"}

# Candidate pools per relationship type
ENTITY_RELATIONSHIPS = {RelationshipType.B2B, RelationshipType.B2P}
INDIVIDUAL_RELATIONSHIPS = {RelationshipType.P2B, RelationshipType.P2P}

BARTER_COMPATIBLE_MIN = 30
BARTER_BOOST_MIN = 70
BARTER_PENALTY = 20
BARTER_BOOST = 5


class MatchFailureReason(str, Enum):
    OPPORTUNITY_NOT_FOUND = "opportunity_not_found"
    USER_NOT_FOUND = "user_not_found"
    INTENT_INCOMPATIBLE = "intent_incompatible"
    PAYMENT_MODE_INCOMPATIBLE = "payment_mode_incompatible"
    RELATIONSHIP_NOT_APPLICABLE = "relationship_not_applicable"
    UNKNOWN_MODEL = "unknown_model"
    BELOW_THRESHOLD = "below_threshold"


@dataclass
class MatchOutcome:
    result: Optional[MatchResult] = None
    match: Optional[MatchModel] = None
    reason: Optional[MatchFailureReason] = None

    @property
    def matched(self) -> bool:
        return self.match is not None


@dataclass
class BarterCheck:
    score: float
    compatible: bool
    matched_preferences: List[str]


def check_intent_compatibility(opportunity: Opportunity, user: User) -> bool:
    intent = opportunity.intent_type
    role = user.role or ""
    if intent == IntentType.REQUEST_SERVICE:
        return role in SERVICE_PROVIDING_ROLES
    if intent == IntentType.OFFER_SERVICE:
        return role in SERVICE_CONSUMING_ROLES
    # BOTH, legacy (no intent) and unknown intents are lenient
    return True


def check_payment_mode_compatibility(opportunity_mode: Optional[str], user_preference: Optional[str]) -> bool:
    if not opportunity_mode or not user_preference:
        return True
    if opportunity_mode == user_preference:
        return True
    return PaymentMode.HYBRID in (opportunity_mode, user_preference)


def check_relationship_applicability(opportunity: Opportunity) -> bool:
    model = get_model(opportunity.model_type)
    return model is not None and opportunity.relationship_type in model.applicability


def check_barter_offer(opportunity: Opportunity, user: User) -> Optional[BarterCheck]:
    """Keyword overlap between the opportunity's barter offer and the user's barter wishes."""
    if opportunity.payment_mode not in (PaymentMode.BARTER, PaymentMode.HYBRID):
        return None

    offer = item_text(opportunity.attributes.get("barterOffer"))
    preferences = user.profile.barter_preferences or [
        item_text(o, "offer", "name") for o in user.profile.barter_offers
    ]
    preferences = [p for p in preferences if p]
    if not preferences:
        return BarterCheck(score=50, compatible=True, matched_preferences=[])

    # an unspecified offer satisfies every preference
    matched = [p for p in preferences if not offer or overlaps(offer, p.lower())]
    score = len(matched) / len(preferences) * 100
    return BarterCheck(score=score, compatible=score >= BARTER_COMPATIBLE_MIN, matched_preferences=matched)


def apply_barter_adjustment(result: MatchResult, barter: Optional[BarterCheck]) -> MatchResult:
    if barter is None:
        return result
    final_score = result.final_score
    if not barter.compatible:
        final_score = max(0, final_score - BARTER_PENALTY)
    elif barter.score >= BARTER_BOOST_MIN:
        final_score = min(100, final_score + BARTER_BOOST)
    final_score = int(clamp(final_score))
    return MatchResult(
        scores={**result.scores, "barterOfferCompatibility": barter.score},
        final_score=final_score,
        meets_threshold=final_score >= MATCH_THRESHOLD,
    )


def candidate_roles(relationship_type: Optional[str]) -> List[str]:
    roles = []
    if relationship_type in ENTITY_RELATIONSHIPS:
        roles.append("entity")
    if relationship_type in INDIVIDUAL_RELATIONSHIPS:
        roles.append("individual")
    return roles


class CollaborationMatcher:
    """Matches collaboration opportunities against user profiles"""

    def __init__(self, store: Optional[CollaborationStore] = None, trigger_delay: Optional[float] = None):
        self.store = store or CollaborationStore()
        self.trigger_delay = get_settings().trigger_delay if trigger_delay is None else trigger_delay

    async def evaluate(self, opportunity_id: str, user_id: str) -> MatchOutcome:
        """Run every gate and the model scorer, persisting a match when it clears the threshold."""
        opportunity = await self.store.get_opportunity(opportunity_id)
        if opportunity is None:
            return self._reject(MatchFailureReason.OPPORTUNITY_NOT_FOUND, opportunity_id, user_id)
        user = await self.store.get_user(user_id)
        if user is None:
            return self._reject(MatchFailureReason.USER_NOT_FOUND, opportunity_id, user_id)

        if not check_intent_compatibility(opportunity, user):
            return self._reject(MatchFailureReason.INTENT_INCOMPATIBLE, opportunity_id, user_id)

        preference = user.profile.payment_preference or user.profile.preferred_payment_mode
        if not check_payment_mode_compatibility(opportunity.payment_mode, preference):
            return self._reject(MatchFailureReason.PAYMENT_MODE_INCOMPATIBLE, opportunity_id, user_id)

        if not check_relationship_applicability(opportunity):
            return self._reject(MatchFailureReason.RELATIONSHIP_NOT_APPLICABLE, opportunity_id, user_id)

        scorer = get_scorer(opportunity.model_type)
        if scorer is None:
            return self._reject(MatchFailureReason.UNKNOWN_MODEL, opportunity_id, user_id)

        applications = await self.store.get_applications(user.id)
        result = scorer(opportunity, user, applications)
        result = apply_barter_adjustment(result, check_barter_offer(opportunity, user))

        if not result.meets_threshold:
            logger.debug(
                f"Score {result.final_score} below threshold for opportunity {opportunity_id} / user {user_id}"
            )
            return MatchOutcome(result=result, reason=MatchFailureReason.BELOW_THRESHOLD)

        match = await self._persist(opportunity, user, result, scorer.weights)
        return MatchOutcome(result=result, match=match)

    async def match_collaboration_opportunity(self, opportunity_id: str, user_id: str) -> Optional[MatchModel]:
        outcome = await self.evaluate(opportunity_id, user_id)
        return outcome.match

    async def find_matches_for_opportunity(self, opportunity_id: str) -> List[MatchModel]:
        opportunity = await self.store.get_opportunity(opportunity_id)
        if opportunity is None or opportunity.status != "active":
            logger.debug(f"Opportunity {opportunity_id} is missing or not active, skipping batch matching")
            return []

        candidates: List[User] = []
        seen: Set[str] = set()
        for role in candidate_roles(opportunity.relationship_type):
            for user in await self.store.get_users_by_role(role):
                if user.profile.status != "approved" or user.id in seen:
                    continue
                seen.add(user.id)
                candidates.append(user)

        matches: List[MatchModel] = []
        with PerformanceMonitor(f"find_matches_for_opportunity[{opportunity_id}]", logger):
            for user in candidates:
                if user.id == opportunity.creator_id:
                    continue
                match = await self.match_collaboration_opportunity(opportunity_id, user.id)
                if match is not None:
                    matches.append(match)

        if matches:
            await self.store.update_opportunity(
                opportunity_id,
                {"matchesGenerated": opportunity.matches_generated + len(matches)}
            )
        logger.info(
            f"Batch matching evaluated {len(candidates)} candidates for opportunity {opportunity_id}: "
            f"{len(matches)} matches"
        )
        return matches

    @log_function_call
    async def trigger_collaboration_matching(self, opportunity_id: str) -> List[MatchModel]:
        """Deferred batch run, yielding to the event loop before matching starts."""
        await asyncio.sleep(self.trigger_delay)
        matches = await self.find_matches_for_opportunity(opportunity_id)
        logger.info(
            f"Collaboration matching completed: {len(matches)} matches found for opportunity {opportunity_id}"
        )
        return matches

    async def _persist(
        self,
        opportunity: Opportunity,
        user: User,
        result: MatchResult,
        weights: Dict[str, float],
    ) -> MatchModel:
        match = await self.store.create_match(
            project_id=opportunity.id,
            provider_id=user.id,
            score=result.final_score,
            criteria=result.scores,
            weights=weights,
            opportunity_id=opportunity.id,
            model_type=opportunity.model_type,
        )
        url_prefix = get_settings().opportunity_url_prefix
        await self.store.create_notification(
            user_id=user.id,
            title="New Collaboration Match!",
            message=(
                f'You have a {result.final_score}% match for '
                f'"{opportunity.model_name or opportunity.model_type}"'
            ),
            related_entity_id=match.id,
            action_url=f"{url_prefix}/{opportunity.id}",
            action_label="View Opportunity",
        )
        await self.store.mark_match_notified(match.id)
        match = match.model_copy(update={"notified": True})
        logger.info(
            f"Match {match.id} created: user {user.id} scored {result.final_score} "
            f"on opportunity {opportunity.id} (model {opportunity.model_type})"
        )
        return match

    @staticmethod
    def _reject(reason: MatchFailureReason, opportunity_id: str, user_id: str) -> MatchOutcome:
        logger.debug(f"No match for opportunity {opportunity_id} / user {user_id}: {reason.value}")
        return MatchOutcome(reason=reason)
