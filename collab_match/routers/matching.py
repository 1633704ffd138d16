from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Request

from collab_match.models.schemas import (
    CandidateMatchResponse, MatchModel, MatchRunResponse, ScoreRequest, ScoreResponse
)
from collab_match.services.matching import CollaborationMatcher
from collab_match.services.model_scorers import get_scorer

# Import logging and exceptions
from collab_match.utils.logging_config import get_logger, PerformanceMonitor
from collab_match.utils.exceptions import BusinessLogicError, NotFoundError, ValidationError

router = APIRouter()
logger = get_logger(__name__)

matcher = CollaborationMatcher()


def _require_id(value: str, field: str) -> None:
    if not value or not value.strip():
        raise ValidationError(f"{field} cannot be empty", field=field, value=value)


@router.post("/score", response_model=ScoreResponse)
async def score_pair(payload: ScoreRequest, request: Request):
    """Score an opportunity against a user without gates or persistence"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    model_type = payload.opportunity.model_type

    scorer = get_scorer(model_type)
    if scorer is None:
        logger.warning(
            f"Unknown collaboration model: {model_type}",
            extra={"request_id": request_id, "model_type": model_type}
        )
        raise ValidationError(
            f"Unknown collaboration model type: {model_type}", field="modelType", value=model_type
        )

    with PerformanceMonitor("score_pair", logger):
        result = scorer(payload.opportunity, payload.user, payload.applications)

    logger.info(
        f"Scored user {payload.user.id} on model {model_type}: {result.final_score}",
        extra={"request_id": request_id, "model_type": model_type, "final_score": result.final_score}
    )
    return ScoreResponse(model_type=model_type, template=scorer.template, weights=scorer.weights, result=result)


@router.post("/opportunities/{opportunity_id}/candidates/{user_id}", response_model=CandidateMatchResponse)
async def match_candidate(opportunity_id: str, user_id: str, request: Request):
    """Run the full matching pipeline for one opportunity/user pair"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    _require_id(opportunity_id, "opportunity_id")
    _require_id(user_id, "user_id")

    with PerformanceMonitor("match_candidate", logger):
        outcome = await matcher.evaluate(opportunity_id, user_id)

    logger.info(
        f"Candidate {user_id} on opportunity {opportunity_id}: "
        f"{'matched' if outcome.matched else outcome.reason.value}",
        extra={"request_id": request_id, "opportunity_id": opportunity_id, "user_id": user_id}
    )
    return CandidateMatchResponse(
        opportunity_id=opportunity_id,
        user_id=user_id,
        matched=outcome.matched,
        reason=outcome.reason.value if outcome.reason else None,
        match=outcome.match,
    )


@router.post("/opportunities/{opportunity_id}/run", response_model=MatchRunResponse)
async def run_matching(opportunity_id: str, request: Request):
    """Match an active opportunity against every eligible candidate"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    _require_id(opportunity_id, "opportunity_id")

    opportunity = await matcher.store.get_opportunity(opportunity_id)
    if opportunity is None:
        raise NotFoundError(
            f"Opportunity not found: {opportunity_id}", entity="opportunity", entity_id=opportunity_id
        )
    if opportunity.status != "active":
        raise BusinessLogicError(
            f"Opportunity {opportunity_id} is {opportunity.status}; only active opportunities are matched",
            rule="opportunity_must_be_active"
        )

    matches = await matcher.find_matches_for_opportunity(opportunity_id)
    logger.info(
        f"Matching run for opportunity {opportunity_id} produced {len(matches)} matches",
        extra={"request_id": request_id, "opportunity_id": opportunity_id, "match_count": len(matches)}
    )
    return MatchRunResponse(opportunity_id=opportunity_id, count=len(matches), matches=matches)


@router.post("/opportunities/{opportunity_id}/trigger", status_code=202)
async def trigger_matching(opportunity_id: str, background_tasks: BackgroundTasks, request: Request):
    """Schedule matching for a newly published opportunity"""
    request_id = getattr(request.state, 'request_id', 'unknown')
    _require_id(opportunity_id, "opportunity_id")

    background_tasks.add_task(matcher.trigger_collaboration_matching, opportunity_id)
    logger.info(
        f"Collaboration matching scheduled for opportunity {opportunity_id}",
        extra={"request_id": request_id, "opportunity_id": opportunity_id}
    )
    return {"opportunity_id": opportunity_id, "status": "scheduled"}


@router.get("/matches", response_model=List[MatchModel])
async def list_matches(
    request: Request,
    opportunity_id: Optional[str] = None,
    provider_id: Optional[str] = None,
):
    """List collaboration matches, optionally for one opportunity or provider"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    with PerformanceMonitor("list_matches", logger):
        matches = await matcher.store.list_matches(opportunity_id=opportunity_id, provider_id=provider_id)

    logger.info(
        f"Fetched {len(matches)} matches",
        extra={"request_id": request_id, "match_count": len(matches)}
    )
    return matches
