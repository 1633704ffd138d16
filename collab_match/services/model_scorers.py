"""
Model-specific scorers for the thirteen collaboration models.

The scorers fall into five weight templates (project, strategic, resource,
hiring, competition). A template fixes the weight table taken from the model
registry; each model only supplies the calculators for its sub-scores.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence

from collab_match.models.collaboration_models import MATCH_THRESHOLD, get_model
from collab_match.models.models import CollaborationApplication, MatchResult, Opportunity, User
from collab_match.services.scoring import (
    barter_compatibility,
    capabilities_with_certifications,
    clamp,
    coverage_score,
    cultural_compatibility,
    financial_capacity,
    geographic_proximity,
    innovation_score,
    item_text,
    keyword_scope_match,
    overlaps,
    past_performance_score,
    range_compatibility,
    round_half_up,
    skill_match_score,
    strategic_alignment,
    timeline_alignment,
    weighted_total,
)
from collab_match.utils.logging_config import log_function_call

Applications = Sequence[CollaborationApplication]
Calculator = Callable[[Dict[str, Any], User, Applications], float]


def combine(scores: Dict[str, float], weights: Dict[str, float]) -> MatchResult:
    final_score = int(clamp(round_half_up(weighted_total(scores, weights))))
    return MatchResult(
        scores=scores,
        final_score=final_score,
        meets_threshold=final_score >= MATCH_THRESHOLD,
    )


@dataclass(frozen=True)
class ModelScorer:
    model_type: str
    template: str
    calculators: Dict[str, Calculator]

    @property
    def weights(self) -> Dict[str, float]:
        return get_model(self.model_type).weights

    def __call__(self, opportunity: Opportunity, user: User, applications: Applications = ()) -> MatchResult:
        attrs = opportunity.attributes or {}
        applications = list(applications)
        scores = {name: calc(attrs, user, applications) for name, calc in self.calculators.items()}
        return combine(scores, self.weights)


def _first(attrs: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if attrs.get(key):
            return attrs[key]
    return default


def _window(attrs: Dict[str, Any], start_keys, end_keys) -> Dict[str, Any]:
    return {"startDate": _first(attrs, *start_keys), "endDate": _first(attrs, *end_keys)}


def _location(value: Any) -> Optional[Dict[str, Any]]:
    if not value:
        return None
    if isinstance(value, dict):
        return value
    return {"city": str(value)}


# ==================== PROJECT TEMPLATE (1.x) ====================

def project_scorer(model_type: str, skill_scope: Calculator, amount: Callable[[Dict[str, Any]], float]) -> ModelScorer:
    return ModelScorer(
        model_type=model_type,
        template="project",
        calculators={
            "skillScopeMatchScore": skill_scope,
            "financialCapacity": lambda attrs, user, apps: financial_capacity(
                amount(attrs), user.profile.annual_revenue_range
            ),
            "pastPerformanceScore": lambda attrs, user, apps: past_performance_score(user.id, model_type, apps),
        },
    )


def _task_skill_scope(attrs, user, apps):
    profile = user.profile
    skill = skill_match_score(attrs.get("requiredSkills") or [], profile.skills)
    scope = attrs.get("detailedScope")
    if not scope:
        return skill
    scope_match = keyword_scope_match(scope, profile.capabilities, 5)
    return round_half_up(skill * 0.6 + scope_match * 0.4)


def _task_amount(attrs):
    budget = attrs.get("budgetRange") or {}
    return budget.get("max") or budget.get("min") or 0


def _role_scope(roles_key: str, *role_fields: str) -> Calculator:
    def calc(attrs, user, apps):
        caps = user.profile.capabilities
        role_match = coverage_score(attrs.get(roles_key) or [], caps, *role_fields)
        scope_match = keyword_scope_match(_first(attrs, "projectScope", "projectDescription"), caps, 3)
        return round_half_up(role_match * 0.7 + scope_match * 0.3)
    return calc


def _consortium_amount(attrs):
    for req in attrs.get("minimumRequirements") or []:
        if isinstance(req, dict) and req.get("type") == "Financial":
            return req.get("amount") or req.get("value") or 0
    return 0


def _jv_amount(attrs):
    return _first(attrs, "capitalContribution", "equityContribution", default=0)


def _spv_skill_scope(attrs, user, apps):
    profile = user.profile
    project_type = (attrs.get("projectType") or "").lower()
    sector = 100 if project_type and any(project_type in s.lower() for s in profile.services) else 50
    scope = keyword_scope_match(_first(attrs, "projectScope", "projectDescription"), profile.capabilities, 3)
    mega = any((p.get("value") or 0) >= 50_000_000 for p in profile.key_projects)
    experience = 100 if mega else 50
    return round_half_up(sector * 0.4 + scope * 0.3 + experience * 0.3)


def _spv_amount(attrs):
    equity = sum((e.get("amount") or e.get("value") or 0) for e in attrs.get("equityStructure") or [])
    return _first(attrs, "projectValue", "totalProjectValue", default=equity)


match_task_based_engagement = project_scorer("1.1", _task_skill_scope, _task_amount)
match_consortium = project_scorer("1.2", _role_scope("memberRoles", "role"), _consortium_amount)
match_project_jv = project_scorer("1.3", _role_scope("partnerRoles", "contribution", "role"), _jv_amount)
match_spv = project_scorer("1.4", _spv_skill_scope, _spv_amount)


# ==================== STRATEGIC TEMPLATE (2.x) ====================

def strategic_scorer(model_type: str, goal_keys, strengths_key: str, *strength_fields: str) -> ModelScorer:
    return ModelScorer(
        model_type=model_type,
        template="strategic",
        calculators={
            "strategicAlignment": lambda attrs, user, apps: strategic_alignment(
                _first(attrs, *goal_keys, default=[]), user.profile
            ),
            "complementaryStrengths": lambda attrs, user, apps: coverage_score(
                attrs.get(strengths_key) or [], user.profile.capabilities, *strength_fields
            ),
            "culturalCompatibility": lambda attrs, user, apps: cultural_compatibility(attrs, user.profile),
        },
    )


match_strategic_jv = strategic_scorer("2.1", ("strategicGoals", "objectives"), "partnerContributions", "contribution")
match_strategic_alliance = strategic_scorer(
    "2.2", ("allianceGoals", "strategicObjectives"), "partnerRequirements", "requirement"
)
match_mentorship = strategic_scorer("2.3", ("successMetrics", "mentorshipObjectives"), "targetSkills")


# ==================== RESOURCE TEMPLATE (3.x) ====================

def resource_scorer(
    model_type: str,
    start_keys,
    end_keys,
    location_keys,
    preference_keys,
    barter_when_unpriced: bool = False,
) -> ModelScorer:
    def barter(attrs, user, apps):
        is_barter = "Barter" in (attrs.get("transactionType"), attrs.get("paymentMethod"))
        if barter_when_unpriced and not attrs.get("price"):
            is_barter = True
        if not is_barter:
            return 100
        offers = user.profile.barter_offers
        if barter_when_unpriced and not offers:
            offers = user.profile.available_resources
        return barter_compatibility(_first(attrs, *preference_keys, default=[]), offers)

    return ModelScorer(
        model_type=model_type,
        template="resource",
        calculators={
            "timelineAlignment": lambda attrs, user, apps: timeline_alignment(
                _window(attrs, start_keys, end_keys), user.profile.availability
            ),
            "geographicProximity": lambda attrs, user, apps: geographic_proximity(
                _location(_first(attrs, *location_keys)), user.profile.location
            ),
            "barterCompatibility": barter,
        },
    )


match_bulk_purchasing = resource_scorer(
    "3.1",
    ("requiredDeliveryDate", "startDate"),
    ("requiredDeliveryDate", "endDate"),
    ("deliveryLocation", "location"),
    ("barterPreferences", "acceptedBarterTypes"),
)
match_co_ownership = resource_scorer(
    "3.2",
    ("ownershipStartDate", "startDate"),
    ("ownershipEndDate", "endDate"),
    ("assetLocation", "location"),
    ("barterPreferences", "acceptedBarterTypes"),
)
match_resource_exchange = resource_scorer(
    "3.3",
    ("exchangeStartDate", "startDate"),
    ("exchangeEndDate", "endDate"),
    ("location", "exchangeLocation"),
    ("barterPreferences", "acceptedBarterTypes", "wantedResources"),
    barter_when_unpriced=True,
)


# ==================== HIRING TEMPLATE (4.x) ====================

def _certification_match(required, cert_names) -> int:
    if not required:
        return 100
    names = [c.lower() for c in cert_names]
    matched = [r for r in required if any(str(r).lower() in n for n in names)]
    return round_half_up(len(matched) / len(required) * 100)


def _blend_by_count(parts) -> float:
    """Average of (score, requirement_count) pairs weighted by count; 100 without requirements."""
    total = sum(count for _, count in parts)
    if total == 0:
        return 100
    return round_half_up(sum(score * (count / total) for score, count in parts))


def hiring_scorer(model_type: str, qualification: Calculator, start_keys, end_keys, budget: Calculator) -> ModelScorer:
    return ModelScorer(
        model_type=model_type,
        template="hiring",
        calculators={
            "qualificationSkillMatch": qualification,
            "availability": lambda attrs, user, apps: timeline_alignment(
                _window(attrs, start_keys, end_keys), user.profile.availability
            ),
            "budgetCompatibility": budget,
        },
    )


def _professional_qualification(attrs, user, apps):
    quals = attrs.get("requiredQualifications") or []
    skills = attrs.get("requiredSkills") or []
    return _blend_by_count([
        (_certification_match(quals, user.profile.certification_names), len(quals)),
        (skill_match_score(skills, user.profile.skills), len(skills)),
    ])


def _professional_budget(attrs, user, apps):
    salary = attrs.get("salaryRange") or {}
    return range_compatibility(user.profile.expected_salary, salary.get("min"), salary.get("max"))


def _consultant_qualification(attrs, user, apps):
    expertise = attrs.get("requiredExpertise") or []
    certs = attrs.get("requiredCertifications") or []
    return _blend_by_count([
        (skill_match_score(expertise, user.profile.skills), len(expertise)),
        (_certification_match(certs, user.profile.certification_names), len(certs)),
    ])


def _consultant_budget(attrs, user, apps):
    budget = attrs.get("budget") or {}
    if not isinstance(budget, dict):
        return 75
    rate = user.profile.hourly_rate or user.profile.daily_rate
    return range_compatibility(rate, budget.get("min"), budget.get("max"))


match_professional_hiring = hiring_scorer(
    "4.1", _professional_qualification,
    ("startDate", "employmentStartDate"), ("endDate", "employmentEndDate"),
    _professional_budget,
)
match_consultant_hiring = hiring_scorer(
    "4.2", _consultant_qualification,
    ("startDate", "consultationStartDate"), ("endDate", "consultationEndDate", "duration"),
    _consultant_budget,
)


# ==================== COMPETITION TEMPLATE (5.1) ====================

def _competition_technical(attrs, user, apps):
    requirements = [
        *(_first(attrs, "technicalRequirements", "submissionRequirements", default=[])),
        *(attrs.get("eligibilityCriteria") or []),
    ]
    caps = [c.lower() for c in capabilities_with_certifications(user.profile)]
    if requirements:
        matched = [
            r for r in requirements
            if any(overlaps(item_text(r, "requirement", "criterion"), c) for c in caps)
        ]
        technical = round_half_up(len(matched) / len(requirements) * 100)
    else:
        technical = 50

    has_history = any(
        a.applicant_id == user.id and a.model_type == "5.1" and a.status == "completed" for a in apps
    )
    if not has_history:
        return technical
    return round_half_up(technical * 0.7 + past_performance_score(user.id, "5.1", apps) * 0.3)


def _competition_price(attrs, user, apps):
    budget = _first(attrs, "budget", "maxBudget")
    max_budget = budget.get("max") if isinstance(budget, dict) else budget
    if not max_budget:
        return 75
    profile = user.profile
    rate = profile.hourly_rate or profile.daily_rate or profile.project_rate or 0
    if rate <= max_budget:
        return round_half_up(100 - rate / max_budget * 30)
    excess = (rate - max_budget) / max_budget
    return max(0.0, 50 - excess * 50)


match_competition = ModelScorer(
    model_type="5.1",
    template="competition",
    calculators={
        "technical": _competition_technical,
        "price": _competition_price,
        "innovation": lambda attrs, user, apps: innovation_score(user, apps),
    },
)


SCORERS: Dict[str, ModelScorer] = {
    s.model_type: s for s in [
        match_task_based_engagement,
        match_consortium,
        match_project_jv,
        match_spv,
        match_strategic_jv,
        match_strategic_alliance,
        match_mentorship,
        match_bulk_purchasing,
        match_co_ownership,
        match_resource_exchange,
        match_professional_hiring,
        match_consultant_hiring,
        match_competition,
    ]
}


def get_scorer(model_type: str) -> Optional[ModelScorer]:
    return SCORERS.get(model_type)


@log_function_call
def score_opportunity(opportunity: Opportunity, user: User, applications: Applications = ()) -> Optional[MatchResult]:
    """Run the scorer for the opportunity's model; None for an unknown model type."""
    scorer = get_scorer(opportunity.model_type)
    if scorer is None:
        return None
    return scorer(opportunity, user, applications)
