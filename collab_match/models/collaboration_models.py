"""
Collaboration model registry: the five categories and thirteen models an
opportunity can be posted under.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

ALL_RELATIONSHIPS = ["B2B", "B2P", "P2B", "P2P"]
ALL_INTENTS = ["REQUEST_SERVICE", "OFFER_SERVICE", "BOTH"]
ALL_PAYMENT_MODES = ["Cash", "Equity", "ProfitSharing", "Barter", "Hybrid"]

# Engine-wide acceptance threshold, identical for every model
MATCH_THRESHOLD = 80


class MatchingMetric(BaseModel):
    name: str
    weight: float = Field(ge=0.0, le=1.0)


class CollaborationModel(BaseModel):
    """Collaboration model definition"""
    id: str
    name: str
    category: str
    description: str
    applicability: List[str] = Field(default_factory=lambda: list(ALL_RELATIONSHIPS))
    supported_intent_types: List[str] = Field(default_factory=lambda: list(ALL_INTENTS))
    supported_payment_modes: List[str] = Field(default_factory=lambda: list(ALL_PAYMENT_MODES))
    matching_metrics: List[MatchingMetric] = Field(default_factory=list)
    threshold: int = MATCH_THRESHOLD

    @property
    def weights(self) -> Dict[str, float]:
        return {m.name: m.weight for m in self.matching_metrics}


class ModelCategory(BaseModel):
    id: str
    name: str
    description: str
    sub_models: List[str] = Field(default_factory=list)


def _metrics(*pairs) -> List[MatchingMetric]:
    return [MatchingMetric(name=name, weight=weight) for name, weight in pairs]


PROJECT_METRICS = (("skillScopeMatchScore", 0.50), ("financialCapacity", 0.30), ("pastPerformanceScore", 0.20))
STRATEGIC_METRICS = (("strategicAlignment", 0.40), ("complementaryStrengths", 0.35), ("culturalCompatibility", 0.25))
RESOURCE_METRICS = (("timelineAlignment", 0.40), ("geographicProximity", 0.35), ("barterCompatibility", 0.25))
HIRING_METRICS = (("qualificationSkillMatch", 0.50), ("availability", 0.25), ("budgetCompatibility", 0.25))
COMPETITION_METRICS = (("technical", 0.40), ("price", 0.30), ("innovation", 0.30))

_PROJECT = "Project-Based Collaboration"
_STRATEGIC = "Strategic Partnerships"
_RESOURCE = "Resource Pooling & Sharing"
_HIRING = "Hiring a Resource"
_COMPETITION = "Call for Competition"

COLLABORATION_MODELS: Dict[str, CollaborationModel] = {
    m.id: m for m in [
        CollaborationModel(
            id="1.1", name="Task-Based Engagement", category=_PROJECT,
            description="Short-term collaboration for executing specific tasks, deliverables, or providing expert consultation.",
            matching_metrics=_metrics(*PROJECT_METRICS),
        ),
        CollaborationModel(
            id="1.2", name="Consortium", category=_PROJECT,
            description="A temporary contractual alliance among independent entities formed to pursue a specific opportunity.",
            matching_metrics=_metrics(*PROJECT_METRICS),
        ),
        CollaborationModel(
            id="1.3", name="Project-Specific Joint Venture", category=_PROJECT,
            description="A formal partnership between two or more parties to collaborate on a single, specific project.",
            applicability=["B2B", "B2P", "P2B"],
            matching_metrics=_metrics(*PROJECT_METRICS),
        ),
        CollaborationModel(
            id="1.4", name="Special Purpose Vehicle (SPV)", category=_PROJECT,
            description="A separate legal entity created specifically to isolate financial risk for a single, large-scale, capital-intensive project.",
            applicability=["B2B"],
            matching_metrics=_metrics(*PROJECT_METRICS),
        ),
        CollaborationModel(
            id="2.1", name="Strategic Joint Venture", category=_STRATEGIC,
            description="A long-term partnership between two or more parties that creates a new, ongoing business entity.",
            applicability=["B2B", "B2P", "P2B"],
            matching_metrics=_metrics(*STRATEGIC_METRICS),
        ),
        CollaborationModel(
            id="2.2", name="Long-Term Strategic Alliance", category=_STRATEGIC,
            description="An ongoing partnership between two or more parties for mutual benefit without forming a new legal entity.",
            matching_metrics=_metrics(*STRATEGIC_METRICS),
        ),
        CollaborationModel(
            id="2.3", name="Mentorship Program", category=_STRATEGIC,
            description="A relationship where an experienced professional provides guidance, knowledge transfer, and career development support.",
            applicability=["B2P", "P2B", "P2P"],
            matching_metrics=_metrics(*STRATEGIC_METRICS),
        ),
        CollaborationModel(
            id="3.1", name="Bulk Purchasing", category=_RESOURCE,
            description="Group buying where multiple parties pool their purchasing power to achieve volume discounts.",
            matching_metrics=_metrics(*RESOURCE_METRICS),
        ),
        CollaborationModel(
            id="3.2", name="Co-Ownership Pooling", category=_RESOURCE,
            description="Multiple parties jointly purchase and co-own expensive equipment or assets, sharing costs and usage.",
            matching_metrics=_metrics(*RESOURCE_METRICS),
        ),
        CollaborationModel(
            id="3.3", name="Resource Sharing & Exchange", category=_RESOURCE,
            description="Marketplace for selling, buying, renting, or bartering excess materials, equipment, labor, or services.",
            matching_metrics=_metrics(*RESOURCE_METRICS),
        ),
        CollaborationModel(
            id="4.1", name="Professional Hiring", category=_HIRING,
            description="Full-time, part-time, or contract employment of professionals for ongoing work.",
            applicability=["B2P", "P2B", "P2P"],
            matching_metrics=_metrics(*HIRING_METRICS),
        ),
        CollaborationModel(
            id="4.2", name="Consultant Hiring", category=_HIRING,
            description="Engaging consultants for advisory services, expert opinions, specialized analysis, or short-term professional services.",
            matching_metrics=_metrics(*HIRING_METRICS),
        ),
        CollaborationModel(
            id="5.1", name="Competition/RFP", category=_COMPETITION,
            description="Open or invited competitions where multiple parties compete for contracts, projects, or recognition.",
            matching_metrics=_metrics(*COMPETITION_METRICS),
        ),
    ]
}

MODEL_CATEGORIES: Dict[str, ModelCategory] = {
    c.id: c for c in [
        ModelCategory(
            id="1", name=_PROJECT,
            description="Partnerships formed to deliver specific projects or defined objectives with a clear start and end point.",
            sub_models=["1.1", "1.2", "1.3", "1.4"],
        ),
        ModelCategory(
            id="2", name=_STRATEGIC,
            description="Long-term alliances formed for ongoing collaboration, mutual growth, and strategic objectives.",
            sub_models=["2.1", "2.2", "2.3"],
        ),
        ModelCategory(
            id="3", name=_RESOURCE,
            description="Collaboration focused on pooling financial resources, co-owning assets, or sharing/exchanging excess resources.",
            sub_models=["3.1", "3.2", "3.3"],
        ),
        ModelCategory(
            id="4", name=_HIRING,
            description="Recruiting professionals or consultants for employment or service engagements.",
            sub_models=["4.1", "4.2"],
        ),
        ModelCategory(
            id="5", name=_COMPETITION,
            description="Competitive sourcing of solutions, designs, or talent through open or invited competitions.",
            sub_models=["5.1"],
        ),
    ]
}


def get_model(model_id: str) -> Optional[CollaborationModel]:
    return COLLABORATION_MODELS.get(model_id)


def get_category(category_id: str) -> Optional[ModelCategory]:
    return MODEL_CATEGORIES.get(category_id)


def get_all_models() -> List[CollaborationModel]:
    return list(COLLABORATION_MODELS.values())


def get_all_categories() -> List[ModelCategory]:
    return list(MODEL_CATEGORIES.values())


def get_models_by_category(category_id: str) -> List[CollaborationModel]:
    category = get_category(category_id)
    if not category:
        return []
    return [COLLABORATION_MODELS[m] for m in category.sub_models if m in COLLABORATION_MODELS]


def get_models_by_applicability(relationship_type: str) -> List[CollaborationModel]:
    return [m for m in COLLABORATION_MODELS.values() if relationship_type in m.applicability]
