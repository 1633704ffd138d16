from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field

from collab_match.models.models import (
    CollaborationApplication, Opportunity, RecordModel, User, MatchResult
)

# -------- Matches --------
class MatchModel(RecordModel):
    id: str
    project_id: str  # same as opportunity_id; kept for project-match consumers
    provider_id: str
    score: int
    criteria: Dict[str, float] = Field(default_factory=dict)
    weights: Dict[str, float] = Field(default_factory=dict)
    opportunity_id: str
    model_type: str
    opportunity_type: str = "collaboration"
    notified: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

# -------- Notifications --------
class NotificationModel(RecordModel):
    id: str
    user_id: str
    type: str = "collaboration_match_found"
    title: str
    message: str
    related_entity_type: str = "collaboration_match"
    related_entity_id: str
    action_url: Optional[str] = None
    action_label: Optional[str] = None
    read: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)

# -------- API payloads --------
class ScoreRequest(RecordModel):
    """Ad-hoc scoring of an opportunity/user pair, nothing is persisted"""
    opportunity: Opportunity
    user: User
    applications: List[CollaborationApplication] = Field(default_factory=list)

class ScoreResponse(RecordModel):
    model_type: str
    template: str
    weights: Dict[str, float]
    result: MatchResult

class CandidateMatchResponse(RecordModel):
    opportunity_id: str
    user_id: str
    matched: bool
    reason: Optional[str] = None
    match: Optional[MatchModel] = None

class MatchRunResponse(RecordModel):
    opportunity_id: str
    count: int
    matches: List[MatchModel] = Field(default_factory=list)
