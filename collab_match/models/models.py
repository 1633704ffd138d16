from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class RelationshipType(str, Enum):
    B2B = "B2B"
    B2P = "B2P"
    P2B = "P2B"
    P2P = "P2P"


class IntentType(str, Enum):
    REQUEST_SERVICE = "REQUEST_SERVICE"
    OFFER_SERVICE = "OFFER_SERVICE"
    BOTH = "BOTH"


class PaymentMode(str, Enum):
    CASH = "Cash"
    BARTER = "Barter"
    HYBRID = "Hybrid"


class RecordModel(BaseModel):
    """Base for marketplace records: snake_case in Python, camelCase in storage"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        protected_namespaces=(),
    )

    @model_validator(mode="before")
    @classmethod
    def fill_null_collections(cls, data: Any) -> Any:
        """Legacy documents store null for empty lists/objects; fall back to the field default."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name, field in cls.model_fields.items():
            if field.default_factory is None:
                continue
            for key in {name, field.alias or to_camel(name)}:
                if key in data and data[key] is None:
                    data[key] = field.default_factory()
        return data


class Location(RecordModel):
    city: Optional[str] = None
    region: Optional[str] = None
    country: Optional[str] = None


class UserProfile(RecordModel):
    status: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    services: List[str] = Field(default_factory=list)
    # entries are {"name": ...} objects or plain strings
    certifications: List[Any] = Field(default_factory=list)
    location: Optional[Location] = None
    years_in_business: Optional[float] = None
    company_size: Optional[str] = None
    annual_revenue_range: Optional[str] = None
    hourly_rate: Optional[float] = None
    daily_rate: Optional[float] = None
    project_rate: Optional[float] = None
    expected_salary: Optional[float] = None
    availability_start: Optional[Any] = None
    availability_end: Optional[Any] = None
    available_from: Optional[Any] = None
    available_until: Optional[Any] = None
    barter_offers: List[Any] = Field(default_factory=list)
    barter_preferences: List[str] = Field(default_factory=list)
    available_resources: List[Any] = Field(default_factory=list)
    key_projects: List[Dict[str, Any]] = Field(default_factory=list)
    payment_preference: Optional[str] = None
    preferred_payment_mode: Optional[str] = None

    @property
    def capabilities(self) -> List[str]:
        return [*self.services, *self.skills]

    @property
    def certification_names(self) -> List[str]:
        names = []
        for cert in self.certifications:
            name = cert.get("name") if isinstance(cert, dict) else cert
            if name:
                names.append(str(name))
        return names

    @property
    def availability(self) -> Dict[str, Any]:
        return {
            "start": self.availability_start or self.available_from,
            "end": self.availability_end or self.available_until,
        }


class User(RecordModel):
    id: str
    role: Optional[str] = None
    email: Optional[str] = None
    profile: UserProfile = Field(default_factory=UserProfile)


class Opportunity(RecordModel):
    id: str
    model_type: str
    model_name: Optional[str] = None
    relationship_type: Optional[str] = None
    intent_type: Optional[str] = None
    payment_mode: Optional[str] = None
    creator_id: Optional[str] = None
    status: str = "draft"
    matches_generated: int = 0
    attributes: Dict[str, Any] = Field(default_factory=dict)


class CollaborationApplication(RecordModel):
    id: Optional[str] = None
    applicant_id: str
    opportunity_id: Optional[str] = None
    model_type: Optional[str] = None
    status: str = "pending"


class MatchResult(RecordModel):
    """Outcome of one scorer run. Never cached, never mutated."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    scores: Dict[str, float]
    final_score: int
    meets_threshold: bool
