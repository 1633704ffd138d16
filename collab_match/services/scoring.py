"""
Scoring primitives. Every function takes plain values and returns a score in
[0, 100]; missing inputs fall back to neutral values instead of raising.
"""
import math
import re
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence

from collab_match.models.models import CollaborationApplication, UserProfile, User

EXPERIENCE_LEVELS = {"Junior": 1, "Mid-Level": 2, "Senior": 3, "Expert": 4}

INNOVATION_TERMS = ("innovation", "research", "development")
INNOVATION_SKILL_TERMS = INNOVATION_TERMS + ("design thinking",)

_REVENUE_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([MBK])")
# revenue figures are normalised to thousands
_REVENUE_UNITS = {"K": 1.0, "M": 1_000.0, "B": 1_000_000.0}


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


def item_text(item: Any, *keys: str) -> str:
    """Lower-cased text of a plain string or of the first present key of a dict entry."""
    if isinstance(item, dict):
        for key in keys:
            if item.get(key):
                return str(item[key]).lower()
        return ""
    return str(item or "").lower()


def overlaps(a: str, b: str) -> bool:
    return bool(a) and bool(b) and (a in b or b in a)


def skill_match_score(required: Sequence[str], have: Sequence[str]) -> int:
    if not required:
        return 100
    if not have:
        return 0
    have_lower = [h.lower() for h in have]
    matched = [r for r in required if any(overlaps(r.lower(), h) for h in have_lower)]
    return round_half_up(len(matched) / len(required) * 100)


def experience_level_match(required: Optional[str], have: Optional[str]) -> int:
    req_level = EXPERIENCE_LEVELS.get(required, 2)
    have_level = EXPERIENCE_LEVELS.get(have, 2)
    if have_level >= req_level:
        return 100
    return max(0, 100 - (req_level - have_level) * 30)


def _field(obj: Any, key: str) -> str:
    value = obj.get(key) if isinstance(obj, dict) else getattr(obj, key, None)
    return (value or "").lower()


def geographic_proximity(a: Any, b: Any) -> int:
    """Location proximity of two {city, region, country} records (dicts or Location)."""
    if not a or not b:
        return 50
    a_city, b_city = _field(a, "city"), _field(b, "city")
    a_region, b_region = _field(a, "region"), _field(b, "region")
    if a_city and a_city == b_city:
        return 100
    if a_region and a_region == b_region:
        return 70
    # same country or unknown
    return 50


def parse_revenue_range(revenue: Any) -> float:
    """Parse the first figure of a range such as "10M-50M" into thousands."""
    if not revenue:
        return 0.0
    match = _REVENUE_RE.search(str(revenue).upper())
    if not match:
        return 0.0
    return float(match.group(1)) * _REVENUE_UNITS[match.group(2)]


def financial_capacity(required_amount: Optional[float], revenue_range: Optional[str]) -> int:
    if not required_amount:
        return 100
    revenue = parse_revenue_range(revenue_range)
    if revenue == 0:
        return 0
    ratio = revenue / required_amount
    if ratio >= 10:
        return 100
    if ratio >= 5:
        return 80
    if ratio >= 2:
        return 60
    if ratio >= 1:
        return 40
    return 20


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def _bounds(window: Optional[Dict[str, Any]]):
    if not window:
        return None, None
    start = window.get("startDate") or window.get("start")
    end = window.get("endDate") or window.get("end")
    return _as_datetime(start), _as_datetime(end)


def timeline_alignment(opp_range: Optional[Dict[str, Any]], user_range: Optional[Dict[str, Any]]) -> int:
    opp_start, opp_end = _bounds(opp_range)
    user_start, user_end = _bounds(user_range)
    if None in (opp_start, opp_end, user_start, user_end):
        return 75

    if user_start > opp_end or user_end < opp_start:
        return 0
    opp_duration = (opp_end - opp_start).total_seconds()
    if opp_duration < 0:
        return 0
    if opp_duration == 0:
        # single-date window (e.g. a delivery date) covered by the availability
        return 100
    overlap = (min(opp_end, user_end) - max(opp_start, user_start)).total_seconds()
    return round_half_up(min(100.0, overlap / opp_duration * 100))


def past_performance_score(
    user_id: str,
    model_type: Optional[str],
    applications: Iterable[CollaborationApplication] = (),
) -> int:
    applications = list(applications)
    completed = [
        a for a in applications
        if a.applicant_id == user_id and a.status == "completed"
        and (not model_type or a.model_type == model_type)
    ]
    if not completed:
        return 75
    approved = [a for a in applications if a.applicant_id == user_id and a.status == "approved"]
    completion_rate = len(completed) / max(1, len(completed) + len(approved)) * 100
    return int(clamp(round_half_up(50 + completion_rate * 0.5), 50, 100))


def strategic_alignment(goals: Sequence[Any], profile: Optional[UserProfile]) -> int:
    if not goals:
        return 75
    capabilities = [c.lower() for c in (profile.capabilities if profile else [])]
    matched = [g for g in goals if any(overlaps(item_text(g, "goal"), c) for c in capabilities)]
    return round_half_up(len(matched) / len(goals) * 100)


def cultural_compatibility(attributes: Optional[Dict[str, Any]], profile: Optional[UserProfile]) -> int:
    attributes = attributes or {}
    user_years = (profile.years_in_business if profile else None) or 0
    opp_years = attributes.get("partnerYearsInBusiness") or 0
    user_size = (profile.company_size if profile else None) or "medium"
    opp_size = attributes.get("preferredCompanySize") or user_size

    score = 50
    gap = abs(user_years - opp_years)
    if gap <= 5:
        score += 25
    elif gap <= 10:
        score += 15
    if user_size == opp_size:
        score += 25
    return min(100, score)


def barter_compatibility(preferences: Sequence[Any], offers: Sequence[Any]) -> int:
    if not preferences:
        return 100
    if not offers:
        return 0
    offer_texts = [item_text(o, "offer", "name") for o in offers]
    matched = [
        p for p in preferences
        if any(overlaps(item_text(p, "preference", "name"), o) for o in offer_texts)
    ]
    return round_half_up(len(matched) / len(preferences) * 100)


def innovation_score(user: Optional[User], applications: Iterable[CollaborationApplication] = ()) -> int:
    if user is None:
        return 50
    score = 50
    certs = [c.lower() for c in user.profile.certification_names]
    if any(term in c for c in certs for term in INNOVATION_TERMS):
        score += 20
    wins = [
        a for a in applications
        if a.applicant_id == user.id and a.model_type == "5.1" and a.status == "approved"
    ]
    if wins:
        score += 30
    skills = [s.lower() for s in user.profile.skills]
    if any(term in s for s in skills for term in INNOVATION_SKILL_TERMS):
        score += 20
    return min(100, score)


def keyword_scope_match(scope: Optional[str], capabilities: Sequence[str], step: int) -> int:
    """50 plus `step` for every scope word (longer than three letters) a capability covers."""
    if not scope:
        return 50
    caps = [c.lower() for c in capabilities]
    keywords = [k for k in scope.lower().split() if len(k) > 3]
    matched = [k for k in keywords if any(k in c for c in caps)]
    return min(100, 50 + len(matched) * step)


def coverage_score(items: Sequence[Any], capabilities: Sequence[str], *keys: str, empty: int = 50) -> int:
    """Share of requirement items contained in some capability; `empty` when there are none."""
    if not items:
        return empty
    caps = [c.lower() for c in capabilities]
    matched = [i for i in items if (t := item_text(i, *keys)) and any(t in c for c in caps)]
    return round_half_up(len(matched) / len(items) * 100)


def range_compatibility(value: Optional[float], low: Optional[float], high: Optional[float]) -> float:
    if not (low and high):
        return 75
    value = value or 0
    if low <= value <= high:
        return 100
    if value < low:
        return 90
    span = high - low
    if span <= 0:
        return 0.0
    return max(0.0, 100 - (value - high) / span * 50)


def weighted_total(scores: Dict[str, float], weights: Dict[str, float]) -> float:
    return sum(scores.get(name, 0) * weight for name, weight in weights.items())


def capabilities_with_certifications(profile: UserProfile) -> List[str]:
    return [*profile.capabilities, *profile.certification_names]
