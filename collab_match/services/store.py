"""
Repository over the marketplace collections used by the matching engine
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from collab_match.models.models import CollaborationApplication, Opportunity, User
from collab_match.models.schemas import MatchModel, NotificationModel
from collab_match.services import db
from collab_match.utils.exceptions import ExceptionContext
from collab_match.utils.logging_config import get_logger

logger = get_logger(__name__)


class CollaborationStore:
    """Reads opportunities, users and application history; writes matches and notifications"""

    def __init__(
        self,
        opportunities=None,
        users=None,
        applications=None,
        matches=None,
        notifications=None,
    ):
        self.opportunities = opportunities if opportunities is not None else db.opportunities_coll
        self.users = users if users is not None else db.users_coll
        self.applications = applications if applications is not None else db.applications_coll
        self.matches = matches if matches is not None else db.matches_coll
        self.notifications = notifications if notifications is not None else db.notifications_coll

    # ---------- reads ----------

    async def get_opportunity(self, opportunity_id: str) -> Optional[Opportunity]:
        with ExceptionContext("get_opportunity", logger, opportunity_id=opportunity_id):
            doc = await self.opportunities.find_one({"id": opportunity_id})
        return Opportunity.model_validate(db.to_dict(doc)) if doc else None

    async def get_user(self, user_id: str) -> Optional[User]:
        with ExceptionContext("get_user", logger, user_id=user_id):
            doc = await self.users.find_one({"id": user_id})
        return User.model_validate(db.to_dict(doc)) if doc else None

    async def get_users_by_role(self, role: str) -> List[User]:
        with ExceptionContext("get_users_by_role", logger, role=role):
            docs = await self.users.find({"role": role}).to_list(length=None)
        return [User.model_validate(db.to_dict(d)) for d in docs]

    async def get_applications(self, applicant_id: Optional[str] = None) -> List[CollaborationApplication]:
        query = {"applicantId": applicant_id} if applicant_id else {}
        with ExceptionContext("get_applications", logger, applicant_id=applicant_id):
            docs = await self.applications.find(query).to_list(length=None)
        return [CollaborationApplication.model_validate(db.to_dict(d)) for d in docs]

    async def list_matches(
        self,
        opportunity_id: Optional[str] = None,
        provider_id: Optional[str] = None,
    ) -> List[MatchModel]:
        query: Dict[str, Any] = {"opportunityType": "collaboration"}
        if opportunity_id:
            query["opportunityId"] = opportunity_id
        if provider_id:
            query["providerId"] = provider_id
        with ExceptionContext("list_matches", logger, **query):
            docs = await self.matches.find(query).to_list(length=None)
        return [MatchModel.model_validate(db.to_dict(d)) for d in docs]

    # ---------- writes ----------

    async def create_match(self, **fields) -> MatchModel:
        match = MatchModel(id=str(uuid.uuid4()), **fields)
        with ExceptionContext("create_match", logger, match_id=match.id):
            await self.matches.insert_one(match.model_dump(by_alias=True))
        return match

    async def mark_match_notified(self, match_id: str) -> None:
        with ExceptionContext("mark_match_notified", logger, match_id=match_id):
            await self.matches.update_one(
                {"id": match_id},
                {"$set": {"notified": True, "notifiedAt": datetime.utcnow()}}
            )

    async def create_notification(self, **fields) -> NotificationModel:
        notification = NotificationModel(id=str(uuid.uuid4()), **fields)
        with ExceptionContext("create_notification", logger, notification_id=notification.id):
            await self.notifications.insert_one(notification.model_dump(by_alias=True))
        return notification

    async def update_opportunity(self, opportunity_id: str, updates: Dict[str, Any]) -> None:
        with ExceptionContext("update_opportunity", logger, opportunity_id=opportunity_id):
            await self.opportunities.update_one(
                {"id": opportunity_id},
                {"$set": {**updates, "updatedAt": datetime.utcnow()}}
            )
