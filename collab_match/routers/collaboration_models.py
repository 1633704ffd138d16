from typing import List, Optional

from fastapi import APIRouter, Request

from collab_match.models.collaboration_models import (
    CollaborationModel,
    ModelCategory,
    get_all_categories,
    get_all_models,
    get_model,
    get_models_by_applicability,
    get_models_by_category,
)
from collab_match.utils.logging_config import get_logger
from collab_match.utils.exceptions import NotFoundError

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=List[CollaborationModel])
async def list_models(
    request: Request,
    relationship_type: Optional[str] = None,
    category: Optional[str] = None,
):
    """List collaboration models, filtered by relationship type and/or category id"""
    request_id = getattr(request.state, 'request_id', 'unknown')

    models = get_models_by_category(category) if category else get_all_models()
    if relationship_type:
        applicable = {m.id for m in get_models_by_applicability(relationship_type)}
        models = [m for m in models if m.id in applicable]

    logger.debug(
        f"Listing {len(models)} collaboration models",
        extra={"request_id": request_id, "relationship_type": relationship_type, "category": category}
    )
    return models


@router.get("/categories/all", response_model=List[ModelCategory])
async def list_categories():
    return get_all_categories()


@router.get("/{model_id}", response_model=CollaborationModel)
async def get_collaboration_model(model_id: str):
    model = get_model(model_id)
    if model is None:
        raise NotFoundError(f"Collaboration model not found: {model_id}", entity="collaboration_model", entity_id=model_id)
    return model
