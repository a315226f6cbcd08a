"""Activities router — read-only audit feed."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.database import get_db
from lms.middleware.auth import get_current_user
from lms.permissions import AuthContext
from lms.schemas.activity import ActivityListResponse, ActivityResponse
from lms.services import activity_service

router = APIRouter(prefix="/api/activities", tags=["activities"])


def _activity_list(activities) -> ActivityListResponse:
    return ActivityListResponse(activities=[ActivityResponse.model_validate(a) for a in activities])


@router.get("/recent", response_model=ActivityListResponse)
def recent_activities(
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _activity_list(activity_service.recent(db, current_user, limit))


@router.get("/entity/{entity}/{entity_id}", response_model=ActivityListResponse)
def entity_activities(
    entity: str,
    entity_id: str,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _activity_list(activity_service.for_entity(db, current_user, entity, entity_id, limit))


@router.get("/actor/{actor_id}", response_model=ActivityListResponse)
def actor_activities(
    actor_id: str,
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _activity_list(activity_service.for_actor(db, current_user, actor_id, limit))
