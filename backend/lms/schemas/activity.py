"""Activity feed schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ActorSummary(BaseModel):
    id: str
    name: str
    email: str
    role: str

    class Config:
        from_attributes = True


class ActivityResponse(BaseModel):
    id: str
    actor_id: str
    action: str
    entity: str
    entity_id: str
    created_at: datetime
    actor: Optional[ActorSummary] = None

    class Config:
        from_attributes = True


class ActivityListResponse(BaseModel):
    activities: list[ActivityResponse]
