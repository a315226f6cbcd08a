"""Meetings router — Google Meet links per course."""

from fastapi import APIRouter, Depends
from fastapi.responses import RedirectResponse
from sqlalchemy.orm import Session

from lms.database import get_db
from lms.middleware.auth import get_current_user
from lms.permissions import AuthContext
from lms.schemas.auth import MessageResponse
from lms.schemas.meeting import (
    MeetingCreate,
    MeetingEnvelope,
    MeetingListResponse,
    MeetingMutationResponse,
    MeetingResponse,
    MeetingUpdate,
)
from lms.services import meeting_service

router = APIRouter(prefix="/api/meetings", tags=["meetings"])


def _meeting_list(meetings) -> MeetingListResponse:
    return MeetingListResponse(
        meetings=[MeetingResponse.model_validate(m) for m in meetings],
        total=len(meetings),
    )


@router.get("/course/{course_id}", response_model=MeetingListResponse)
def list_course_meetings(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _meeting_list(meeting_service.list_for_course(db, current_user, course_id))


@router.get("/course/{course_id}/upcoming", response_model=MeetingListResponse)
def list_upcoming_meetings(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _meeting_list(meeting_service.upcoming(db, current_user, course_id))


@router.get("/{meeting_id}", response_model=MeetingEnvelope)
def get_meeting(
    meeting_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    meeting = meeting_service.get_meeting(db, current_user, meeting_id)
    return MeetingEnvelope(meeting=MeetingResponse.model_validate(meeting))


@router.post("", response_model=MeetingMutationResponse, status_code=201)
def create_meeting(
    req: MeetingCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    meeting = meeting_service.create_meeting(db, current_user, req.course_id, req.title, req.meet_link)
    return MeetingMutationResponse(
        message="Meeting created successfully",
        meeting=MeetingResponse.model_validate(meeting),
    )


@router.put("/{meeting_id}", response_model=MeetingMutationResponse)
def update_meeting(
    meeting_id: str,
    req: MeetingUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    meeting = meeting_service.update_meeting(
        db, current_user, meeting_id, title=req.title, meet_link=req.meet_link
    )
    return MeetingMutationResponse(
        message="Meeting updated successfully",
        meeting=MeetingResponse.model_validate(meeting),
    )


@router.delete("/{meeting_id}", response_model=MessageResponse)
def delete_meeting(
    meeting_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    meeting_service.delete_meeting(db, current_user, meeting_id)
    return MessageResponse(message="Meeting deleted successfully")


@router.get("/{meeting_id}/join")
def join_meeting(
    meeting_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    meeting = meeting_service.get_meeting(db, current_user, meeting_id)
    return RedirectResponse(meeting.meet_link, status_code=302)
