"""Notices router — course and general announcements."""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.database import get_db
from lms.middleware.auth import get_current_user
from lms.permissions import AuthContext
from lms.schemas.auth import MessageResponse
from lms.schemas.notice import (
    NoticeCreate,
    NoticeEnvelope,
    NoticeListResponse,
    NoticeMutationResponse,
    NoticeResponse,
    NoticeUpdate,
)
from lms.services import notice_service

router = APIRouter(prefix="/api/notices", tags=["notices"])


def _notice_list(notices) -> NoticeListResponse:
    return NoticeListResponse(
        notices=[NoticeResponse.model_validate(n) for n in notices],
        total=len(notices),
    )


@router.get("/course/{course_id}", response_model=NoticeListResponse)
def list_course_notices(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _notice_list(notice_service.list_for_course(db, current_user, course_id))


@router.get("/general", response_model=NoticeListResponse)
def list_general_notices(
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _notice_list(notice_service.list_general(db, current_user))


@router.get("/recent", response_model=NoticeListResponse)
def list_recent_notices(
    limit: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _notice_list(notice_service.recent(db, current_user, limit))


@router.get("/{notice_id}", response_model=NoticeEnvelope)
def get_notice(
    notice_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    notice = notice_service.get_notice(db, current_user, notice_id)
    return NoticeEnvelope(notice=NoticeResponse.model_validate(notice))


@router.post("", response_model=NoticeMutationResponse, status_code=201)
def create_notice(
    req: NoticeCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    notice = notice_service.create_notice(db, current_user, req.title, req.body, req.course_id)
    return NoticeMutationResponse(
        message="Notice created successfully",
        notice=NoticeResponse.model_validate(notice),
    )


@router.put("/{notice_id}", response_model=NoticeMutationResponse)
def update_notice(
    notice_id: str,
    req: NoticeUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    notice = notice_service.update_notice(db, current_user, notice_id, title=req.title, body=req.body)
    return NoticeMutationResponse(
        message="Notice updated successfully",
        notice=NoticeResponse.model_validate(notice),
    )


@router.delete("/{notice_id}", response_model=MessageResponse)
def delete_notice(
    notice_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    notice_service.delete_notice(db, current_user, notice_id)
    return MessageResponse(message="Notice deleted successfully")
