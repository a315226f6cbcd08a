"""Lectures router — scheduling, recordings and video streaming."""

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from lms.database import get_db
from lms.middleware.auth import get_current_user
from lms.permissions import AuthContext
from lms.schemas.auth import MessageResponse
from lms.schemas.lecture import (
    LectureCreate,
    LectureEnvelope,
    LectureListResponse,
    LectureMutationResponse,
    LectureResponse,
    LectureUpdate,
)
from lms.services import lecture_service
from lms.services.storage import iter_file, video_content_type

router = APIRouter(prefix="/api/lectures", tags=["lectures"])


def _lecture_list(lectures) -> LectureListResponse:
    return LectureListResponse(
        lectures=[LectureResponse.model_validate(lec) for lec in lectures],
        total=len(lectures),
    )


@router.get("/course/{course_id}", response_model=LectureListResponse)
def list_course_lectures(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _lecture_list(lecture_service.list_for_course(db, current_user, course_id))


@router.get("/course/{course_id}/upcoming", response_model=LectureListResponse)
def list_upcoming_lectures(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return _lecture_list(lecture_service.upcoming(db, current_user, course_id))


@router.get("/{lecture_id}", response_model=LectureEnvelope)
def get_lecture(
    lecture_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    lecture = lecture_service.get_lecture(db, current_user, lecture_id)
    return LectureEnvelope(lecture=LectureResponse.model_validate(lecture))


@router.post("", response_model=LectureMutationResponse, status_code=201)
def create_lecture(
    req: LectureCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    lecture = lecture_service.create_lecture(db, current_user, req.course_id, req.title, req.scheduled_at)
    return LectureMutationResponse(
        message="Lecture created successfully",
        lecture=LectureResponse.model_validate(lecture),
    )


@router.put("/{lecture_id}", response_model=LectureMutationResponse)
def update_lecture(
    lecture_id: str,
    req: LectureUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    lecture = lecture_service.update_lecture(
        db, current_user, lecture_id, title=req.title, scheduled_at=req.scheduled_at
    )
    return LectureMutationResponse(
        message="Lecture updated successfully",
        lecture=LectureResponse.model_validate(lecture),
    )


@router.post("/{lecture_id}/record", response_model=LectureMutationResponse)
async def upload_recording(
    lecture_id: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    content = await file.read()
    lecture = lecture_service.upload_recording(
        db, current_user, lecture_id, content, file.filename, file.content_type
    )
    return LectureMutationResponse(
        message="Lecture recording uploaded successfully",
        lecture=LectureResponse.model_validate(lecture),
    )


@router.delete("/{lecture_id}", response_model=MessageResponse)
def delete_lecture(
    lecture_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    lecture_service.delete_lecture(db, current_user, lecture_id)
    return MessageResponse(message="Lecture deleted successfully")


@router.get("/{lecture_id}/stream")
def stream_recording(
    lecture_id: str,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    lecture, handle = lecture_service.open_recording(db, current_user, lecture_id)
    return StreamingResponse(
        iter_file(handle),
        media_type=video_content_type(lecture.record_path),
        headers={"Accept-Ranges": "bytes"},
    )
