"""Tests for course management, ownership narrowing and cascade deletion."""

import pytest
import sys
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import auth_headers, ctx
from lms.config import settings
from lms.errors import Forbidden, NotFound, ValidationError
from lms.models.activity import Activity
from lms.permissions import Role
from lms.services import (
    course_service,
    enrollment_service,
    lecture_service,
    material_service,
    meeting_service,
    notice_service,
)


class TestCourseCreation:
    """Test who may create courses and with which teachers."""

    def test_admin_creates_course_with_teachers(self, client, make_user):
        """Teachers are attached by id and summarised in the response."""
        admin = make_user(Role.ADMIN)
        teacher = make_user(Role.TEACHER, name="Tanaka")
        res = client.post("/api/courses", headers=auth_headers(admin), json={
            "title": "Beginner", "description": "N5", "teacher_ids": [teacher.id],
        })
        assert res.status_code == 201
        course = res.json()["course"]
        assert course["title"] == "Beginner"
        assert course["active"] is True
        assert [t["name"] for t in course["teachers"]] == ["Tanaka"]
        assert course["counts"]["enrollments"] == 0

    @pytest.mark.parametrize("role", [Role.TEACHER, Role.HEAD, Role.STUDENT])
    def test_other_roles_cannot_create(self, client, make_user, role):
        """Only ADMIN and MANAGEMENT create courses."""
        res = client.post("/api/courses", headers=auth_headers(make_user(role)), json={"title": "X"})
        assert res.status_code == 403
        body = res.json()
        assert body["required_roles"] == ["ADMIN", "MANAGEMENT"]
        assert body["user_role"] == role.value

    def test_teacher_ids_must_be_teachers(self, db, make_user):
        """Non-teacher ids are a validation error; unknown ids are not found."""
        admin = ctx(make_user(Role.ADMIN))
        student = make_user(Role.STUDENT)
        with pytest.raises(ValidationError, match="is not a teacher"):
            course_service.create_course(db, admin, "X", teacher_ids=[student.id])
        with pytest.raises(NotFound, match="Teacher not found"):
            course_service.create_course(db, admin, "X", teacher_ids=["missing"])

    def test_blank_title_rejected(self, db, make_user):
        """Course title is required."""
        with pytest.raises(ValidationError):
            course_service.create_course(db, ctx(make_user(Role.MANAGEMENT)), "   ")


class TestOwnershipNarrowing:
    """Test that teachers only touch courses they teach."""

    def test_teacher_of_course_can_update(self, client, make_user, make_course):
        """A member of the teacher set may edit the course."""
        teacher = make_user(Role.TEACHER)
        course = make_course(teachers=[teacher])
        res = client.put(f"/api/courses/{course.id}", headers=auth_headers(teacher), json={"title": "Renamed"})
        assert res.status_code == 200
        assert res.json()["course"]["title"] == "Renamed"

    def test_other_teacher_cannot_update_or_delete(self, client, make_user, make_course):
        """A teacher outside the teacher set is refused."""
        owner = make_user(Role.TEACHER)
        outsider = make_user(Role.TEACHER)
        course = make_course(teachers=[owner])

        res = client.put(f"/api/courses/{course.id}", headers=auth_headers(outsider), json={"title": "Hijack"})
        assert res.status_code == 403
        assert res.json() == {"error": "You can only update courses you teach"}

        res = client.delete(f"/api/courses/{course.id}", headers=auth_headers(outsider))
        assert res.status_code == 403

    def test_teacher_can_delete_own_course(self, db, make_user, make_course):
        """Ownership satisfies the delete check."""
        teacher = make_user(Role.TEACHER)
        course_id = make_course(teachers=[teacher]).id
        course_service.delete_course(db, ctx(teacher), course_id)
        with pytest.raises(NotFound):
            course_service.find_course(db, course_id)

    def test_head_cannot_update(self, db, make_user, make_course):
        """HEAD is not in the update row at all."""
        course = make_course()
        with pytest.raises(Forbidden):
            course_service.update_course(db, ctx(make_user(Role.HEAD)), course.id, title="X")

    def test_teacher_may_remove_themselves(self, db, make_user, make_course):
        """Reassigning the teacher set is allowed, self-removal included."""
        teacher = make_user(Role.TEACHER)
        other = make_user(Role.TEACHER)
        course = make_course(teachers=[teacher])

        course_service.update_course(db, ctx(teacher), course.id, teacher_ids=[other.id])
        assert [t.id for t in course.teachers] == [other.id]

        with pytest.raises(Forbidden):
            course_service.update_course(db, ctx(teacher), course.id, title="Again")

    def test_missing_course_is_not_found_before_ownership(self, db, make_user):
        """The target is loaded before ownership is judged."""
        with pytest.raises(NotFound):
            course_service.update_course(db, ctx(make_user(Role.TEACHER)), "nope", title="X")


class TestCourseListing:
    """Test course list variants."""

    def test_my_courses_and_active(self, client, make_user, make_course):
        """Teachers see what they teach; the active list hides inactive courses."""
        teacher = make_user(Role.TEACHER)
        mine = make_course("Mine", teachers=[teacher])
        make_course("Theirs")
        make_course("Old", active=False)

        res = client.get("/api/courses/my-courses", headers=auth_headers(teacher))
        assert [c["id"] for c in res.json()["courses"]] == [mine.id]

        res = client.get("/api/courses/active", headers=auth_headers(teacher))
        assert {c["title"] for c in res.json()["courses"]} == {"Mine", "Theirs"}

        res = client.get("/api/courses", headers=auth_headers(teacher))
        assert res.json()["total"] == 3

    def test_my_courses_is_teacher_only(self, client, make_user):
        """Students cannot list taught courses."""
        res = client.get("/api/courses/my-courses", headers=auth_headers(make_user(Role.STUDENT)))
        assert res.status_code == 403

    def test_enrolled_courses(self, db, client, make_user, make_course):
        """Students see the courses they are enrolled in."""
        student = make_user(Role.STUDENT)
        course = make_course()
        make_course("Other")
        enrollment_service.enroll(db, ctx(student), course.id)

        res = client.get("/api/courses/enrolled", headers=auth_headers(student))
        assert [c["id"] for c in res.json()["courses"]] == [course.id]

    def test_get_unknown_course(self, client, make_user):
        """Unknown ids are 404 with the error shape."""
        res = client.get("/api/courses/does-not-exist", headers=auth_headers(make_user()))
        assert res.status_code == 404
        assert res.json() == {"error": "Course not found"}


class TestCascadeDeletion:
    """Test that deleting a course removes everything attached to it."""

    def test_delete_removes_children_and_files(self, db, client, make_user, make_course):
        """Enrollments, materials, lectures, meetings and notices all go."""
        admin = make_user(Role.ADMIN)
        teacher = make_user(Role.TEACHER)
        student = make_user(Role.STUDENT)
        course = make_course(teachers=[teacher])
        course_id = course.id

        enrollment_service.enroll(db, ctx(student), course.id)
        material = material_service.upload_material(
            db, ctx(teacher), course.id, "Slides", "STUDY_MATERIAL", b"%PDF-1.4", "slides.pdf", "application/pdf"
        )
        lecture = lecture_service.create_lecture(
            db, ctx(teacher), course.id, "Week 1", datetime.now(timezone.utc) + timedelta(days=1)
        )
        lecture_service.upload_recording(db, ctx(teacher), lecture.id, b"\x00\x01", "week1.mp4", "video/mp4")
        meeting = meeting_service.create_meeting(
            db, ctx(teacher), course.id, "Office hours", "https://meet.google.com/abc-defg-hij"
        )
        notice = notice_service.create_notice(db, ctx(teacher), "Welcome", "Hello", course.id)
        ids = (material.id, lecture.id, meeting.id, notice.id)

        upload_dir = Path(settings.UPLOAD_DIR)
        assert len(list(upload_dir.iterdir())) == 2

        res = client.delete(f"/api/courses/{course_id}", headers=auth_headers(admin))
        assert res.status_code == 200
        material_id, lecture_id, meeting_id, notice_id = ids

        admin_ctx = ctx(admin)
        with pytest.raises(NotFound):
            enrollment_service.approve_enrollment(db, admin_ctx, course_id, student.id)
        with pytest.raises(NotFound):
            material_service.get_material(db, admin_ctx, material_id)
        with pytest.raises(NotFound):
            lecture_service.get_lecture(db, admin_ctx, lecture_id)
        with pytest.raises(NotFound):
            meeting_service.get_meeting(db, admin_ctx, meeting_id)
        with pytest.raises(NotFound):
            notice_service.get_notice(db, admin_ctx, notice_id)
        assert list(upload_dir.iterdir()) == []

        deleted = db.query(Activity).filter(Activity.action == "deleted course").one()
        assert deleted.entity_id == course_id
