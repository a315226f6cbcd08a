"""Tests for enrollment uniqueness, bulk enrollment and unenrollment."""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from conftest import auth_headers, ctx
from lms.errors import Conflict, Forbidden, NotFound, ValidationError
from lms.models.enrollment import Enrollment
from lms.permissions import Role
from lms.services import enrollment_service


class TestEnroll:
    """Test single enrollment."""

    def test_student_enrolls_self_once(self, db, make_user, make_course):
        """The second enrollment of the same pair conflicts."""
        student = make_user(Role.STUDENT)
        course = make_course()
        enrollment_service.enroll(db, ctx(student), course.id)
        with pytest.raises(Conflict, match="already enrolled"):
            enrollment_service.enroll(db, ctx(student), course.id)
        assert db.query(Enrollment).count() == 1

    def test_student_id_ignored_for_students(self, db, make_user, make_course):
        """A student cannot enroll someone else."""
        student = make_user(Role.STUDENT)
        other = make_user(Role.STUDENT)
        course = make_course()
        enrollment = enrollment_service.enroll(db, ctx(student), course.id, student_id=other.id)
        assert enrollment.student_id == student.id

    def test_staff_must_name_student(self, db, make_user, make_course):
        """Staff enrollment requires a student id."""
        with pytest.raises(ValidationError, match="Student ID is required"):
            enrollment_service.enroll(db, ctx(make_user(Role.ADMIN)), make_course().id)

    def test_inactive_course_rejected(self, db, make_user, make_course):
        """Inactive courses do not accept enrollments."""
        course = make_course(active=False)
        with pytest.raises(ValidationError, match="not active"):
            enrollment_service.enroll(db, ctx(make_user(Role.STUDENT)), course.id)

    def test_only_students_can_be_enrolled(self, db, make_user, make_course):
        """Enrolling a teacher is a validation error; an unknown id is not found."""
        admin = ctx(make_user(Role.ADMIN))
        course = make_course()
        with pytest.raises(ValidationError, match="not a student"):
            enrollment_service.enroll(db, admin, course.id, student_id=make_user(Role.TEACHER).id)
        with pytest.raises(NotFound, match="Student not found"):
            enrollment_service.enroll(db, admin, course.id, student_id="missing")

    def test_unknown_course(self, db, make_user):
        """Enrolling in a missing course is not found."""
        with pytest.raises(NotFound, match="Course not found"):
            enrollment_service.enroll(db, ctx(make_user(Role.STUDENT)), "missing")

    def test_management_enrolls_via_api(self, client, make_user, make_course):
        """Staff pass student_id in the body."""
        manager = make_user(Role.MANAGEMENT)
        student = make_user(Role.STUDENT)
        course = make_course()
        res = client.post(f"/api/courses/{course.id}/enroll", headers=auth_headers(manager),
                          json={"student_id": student.id})
        assert res.status_code == 201
        assert res.json()["enrollment"]["student_id"] == student.id

        res = client.get(f"/api/courses/{course.id}/enrollments", headers=auth_headers(manager))
        assert res.json()["total"] == 1
        assert res.json()["enrollments"][0]["student"]["email"] == student.email


    def test_racing_duplicate_hits_unique_constraint(self, db, make_user, make_course, monkeypatch):
        """A duplicate that slips past the lookup still conflicts and leaves the session usable."""
        student = make_user(Role.STUDENT)
        course = make_course()
        enrollment_service.enroll(db, ctx(student), course.id)

        monkeypatch.setattr(enrollment_service, "_existing_enrollment", lambda db, course_id, student_id: None)
        with pytest.raises(Conflict, match="already enrolled"):
            enrollment_service.enroll(db, ctx(student), course.id)

        assert db.query(Enrollment).count() == 1
        enrollment_service.enroll(db, ctx(make_user(Role.STUDENT)), course.id)
        assert db.query(Enrollment).count() == 2


class TestBulkEnroll:
    """Test bulk enrollment partial success."""

    def test_partial_success_reported_per_student(self, client, db, make_user, make_course):
        """Failures are reported without aborting the batch."""
        admin = make_user(Role.ADMIN)
        already = make_user(Role.STUDENT)
        fresh = make_user(Role.STUDENT)
        teacher = make_user(Role.TEACHER)
        course = make_course()
        enrollment_service.enroll(db, ctx(already), course.id)

        res = client.post(f"/api/courses/{course.id}/enroll/bulk", headers=auth_headers(admin), json={
            "student_ids": [already.id, fresh.id, teacher.id, "missing"],
        })
        assert res.status_code == 200
        body = res.json()
        assert body["enrolled"] == 1
        assert body["failed"] == 3

        by_id = {r["student_id"]: r for r in body["results"]}
        assert by_id[fresh.id]["success"] is True
        assert by_id[fresh.id]["enrollment_id"]
        assert by_id[already.id]["error"] == "Student already enrolled in this course"
        assert by_id[teacher.id]["error"] == "User is not a student"
        assert by_id["missing"]["error"] == "Student not found"
        assert db.query(Enrollment).count() == 2

    def test_racing_duplicate_does_not_abort_batch(self, db, make_user, make_course, monkeypatch):
        """A unique-constraint conflict mid-batch is reported and the rest still enroll."""
        admin = ctx(make_user(Role.ADMIN))
        already = make_user(Role.STUDENT)
        fresh = make_user(Role.STUDENT)
        course = make_course()
        enrollment_service.enroll(db, ctx(already), course.id)

        monkeypatch.setattr(enrollment_service, "_existing_enrollment", lambda db, course_id, student_id: None)
        results = enrollment_service.bulk_enroll(db, admin, course.id, [already.id, fresh.id])

        assert results[0] == {
            "student_id": already.id, "success": False, "error": "Student already enrolled in this course",
        }
        assert results[1]["success"] is True
        assert db.query(Enrollment).count() == 2

    def test_students_cannot_bulk_enroll(self, db, make_user, make_course):
        """Bulk enrollment is staff only."""
        with pytest.raises(Forbidden):
            enrollment_service.bulk_enroll(db, ctx(make_user(Role.STUDENT)), make_course().id, ["x"])

    def test_empty_list_rejected(self, db, make_user, make_course):
        """At least one id is required."""
        with pytest.raises(ValidationError):
            enrollment_service.bulk_enroll(db, ctx(make_user(Role.ADMIN)), make_course().id, [])


class TestUnenroll:
    """Test unenrollment and approval."""

    def test_student_cannot_unenroll_others(self, db, make_user, make_course):
        """Students may only remove their own enrollment."""
        student = make_user(Role.STUDENT)
        other = make_user(Role.STUDENT)
        course = make_course()
        enrollment_service.enroll(db, ctx(other), course.id)
        with pytest.raises(Forbidden):
            enrollment_service.unenroll(db, ctx(student), course.id, other.id)

    def test_staff_unenroll_any_student(self, db, make_user, make_course):
        """Staff roles remove enrollments of other users."""
        student = make_user(Role.STUDENT)
        course = make_course()
        enrollment_service.enroll(db, ctx(student), course.id)
        enrollment_service.unenroll(db, ctx(make_user(Role.TEACHER)), course.id, student.id)
        assert db.query(Enrollment).count() == 0

    def test_missing_enrollment(self, db, make_user, make_course):
        """Unenrolling a pair that does not exist is not found."""
        with pytest.raises(NotFound, match="Enrollment not found"):
            enrollment_service.unenroll(db, ctx(make_user(Role.ADMIN)), make_course().id, "nobody")

    def test_approve_is_a_no_op(self, db, make_user, make_course):
        """Approval returns the existing enrollment unchanged."""
        student = make_user(Role.STUDENT)
        course = make_course()
        created = enrollment_service.enroll(db, ctx(student), course.id)
        approved = enrollment_service.approve_enrollment(db, ctx(make_user(Role.HEAD)), course.id, student.id)
        assert approved.id == created.id


class TestAliceScenario:
    """End-to-end: register, login, enroll, re-enroll, unenroll, enroll again."""

    def test_alice_enrollment_lifecycle(self, client, make_course):
        """Only the duplicate enrollment fails."""
        course = make_course("beginner")

        res = client.post("/api/auth/register", json={
            "email": "alice@example.com", "password": "alicepass", "name": "Alice",
        })
        assert res.status_code == 201
        alice_id = res.json()["user"]["id"]

        res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "alicepass"})
        assert res.status_code == 200
        headers = {"Authorization": f"Bearer {res.json()['token']}"}

        assert client.post(f"/api/courses/{course.id}/enroll", headers=headers).status_code == 201

        res = client.post(f"/api/courses/{course.id}/enroll", headers=headers)
        assert res.status_code == 409
        assert res.json() == {"error": "Student already enrolled in this course"}

        res = client.delete(f"/api/courses/{course.id}/enroll/{alice_id}", headers=headers)
        assert res.status_code == 200

        assert client.post(f"/api/courses/{course.id}/enroll", headers=headers).status_code == 201
