"""Endpoint tests for enrollment creation and listing."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from enrollment_service.courses.models import CourseStatus
from enrollment_service.enrollments.models import Enrollment, EnrollmentStatus


async def _enrollment_count(session: AsyncSession, user_id: int, course_id: int) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Enrollment)
        .where(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_health(client) -> None:
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "service": "enrollment-service"}


@pytest.mark.asyncio
async def test_security_headers_are_set(client) -> None:
    resp = await client.get("/health")
    assert resp.headers["X-Content-Type-Options"] == "nosniff"
    assert resp.headers["X-Frame-Options"] == "DENY"


@pytest.mark.asyncio
async def test_create_enrollment(client, seed_user, seed_course, fetch_enrollment) -> None:
    user_id = await seed_user()
    tree = await seed_course()

    resp = await client.post("/enrollments", json={"user_id": user_id, "course_id": tree.course_id})

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["id"] > 0
    assert body["user_id"] == user_id
    assert body["course_id"] == tree.course_id
    assert body["status"] == "active"
    assert body["enrolled_at"]

    row = await fetch_enrollment(body["id"])
    assert row.status == EnrollmentStatus.ACTIVE.value
    assert row.completed_at is None


@pytest.mark.asyncio
async def test_duplicate_enrollment_conflicts(client, db_session, seed_user, seed_course) -> None:
    user_id = await seed_user()
    tree = await seed_course()
    payload = {"user_id": user_id, "course_id": tree.course_id}

    first = await client.post("/enrollments", json=payload)
    second = await client.post("/enrollments", json=payload)

    assert first.status_code == 201
    assert second.status_code == 409
    assert second.json()["error"]["detail"] == "User already enrolled in this course"
    assert await _enrollment_count(db_session, user_id, tree.course_id) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("course_status", [CourseStatus.DRAFT, CourseStatus.PENDING, CourseStatus.REJECTED])
async def test_unpublished_course_is_not_found(client, db_session, seed_user, seed_course, course_status) -> None:
    user_id = await seed_user()
    tree = await seed_course(status=course_status)

    resp = await client.post("/enrollments", json={"user_id": user_id, "course_id": tree.course_id})

    assert resp.status_code == 404
    error = resp.json()["error"]
    assert error["code"] == "NOT_FOUND"
    assert error["detail"] == "Course not found or not published"
    assert await _enrollment_count(db_session, user_id, tree.course_id) == 0


@pytest.mark.asyncio
async def test_missing_course_is_not_found(client, seed_user) -> None:
    user_id = await seed_user()
    resp = await client.post("/enrollments", json={"user_id": user_id, "course_id": 4242})
    assert resp.status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [
        {"user_id": "abc", "course_id": 1},
        {"user_id": 1},
        {"course_id": 1},
        {"user_id": 0, "course_id": 1},
        {"user_id": 1, "course_id": -5},
        {"user_id": 1.5, "course_id": 1},
        {"user_id": True, "course_id": 1},
        {"user_id": 1, "course_id": False},
    ],
)
async def test_create_enrollment_rejects_invalid_body(client, payload) -> None:
    resp = await client.post("/enrollments", json=payload)

    assert resp.status_code == 400
    error = resp.json()["error"]
    assert error["category"] == "VALIDATION_ERROR"
    assert error["metadata"]["errors"]


@pytest.mark.asyncio
async def test_list_enrollments_newest_first_with_course_title(client, seed_user, seed_course) -> None:
    user_id = await seed_user()
    first_course = await seed_course(title="Algebra")
    second_course = await seed_course(title="Biology")

    for tree in (first_course, second_course):
        resp = await client.post("/enrollments", json={"user_id": user_id, "course_id": tree.course_id})
        assert resp.status_code == 201

    resp = await client.get(f"/enrollments/{user_id}")

    assert resp.status_code == 200
    items = resp.json()
    assert [item["course_title"] for item in items] == ["Biology", "Algebra"]
    assert all(item["user_id"] == user_id for item in items)
    assert items[0]["completed_at"] is None


@pytest.mark.asyncio
async def test_list_enrollments_filters_by_status(client, seed_user, seed_course, seed_enrollment) -> None:
    user_id = await seed_user()
    active_course = await seed_course(title="Active")
    cancelled_course = await seed_course(title="Cancelled")
    await seed_enrollment(user_id, active_course.course_id)
    await seed_enrollment(user_id, cancelled_course.course_id, status=EnrollmentStatus.CANCELLED)

    resp = await client.get(f"/enrollments/{user_id}", params={"status": "active"})
    assert resp.status_code == 200
    items = resp.json()
    assert len(items) == 1
    assert items[0]["status"] == "active"
    assert items[0]["course_id"] == active_course.course_id

    resp = await client.get(f"/enrollments/{user_id}", params={"status": "completed"})
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_list_enrollments_for_user_without_enrollments(client, seed_user) -> None:
    user_id = await seed_user()
    resp = await client.get(f"/enrollments/{user_id}")
    assert resp.status_code == 200
    assert resp.json() == []


@pytest.mark.asyncio
async def test_list_enrollments_unknown_user(client) -> None:
    resp = await client.get("/enrollments/999")
    assert resp.status_code == 404
    assert resp.json()["error"]["detail"] == "User not found"


@pytest.mark.asyncio
@pytest.mark.parametrize("path", ["/enrollments/abc", "/enrollments/0", "/enrollments/1?status=paused"])
async def test_list_enrollments_rejects_invalid_input(client, seed_user, path) -> None:
    await seed_user()
    resp = await client.get(path)
    assert resp.status_code == 400
