from fastapi.testclient import TestClient

from app.core.constants import CourseStatusEnum
from app.models.notification import Notification
from tests.helpers.asserts import api_call, assert_error
from tests.helpers.payloads import lesson, section


def _course_with_curriculum(client, headers, course_factory, **fields):
    course = course_factory(**fields)
    api_call(client, "PUT", f"/courses/{course.id}/curriculum", headers, {"sections": [section("Intro", 0, [lesson("Welcome", 0)])]})
    return course


def test_submit_review_publish_flow(client: TestClient, db_session, instructor, instructor_headers, admin, admin_headers, course_factory):
    course = _course_with_curriculum(client, instructor_headers, course_factory)

    print("[1] Instructor submits")
    request = api_call(client, "POST", f"/courses/{course.id}/submit", instructor_headers, {"notes": "Ready for review"}).json()["data"]
    assert request["status"] == "PENDING"
    assert request["requestType"] == "INITIAL_SUBMISSION"
    assert request["instructorNotes"] == "Ready for review"
    assert api_call(client, "GET", f"/courses/{course.id}", instructor_headers).json()["data"]["status"] == "PENDING"

    admin_notes = db_session.query(Notification).filter(Notification.account_id == admin.id).all()
    assert [n.notification_type for n in admin_notes] == ["COURSE_SUBMITTED"]
    assert admin_notes[0].related_entity_id == request["id"]

    print("[2] Second submission is refused while pending")
    assert_error(client.post(f"/courses/{course.id}/submit", headers=instructor_headers), 400, "already has a pending approval request")

    print("[3] Admin approves")
    reviewed = api_call(client, "PATCH", f"/courses/reviews/{request['id']}", admin_headers,
                        {"decision": "APPROVED", "adminNotes": "Looks great"}).json()["data"]
    assert reviewed["status"] == "APPROVED"
    assert reviewed["adminId"] == admin.id
    assert reviewed["reviewedAt"] is not None

    published = api_call(client, "GET", f"/courses/{course.id}", instructor_headers).json()["data"]
    assert published["status"] == "PUBLISHED"
    assert published["publishedAt"] is not None

    instructor_notes = api_call(client, "GET", "/notifications/", instructor_headers).json()["data"]
    assert instructor_notes[0]["notificationType"] == "COURSE_APPROVED"
    assert instructor_notes[0]["message"].endswith("Notes: Looks great")

    print("[4] A reviewed request cannot be reviewed again")
    response = client.patch(f"/courses/reviews/{request['id']}", json={"decision": "REJECTED"}, headers=admin_headers)
    assert_error(response, 400, "already been reviewed")

    print("[5] A published course cannot be resubmitted")
    assert_error(client.post(f"/courses/{course.id}/submit", headers=instructor_headers), 400, "Only DRAFT or REJECTED")


def test_needs_revision_rejects_then_resubmission(client: TestClient, instructor_headers, admin_headers, course_factory):
    course = _course_with_curriculum(client, instructor_headers, course_factory)
    request = api_call(client, "POST", f"/courses/{course.id}/submit", instructor_headers).json()["data"]

    reviewed = api_call(client, "PATCH", f"/courses/reviews/{request['id']}", admin_headers,
                        {"decision": "NEEDS_REVISION", "adminNotes": "Add a quiz"}).json()["data"]
    assert reviewed["status"] == "NEEDS_REVISION"
    assert api_call(client, "GET", f"/courses/{course.id}", instructor_headers).json()["data"]["status"] == "REJECTED"

    notes = api_call(client, "GET", "/notifications/", instructor_headers).json()["data"]
    assert notes[0]["notificationType"] == "COURSE_NEEDS_REVISION"

    print("[1] Rejected courses are editable and can be resubmitted")
    api_call(client, "PUT", f"/courses/{course.id}", instructor_headers, {"description": "Now with a quiz"})
    again = api_call(client, "POST", f"/courses/{course.id}/submit", instructor_headers).json()["data"]
    assert again["requestType"] == "RE_SUBMISSION"


def test_submission_requires_curriculum(client: TestClient, instructor_headers, course_factory):
    empty = course_factory()
    assert_error(client.post(f"/courses/{empty.id}/submit", headers=instructor_headers), 400, "at least one section")

    sections_only = course_factory()
    api_call(client, "PUT", f"/courses/{sections_only.id}/curriculum", instructor_headers, {"sections": [section("Empty", 0)]})
    assert_error(client.post(f"/courses/{sections_only.id}/submit", headers=instructor_headers), 400, "at least one lesson")


def test_only_owner_submits_and_only_admin_reviews(client: TestClient, instructor_headers, admin_headers, student_headers, course_factory):
    course = _course_with_curriculum(client, instructor_headers, course_factory)
    assert_error(client.post(f"/courses/{course.id}/submit", headers=admin_headers), 403)

    request = api_call(client, "POST", f"/courses/{course.id}/submit", instructor_headers).json()["data"]
    response = client.patch(f"/courses/reviews/{request['id']}", json={"decision": "APPROVED"}, headers=instructor_headers)
    assert_error(response, 403)
    assert_error(client.get(f"/courses/reviews/{request['id']}", headers=student_headers), 403)
    api_call(client, "GET", f"/courses/reviews/{request['id']}", instructor_headers)


def test_pending_is_not_a_review_decision(client: TestClient, instructor_headers, admin_headers, course_factory):
    course = _course_with_curriculum(client, instructor_headers, course_factory)
    request = api_call(client, "POST", f"/courses/{course.id}/submit", instructor_headers).json()["data"]
    response = client.patch(f"/courses/reviews/{request['id']}", json={"decision": "PENDING"}, headers=admin_headers)
    assert_error(response, 400)


def test_admin_lists_requests_by_status(client: TestClient, instructor_headers, admin_headers, course_factory):
    first = _course_with_curriculum(client, instructor_headers, course_factory)
    second = _course_with_curriculum(client, instructor_headers, course_factory)
    api_call(client, "POST", f"/courses/{first.id}/submit", instructor_headers)
    request = api_call(client, "POST", f"/courses/{second.id}/submit", instructor_headers).json()["data"]
    api_call(client, "PATCH", f"/courses/reviews/{request['id']}", admin_headers, {"decision": "REJECTED"})

    pending = api_call(client, "GET", "/courses/reviews?request_status=PENDING", admin_headers).json()["data"]
    assert [r["courseId"] for r in pending] == [first.id]
    assert_error(client.get("/courses/reviews", headers=instructor_headers), 403)


def test_feature_toggle(client: TestClient, admin_headers, instructor_headers, course_factory):
    draft = course_factory()
    response = client.patch(f"/courses/{draft.id}/feature", json={"isFeatured": True}, headers=admin_headers)
    assert_error(response, 400, "Only published courses can be featured")

    published = course_factory(status=CourseStatusEnum.PUBLISHED)
    data = api_call(client, "PATCH", f"/courses/{published.id}/feature", admin_headers, {"isFeatured": True}).json()["data"]
    assert data["isFeatured"] is True
    response = client.patch(f"/courses/{published.id}/feature", json={"isFeatured": False}, headers=instructor_headers)
    assert_error(response, 403)

    featured = api_call(client, "GET", "/courses/?is_featured=true", instructor_headers).json()["data"]
    assert [c["id"] for c in featured] == [published.id]
