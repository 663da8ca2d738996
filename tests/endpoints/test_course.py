from fastapi.testclient import TestClient

from app.core.constants import CourseStatusEnum
from tests.helpers.asserts import api_call, assert_error


def test_instructor_creates_draft_course(client: TestClient, instructor, instructor_headers):
    response = api_call(client, "POST", "/courses/", instructor_headers, {
        "name": "Options Trading 101", "shortDescription": "Calls and puts", "originalPrice": "49.99",
    })
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["status"] == "DRAFT"
    assert data["slug"] == "options-trading-101"
    assert data["instructorId"] == instructor.id
    assert data["curriculumVersion"] == 0


def test_duplicate_names_get_distinct_slugs(client: TestClient, instructor_headers):
    first = api_call(client, "POST", "/courses/", instructor_headers, {"name": "Same Name"}).json()["data"]
    second = api_call(client, "POST", "/courses/", instructor_headers, {"name": "Same Name"}).json()["data"]
    assert first["slug"] != second["slug"]
    assert second["slug"].startswith("same-name")


def test_student_cannot_create_course(client: TestClient, student_headers):
    response = client.post("/courses/", json={"name": "Nope"}, headers=student_headers)
    assert_error(response, 403)


def test_instructor_cannot_create_for_someone_else(client: TestClient, instructor_headers, account_factory):
    from app.core.constants import RoleEnum
    other = account_factory(RoleEnum.INSTRUCTOR)
    response = client.post("/courses/", json={"name": "Theirs", "instructorId": other.id}, headers=instructor_headers)
    assert_error(response, 403)


def test_admin_creates_course_for_instructor(client: TestClient, admin_headers, instructor):
    data = api_call(client, "POST", "/courses/", admin_headers, {"name": "Assigned", "instructorId": instructor.id}).json()["data"]
    assert data["instructorId"] == instructor.id


def test_discount_above_price_is_rejected(client: TestClient, instructor_headers):
    response = client.post(
        "/courses/", json={"name": "Pricey", "originalPrice": "10", "discountedPrice": "20"}, headers=instructor_headers
    )
    error = assert_error(response, 400, "Discounted price")
    assert error["code"] == "VALIDATION_ERROR"


def test_update_regenerates_slug_and_checks_merged_prices(client: TestClient, instructor_headers, course_factory):
    course = course_factory(original_price=50)
    data = api_call(client, "PUT", f"/courses/{course.id}", instructor_headers, {"name": "Renamed Course"}).json()["data"]
    assert data["slug"] == "renamed-course"

    response = client.put(f"/courses/{course.id}", json={"discountedPrice": "80"}, headers=instructor_headers)
    assert_error(response, 400, "Discounted price cannot be greater")


def test_update_rejects_status_field(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    response = client.put(f"/courses/{course.id}", json={"status": "PUBLISHED"}, headers=instructor_headers)
    assert_error(response, 400)


def test_owner_cannot_edit_pending_course(client: TestClient, instructor_headers, course_factory):
    course = course_factory(status=CourseStatusEnum.PENDING)
    response = client.put(f"/courses/{course.id}", json={"name": "Late change"}, headers=instructor_headers)
    assert_error(response, 403, "DRAFT or REJECTED")


def test_admin_can_edit_pending_course(client: TestClient, admin_headers, course_factory):
    course = course_factory(status=CourseStatusEnum.PENDING)
    api_call(client, "PUT", f"/courses/{course.id}", admin_headers, {"shortDescription": "Tightened up"})


def test_non_owner_cannot_edit(client: TestClient, account_factory, course_factory):
    from app.core.constants import RoleEnum
    from tests.helpers.auth import auth_headers
    outsider = account_factory(RoleEnum.INSTRUCTOR)
    course = course_factory()
    response = client.put(f"/courses/{course.id}", json={"name": "Hijack"}, headers=auth_headers(outsider))
    assert_error(response, 403)


def test_students_only_see_published_courses(client: TestClient, student_headers, course_factory):
    published = course_factory(status=CourseStatusEnum.PUBLISHED)
    draft = course_factory()

    listed = api_call(client, "GET", "/courses/", student_headers).json()["data"]
    assert [c["id"] for c in listed] == [published.id]

    assert_error(client.get(f"/courses/{draft.id}", headers=student_headers), 404)
    api_call(client, "GET", f"/courses/{published.id}", student_headers)


def test_instructor_lists_own_courses_in_any_status(client: TestClient, instructor, instructor_headers, course_factory):
    draft = course_factory()
    listed = api_call(client, "GET", f"/courses/?instructor_id={instructor.id}", instructor_headers).json()["data"]
    assert draft.id in [c["id"] for c in listed]


def test_thumbnail_upload_replaces_previous(client: TestClient, instructor_headers, course_factory, asset_store):
    course = course_factory()
    path = f"/courses/{course.id}/thumbnail"
    first = client.put(path, files={"file": ("a.png", b"png-bytes", "image/png")}, headers=instructor_headers)
    assert first.status_code == 200, first.text
    first_url = first.json()["data"]["thumbnailUrl"]

    second = client.put(path, files={"file": ("b.png", b"png-bytes-2", "image/png")}, headers=instructor_headers)
    assert second.status_code == 200, second.text
    assert second.json()["data"]["thumbnailUrl"] != first_url
    assert asset_store.destroyed == [asset_store.uploaded[0][0]]


def test_thumbnail_rejects_non_images(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    response = client.put(
        f"/courses/{course.id}/thumbnail", files={"file": ("a.txt", b"text", "text/plain")}, headers=instructor_headers
    )
    assert_error(response, 400, "Invalid file type")


def test_delete_course(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    api_call(client, "DELETE", f"/courses/{course.id}", instructor_headers)
    assert_error(client.get(f"/courses/{course.id}", headers=instructor_headers), 404)


def test_archive_requires_published(client: TestClient, instructor_headers, course_factory):
    draft = course_factory()
    assert_error(client.post(f"/courses/{draft.id}/archive", headers=instructor_headers), 400, "Only published")

    published = course_factory(status=CourseStatusEnum.PUBLISHED, is_featured=True)
    data = api_call(client, "POST", f"/courses/{published.id}/archive", instructor_headers).json()["data"]
    assert data["status"] == "ARCHIVED"
    assert data["isFeatured"] is False


def test_missing_token_is_rejected(client: TestClient):
    response = client.get("/courses/")
    assert response.status_code in (401, 403)


def test_error_envelope_carries_request_id(client: TestClient, instructor_headers):
    response = client.get("/courses/999999", headers={**instructor_headers, "X-Request-ID": "req-123"})
    body = response.json()
    assert response.status_code == 404
    assert body["error"]["code"] == "NOT_FOUND"
    assert body["error"]["message"] == "Course not found."
    assert body["path"] == "/courses/999999"
    assert body["request_id"] == "req-123"
    assert response.headers["X-Request-ID"] == "req-123"
