from fastapi.testclient import TestClient

from app.core.constants import CourseStatusEnum
from app.models.lesson import Lesson
from app.models.section import Section
from tests.helpers.asserts import api_call, assert_error
from tests.helpers.payloads import as_payload, lesson, question, section


def _sync(client, headers, course_id, body, expected_min=200, expected_max=300):
    return api_call(client, "PUT", f"/courses/{course_id}/curriculum", headers, body, expected_min, expected_max)


def _tree(client, headers, course_id):
    return api_call(client, "GET", f"/courses/{course_id}/curriculum", headers).json()["data"]


def test_first_sync_creates_tree(client: TestClient, instructor_headers, course_factory, db_session):
    course = course_factory()
    print("[1] Sync a one-section, one-lesson curriculum")
    summary = _sync(client, instructor_headers, course.id, {"sections": [{
        "sectionName": "Intro", "sectionOrder": 0,
        "lessons": [{"lessonName": "Welcome", "lessonOrder": 0, "lessonType": "TEXT", "textContent": "hi", "isFreePreview": True}],
    }]}).json()["data"]
    assert summary["created"]["sections"] == 1
    assert summary["created"]["lessons"] == 1
    assert summary["version"] == 1

    print("[2] Read it back with server-assigned ids")
    tree = _tree(client, instructor_headers, course.id)
    assert tree["version"] == 1
    assert len(tree["sections"]) == 1
    welcome = tree["sections"][0]["lessons"][0]
    assert isinstance(welcome["id"], int)
    assert welcome["textContent"] == "hi"
    assert db_session.query(Section).filter(Section.course_id == course.id).count() == 1


def test_resync_of_read_tree_changes_nothing(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    _sync(client, instructor_headers, course.id, {"sections": [
        section("Basics", 0, [
            lesson("Reading", 0),
            lesson("Check", 1, lesson_type="QUIZ", questions=[question("Ready?", 0), question("Sure?", 1, correct=1)]),
            lesson("Clip", 2, lesson_type="VIDEO", videoSourceType="YOUTUBE",
                   externalVideoInput="https://youtu.be/dQw4w9WgXcQ", videoDurationSeconds=212),
        ]),
        section("Advanced", 1, [lesson("Deep dive", 0)]),
    ]})
    before = _tree(client, instructor_headers, course.id)
    assert before["sections"][0]["lessons"][2]["externalVideoId"] == "dQw4w9WgXcQ"

    summary = _sync(client, instructor_headers, course.id, as_payload(before)).json()["data"]
    assert not any(sum(summary[key].values()) for key in ("created", "updated", "archived", "deleted"))
    assert summary["version"] == before["version"]
    assert _tree(client, instructor_headers, course.id) == before


def test_omitted_nodes_are_archived_or_deleted(client: TestClient, instructor_headers, course_factory, db_session):
    course = course_factory()
    _sync(client, instructor_headers, course.id, {"sections": [
        section("Keep", 0, [lesson("Stays", 0), lesson("Goes", 1)]),
        section("Drop", 1, [lesson("Orphan", 0)]),
    ]})
    tree = _tree(client, instructor_headers, course.id)
    keep, drop = tree["sections"]
    stays, goes = keep["lessons"]
    orphan = drop["lessons"][0]

    print("[1] Sync without the second lesson and the second section")
    payload = as_payload(tree)
    payload["sections"] = payload["sections"][:1]
    payload["sections"][0]["lessons"] = payload["sections"][0]["lessons"][:1]
    summary = _sync(client, instructor_headers, course.id, payload).json()["data"]
    assert summary["archived"]["lessons"] == 2
    assert summary["deleted"]["sections"] == 1

    print("[2] Archived lessons remain stored but are hidden")
    archived = db_session.query(Lesson).filter(Lesson.id.in_([goes["id"], orphan["id"]])).all()
    assert len(archived) == 2
    assert all(row.is_archived for row in archived)
    assert db_session.get(Section, drop["id"]) is None
    assert [l["id"] for s in _tree(client, instructor_headers, course.id)["sections"] for l in s["lessons"]] == [stays["id"]]


def test_lesson_moves_between_sections_keeping_its_id(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    _sync(client, instructor_headers, course.id, {"sections": [
        section("One", 0, [lesson("A", 0), lesson("B", 1)]),
        section("Two", 1, []),
    ]})
    tree = _tree(client, instructor_headers, course.id)
    payload = as_payload(tree)
    moved = payload["sections"][0]["lessons"].pop(1)
    moved["lessonOrder"] = 0
    payload["sections"][1]["lessons"].append(moved)
    _sync(client, instructor_headers, course.id, payload)

    after = _tree(client, instructor_headers, course.id)
    assert [l["id"] for l in after["sections"][1]["lessons"]] == [moved["id"]]


def test_orders_must_be_sequential(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    response = client.put(f"/courses/{course.id}/curriculum", headers=instructor_headers, json={"sections": [
        section("A", 0, [lesson("x", 0), lesson("y", 2)]),
    ]})
    assert_error(response, 400, "Lesson order must be unique")

    response = client.put(f"/courses/{course.id}/curriculum", headers=instructor_headers, json={"sections": [
        section("A", 1),
    ]})
    assert_error(response, 400, "Section order must be unique")
    assert _tree(client, instructor_headers, course.id)["sections"] == []


def test_payload_validation_errors_are_bad_requests(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    response = client.put(f"/courses/{course.id}/curriculum", headers=instructor_headers, json={"sections": [
        section("A", 0, [lesson("Video", 0, lesson_type="VIDEO")]),
    ]})
    error = assert_error(response, 400, "videoSourceType is required")
    assert error["code"] == "VALIDATION_ERROR"


def test_quiz_with_questions_cannot_change_type(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    _sync(client, instructor_headers, course.id, {"sections": [
        section("A", 0, [lesson("Quiz", 0, lesson_type="QUIZ", questions=[question("Q?", 0)])]),
    ]})
    payload = as_payload(_tree(client, instructor_headers, course.id))
    quiz = payload["sections"][0]["lessons"][0]

    retyped = {**quiz, "lessonType": "TEXT", "textContent": "Now text", "questions": []}
    payload["sections"][0]["lessons"][0] = retyped
    response = client.put(f"/courses/{course.id}/curriculum", json=payload, headers=instructor_headers)
    assert_error(response, 400, "Remove all questions")

    print("[1] Clearing the questions first lets the type change through")
    payload["sections"][0]["lessons"][0] = {**quiz, "questions": []}
    summary = _sync(client, instructor_headers, course.id, payload).json()["data"]
    assert summary["archived"]["questions"] == 1
    assert summary["archived"]["options"] == 2
    payload["sections"][0]["lessons"][0] = retyped
    _sync(client, instructor_headers, course.id, payload)
    assert _tree(client, instructor_headers, course.id)["sections"][0]["lessons"][0]["lessonType"] == "TEXT"


def test_stale_expected_version_is_rejected(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    _sync(client, instructor_headers, course.id, {"sections": [section("A", 0)], "expectedVersion": 0})
    response = client.put(
        f"/courses/{course.id}/curriculum", headers=instructor_headers,
        json={"sections": [section("B", 0)], "expectedVersion": 0},
    )
    assert_error(response, 400, "changed by another request")


def test_duplicate_and_foreign_ids(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    other = course_factory()
    _sync(client, instructor_headers, course.id, {"sections": [section("A", 0, [lesson("x", 0)])]})
    _sync(client, instructor_headers, other.id, {"sections": [section("B", 0, [lesson("y", 0)])]})
    mine = _tree(client, instructor_headers, course.id)["sections"][0]
    theirs = _tree(client, instructor_headers, other.id)["sections"][0]

    lesson_id = mine["lessons"][0]["id"]
    response = client.put(f"/courses/{course.id}/curriculum", headers=instructor_headers, json={"sections": [
        section("A", 0, [lesson("x", 0, lesson_id=lesson_id), lesson("x again", 1, lesson_id=lesson_id)], section_id=mine["id"]),
    ]})
    assert_error(response, 400, f"Duplicate lesson id {lesson_id}")

    response = client.put(f"/courses/{course.id}/curriculum", headers=instructor_headers, json={"sections": [
        section("A", 0, [lesson("x", 0, lesson_id=theirs["lessons"][0]["id"])], section_id=mine["id"]),
    ]})
    assert_error(response, 404, "not found in this course")


def test_default_subtitle_is_unique(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    english = {"languageCode": "en", "languageName": "English", "subtitleUrl": "https://cdn.test/en.vtt", "isDefault": True}
    french = {"languageCode": "fr", "languageName": "French", "subtitleUrl": "https://cdn.test/fr.vtt", "isDefault": False}
    _sync(client, instructor_headers, course.id, {"sections": [section("A", 0, [lesson("x", 0, subtitles=[english, french])])]})

    payload = as_payload(_tree(client, instructor_headers, course.id))
    subtitles = payload["sections"][0]["lessons"][0]["subtitles"]
    subtitles[0]["isDefault"], subtitles[1]["isDefault"] = False, True
    _sync(client, instructor_headers, course.id, payload)

    stored = _tree(client, instructor_headers, course.id)["sections"][0]["lessons"][0]["subtitles"]
    assert [(s["languageCode"], s["isDefault"]) for s in stored] == [("en", False), ("fr", True)]


def test_uploaded_video_is_removed_with_its_lesson(client: TestClient, instructor_headers, course_factory, asset_store):
    course = course_factory()
    _sync(client, instructor_headers, course.id, {"sections": [
        section("A", 0, [lesson("Upload", 0, lesson_type="VIDEO", videoSourceType="CLOUDINARY"), lesson("Text", 1)]),
    ]})
    lesson_id = _tree(client, instructor_headers, course.id)["sections"][0]["lessons"][0]["id"]

    print("[1] Upload the binary for the lesson")
    response = client.put(
        f"/lessons/{lesson_id}/video", files={"file": ("clip.mp4", b"video-bytes", "video/mp4")}, headers=instructor_headers
    )
    assert response.status_code == 200, response.text
    uploaded = response.json()["data"]
    assert uploaded["videoDurationSeconds"] == 94
    assert uploaded["externalVideoId"] == asset_store.uploaded[0][0]

    print("[2] Re-syncing keeps the stored video")
    tree = _tree(client, instructor_headers, course.id)
    _sync(client, instructor_headers, course.id, as_payload(tree))
    assert asset_store.destroyed == []

    print("[3] Dropping the lesson deletes the blob after commit")
    payload = as_payload(tree)
    text_lesson = payload["sections"][0]["lessons"][1]
    text_lesson["lessonOrder"] = 0
    payload["sections"][0]["lessons"] = [text_lesson]
    _sync(client, instructor_headers, course.id, payload)
    assert asset_store.destroyed == [uploaded["externalVideoId"]]


def test_attachment_upload(client: TestClient, instructor_headers, course_factory):
    course = course_factory()
    _sync(client, instructor_headers, course.id, {"sections": [
        section("A", 0, [lesson("Notes", 0, attachments=[{"fileName": "cheatsheet.pdf"}])]),
    ]})
    attachment = _tree(client, instructor_headers, course.id)["sections"][0]["lessons"][0]["attachments"][0]
    assert attachment["fileUrl"] == "pending_upload"

    response = client.put(
        f"/lessons/attachments/{attachment['id']}/file",
        files={"file": ("cheatsheet.pdf", b"%PDF-1.4", "application/pdf")}, headers=instructor_headers,
    )
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["fileType"] == "application/pdf"
    assert data["fileUrl"].startswith("https://")


def test_learners_see_a_redacted_tree(
    client: TestClient, instructor_headers, student, student_headers, account_factory, course_factory, enroll, db_session
):
    course = course_factory()
    _sync(client, instructor_headers, course.id, {"sections": [section("A", 0, [
        lesson("Preview", 0, isFreePreview=True),
        lesson("Paid", 1),
        lesson("Quiz", 2, lesson_type="QUIZ", questions=[question("Q?", 0)]),
    ])]})

    print("[1] Drafts are invisible to outsiders")
    assert_error(client.get(f"/courses/{course.id}/curriculum", headers=student_headers), 404)

    course.status = CourseStatusEnum.PUBLISHED
    db_session.commit()

    print("[2] Outsiders see free previews only, never answers")
    preview, paid, quiz = _tree(client, student_headers, course.id)["sections"][0]["lessons"]
    assert preview["textContent"] == "Preview body"
    assert paid["textContent"] is None
    assert quiz["questions"] == []

    print("[3] Enrolled students see content but still no answers")
    enroll(student, course.id)
    preview, paid, quiz = _tree(client, student_headers, course.id)["sections"][0]["lessons"]
    assert paid["textContent"] == "Paid body"
    assert quiz["questions"] == []


def test_only_owner_syncs_drafts(client: TestClient, student_headers, course_factory):
    course = course_factory()
    response = client.put(f"/courses/{course.id}/curriculum", json={"sections": []}, headers=student_headers)
    assert_error(response, 403)
