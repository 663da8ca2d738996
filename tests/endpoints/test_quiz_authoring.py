from fastapi.testclient import TestClient

from app.core.constants import CourseStatusEnum, LessonTypeEnum
from tests.helpers.asserts import api_call, assert_error
from tests.helpers.payloads import question


def _add(client, headers, lesson_id, text, **extra):
    body = question(text, 0)
    body.pop("questionOrder")
    body.update(extra)
    return api_call(client, "POST", f"/quizzes/lessons/{lesson_id}/questions", headers, body, expected_min=201).json()["data"]


def test_questions_are_appended_in_order(client: TestClient, instructor_headers, course_factory, lesson_factory, db_session):
    course = course_factory()
    lesson = lesson_factory(course)

    first = _add(client, instructor_headers, lesson.id, "What is a call option?")
    second = _add(client, instructor_headers, lesson.id, "What is a put option?")
    assert (first["questionOrder"], second["questionOrder"]) == (0, 1)
    assert [o["isCorrectAnswer"] for o in first["options"]] == [True, False]

    db_session.refresh(course)
    assert course.curriculum_version == 2

    listed = api_call(client, "GET", f"/quizzes/lessons/{lesson.id}/questions", instructor_headers).json()["data"]
    assert [q["id"] for q in listed] == [first["id"], second["id"]]


def test_question_order_must_be_next_slot(client: TestClient, instructor_headers, course_factory, lesson_factory):
    lesson = lesson_factory(course_factory())
    body = question("Out of place", 3)
    response = client.post(f"/quizzes/lessons/{lesson.id}/questions", json=body, headers=instructor_headers)
    assert_error(response, 400, "expected question order 0")


def test_option_orders_must_be_sequential(client: TestClient, instructor_headers, course_factory, lesson_factory):
    lesson = lesson_factory(course_factory())
    body = question("Gappy", 0)
    body["options"][1]["optionOrder"] = 5
    response = client.post(f"/quizzes/lessons/{lesson.id}/questions", json=body, headers=instructor_headers)
    assert_error(response, 400, "Option order must be unique")


def test_questions_only_on_quiz_lessons(client: TestClient, instructor_headers, course_factory, lesson_factory):
    lesson = lesson_factory(course_factory(), lesson_type=LessonTypeEnum.TEXT)
    response = client.post(f"/quizzes/lessons/{lesson.id}/questions", json=question("Q?", 0), headers=instructor_headers)
    assert_error(response, 400, "QUIZ lessons")


def test_update_replaces_options_and_moves_question(client: TestClient, instructor_headers, course_factory, lesson_factory):
    lesson = lesson_factory(course_factory())
    first = _add(client, instructor_headers, lesson.id, "First")
    second = _add(client, instructor_headers, lesson.id, "Second")

    body = question("Second, reworded", 0, correct=2, option_texts=("A", "B", "C"))
    updated = api_call(client, "PUT", f"/quizzes/questions/{second['id']}", instructor_headers, body).json()["data"]
    assert updated["questionText"] == "Second, reworded"
    assert updated["questionOrder"] == 0
    assert [o["optionText"] for o in updated["options"]] == ["A", "B", "C"]
    assert not {o["id"] for o in updated["options"]} & {o["id"] for o in second["options"]}

    listed = api_call(client, "GET", f"/quizzes/lessons/{lesson.id}/questions", instructor_headers).json()["data"]
    assert [q["id"] for q in listed] == [second["id"], first["id"]]
    assert [q["questionOrder"] for q in listed] == [0, 1]


def test_update_rejects_out_of_range_position(client: TestClient, instructor_headers, course_factory, lesson_factory):
    lesson = lesson_factory(course_factory())
    only = _add(client, instructor_headers, lesson.id, "Only")
    response = client.put(f"/quizzes/questions/{only['id']}", json=question("Only", 4), headers=instructor_headers)
    assert_error(response, 400, "Question order must be between 0 and 0")


def test_delete_archives_and_renumbers(client: TestClient, instructor_headers, course_factory, lesson_factory):
    lesson = lesson_factory(course_factory())
    first = _add(client, instructor_headers, lesson.id, "First")
    second = _add(client, instructor_headers, lesson.id, "Second")

    api_call(client, "DELETE", f"/quizzes/questions/{first['id']}", instructor_headers)
    listed = api_call(client, "GET", f"/quizzes/lessons/{lesson.id}/questions", instructor_headers).json()["data"]
    assert [(q["id"], q["questionOrder"]) for q in listed] == [(second["id"], 0)]
    assert_error(client.delete(f"/quizzes/questions/{first['id']}", headers=instructor_headers), 404)


def test_students_cannot_author_or_list(client: TestClient, student_headers, course_factory, lesson_factory):
    lesson = lesson_factory(course_factory(status=CourseStatusEnum.PUBLISHED))
    assert_error(client.get(f"/quizzes/lessons/{lesson.id}/questions", headers=student_headers), 403)
    response = client.post(f"/quizzes/lessons/{lesson.id}/questions", json=question("Q?", 0), headers=student_headers)
    assert_error(response, 403)
