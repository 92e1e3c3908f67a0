"""HTTP-level tests: auth, roles, error rendering and the assistant endpoints."""

from datetime import timedelta

from conftest import PASSWORD, make_assessment, make_lesson_plan, token_for
from teachmate.clock import utcnow
from teachmate.routers.voice import WEBHOOK_APOLOGY
from teachmate.services import ai_client, people_service, retell
from teachmate.services.voice_service import NO_CALL_CONTEXT


class TestAuth:
    def test_login(self, client, school):
        res = client.post(
            "/api/auth/login",
            json={"email": "ASHA@school.edu", "password": PASSWORD, "role": "teacher"},
        )
        assert res.status_code == 200
        data = res.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["name"] == "Asha Rao"

        me = client.get("/api/auth/current-user", headers={"Authorization": f"Bearer {data['access_token']}"})
        assert me.json()["role"] == "teacher"

    def test_wrong_password(self, client, school):
        res = client.post(
            "/api/auth/login",
            json={"email": "asha@school.edu", "password": "nope", "role": "teacher"},
        )
        assert res.status_code == 401
        assert res.json()["detail"] == "Invalid email or password"

    def test_wrong_role(self, client, school):
        """A teacher's email is not a student account."""
        res = client.post(
            "/api/auth/login",
            json={"email": "asha@school.edu", "password": PASSWORD, "role": "student"},
        )
        assert res.status_code == 401

    def test_unknown_role(self, client, school):
        res = client.post(
            "/api/auth/login",
            json={"email": "asha@school.edu", "password": PASSWORD, "role": "admin"},
        )
        assert res.status_code == 400

    def test_inactive_account(self, client, school, db):
        school["student"].is_active = False
        db.commit()
        res = client.post(
            "/api/auth/login",
            json={"email": "ravi@school.edu", "password": PASSWORD, "role": "student"},
        )
        assert res.status_code == 403

    def test_missing_token(self, client, school):
        assert client.get("/api/auth/current-user").status_code in (401, 403)


class TestRoles:
    def test_student_cannot_write_catalog(self, client, student_headers):
        res = client.post("/api/grades", json={"grade_name": "Grade 9"}, headers=student_headers)
        assert res.status_code == 403

    def test_teacher_creates_grade(self, client, teacher_headers):
        res = client.post("/api/grades", json={"grade_name": "Grade 9"}, headers=teacher_headers)
        assert res.status_code == 201
        assert res.json()["grade_name"] == "Grade 9"

    def test_duplicate_grade_is_conflict(self, client, teacher_headers):
        res = client.post("/api/grades", json={"grade_name": "Grade 8"}, headers=teacher_headers)
        assert res.status_code == 400

    def test_missing_entity_renders_detail(self, client, teacher_headers):
        res = client.get("/api/lesson-plan/missing", headers=teacher_headers)
        assert res.status_code == 404
        assert res.json() == {"detail": "Lesson plan not found"}


class TestLessonPlanRoutes:
    def test_completed_status_queues_assessment_job(self, client, db, school, teacher_headers, spawned):
        plan = make_lesson_plan(db, school)
        res = client.patch(
            f"/api/lesson-plan/{plan.id}/status", json={"status": "Completed"}, headers=teacher_headers
        )
        assert res.status_code == 200
        body = res.json()
        assert body["lesson_plan"]["status"] == "Completed"
        assert body["job_id"]
        assert spawned[0][:3] == (body["job_id"], "chapter_assessment", plan.id)

        job = client.get(f"/api/jobs/{body['job_id']}", headers=teacher_headers).json()
        assert job["status"] == "pending"
        assert job["kind"] == "chapter_assessment"

    def test_active_status_queues_nothing(self, client, db, school, teacher_headers, spawned):
        plan = make_lesson_plan(db, school)
        res = client.patch(f"/api/lesson-plan/{plan.id}/status", json={"status": "Active"}, headers=teacher_headers)
        assert res.json()["job_id"] is None
        assert spawned == []

    def test_illegal_transition_is_conflict(self, client, db, school, teacher_headers):
        plan = make_lesson_plan(db, school)
        client.patch(f"/api/lesson-plan/{plan.id}/status", json={"status": "Archived"}, headers=teacher_headers)
        res = client.patch(f"/api/lesson-plan/{plan.id}/status", json={"status": "Active"}, headers=teacher_headers)
        assert res.status_code == 400

    def test_complete_session_twice(self, client, db, school, teacher_headers):
        plan = make_lesson_plan(db, school, sessions=1)
        url = f"/api/lesson-plan/{plan.id}/session/1/complete"
        first = client.patch(url, headers=teacher_headers)
        assert first.status_code == 200
        assert first.json()["all_sessions_completed"] is True
        assert client.patch(url, headers=teacher_headers).status_code == 400

    def test_workflow_returns_job(self, client, db, school, teacher_headers, spawned):
        plan = make_lesson_plan(db, school)
        res = client.post(f"/api/lesson-plan/{plan.id}/workflow", headers=teacher_headers)
        assert res.status_code == 202
        assert res.json()["status"] == "pending"
        assert spawned[0][1] == "full_workflow"


class TestSubmissionRoutes:
    def _answers(self):
        return [
            {"question_id": "q-mcq", "student_answer": "Photosynthesis"},
            {"question_id": "q-blank", "student_answer": "rainy"},
            {"question_id": "q-long", "student_answer": "Prepare soil and sow seeds"},
        ]

    def test_student_submits_own_answers(self, client, db, school, student_headers):
        assessment = make_assessment(db, school)
        res = client.post(
            "/api/submission/submit",
            json={
                "assessment_id": assessment.id,
                "student_id": school["student"].id,
                "answers": self._answers(),
                "time_taken": 600,
            },
            headers=student_headers,
        )
        assert res.status_code == 201
        body = res.json()
        assert body["status"] == "Submitted"
        assert body["total_marks"] == 7

        status = client.get(
            f"/api/submission/status/{assessment.id}/{school['student'].id}", headers=student_headers
        ).json()
        assert status["submitted"] is True

    def test_student_cannot_submit_for_another(self, client, db, school, student_headers):
        assessment = make_assessment(db, school)
        res = client.post(
            "/api/submission/submit",
            json={"assessment_id": assessment.id, "student_id": "someone-else", "answers": self._answers()},
            headers=student_headers,
        )
        assert res.status_code == 403

    def test_parent_cannot_submit(self, client, db, school):
        assessment = make_assessment(db, school)
        res = client.post(
            "/api/submission/submit",
            json={"assessment_id": assessment.id, "student_id": school["student"].id, "answers": self._answers()},
            headers=token_for(school["parent"]),
        )
        assert res.status_code == 403

    def test_inactive_assessment_rejected(self, client, db, school, student_headers):
        assessment = make_assessment(db, school, status="Closed")
        res = client.post(
            "/api/submission/submit",
            json={"assessment_id": assessment.id, "student_id": school["student"].id, "answers": self._answers()},
            headers=student_headers,
        )
        assert res.status_code == 400
        assert "not active" in res.json()["detail"]

    def test_student_cannot_read_another_students_submissions(self, client, db, school):
        assessment = make_assessment(db, school)
        other = people_service.register_student(db, "Meera", "Shah", "meera@school.edu", PASSWORD, "8A", "Grade 8", "13")
        headers = token_for(other)
        student_id = school["student"].id

        assert client.get(f"/api/submission/student/{student_id}", headers=headers).status_code == 403
        res = client.get(f"/api/submission/status/{assessment.id}/{student_id}", headers=headers)
        assert res.status_code == 403
        assert client.get(f"/api/submission/student/{other.id}", headers=headers).status_code == 200

    def test_parent_reads_only_linked_child(self, client, db, school):
        other = people_service.register_student(db, "Meera", "Shah", "meera@school.edu", PASSWORD, "8A", "Grade 8", "13")
        headers = token_for(school["parent"])

        assert client.get(f"/api/submission/student/{school['student'].id}", headers=headers).status_code == 200
        res = client.get(f"/api/submission/student/{other.id}", headers=headers)
        assert res.status_code == 403
        assert res.json() == {"detail": "Student is not linked to this parent"}

    def test_single_submission_is_owner_only(self, client, db, school, student_headers, teacher_headers):
        assessment = make_assessment(db, school)
        submission = client.post(
            "/api/submission/submit",
            json={"assessment_id": assessment.id, "student_id": school["student"].id, "answers": self._answers()},
            headers=student_headers,
        ).json()
        other = people_service.register_student(db, "Meera", "Shah", "meera@school.edu", PASSWORD, "8A", "Grade 8", "13")

        assert client.get(f"/api/submission/{submission['id']}", headers=token_for(other)).status_code == 403
        assert client.get(f"/api/submission/{submission['id']}", headers=teacher_headers).status_code == 200


class TestQuestionRoutes:
    def test_students_do_not_see_answer_keys(self, client, db, school, student_headers):
        assessment = make_assessment(db, school)
        res = client.get(f"/api/assessment/{assessment.id}/questions", headers=student_headers)
        assert res.status_code == 200
        options = res.json()["questions"][0]["answers"]
        assert options[0]["option"] == "Photosynthesis"
        assert all("is_correct" not in o and "explanation" not in o for o in options)

    def test_teachers_see_answer_keys(self, client, db, school, teacher_headers):
        assessment = make_assessment(db, school)
        res = client.get(f"/api/assessment/{assessment.id}/questions", headers=teacher_headers)
        assert res.json()["questions"][0]["answers"][0]["is_correct"] is True
        assert res.json()["total_marks"] == 7


class TestChatRoutes:
    def _reply(self, monkeypatch, text="Plants use sunlight to make food."):
        async def fake_completion(messages, **kwargs):
            return {"role": "assistant", "content": text}

        monkeypatch.setattr(ai_client, "chat_completion", fake_completion)

    def test_student_chat_flags_confusion(self, client, school, student_headers, teacher_headers, monkeypatch):
        self._reply(monkeypatch)
        session = client.post(
            "/api/chat/student/start",
            json={"student_id": school["student"].id, "subject": "Science"},
            headers=student_headers,
        ).json()

        res = client.post(
            "/api/chat/message",
            json={"session_id": session["session_id"], "message": "I am confused about photosynthesis"},
            headers=student_headers,
        )
        assert res.status_code == 200
        assert res.json()["response"] == "Plants use sunlight to make food."
        assert res.json()["needs_teacher_attention"] is True

        history = client.get(f"/api/chat/history/{session['session_id']}", headers=student_headers).json()
        assert [m["role"] for m in history["messages"]] == ["user", "assistant"]

        flagged = client.get("/api/chat/attention", headers=teacher_headers).json()
        assert [s["session_id"] for s in flagged] == [session["session_id"]]
        assert flagged[0]["student"]["name"] == "Ravi Kumar"

    def test_closed_session_rejects_messages(self, client, school, student_headers, monkeypatch):
        self._reply(monkeypatch)
        session_id = client.post(
            "/api/chat/student/start", json={"student_id": school["student"].id}, headers=student_headers
        ).json()["session_id"]
        client.patch(f"/api/chat/close/{session_id}", headers=student_headers)

        res = client.post(
            "/api/chat/message", json={"session_id": session_id, "message": "hello"}, headers=student_headers
        )
        assert res.status_code == 400

    def test_parent_needs_linked_child(self, client, db, school):
        other = people_service.register_student(db, "Meera", "Shah", "meera@school.edu", PASSWORD, "8A", "Grade 8", "13")
        headers = token_for(school["parent"])
        res = client.post(
            "/api/chat/parent/start",
            json={"parent_id": school["parent"].id, "student_id": other.id},
            headers=headers,
        )
        assert res.status_code == 400

        ok = client.post(
            "/api/chat/parent/start",
            json={"parent_id": school["parent"].id, "student_id": school["student"].id},
            headers=headers,
        )
        assert ok.status_code == 201
        assert ok.json()["user_type"] == "parent"


class TestVoiceRoutes:
    def test_webhook_unknown_call_apologises(self, client):
        res = client.post("/api/voice/webhook", json={"call_id": "nope", "transcript": "hi"})
        assert res.status_code == 500
        assert res.json() == {"response": WEBHOOK_APOLOGY, "end_call": False}

    def test_functions_without_call_context(self, client):
        res = client.post("/api/voice/functions/get_student_progress", json={"args": {}})
        assert res.json()["result"] == NO_CALL_CONTEXT
        res = client.post("/api/voice/functions/get_upcoming_assessments", json={})
        assert res.json()["result"] == NO_CALL_CONTEXT

    def test_call_lookup_by_provider_id(self, client, db, school, student_headers, monkeypatch):
        async def fake_web_call(agent_id, metadata):
            return {"call_id": "retell-1", "access_token": "web-token"}

        monkeypatch.setattr(retell, "create_web_call", fake_web_call)
        started = client.post(
            "/api/voice/student/start",
            json={"student_id": school["student"].id, "subject": "Science"},
            headers=student_headers,
        )
        assert started.status_code == 201
        assert started.json()["access_token"] == "web-token"

        now = utcnow()
        make_assessment(db, school, status="Scheduled", opens_on=now + timedelta(days=1), due_date=now + timedelta(days=2))

        res = client.post(
            "/api/voice/functions/get_upcoming_assessments",
            json={"call": {"call_id": "retell-1"}, "args": {}},
        )
        assert res.json()["result"].startswith("You have 1 upcoming assessment. Science on ")

        ended = client.post(f"/api/voice/end/{started.json()['call_id']}", headers=student_headers)
        assert ended.json()["status"] == "ended"
