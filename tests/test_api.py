"""HTTP tests: /v1 endpoints end to end on an in-memory SQLite database."""

TERM = "Term 1, 2024/2025"


def _setup_class(client, names=("Chikondi", "Thandiwe", "Kondwani")):
    class_id = client.post("/v1/classes/", json={"name": "Standard 8A", "term": TERM}).json()["data"]["id"]
    student_ids = [
        client.post("/v1/students/", json={"student_name": name, "class_id": class_id,
                                          "exam_number": f"EX{i:03d}"}).json()["data"]["id"]
        for i, name in enumerate(names, start=1)
    ]
    subject_ids = [
        client.post("/v1/subjects/", json={"name": name}).json()["data"]["id"]
        for name in ("Mathematics", "English")
    ]
    return class_id, student_ids, subject_ids


def _records(subject_ids, qa1, qa2, eot):
    records = []
    for subject_id in subject_ids:
        records += [
            {"subjectId": subject_id, "assessmentType": "qa1", "score": qa1},
            {"subject": {"id": subject_id}, "assessment_type": "qa2", "score": qa2},
            {"subject_id": subject_id, "type": "endOfTerm", "score": eot, "isAbsent": eot is None},
        ]
    return records


def _submit(client, class_id, student_id, records, **extra):
    for record in records:
        record.setdefault("student_id", student_id)
    payload = {"student_id": student_id, "class_id": class_id, "term": TERM, "records": records, **extra}
    return client.post("/v1/assessments/submit", json=payload)


def test_health(client):
    assert client.get("/health").json()["status"] == "ok"


def test_default_policy_is_seeded_on_startup(client):
    response = client.get("/v1/grading-policies/active")
    assert response.status_code == 200
    policy = response.json()["data"]
    assert policy["method"] == "weighted_average"
    assert (policy["weight_qa1"], policy["weight_qa2"], policy["weight_end_of_term"]) == (30, 30, 40)
    assert response.json()["activation_version"] == 1


class TestGradingPolicies:
    def test_invalid_weights_are_rejected(self, client):
        response = client.post("/v1/grading-policies/", json={
            "name": "broken", "method": "weighted_average",
            "weight_qa1": 30, "weight_qa2": 30, "weight_end_of_term": 30,
        })
        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "INVALID_WEIGHT_CONFIGURATION"

    def test_create_edit_and_activate(self, client):
        previous = client.get("/v1/grading-policies/active").json()["data"]
        created = client.post("/v1/grading-policies/", json={
            "name": "QA heavy", "method": "weighted_average",
            "weight_qa1": 40, "weight_qa2": 40, "weight_end_of_term": 20,
        })
        assert created.status_code == 201
        policy_id = created.json()["data"]["id"]
        assert created.json()["data"]["lifecycle_state"] == "draft"

        edited = client.patch(f"/v1/grading-policies/{policy_id}", json={
            "name": "QA heavy", "method": "weighted_average",
            "weight_qa1": 35, "weight_qa2": 35, "weight_end_of_term": 30, "pass_mark": 45,
        })
        assert edited.json()["data"]["pass_mark"] == 45

        activated = client.post(f"/v1/grading-policies/{policy_id}/activate", json={"expected_version": 1})
        assert activated.status_code == 200
        assert activated.json()["data"]["lifecycle_state"] == "active"
        assert activated.json()["activation_version"] == 2

        archived = client.get(f"/v1/grading-policies/{previous['id']}").json()["data"]
        assert archived["lifecycle_state"] == "archived"

        # 활성 정책은 수정 불가
        locked = client.patch(f"/v1/grading-policies/{policy_id}", json={
            "name": "QA heavy", "method": "end_of_term_only", "weight_end_of_term": 100,
        })
        assert locked.status_code == 409
        assert locked.json()["error"]["code"] == "INVALID_POLICY_TRANSITION"

    def test_stale_activation_version_conflicts(self, client):
        policy_id = client.post("/v1/grading-policies/", json={
            "name": "EOT", "method": "end_of_term_only", "weight_end_of_term": 100,
        }).json()["data"]["id"]
        response = client.post(f"/v1/grading-policies/{policy_id}/activate", json={"expected_version": 0})
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "POLICY_ACTIVATION_CONFLICT"

    def test_unknown_policy(self, client):
        response = client.get("/v1/grading-policies/999")
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "POLICY_NOT_FOUND"


def test_preview_does_not_persist(client):
    response = client.post("/v1/assessments/preview", json={
        "components": {
            "qa1": {"score": 80},
            "qa2": {"is_absent": True},
            "end_of_term": {"score": 60},
        }
    })
    assert response.status_code == 200
    data = response.json()["data"]
    # (80*30 + 60*40) / 70
    assert round(data["final_score"], 2) == 68.57
    assert data["letter_grade"] == "C"


def test_preview_all_absent(client):
    absent = {"is_absent": True}
    response = client.post("/v1/assessments/preview", json={
        "components": {"qa1": absent, "qa2": absent, "end_of_term": absent},
    })
    assert response.json()["data"]["letter_grade"] == "AB"
    assert response.json()["data"]["final_score"] is None


def test_submit_ranks_whole_class(client):
    class_id, student_ids, subject_ids = _setup_class(client)

    _submit(client, class_id, student_ids[0], _records(subject_ids, 90, 90, 90))
    response = _submit(client, class_id, student_ids[1], _records(subject_ids, 70, 70, 70),
                       days_present=58, days_absent=2, teacher_remarks="Steady progress")
    assert response.status_code == 200
    data = response.json()["data"]

    assert [s["letter_grade"] for s in data["subjects"]] == ["B", "B"]
    ranks = {r["student_id"]: r for r in data["ranks"]}
    assert ranks[student_ids[0]]["class_rank"] == 1
    assert ranks[student_ids[1]]["class_rank"] == 2
    assert ranks[student_ids[2]]["class_rank"] is None
    assert {r["total_students"] for r in data["ranks"]} == {3}
    assert data["auto_switch"]["switched"] is False

    stored = client.get(f"/v1/rankings/{class_id}", params={"term": TERM}).json()["data"]
    assert [r["student_id"] for r in stored] == student_ids

    report = client.get(f"/v1/report-cards/student/{student_ids[1]}", params={"term": TERM}).json()["data"]
    assert report["class_rank"] == 2
    assert report["total_students"] == 3
    assert report["attendance"]["present"] == 58
    assert report["teacher_remarks"] == "Steady progress"
    assert [row["subject_name"] for row in report["subjects"]] == ["Mathematics", "English"]
    assert report["assessment_stats"]["overall"]["term_average"] == 70


def test_submit_rejects_records_for_other_students(client):
    class_id, student_ids, subject_ids = _setup_class(client)
    records = _records(subject_ids, 50, 50, 50)
    records[0]["student_id"] = student_ids[1]
    response = _submit(client, class_id, student_ids[0], records)
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_ASSESSMENT_RECORD"


def test_submit_rejects_unknown_assessment_type(client):
    class_id, student_ids, subject_ids = _setup_class(client)
    records = [{"subject_id": subject_ids[0], "assessment_type": "midterm", "score": 50}]
    response = _submit(client, class_id, student_ids[0], records)
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "UNKNOWN_ASSESSMENT_TYPE"


def test_qa_only_submission_switches_policy(client):
    class_id, student_ids, subject_ids = _setup_class(client)
    response = _submit(client, class_id, student_ids[0], _records(subject_ids, 65, 75, None))

    decision = response.json()["data"]["auto_switch"]
    assert decision["switched"] is True
    assert decision["policy"]["method"] == "end_of_term_only"
    assert client.get("/v1/grading-policies/active").json()["data"]["method"] == "end_of_term_only"

    # 이미 전환된 뒤에는 새 정책을 만들지 않음
    _submit(client, class_id, student_ids[1], _records(subject_ids, 50, 50, None))
    policies = client.get("/v1/grading-policies/").json()["data"]
    assert len([p for p in policies if p["method"] == "end_of_term_only"]) == 1


def test_recompute_endpoint(client):
    class_id, student_ids, subject_ids = _setup_class(client)
    for student_id in student_ids:
        client.post("/v1/assessments/upsert", params={"term": TERM}, json={
            "student_id": student_id, "subject_id": subject_ids[0],
            "assessment_type": "end_of_term", "score": 60,
        })

    response = client.post(f"/v1/rankings/{class_id}/recompute", params={"term": TERM})
    assert response.status_code == 200
    assert [r["class_rank"] for r in response.json()["data"]] == [1, 1, 1]


def test_report_card_upsert_keeps_ranks(client):
    class_id, student_ids, subject_ids = _setup_class(client)
    _submit(client, class_id, student_ids[0], _records(subject_ids, 80, 80, 80))

    response = client.post("/v1/report-cards/upsert", json={
        "student_id": student_ids[0], "term": TERM, "days_late": 3, "teacher_remarks": "Excellent",
    })
    assert response.status_code == 200
    card = response.json()["data"]
    assert card["days_late"] == 3
    assert card["class_rank"] == 1


def test_report_card_not_found(client):
    response = client.get("/v1/report-cards/student/999", params={"term": TERM})
    assert response.status_code == 404


def test_submit_with_repeated_assessment_key(client):
    class_id, student_ids, subject_ids = _setup_class(client)
    records = [
        {"subject_id": subject_ids[0], "assessment_type": "qa1", "score": 60},
        {"subject_id": subject_ids[0], "assessment_type": "QA1", "score": 70},
    ]
    response = _submit(client, class_id, student_ids[0], records)
    assert response.status_code == 200

    stored = client.get(f"/v1/assessments/student/{student_ids[0]}", params={"term": TERM}).json()["data"]
    assert [(r["assessment_type"], r["score"]) for r in stored] == [("qa1", 70)]


def test_submit_for_wrong_class_is_rejected(client):
    class_id, student_ids, subject_ids = _setup_class(client)
    other_class = client.post("/v1/classes/", json={"name": "Standard 8B", "term": TERM}).json()["data"]["id"]
    _submit(client, class_id, student_ids[0], _records(subject_ids, 90, 90, 90))
    _submit(client, class_id, student_ids[1], _records(subject_ids, 50, 50, 50))

    response = _submit(client, other_class, student_ids[1], _records(subject_ids, 99, 99, 99))
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_ASSESSMENT_RECORD"

    ranks = client.get(f"/v1/rankings/{class_id}", params={"term": TERM}).json()["data"]
    assert [(r["student_id"], r["class_rank"]) for r in ranks[:2]] == [(student_ids[0], 1), (student_ids[1], 2)]
    assert client.get(f"/v1/rankings/{other_class}", params={"term": TERM}).json()["data"] == []


def test_submit_without_class_uses_roster(client):
    class_id, student_ids, subject_ids = _setup_class(client)
    records = _records(subject_ids, 75, 75, 75)
    for record in records:
        record["student_id"] = student_ids[2]
    response = client.post("/v1/assessments/submit", json={
        "student_id": student_ids[2], "term": TERM, "records": records,
    })
    assert response.status_code == 200
    assert response.json()["data"]["class_id"] == class_id


def test_upsert_refreshes_stored_ranks(client):
    class_id, student_ids, subject_ids = _setup_class(client)
    _submit(client, class_id, student_ids[0], _records(subject_ids, 80, 80, 80))
    _submit(client, class_id, student_ids[1], _records(subject_ids, 78, 78, 78))
    before = client.get(f"/v1/rankings/{class_id}", params={"term": TERM}).json()["data"]
    assert before[0]["student_id"] == student_ids[0]

    response = client.post("/v1/assessments/upsert", params={"term": TERM}, json={
        "student_id": student_ids[1], "subject_id": subject_ids[0],
        "assessment_type": "end_of_term", "score": 100,
    })
    assert response.status_code == 200

    ranks = client.get(f"/v1/rankings/{class_id}", params={"term": TERM}).json()["data"]
    assert [(r["student_id"], r["class_rank"]) for r in ranks[:2]] == [(student_ids[1], 1), (student_ids[0], 2)]


def test_upsert_for_unregistered_student_is_rejected(client):
    _, _, subject_ids = _setup_class(client)
    response = client.post("/v1/assessments/upsert", params={"term": TERM}, json={
        "student_id": 999, "subject_id": subject_ids[0], "assessment_type": "qa1", "score": 50,
    })
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "INVALID_ASSESSMENT_RECORD"
