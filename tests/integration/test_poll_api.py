from __future__ import annotations

POLL = {
    "title": "Library hours",
    "is_active": True,
    "questions": [
        {"question_text": "Open on Sundays?", "question_type": "yes_no"},
        {
            "question_text": "Preferred closing time",
            "question_type": "multiple_choice",
            "options": [{"option_text": "6pm"}, {"option_text": "8pm"}, {"option_text": " "}],
        },
    ],
}


def _create_poll(client, auth_headers) -> dict:
    response = client.put("/api/admin/polls", json=POLL, headers=auth_headers)
    assert response.status_code == 200, response.text
    return response.json()


def _answers(poll: dict, picks: tuple[int, int]) -> list[dict[str, str]]:
    return [
        {"question_id": question["id"], "option_id": question["options"][pick]["id"]}
        for question, pick in zip(poll["questions"], picks)
    ]


def test_admin_creates_poll_with_normalised_options(client, auth_headers) -> None:
    poll = _create_poll(client, auth_headers)

    yes_no, choice = poll["questions"]
    assert [option["option_text"] for option in yes_no["options"]] == ["Yes", "No"]
    assert [option["option_text"] for option in choice["options"]] == ["6pm", "8pm"]
    assert [question["question_order"] for question in poll["questions"]] == [0, 1]


def test_vote_once_then_conflict(client, auth_headers, user_headers) -> None:
    poll = _create_poll(client, auth_headers)

    listing = client.get("/api/polls", headers=user_headers).json()
    assert [(item["title"], item["user_has_voted"]) for item in listing] == [("Library hours", False)]

    first = client.post(f"/api/polls/{poll['id']}/responses", json={"answers": _answers(poll, (0, 1))}, headers=user_headers)
    assert first.status_code == 201
    assert first.json()["answers"] == 2

    second = client.post(f"/api/polls/{poll['id']}/responses", json={"answers": _answers(poll, (1, 0))}, headers=user_headers)
    assert second.status_code == 409

    participation = client.get(f"/api/polls/{poll['id']}", headers=user_headers).json()
    assert participation["user_has_voted"] is True

    results = client.get(f"/api/admin/polls/{poll['id']}/results", headers=auth_headers).json()
    assert results["total_responses"] == 1
    assert [tally["count"] for tally in results["questions"][0]["options"]] == [1, 0]
    assert [tally["count"] for tally in results["questions"][1]["options"]] == [0, 1]
    assert results["gender_distribution"] == [{"name": "Female", "count": 1}]


def test_incomplete_vote_is_rejected(client, auth_headers, user_headers) -> None:
    poll = _create_poll(client, auth_headers)

    response = client.post(
        f"/api/polls/{poll['id']}/responses", json={"answers": _answers(poll, (0,))}, headers=user_headers
    )

    assert response.status_code == 422
    assert response.json()["detail"] == "Please answer all questions before submitting"
    results = client.get(f"/api/admin/polls/{poll['id']}/results", headers=auth_headers).json()
    assert results["total_responses"] == 0


def test_closed_poll_rejects_votes(client, auth_headers, user_headers) -> None:
    poll = _create_poll(client, auth_headers)
    closed = client.put(
        "/api/admin/polls",
        json={
            "id": poll["id"],
            "title": poll["title"],
            "is_active": False,
            "questions": [
                {
                    "id": question["id"],
                    "question_text": question["question_text"],
                    "question_type": question["question_type"],
                    "options": [
                        {"id": option["id"], "option_text": option["option_text"]} for option in question["options"]
                    ],
                }
                for question in poll["questions"]
            ],
        },
        headers=auth_headers,
    )
    assert closed.status_code == 200

    response = client.post(
        f"/api/polls/{poll['id']}/responses", json={"answers": _answers(poll, (0, 0))}, headers=user_headers
    )

    assert response.status_code == 409
    assert client.get("/api/polls", headers=user_headers).json() == []


def test_admin_edit_with_foreign_ids_is_rejected(client, auth_headers) -> None:
    poll = _create_poll(client, auth_headers)

    response = client.put(
        "/api/admin/polls",
        json={
            "id": poll["id"],
            "title": "Hijacked",
            "questions": [{"id": "not-here", "question_text": "?", "question_type": "yes_no"}],
        },
        headers=auth_headers,
    )

    assert response.status_code == 422
    assert client.get(f"/api/admin/polls/{poll['id']}", headers=auth_headers).json()["title"] == "Library hours"


def test_admin_poll_listing_and_delete(client, auth_headers) -> None:
    poll = _create_poll(client, auth_headers)
    client.post("/api/admin/notifications", json={"message": "Vote!", "poll_id": poll["id"]}, headers=auth_headers)

    listing = client.get("/api/admin/polls", headers=auth_headers).json()
    assert [(item["id"], item["is_promoted"]) for item in listing] == [(poll["id"], True)]

    assert client.delete(f"/api/admin/polls/{poll['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/api/admin/polls/{poll['id']}", headers=auth_headers).status_code == 404


def test_public_listing_ignores_a_stale_token(client, auth_headers) -> None:
    poll = _create_poll(client, auth_headers)

    response = client.get("/api/polls", headers={"Authorization": "Bearer no-longer-valid"})

    assert response.status_code == 200
    assert [item["id"] for item in response.json()] == [poll["id"]]
    assert response.json()[0]["user_has_voted"] is False
