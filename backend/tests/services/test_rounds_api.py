"""Rounds API: end-to-end round scoring through HTTP against an in-memory database.

Invariants:
    - Every route requires a known X-User-Id (401 otherwise)
    - Domain errors surface with their own HTTP status and error code
    - Successful responses use the {"success": true, "data": ...} envelope
"""

import uuid


async def _create_round(client, headers, **body):
    body.setdefault("name", "Sunday shoot")
    if "course" not in body:
        body.setdefault("scoringSystem", "ABA")
    res = await client.post("/api/v1/rounds", json=body, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()["data"]


async def _score(client, headers, round_id, participant_id, target, arrows, non_member=False):
    return await client.post(
        f"/api/v1/rounds/{round_id}/scores",
        json={
            "participantId": participant_id,
            "targetNumber": target,
            "arrows": arrows,
            "isNonMember": non_member,
        },
        headers=headers,
    )


# ─── Identity ────────────────────────────────────────────────────

async def test_missing_identity_is_401(client):
    res = await client.get("/api/v1/rounds")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


async def test_unknown_identity_is_401(client):
    res = await client.get("/api/v1/rounds", headers={"X-User-Id": str(uuid.uuid4())})
    assert res.status_code == 401


# ─── Create & read ───────────────────────────────────────────────

async def test_create_round_scorer_is_participant(client, scorer, headers_for):
    data = await _create_round(client, headers_for(scorer))
    assert data["scorer"] == str(scorer.id)
    assert [p["user"] for p in data["participants"]] == [str(scorer.id)]
    assert data["status"] == "active"


async def test_create_round_from_course(client, scorer, aba_course, headers_for):
    data = await _create_round(client, headers_for(scorer), course=str(aba_course.id))
    assert data["scoringSystem"] == "ABA"
    assert data["targetCount"] == 20
    assert data["maxScore"] == 400
    assert data["club"] == str(aba_course.club_id)


async def test_create_round_unknown_course_is_404(client, scorer, headers_for):
    res = await client.post(
        "/api/v1/rounds",
        json={"name": "Lost", "course": str(uuid.uuid4())},
        headers=headers_for(scorer),
    )
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "COURSE_NOT_FOUND"


async def test_create_round_without_system_or_course_is_400(client, scorer, headers_for):
    res = await client.post(
        "/api/v1/rounds", json={"name": "Nothing"}, headers=headers_for(scorer),
    )
    assert res.status_code == 400


async def test_request_validation_names_wire_field(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    res = await _score(client, headers, data["id"], str(scorer.id), 0, [{"zoneHit": "A"}])
    assert res.status_code == 400
    fields = [d["field"] for d in res.json()["error"]["details"]]
    assert fields == ["targetNumber"]


async def test_get_round_as_stranger_is_403(client, scorer, archer, headers_for):
    data = await _create_round(client, headers_for(scorer))
    res = await client.get(f"/api/v1/rounds/{data['id']}", headers=headers_for(archer))
    assert res.status_code == 403


async def test_get_unknown_round_is_404(client, scorer, headers_for):
    res = await client.get(f"/api/v1/rounds/{uuid.uuid4()}", headers=headers_for(scorer))
    assert res.status_code == 404


# ─── Scores ──────────────────────────────────────────────────────

async def test_flat_aba_target_scores_46(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)

    res = await _score(
        client, headers, data["id"], str(scorer.id), 1,
        [{"zoneHit": "A"}, {"zoneHit": "B"}, {"zoneHit": "C"}],
    )

    assert res.status_code == 200
    participant = res.json()["data"]["participants"][0]
    assert participant["totalScore"] == 46
    assert [a["points"] for a in participant["scores"][0]["arrows"]] == [20, 16, 10]


async def test_resubmitted_target_replaces_previous(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    await _score(client, headers, data["id"], str(scorer.id), 1, [{"zoneHit": "A"}])
    res = await _score(client, headers, data["id"], str(scorer.id), 1, [{"zoneHit": "C"}])

    participant = res.json()["data"]["participants"][0]
    assert len(participant["scores"]) == 1
    assert participant["totalScore"] == 10


async def test_ifaa_out_of_range_is_400(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers, scoringSystem="IFAA")
    res = await _score(client, headers, data["id"], str(scorer.id), 1, [{"scoreValue": 6}])
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"
    assert res.json()["error"]["field"] == "scoreValue"


async def test_non_member_scores(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers, scoringSystem="IFAA", nonMemberParticipants=["Will"])
    guest_id = data["nonMemberParticipants"][0]["id"]

    res = await _score(
        client, headers, data["id"], guest_id, 1,
        [{"scoreValue": 5}, {"scoreValue": 4}], non_member=True,
    )

    assert res.status_code == 200
    assert res.json()["data"]["nonMemberParticipants"][0]["totalScore"] == 9


async def test_participant_cannot_submit_scores(client, scorer, archer, headers_for):
    data = await _create_round(client, headers_for(scorer), participants=[{"user": str(archer.id)}])
    res = await _score(
        client, headers_for(archer), data["id"], str(archer.id), 1, [{"zoneHit": "A"}],
    )
    assert res.status_code == 403


# ─── Participants ────────────────────────────────────────────────

async def test_add_participant_by_email(client, scorer, archer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    res = await client.post(
        f"/api/v1/rounds/{data['id']}/participants",
        json={"email": archer.email.upper()},
        headers=headers,
    )
    assert res.status_code == 200
    assert str(archer.id) in [p["user"] for p in res.json()["data"]["participants"]]


async def test_add_unverified_participant_needs_privilege(
    client, scorer, admin, unverified_archer, headers_for,
):
    data = await _create_round(client, headers_for(scorer))
    url = f"/api/v1/rounds/{data['id']}/participants"
    body = {"email": unverified_archer.email}

    res = await client.post(url, json=body, headers=headers_for(scorer))
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "UNVERIFIED_USER"

    res = await client.post(url, json=body, headers=headers_for(admin))
    assert res.status_code == 200


async def test_duplicate_non_member_is_409(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers, nonMemberParticipants=["Will"])
    res = await client.post(
        f"/api/v1/rounds/{data['id']}/participants", json={"name": "Will"}, headers=headers,
    )
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "DUPLICATE_PARTICIPANT"


async def test_remove_scorer_is_rejected(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    res = await client.delete(
        f"/api/v1/rounds/{data['id']}/participants/{scorer.id}", headers=headers,
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "SCORER_PROTECTED"


async def test_remove_non_member(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers, nonMemberParticipants=["Will"])
    guest_id = data["nonMemberParticipants"][0]["id"]
    res = await client.delete(
        f"/api/v1/rounds/{data['id']}/participants/{guest_id}?type=nonmember",
        headers=headers,
    )
    assert res.status_code == 200
    assert res.json()["data"]["nonMemberParticipants"] == []


# ─── Update ──────────────────────────────────────────────────────

async def test_scoring_system_locked_after_scores(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    await _score(client, headers, data["id"], str(scorer.id), 1, [{"zoneHit": "A"}])

    res = await client.put(
        f"/api/v1/rounds/{data['id']}", json={"scoringSystem": "IFAA"}, headers=headers,
    )
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "SCORING_LOCKED"


async def test_update_name_and_notes(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    res = await client.put(
        f"/api/v1/rounds/{data['id']}",
        json={"name": "Renamed", "notes": "gusty"},
        headers=headers,
    )
    assert res.status_code == 200
    assert (res.json()["data"]["name"], res.json()["data"]["notes"]) == ("Renamed", "gusty")


async def test_changing_scorer_is_rejected(client, scorer, archer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    res = await client.put(
        f"/api/v1/rounds/{data['id']}", json={"scorer": str(archer.id)}, headers=headers,
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "IMMUTABLE_FIELD"


# ─── Lifecycle ───────────────────────────────────────────────────

async def test_complete_twice_is_409(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    first = await client.put(f"/api/v1/rounds/{data['id']}/complete", headers=headers)
    second = await client.put(f"/api/v1/rounds/{data['id']}/complete", headers=headers)

    assert first.status_code == 200
    assert first.json()["data"]["status"] == "completed"
    assert second.status_code == 409
    assert second.json()["error"]["code"] == "ALREADY_COMPLETED"


async def test_scores_rejected_after_completion(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    await client.put(f"/api/v1/rounds/{data['id']}/complete", headers=headers)
    res = await _score(client, headers, data["id"], str(scorer.id), 1, [{"zoneHit": "A"}])
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "ROUND_NOT_ACTIVE"


async def test_cancel_round(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers)
    res = await client.put(f"/api/v1/rounds/{data['id']}/cancel", headers=headers)
    assert res.json()["data"]["status"] == "cancelled"


async def test_personal_best_and_stats(client, scorer, headers_for):
    headers = headers_for(scorer)
    for zone in ("B", "B", "A"):
        data = await _create_round(client, headers)
        await _score(client, headers, data["id"], str(scorer.id), 1, [{"zoneHit": zone}])
        res = await client.put(f"/api/v1/rounds/{data['id']}/complete", headers=headers)
        assert res.status_code == 200

    stats = (await client.get("/api/v1/rounds/stats/me", headers=headers)).json()["data"]

    assert stats["totalRounds"] == 3
    assert stats["personalBests"] == 2
    aba = stats["scoringSystems"]["ABA"]
    assert aba["highScore"] == 20
    assert aba["count"] == 3


# ─── Delete & list ───────────────────────────────────────────────

async def test_delete_event_linked_round_is_400(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers, event=str(uuid.uuid4()))
    res = await client.delete(f"/api/v1/rounds/{data['id']}", headers=headers)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "EVENT_LINKED"


async def test_delete_round(client, scorer, headers_for):
    headers = headers_for(scorer)
    data = await _create_round(client, headers, nonMemberParticipants=["Will"])
    res = await client.delete(f"/api/v1/rounds/{data['id']}", headers=headers)
    assert res.status_code == 200
    res = await client.get(f"/api/v1/rounds/{data['id']}", headers=headers)
    assert res.status_code == 404


async def test_list_only_shows_callers_rounds(client, scorer, archer, admin, headers_for):
    await _create_round(client, headers_for(scorer), name="Robin's")
    await _create_round(client, headers_for(archer), name="Marian's", scoringSystem="IFAA")

    mine = (await client.get("/api/v1/rounds", headers=headers_for(scorer))).json()
    everything = (await client.get("/api/v1/rounds", headers=headers_for(admin))).json()
    ifaa = (await client.get(
        "/api/v1/rounds?scoringSystem=IFAA", headers=headers_for(admin),
    )).json()

    assert [r["name"] for r in mine["data"]] == ["Robin's"]
    assert "scores" not in mine["data"][0]["participants"][0]
    assert everything["count"] == 2
    assert [r["name"] for r in ifaa["data"]] == ["Marian's"]


# ─── Health ──────────────────────────────────────────────────────

async def test_health_reports_scoring_configuration(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    body = res.json()
    assert body["scoringSystems"] == ["ABA", "IFAA"]
    assert body["abaScoringStrategy"] == "flat"


async def test_readiness_reports_database_and_idle_locks(client):
    ready = await client.get("/api/v1/health/ready")
    assert ready.status_code == 200
    assert ready.json()["checks"]["database"] == "healthy"
    assert ready.json()["roundsInFlight"] == 0
