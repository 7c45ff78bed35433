from __future__ import annotations

import uuid

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from kinnected.models.relation import Relation

from conftest import DEFAULT_PASSWORD


def test_placeholder_mother_scenario(client: TestClient) -> None:
    register = client.post(
        "/auth/register",
        json={
            "username": "alice",
            "email": "alice@example.com",
            "password": DEFAULT_PASSWORD,
            "fullName": "Alice Smith",
        },
    )
    assert register.status_code == 201

    login = client.post("/auth/login", json={"username": "alice", "password": DEFAULT_PASSWORD})
    headers = {"Authorization": f"Bearer {login.json()['token']}"}

    created = client.post(
        "/connections",
        json={"relationType": "mother", "nickname": "Mom"},
        headers=headers,
    )
    assert created.status_code == 201
    relation = created.json()["relation"]
    assert relation["isPlaceholder"] is True
    assert relation["status"] == "accepted"
    assert relation["placeholderId"]
    assert relation["toUser"] is None
    assert relation["fromUser"]["username"] == "alice"

    listing = client.get("/connections/relations", headers=headers)
    assert listing.status_code == 200
    relations = listing.json()["relations"]
    assert len(relations) == 1
    assert relations[0]["fullName"] == "Mom"
    assert relations[0]["relationType"] == "mother"
    assert relations[0]["nickname"] == "Mom"
    assert relations[0]["userId"] is None


def test_sibling_request_scenario(client: TestClient, register) -> None:
    bob = register("bob")
    carol = register("carol")

    created = client.post(
        "/connections",
        json={"toUser": carol["user"]["id"], "relationType": "sibling"},
        headers=bob["headers"],
    )
    assert created.status_code == 201
    assert created.json()["relation"]["status"] == "pending"
    request_id = created.json()["relation"]["id"]

    pending = client.get("/connections/pending", headers=carol["headers"])
    assert pending.status_code == 200
    requests = pending.json()["requests"]
    assert [item["id"] for item in requests] == [request_id]
    assert requests[0]["fromUser"]["username"] == "bob"

    # Not visible before acceptance
    assert client.get("/connections/relations", headers=bob["headers"]).json()["relations"] == []

    accepted = client.patch(f"/connections/accept/{request_id}", headers=carol["headers"])
    assert accepted.status_code == 200
    assert accepted.json()["relation"]["status"] == "accepted"

    bob_view = client.get("/connections/relations", headers=bob["headers"]).json()["relations"]
    carol_view = client.get("/connections/relations", headers=carol["headers"]).json()["relations"]
    assert [item["username"] for item in bob_view] == ["carol"]
    assert [item["username"] for item in carol_view] == ["bob"]
    assert bob_view[0]["direction"] == "outgoing"
    assert carol_view[0]["direction"] == "incoming"

    assert client.get("/connections/pending", headers=carol["headers"]).json()["requests"] == []


def test_accepting_twice_is_not_found(client: TestClient, register) -> None:
    bob = register("bob")
    carol = register("carol")
    request_id = client.post(
        "/connections",
        json={"toUser": carol["user"]["id"], "relationType": "spouse"},
        headers=bob["headers"],
    ).json()["relation"]["id"]

    assert client.patch(f"/connections/accept/{request_id}", headers=carol["headers"]).status_code == 200

    second = client.patch(f"/connections/accept/{request_id}", headers=carol["headers"])
    assert second.status_code == 404
    assert second.json()["message"] == "Connection request not found"


def test_only_target_can_answer_request(client: TestClient, register) -> None:
    bob = register("bob")
    carol = register("carol")
    request_id = client.post(
        "/connections",
        json={"toUser": carol["user"]["id"], "relationType": "sibling"},
        headers=bob["headers"],
    ).json()["relation"]["id"]

    assert client.patch(f"/connections/accept/{request_id}", headers=bob["headers"]).status_code == 404
    assert client.patch(f"/connections/reject/{request_id}", headers=bob["headers"]).status_code == 404

    unknown = client.patch(f"/connections/accept/{uuid.uuid4()}", headers=carol["headers"])
    assert unknown.status_code == 404

    malformed = client.patch("/connections/accept/not-an-id", headers=carol["headers"])
    assert malformed.status_code == 400


def test_duplicate_pending_request_conflicts_until_rejected(client: TestClient, register) -> None:
    bob = register("bob")
    carol = register("carol")
    payload = {"toUser": carol["user"]["id"], "relationType": "sibling"}

    first = client.post("/connections", json=payload, headers=bob["headers"])
    assert first.status_code == 201

    again = client.post("/connections", json=payload, headers=bob["headers"])
    assert again.status_code == 409
    assert again.json()["code"] == "CONFLICT"

    # The reverse direction is the same pair
    reverse = client.post(
        "/connections",
        json={"toUser": bob["user"]["id"], "relationType": "sibling"},
        headers=carol["headers"],
    )
    assert reverse.status_code == 409

    request_id = first.json()["relation"]["id"]
    rejected = client.patch(f"/connections/reject/{request_id}", headers=carol["headers"])
    assert rejected.status_code == 200
    assert rejected.json()["success"] is True

    revived = client.post(
        "/connections",
        json={"toUser": carol["user"]["id"], "relationType": "spouse"},
        headers=bob["headers"],
    )
    assert revived.status_code == 201
    relation = revived.json()["relation"]
    assert relation["id"] == request_id
    assert relation["status"] == "pending"
    assert relation["relationType"] == "spouse"


def test_rejected_request_can_be_revived_by_the_other_side(client: TestClient, register) -> None:
    bob = register("bob")
    carol = register("carol")
    request_id = client.post(
        "/connections",
        json={"toUser": carol["user"]["id"], "relationType": "sibling"},
        headers=bob["headers"],
    ).json()["relation"]["id"]
    client.patch(f"/connections/reject/{request_id}", headers=carol["headers"])

    revived = client.post(
        "/connections",
        json={"toUser": bob["user"]["id"], "relationType": "sibling"},
        headers=carol["headers"],
    )
    assert revived.status_code == 201
    relation = revived.json()["relation"]
    assert relation["fromUser"]["username"] == "carol"
    assert relation["toUser"]["username"] == "bob"

    inbox = client.get("/connections/pending", headers=bob["headers"]).json()["requests"]
    assert [item["id"] for item in inbox] == [request_id]


def test_self_relation_is_rejected(client: TestClient, session: Session, register) -> None:
    bob = register("bob")

    response = client.post(
        "/connections",
        json={"toUser": bob["user"]["id"], "relationType": "sibling"},
        headers=bob["headers"],
    )
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert session.query(Relation).count() == 0


def test_real_relation_input_errors(client: TestClient, register) -> None:
    bob = register("bob")

    bad_type = client.post(
        "/connections",
        json={"toUser": str(uuid.uuid4()), "relationType": "cousin"},
        headers=bob["headers"],
    )
    assert bad_type.status_code == 400
    assert "Invalid relation type" in bad_type.json()["errors"]

    bad_id = client.post(
        "/connections",
        json={"toUser": "12345", "relationType": "sibling"},
        headers=bob["headers"],
    )
    assert bad_id.status_code == 400
    assert bad_id.json()["message"] == "Invalid target user ID"

    unknown = client.post(
        "/connections",
        json={"toUser": str(uuid.uuid4()), "relationType": "sibling"},
        headers=bob["headers"],
    )
    assert unknown.status_code == 404

    ambiguous = client.post(
        "/connections",
        json={"toUser": str(uuid.uuid4()), "relationType": "sibling", "isPlaceholder": True},
        headers=bob["headers"],
    )
    assert ambiguous.status_code == 400


def test_placeholder_resubmission_updates_in_place(
    client: TestClient, session: Session, register
) -> None:
    alice = register("alice")
    payload = {
        "isPlaceholder": True,
        "relationType": "father",
        "fullName": "John Smith",
        "description": "Lives in Leeds",
    }

    first = client.post("/connections", json=payload, headers=alice["headers"])
    assert first.status_code == 201
    assert first.json()["updated"] is False

    payload["description"] = "Moved to York"
    second = client.post("/connections", json=payload, headers=alice["headers"])
    assert second.status_code == 200
    assert second.json()["updated"] is True
    assert second.json()["relation"]["id"] == first.json()["relation"]["id"]
    assert second.json()["relation"]["placeholderId"] == first.json()["relation"]["placeholderId"]

    rows = session.query(Relation).all()
    assert len(rows) == 1
    assert rows[0].description == "Moved to York"


def test_placeholder_requires_a_name(client: TestClient, register) -> None:
    alice = register("alice")

    response = client.post(
        "/connections",
        json={"relationType": "father", "description": "No name"},
        headers=alice["headers"],
    )
    assert response.status_code == 400


def test_annotations_are_private_to_the_owner(client: TestClient, register) -> None:
    alice = register("alice")
    bob = register("bob")
    client.post(
        "/connections",
        json={"relationType": "sibling", "nickname": "Sis", "description": "Older sister"},
        headers=alice["headers"],
    )
    request_id = client.post(
        "/connections",
        json={"toUser": bob["user"]["id"], "relationType": "spouse"},
        headers=alice["headers"],
    ).json()["relation"]["id"]
    client.patch(f"/connections/accept/{request_id}", headers=bob["headers"])

    own = client.get("/connections/relations", headers=alice["headers"]).json()["relations"]
    assert {item["fullName"] for item in own} == {"Sis", "Bob Example"}
    placeholder = next(item for item in own if item["isPlaceholder"])
    assert placeholder["description"] == "Older sister"

    seen_by_bob = client.get(
        f"/connections/relations/{alice['user']['id']}", headers=bob["headers"]
    ).json()["relations"]
    placeholder = next(item for item in seen_by_bob if item["isPlaceholder"])
    assert placeholder["fullName"] == "Sis"
    assert placeholder["nickname"] is None
    assert placeholder["description"] is None


def test_relations_of_unknown_user(client: TestClient, register) -> None:
    alice = register("alice")

    assert client.get(
        f"/connections/relations/{uuid.uuid4()}", headers=alice["headers"]
    ).status_code == 404
    assert client.get("/connections/relations/bogus", headers=alice["headers"]).status_code == 400


def test_connections_require_authentication(client: TestClient) -> None:
    assert client.get("/connections/pending").status_code == 401
    assert client.post(
        "/connections", json={"relationType": "mother", "nickname": "Mom"}
    ).status_code == 401
