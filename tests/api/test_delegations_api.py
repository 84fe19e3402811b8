"""Tests for delegation API endpoints."""

BASE = "/api/v1/delegations"


def as_actor(actor_id):
    return {"X-Actor-Id": actor_id}


def delegation_body(**fields):
    body = {"delegatee_id": "DEP1", "start_date": "2026-10-19", "end_date": "2026-10-26"}
    body.update(fields)
    return body


class TestDelegationsApi:
    """Tests for creating, listing and revoking delegations."""

    def test_create_and_list(self, client):
        response = client.post(BASE, json=delegation_body(), headers=as_actor("UH1"))

        assert response.status_code == 201
        delegation = response.json()
        assert delegation["delegator_id"] == "UH1"
        assert delegation["status"] == "ACTIVE"

        response = client.get(BASE, headers=as_actor("UH1"))
        assert [d["id"] for d in response.json()] == [delegation["id"]]

    def test_delegation_routes_new_requests(self, client):
        """Test a new request's unit head step goes to the delegatee."""
        client.post(BASE, json=delegation_body(), headers=as_actor("UH1"))

        response = client.post(
            "/api/v1/leaves",
            json={
                "staff_id": "S001",
                "leave_type": "ANNUAL",
                "start_date": "2026-11-02",
                "end_date": "2026-11-15",
                "day_count": 10,
            },
            headers=as_actor("S001"),
        )
        request_id = response.json()["request_id"]

        steps = client.get(f"/api/v1/leaves/{request_id}", headers=as_actor("S001")).json()["steps"]
        assert steps[1]["approver_id"] == "DEP1"
        assert steps[1]["resolution_source"] == "DELEGATION"

    def test_self_delegation(self, client):
        response = client.post(
            BASE, json=delegation_body(delegatee_id="UH1"), headers=as_actor("UH1")
        )

        assert response.status_code == 400
        assert response.json()["code"] == "SELF_DELEGATION_NOT_ALLOWED"

    def test_overlap(self, client):
        client.post(BASE, json=delegation_body(), headers=as_actor("UH1"))

        response = client.post(
            BASE,
            json=delegation_body(delegatee_id="SUP1", start_date="2026-10-22"),
            headers=as_actor("UH1"),
        )

        assert response.status_code == 409
        assert response.json()["code"] == "OVERLAPPING_DELEGATION"

    def test_revoke(self, client):
        """Test only the delegator can revoke."""
        delegation_id = client.post(
            BASE, json=delegation_body(), headers=as_actor("UH1")
        ).json()["id"]

        response = client.post(f"{BASE}/{delegation_id}/revoke", headers=as_actor("DEP1"))
        assert response.status_code == 403

        response = client.post(
            f"{BASE}/{delegation_id}/revoke",
            json={"reason": "Back early"},
            headers=as_actor("UH1"),
        )
        assert response.status_code == 200
        assert response.json()["status"] == "REVOKED"

        response = client.get(BASE, params={"status": "ACTIVE"}, headers=as_actor("UH1"))
        assert response.json() == []
