# tests/test_mock_api.py
import hashlib
from datetime import datetime, timedelta

import pytest

from claims_portal.core.states import UserRole

from tests.factories import CLAIM_PAYLOAD

HOLDER = "user@example.com"
ADJUSTER = "adjuster@example.com"
SUPERVISOR = "supervisor@example.com"
ADMIN = "admin@example.com"


def create_claim(test_client, headers, **overrides):
    payload = dict(CLAIM_PAYLOAD, **overrides)
    response = test_client.post("/claims", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


def move(test_client, headers, claim_id, target):
    return test_client.patch(
        f"/claims/{claim_id}/status", json={"targetStatus": target}, headers=headers
    )


def user_id(store, email):
    return store.find_user_by_email(email).id


def test_health_and_root(test_client):
    assert test_client.get("/health").json() == {"status": "healthy"}
    assert test_client.get("/").json()["status"] == "operational"


class TestAuth:

    def test_login_returns_user_and_token(self, test_client):
        response = test_client.post("/auth/login", json={"email": HOLDER, "password": "password123"})
        body = response.json()
        assert response.status_code == 200
        assert body["success"] is True
        assert body["data"]["user"]["role"] == "POLICYHOLDER"
        assert body["data"]["user"]["displayName"] == "Pat Holder"
        assert body["data"]["token"]

    def test_wrong_password(self, test_client):
        response = test_client.post("/auth/login", json={"email": HOLDER, "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    def test_requires_token(self, test_client):
        assert test_client.get("/auth/me").status_code == 401
        bad = {"Authorization": "Bearer not-a-token"}
        assert test_client.get("/claims", headers=bad).status_code == 401

    def test_logout_revokes_token(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        assert test_client.post("/auth/logout", headers=headers).status_code == 200
        assert test_client.get("/auth/me", headers=headers).status_code == 401

    def test_refresh_swaps_token(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        token = test_client.post("/auth/refresh", headers=headers).json()["data"]["token"]

        assert test_client.get("/auth/me", headers=headers).status_code == 401
        me = test_client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
        assert me.json()["data"]["email"] == HOLDER


class TestClaims:

    def test_create_is_draft_with_total(self, test_client, auth_headers):
        claim = create_claim(test_client, auth_headers(HOLDER))

        assert claim["status"] == "DRAFT"
        assert claim["amountClaimed"] == 1500.0
        assert len(claim["items"]) == 2
        assert claim["policy"]["product"] == "Auto Insurance"
        assert claim["events"][0]["eventType"] == "CLAIM_CREATED"

    def test_create_on_unknown_policy(self, test_client, auth_headers):
        payload = dict(CLAIM_PAYLOAD, policyId="POL-999")
        response = test_client.post("/claims", json=payload, headers=auth_headers(HOLDER))
        assert response.status_code == 400

    def test_create_on_someone_elses_policy(self, test_client, auth_headers, store):
        store.add_user("other@example.com", "Other Holder", UserRole.POLICYHOLDER, "password123")

        payload = dict(CLAIM_PAYLOAD)
        response = test_client.post("/claims", json=payload, headers=auth_headers("other@example.com"))
        assert response.status_code == 403

    def test_invalid_payload_is_422(self, test_client, auth_headers):
        payload = dict(CLAIM_PAYLOAD, items=[])
        response = test_client.post("/claims", json=payload, headers=auth_headers(HOLDER))
        assert response.status_code == 422

    def test_policyholders_only_see_their_claims(self, test_client, auth_headers, store):
        create_claim(test_client, auth_headers(HOLDER))
        store.add_user("other@example.com", "Other Holder", UserRole.POLICYHOLDER, "password123")
        other = auth_headers("other@example.com")

        listing = test_client.get("/claims", headers=other).json()["data"]
        assert listing["total"] == 0
        assert listing["data"] == []

        staff = test_client.get("/claims", headers=auth_headers(ADJUSTER)).json()["data"]
        assert staff["total"] == 1

    def test_hidden_claim_is_404(self, test_client, auth_headers, store):
        claim = create_claim(test_client, auth_headers(HOLDER))
        store.add_user("other@example.com", "Other Holder", UserRole.POLICYHOLDER, "password123")

        response = test_client.get(f"/claims/{claim['id']}", headers=auth_headers("other@example.com"))
        assert response.status_code == 404

    def test_pagination(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        for _ in range(3):
            create_claim(test_client, headers)

        page = test_client.get("/claims", params={"page": 2, "limit": 2}, headers=headers).json()["data"]
        assert page["total"] == 3
        assert page["totalPages"] == 2
        assert page["page"] == 2
        assert len(page["data"]) == 1

    def test_filters(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        draft = create_claim(test_client, headers)
        submitted = create_claim(test_client, headers, description="Hail damage on the roof")
        move(test_client, headers, submitted["id"], "SUBMITTED")

        by_status = test_client.get("/claims", params={"status": "SUBMITTED"}, headers=headers).json()["data"]
        assert [c["id"] for c in by_status["data"]] == [submitted["id"]]

        by_search = test_client.get("/claims", params={"search": "hail"}, headers=headers).json()["data"]
        assert [c["id"] for c in by_search["data"]] == [submitted["id"]]

        by_date = test_client.get("/claims", params={"dateFrom": "2024-06-02"}, headers=headers).json()["data"]
        assert by_date["total"] == 0

        both = test_client.get(
            "/claims", params=[("status", "DRAFT"), ("status", "SUBMITTED")], headers=headers
        ).json()["data"]
        assert {c["id"] for c in both["data"]} == {draft["id"], submitted["id"]}

    def test_newest_first(self, test_client, auth_headers, store):
        headers = auth_headers(HOLDER)
        older = create_claim(test_client, headers)
        newer = create_claim(test_client, headers)
        store.claims[older["id"]].created_at -= timedelta(hours=1)

        listing = test_client.get("/claims", headers=headers).json()["data"]
        assert [c["id"] for c in listing["data"]] == [newer["id"], older["id"]]

    def test_edit_rules(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        claim = create_claim(test_client, headers)

        response = test_client.patch(f"/claims/{claim['id']}", json={"description": "Updated"}, headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["description"] == "Updated"

        response = test_client.patch(f"/claims/{claim['id']}", json={"amountApproved": 1}, headers=headers)
        assert response.status_code == 403

    def test_delete_own_draft_only(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        draft = create_claim(test_client, headers)
        submitted = create_claim(test_client, headers)
        move(test_client, headers, submitted["id"], "SUBMITTED")

        assert test_client.delete(f"/claims/{submitted['id']}", headers=headers).status_code == 403
        assert test_client.delete(f"/claims/{draft['id']}", headers=headers).status_code == 204
        assert test_client.get(f"/claims/{draft['id']}", headers=headers).status_code == 404

        admin = auth_headers(ADMIN)
        assert test_client.delete(f"/claims/{submitted['id']}", headers=admin).status_code == 204


class TestStatusChanges:

    def test_transition_records_event(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        claim = create_claim(test_client, headers)

        response = move(test_client, headers, claim["id"], "SUBMITTED")
        data = response.json()["data"]
        assert response.status_code == 200
        assert data["status"] == "SUBMITTED"
        assert data["events"][-1]["eventType"] == "STATUS_CHANGED"
        assert data["events"][-1]["payloadJson"] == {"from": "DRAFT", "to": "SUBMITTED", "reason": None}

    def test_transition_not_in_table_is_400(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        claim = create_claim(test_client, headers)

        response = move(test_client, auth_headers(SUPERVISOR), claim["id"], "APPROVED")
        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid transition from DRAFT to APPROVED"

    def test_role_not_permitted_is_403(self, test_client, auth_headers):
        holder = auth_headers(HOLDER)
        claim = create_claim(test_client, holder)
        move(test_client, holder, claim["id"], "SUBMITTED")

        assert move(test_client, holder, claim["id"], "IN_REVIEW").status_code == 403

        adjuster = auth_headers(ADJUSTER)
        assert move(test_client, adjuster, claim["id"], "IN_REVIEW").status_code == 200
        assert move(test_client, adjuster, claim["id"], "APPROVED").status_code == 403

    def test_approval_fills_approved_amount(self, test_client, auth_headers):
        holder = auth_headers(HOLDER)
        supervisor = auth_headers(SUPERVISOR)
        claim = create_claim(test_client, holder)
        move(test_client, holder, claim["id"], "SUBMITTED")
        move(test_client, supervisor, claim["id"], "IN_REVIEW")

        data = move(test_client, supervisor, claim["id"], "APPROVED").json()["data"]
        assert data["amountApproved"] == 1500.0


class TestAssignments:

    def test_supervisor_assigns_with_default_due_date(self, test_client, auth_headers, store):
        claim = create_claim(test_client, auth_headers(HOLDER))
        adjuster_id = user_id(store, ADJUSTER)

        before = datetime.now()
        response = test_client.post(
            "/assignments",
            json={"claimId": claim["id"], "adjusterId": adjuster_id, "priority": "HIGH"},
            headers=auth_headers(SUPERVISOR),
        )
        assert response.status_code == 201
        assignment = store.claims[claim["id"]].assignment
        assert assignment.adjuster_id == adjuster_id
        assert before + timedelta(days=3) <= assignment.due_at <= datetime.now() + timedelta(days=3)
        assert store.claims[claim["id"]].events[-1].event_type == "ASSIGNED"

    def test_adjuster_cannot_assign(self, test_client, auth_headers, store):
        claim = create_claim(test_client, auth_headers(HOLDER))
        response = test_client.post(
            "/assignments",
            json={"claimId": claim["id"], "adjusterId": user_id(store, ADJUSTER)},
            headers=auth_headers(ADJUSTER),
        )
        assert response.status_code == 403

    def test_assignee_must_be_staff(self, test_client, auth_headers, store):
        claim = create_claim(test_client, auth_headers(HOLDER))
        response = test_client.post(
            "/assignments",
            json={"claimId": claim["id"], "adjusterId": user_id(store, HOLDER)},
            headers=auth_headers(SUPERVISOR),
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("assignee,expected", [
        (SUPERVISOR, 201),
        (ADMIN, 400),
    ])
    def test_assignee_roles(self, test_client, auth_headers, store, assignee, expected):
        claim = create_claim(test_client, auth_headers(HOLDER))
        response = test_client.post(
            "/assignments",
            json={"claimId": claim["id"], "adjusterId": user_id(store, assignee)},
            headers=auth_headers(SUPERVISOR),
        )
        assert response.status_code == expected


class TestAttachments:

    def upload(self, test_client, headers, claim_id, content=b"%PDF-1.4 estimate"):
        checksum = hashlib.sha256(content).hexdigest()
        meta = {"fileName": "estimate.pdf", "mimeType": "application/pdf",
                "size": len(content), "checksum": checksum}
        presigned = test_client.post("/attachments/presign", json=meta, headers=headers).json()["data"]
        sent = test_client.post(
            presigned["url"],
            data=presigned["fields"],
            files={"file": ("estimate.pdf", content, "application/pdf")},
        )
        assert sent.status_code == 204
        return test_client.post(
            "/attachments",
            json=dict(meta, s3Key=presigned["s3Key"], claimId=claim_id),
            headers=headers,
        )

    def test_presigned_upload_flow(self, test_client, auth_headers, store):
        headers = auth_headers(HOLDER)
        claim = create_claim(test_client, headers)

        response = self.upload(test_client, headers, claim["id"])
        assert response.status_code == 201
        assert response.json()["data"]["fileName"] == "estimate.pdf"
        assert len(store.claims[claim["id"]].attachments) == 1
        assert store.uploads == {}

    def test_rejects_unsupported_type(self, test_client, auth_headers):
        meta = {"fileName": "run.exe", "mimeType": "application/x-msdownload", "size": 10, "checksum": "x"}
        response = test_client.post("/attachments/presign", json=meta, headers=auth_headers(HOLDER))
        assert response.status_code == 400

    def test_rejects_oversized_file(self, test_client, auth_headers):
        meta = {"fileName": "big.pdf", "mimeType": "application/pdf", "size": 50 * 1024 * 1024, "checksum": "x"}
        response = test_client.post("/attachments/presign", json=meta, headers=auth_headers(HOLDER))
        assert response.status_code == 400

    def test_unknown_upload_key(self, test_client):
        response = test_client.post(
            "/attachments/upload",
            data={"key": "claims/nope/file.pdf"},
            files={"file": ("file.pdf", b"data", "application/pdf")},
        )
        assert response.status_code == 403

    def test_checksum_mismatch(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        claim = create_claim(test_client, headers)
        meta = {"fileName": "a.pdf", "mimeType": "application/pdf", "size": 4, "checksum": "wrong"}
        presigned = test_client.post("/attachments/presign", json=meta, headers=headers).json()["data"]
        test_client.post(presigned["url"], data=presigned["fields"], files={"file": ("a.pdf", b"data")})

        response = test_client.post(
            "/attachments", json=dict(meta, s3Key=presigned["s3Key"], claimId=claim["id"]), headers=headers
        )
        assert response.status_code == 400

    def test_delete_attachment(self, test_client, auth_headers):
        headers = auth_headers(HOLDER)
        claim = create_claim(test_client, headers)
        attachment = self.upload(test_client, headers, claim["id"]).json()["data"]

        assert test_client.delete(f"/attachments/{attachment['id']}", headers=auth_headers(ADJUSTER)).status_code == 403
        assert test_client.delete(f"/attachments/{attachment['id']}", headers=headers).status_code == 204


class TestNotes:

    def test_internal_notes_hidden_from_policyholder(self, test_client, auth_headers):
        holder = auth_headers(HOLDER)
        adjuster = auth_headers(ADJUSTER)
        claim = create_claim(test_client, holder)

        test_client.post(f"/claims/{claim['id']}/notes", json={"body": "Looks fine"}, headers=adjuster)
        test_client.post(
            f"/claims/{claim['id']}/notes",
            json={"body": "Check prior claims", "visibility": "INTERNAL"},
            headers=adjuster,
        )

        seen_by_holder = test_client.get(f"/claims/{claim['id']}", headers=holder).json()["data"]
        seen_by_staff = test_client.get(f"/claims/{claim['id']}", headers=adjuster).json()["data"]
        assert [n["body"] for n in seen_by_holder["notes"]] == ["Looks fine"]
        assert len(seen_by_staff["notes"]) == 2

    def test_policyholder_cannot_add_internal_note(self, test_client, auth_headers):
        holder = auth_headers(HOLDER)
        claim = create_claim(test_client, holder)
        response = test_client.post(
            f"/claims/{claim['id']}/notes", json={"body": "psst", "visibility": "INTERNAL"}, headers=holder
        )
        assert response.status_code == 403

    def test_only_author_edits(self, test_client, auth_headers):
        holder = auth_headers(HOLDER)
        claim = create_claim(test_client, holder)
        note = test_client.post(
            f"/claims/{claim['id']}/notes", json={"body": "First"}, headers=holder
        ).json()["data"]

        assert test_client.patch(
            f"/notes/{note['id']}", json={"body": "Hijacked"}, headers=auth_headers(ADJUSTER)
        ).status_code == 403
        edited = test_client.patch(f"/notes/{note['id']}", json={"body": "Second"}, headers=holder)
        assert edited.json()["data"]["body"] == "Second"
        assert test_client.delete(f"/notes/{note['id']}", headers=auth_headers(ADMIN)).status_code == 204


class TestReports:

    def test_sla_requires_manager(self, test_client, auth_headers):
        assert test_client.get("/reports/sla", headers=auth_headers(ADJUSTER)).status_code == 403
        report = test_client.get("/reports/sla", headers=auth_headers(SUPERVISOR)).json()["data"]
        assert report == {
            "totalClaims": 0,
            "onTime": 0,
            "overdue": 0,
            "averageCycleTime": 0.0,
            "breachesByProduct": {},
        }

    def test_dashboard_scoped_to_policyholder(self, test_client, auth_headers, store):
        holder = auth_headers(HOLDER)
        claim = create_claim(test_client, holder)
        move(test_client, holder, claim["id"], "SUBMITTED")
        store.add_user("other@example.com", "Other Holder", UserRole.POLICYHOLDER, "password123")

        mine = test_client.get("/reports/dashboard", headers=holder).json()["data"]
        theirs = test_client.get("/reports/dashboard", headers=auth_headers("other@example.com")).json()["data"]
        assert mine["totalClaims"] == 1
        assert mine["pendingReview"] == 1
        assert theirs["totalClaims"] == 0


class TestUsers:

    def test_listing_requires_manager(self, test_client, auth_headers):
        assert test_client.get("/users", headers=auth_headers(HOLDER)).status_code == 403
        adjusters = test_client.get(
            "/users", params={"role": "ADJUSTER"}, headers=auth_headers(SUPERVISOR)
        ).json()["data"]
        assert [u["email"] for u in adjusters] == [ADJUSTER]

    def test_admin_creates_user(self, test_client, auth_headers):
        admin = auth_headers(ADMIN)
        response = test_client.post(
            "/users",
            json={"email": "new@example.com", "displayName": "New Adjuster", "role": "ADJUSTER"},
            headers=admin,
        )
        assert response.status_code == 201
        # Created without a password: the demo default applies
        assert auth_headers("new@example.com")

        duplicate = test_client.post(
            "/users", json={"email": "NEW@example.com", "displayName": "Again"}, headers=admin
        )
        assert duplicate.status_code == 409

    def test_non_admin_cannot_create(self, test_client, auth_headers):
        response = test_client.post(
            "/users", json={"email": "x@example.com", "displayName": "X"}, headers=auth_headers(SUPERVISOR)
        )
        assert response.status_code == 403

    def test_self_edit_without_role_change(self, test_client, auth_headers, store):
        holder = auth_headers(HOLDER)
        holder_id = user_id(store, HOLDER)

        renamed = test_client.patch(f"/users/{holder_id}", json={"displayName": "Patricia"}, headers=holder)
        assert renamed.json()["data"]["displayName"] == "Patricia"

        promoted = test_client.patch(f"/users/{holder_id}", json={"role": "ADMIN"}, headers=holder)
        assert promoted.status_code == 403

        taken = test_client.patch(f"/users/{holder_id}", json={"email": ADMIN}, headers=holder)
        assert taken.status_code == 409

    @pytest.mark.parametrize("email,expected", [(ADMIN, 400), (HOLDER, 204)])
    def test_delete_user(self, test_client, auth_headers, store, email, expected):
        response = test_client.delete(f"/users/{user_id(store, email)}", headers=auth_headers(ADMIN))
        assert response.status_code == expected
