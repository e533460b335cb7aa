"""Tests for the pairing request lifecycle."""

import pytest

from conftest import in_days
from edupeer.exceptions import Forbidden
from edupeer.models import PairingRequest
from edupeer.schemas import PairingRequestUpdate
from edupeer.services.pairing import PairingService


def send(actor, recipient_id, teach=("Python",), learn=("Spanish",), **extra):
    return actor.client.post("/api/pairing-requests", json={
        "recipientId": recipient_id,
        "teachSkills": list(teach),
        "learnSkills": list(learn),
        **extra,
    })


class TestCreate:

    def test_created_pending_with_user_summaries(self, exchange_pair):
        alice, bob = exchange_pair
        resp = send(alice, bob.id, message="Hi Bob")

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "pending"
        assert body["requesterId"] == alice.id
        assert body["recipientId"] == bob.id
        assert body["teachSkills"] == ["Python"]
        assert body["learnSkills"] == ["Spanish"]
        assert body["message"] == "Hi Bob"
        assert body["requester"]["username"] == "alice"
        assert body["recipient"]["username"] == "bob"
        assert body["sessionId"] is None

    def test_cannot_request_yourself(self, exchange_pair):
        alice, _ = exchange_pair
        resp = send(alice, alice.id)
        assert resp.status_code == 400
        assert resp.json() == {"message": "Cannot send pairing request to yourself"}

    def test_unknown_recipient(self, exchange_pair):
        alice, _ = exchange_pair
        resp = send(alice, 9999)
        assert resp.status_code == 404
        assert resp.json() == {"message": "Recipient not found"}

    def test_second_pending_request_conflicts(self, exchange_pair, pending_request):
        alice, bob = exchange_pair
        resp = send(alice, bob.id)
        assert resp.status_code == 409
        assert resp.json() == {"message": "A pending request already exists"}

    def test_reverse_direction_is_independent(self, exchange_pair, pending_request):
        alice, bob = exchange_pair
        resp = send(bob, alice.id, teach=["Spanish"], learn=["Python"])
        assert resp.status_code == 201

    def test_new_request_allowed_once_previous_resolved(self, exchange_pair, pending_request):
        alice, bob = exchange_pair
        bob.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={"status": "declined"})

        resp = send(alice, bob.id)
        assert resp.status_code == 201

    def test_skills_must_be_matched_skills(self, exchange_pair):
        alice, bob = exchange_pair

        resp = send(alice, bob.id, teach=["Cooking"])
        assert resp.status_code == 400
        assert "Cooking" in resp.json()["message"]

        resp = send(alice, bob.id, learn=["Python"])
        assert resp.status_code == 400

    @pytest.mark.parametrize("teach, learn", [
        ((), ()),
        (("Python",), ()),
        ((), ("Spanish",)),
    ])
    def test_both_skill_lists_required(self, exchange_pair, teach, learn):
        alice, bob = exchange_pair
        resp = send(alice, bob.id, teach=teach, learn=learn)
        assert resp.status_code == 400
        assert resp.json() == {
            "message": "A pairing request must name at least one skill to teach and one to learn"
        }

    def test_empty_request_between_strangers_rejected(self, make_user):
        erin = make_user("erin", teach=["Chess"], learn=["Go"])
        frank = make_user("frank", teach=["Knitting"], learn=["Sewing"])
        resp = send(erin, frank.id, teach=(), learn=())
        assert resp.status_code == 400

    @pytest.mark.parametrize("recipient_id", [0, 2**70])
    def test_out_of_range_recipient_id(self, exchange_pair, recipient_id):
        alice, _ = exchange_pair
        resp = send(alice, recipient_id)
        assert resp.status_code == 400
        assert resp.json()["message"].startswith("recipientId")


class TestTransitions:

    def test_recipient_accepts(self, exchange_pair, pending_request):
        _, bob = exchange_pair
        resp = bob.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={"status": "accepted"})

        assert resp.status_code == 200
        assert resp.json()["status"] == "accepted"
        assert resp.json()["session"] is None

    def test_recipient_declines(self, exchange_pair, pending_request):
        _, bob = exchange_pair
        resp = bob.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={"status": "declined"})
        assert resp.json()["status"] == "declined"

    def test_requester_cancels(self, exchange_pair, pending_request):
        alice, _ = exchange_pair
        resp = alice.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={"status": "cancelled"})
        assert resp.json()["status"] == "cancelled"

    @pytest.mark.parametrize("who, new_status", [
        ("recipient", "cancelled"),
        ("requester", "accepted"),
        ("requester", "declined"),
    ])
    def test_wrong_actor_is_forbidden(self, exchange_pair, pending_request, who, new_status):
        alice, bob = exchange_pair
        actor = alice if who == "requester" else bob

        resp = actor.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={"status": new_status})

        assert resp.status_code == 403
        listed = alice.client.get("/api/pairing-requests").json()
        assert listed[0]["status"] == "pending"

    def test_outsider_is_forbidden(self, make_user, pending_request):
        mallory = make_user("mallory")
        resp = mallory.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={"status": "accepted"})
        assert resp.status_code == 403

    def test_terminal_states_do_not_move(self, exchange_pair, accepted_request):
        _, bob = exchange_pair
        resp = bob.client.patch(f"/api/pairing-requests/{accepted_request['id']}", json={"status": "declined"})
        assert resp.status_code == 403
        assert resp.json() == {"message": "Pairing request is already accepted"}

    def test_requester_cannot_cancel_after_acceptance(self, exchange_pair, accepted_request):
        alice, _ = exchange_pair
        resp = alice.client.patch(f"/api/pairing-requests/{accepted_request['id']}", json={"status": "cancelled"})
        assert resp.status_code == 403
        assert alice.client.get("/api/pairing-requests").json()[0]["status"] == "accepted"

    @pytest.mark.parametrize("value", ["pending", "approved", ""])
    def test_invalid_status_rejected(self, exchange_pair, pending_request, value):
        _, bob = exchange_pair
        resp = bob.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={"status": value})
        assert resp.status_code == 400
        assert resp.json()["message"].startswith("status")

    def test_unknown_request_is_404(self, exchange_pair):
        _, bob = exchange_pair
        resp = bob.client.patch("/api/pairing-requests/9999", json={"status": "accepted"})
        assert resp.status_code == 404

    def test_oversized_request_id_is_400(self, exchange_pair):
        _, bob = exchange_pair
        resp = bob.client.patch(f"/api/pairing-requests/{2**70}", json={"status": "accepted"})
        assert resp.status_code == 400

    def test_accept_with_schedule_creates_session(self, exchange_pair, pending_request):
        alice, bob = exchange_pair
        resp = bob.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={
            "status": "accepted",
            "session": {"scheduledDate": in_days(3), "duration": 45, "location": "in-person"},
        })

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "accepted"
        session = body["session"]
        assert session["requestId"] == pending_request["id"]
        assert session["status"] == "scheduled"
        assert session["location"] == "in-person"
        assert {p["userId"] for p in session["participants"]} == {alice.id, bob.id}
        assert body["sessionId"] == session["id"]

    def test_accept_with_bad_schedule_leaves_request_pending(self, exchange_pair, pending_request):
        _, bob = exchange_pair
        resp = bob.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={
            "status": "accepted",
            "session": {"scheduledDate": in_days(-1), "duration": 45},
        })

        assert resp.status_code == 400
        listed = bob.client.get("/api/pairing-requests").json()
        assert listed[0]["status"] == "pending"
        assert bob.client.get("/api/sessions").json() == []

    def test_schedule_only_allowed_when_accepting(self, exchange_pair, pending_request):
        _, bob = exchange_pair
        resp = bob.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={
            "status": "declined",
            "session": {"scheduledDate": in_days(3), "duration": 45},
        })
        assert resp.status_code == 400

    def test_stale_acceptance_loses(self, exchange_pair, pending_request, db_session):
        """A caller holding a stale pending row cannot overwrite a decided request."""
        _, bob = exchange_pair
        stale = db_session.get(PairingRequest, pending_request["id"])
        assert stale.status == "pending"

        resp = bob.client.patch(f"/api/pairing-requests/{pending_request['id']}", json={"status": "declined"})
        assert resp.status_code == 200

        with pytest.raises(Forbidden):
            PairingService(db_session).transition(
                pending_request["id"], bob.id, PairingRequestUpdate(status="accepted")
            )
        db_session.expire_all()
        assert db_session.get(PairingRequest, pending_request["id"]).status == "declined"


class TestListing:

    def test_filters_by_type_and_status(self, make_user, exchange_pair, pending_request):
        alice, bob = exchange_pair
        carol = make_user("carol", teach=["Spanish"], learn=["Python"])
        sent_to_carol = send(alice, carol.id).json()
        carol.client.patch(f"/api/pairing-requests/{sent_to_carol['id']}", json={"status": "declined"})

        all_alice = alice.client.get("/api/pairing-requests").json()
        assert len(all_alice) == 2

        received_bob = bob.client.get("/api/pairing-requests", params={"type": "received"}).json()
        assert [r["id"] for r in received_bob] == [pending_request["id"]]

        sent_bob = bob.client.get("/api/pairing-requests", params={"type": "sent"}).json()
        assert sent_bob == []

        declined = alice.client.get("/api/pairing-requests", params={"status": "declined"}).json()
        assert [r["id"] for r in declined] == [sent_to_carol["id"]]

    def test_invalid_filters_rejected(self, exchange_pair):
        alice, _ = exchange_pair
        assert alice.client.get("/api/pairing-requests", params={"type": "outbox"}).status_code == 400
        assert alice.client.get("/api/pairing-requests", params={"status": "done"}).status_code == 400
