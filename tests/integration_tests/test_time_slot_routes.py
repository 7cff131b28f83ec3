"""HTTP tests for owner slot management under /courts/<id>/time-slots and /time-slots/<id>."""
from tests.conftest import PLAY_DATE, login_as


def _slots_url(venue):
    return f"/courts/{venue['court_id']}/time-slots"


def _at(hour, minute=0):
    return f"{PLAY_DATE.isoformat()}T{hour:02d}:{minute:02d}:00"


class TestAccess:
    def test_anonymous_cannot_generate(self, anon, venue):
        resp = anon.post(f"{_slots_url(venue)}/generate", json={"start_date": PLAY_DATE.isoformat()})
        assert resp.status_code == 401

    def test_missing_csrf_header_rejected(self, owner, venue):
        resp = owner.client.post(f"{_slots_url(venue)}/generate", json={"start_date": PLAY_DATE.isoformat()})
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "CSRF validation failed"

    def test_player_cannot_manage_slots(self, player, venue):
        resp = player.post(f"{_slots_url(venue)}/generate", json={"start_date": PLAY_DATE.isoformat()})
        assert resp.status_code == 403
        assert resp.get_json()["kind"] == "forbidden"

    def test_other_owner_cannot_touch_slots(self, app, venue, generated_day):
        rival = login_as(app, "rival@example.com", role="OWNER")
        assert rival.get(_slots_url(venue)).status_code == 403

    def test_admin_can_manage_any_court(self, admin, venue):
        resp = admin.post(f"{_slots_url(venue)}/generate", json={"start_date": PLAY_DATE.isoformat()})
        assert resp.status_code == 201

    def test_unknown_court(self, owner, venue):
        resp = owner.post("/courts/9999/time-slots/generate", json={"start_date": PLAY_DATE.isoformat()})
        assert resp.status_code == 404


class TestGenerate:
    def test_generate_day(self, generated_day):
        assert generated_day["created"] == 17
        assert generated_day["skipped"] == 0

    def test_regenerate_reports_conflict(self, owner, venue, generated_day):
        resp = owner.post(
            f"{_slots_url(venue)}/generate",
            json={"start_date": PLAY_DATE.isoformat(), "end_date": PLAY_DATE.isoformat()},
        )
        assert resp.status_code == 409
        body = resp.get_json()
        assert body["created"] == 0
        assert body["skipped"] == 17

    def test_bad_dates(self, owner, venue):
        resp = owner.post(f"{_slots_url(venue)}/generate", json={"start_date": "tomorrow"})
        assert resp.status_code == 400
        assert resp.get_json()["kind"] == "validation"

    def test_advanced_generation(self, owner, venue):
        resp = owner.post(
            f"{_slots_url(venue)}/generate-advanced",
            json={
                "start_date": PLAY_DATE.isoformat(),
                "end_date": PLAY_DATE.isoformat(),
                "start_time": "18:00",
                "end_time": "21:00",
                "slot_duration": 90,
                "days_of_week": list(range(7)),
            },
        )
        assert resp.status_code == 201
        assert resp.get_json()["created"] == 2


class TestListAndEdit:
    def test_list_by_day(self, owner, venue, generated_day):
        resp = owner.get(f"{_slots_url(venue)}?date={PLAY_DATE.isoformat()}")
        assert resp.status_code == 200
        rows = resp.get_json()
        assert len(rows) == 17
        prices = {r["start_time"][11:13]: r["price"] for r in rows}
        assert prices["06"] == 540.0
        assert prices["12"] == 450.0

    def test_create_overlap_and_touching(self, owner, venue):
        resp = owner.post(_slots_url(venue), json={"start_time": _at(10), "end_time": _at(11)})
        assert resp.status_code == 201
        slot_id = resp.get_json()["id"]

        resp = owner.post(_slots_url(venue), json={"start_time": _at(10, 30), "end_time": _at(11, 30)})
        assert resp.status_code == 409
        assert resp.get_json()["conflicting_slot_id"] == slot_id

        resp = owner.post(_slots_url(venue), json={"start_time": _at(11), "end_time": _at(12)})
        assert resp.status_code == 201

    def test_maintenance_filter(self, owner, venue, generated_day):
        rows = owner.get(f"{_slots_url(venue)}?date={PLAY_DATE.isoformat()}").get_json()
        slot_id = rows[0]["time_slot_id"]

        resp = owner.patch(f"/time-slots/{slot_id}", json={"is_maintenance_blocked": True, "maintenance_reason": "relining"})
        assert resp.status_code == 200
        assert resp.get_json()["maintenance_reason"] == "relining"

        blocked = owner.get(f"{_slots_url(venue)}?maintenance=true").get_json()
        assert [r["time_slot_id"] for r in blocked] == [slot_id]

        public = owner.get(f"/time-slots/{slot_id}").get_json()
        assert public["available"] is False

    def test_price_override_and_reset(self, owner, venue, generated_day):
        rows = owner.get(f"{_slots_url(venue)}?date={PLAY_DATE.isoformat()}").get_json()
        slot_id = next(r["time_slot_id"] for r in rows if r["start_time"].endswith("12:00:00"))

        body = owner.patch(f"/time-slots/{slot_id}", json={"price": 500}).get_json()
        assert body["price"] == 500.0
        body = owner.patch(f"/time-slots/{slot_id}", json={"price": None}).get_json()
        assert body["custom_price"] is None
        assert body["price"] == 450.0

    def test_delete(self, owner, venue, generated_day):
        rows = owner.get(f"{_slots_url(venue)}?date={PLAY_DATE.isoformat()}").get_json()
        slot_id = rows[0]["time_slot_id"]

        assert owner.delete(f"/time-slots/{slot_id}").status_code == 200
        assert owner.get(f"/time-slots/{slot_id}").status_code == 404
