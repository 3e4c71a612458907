"""
HTTP API tests: camelCase payloads, error envelope and the booking flow
end to end.
"""

import pytest


async def _activity(client, party_size=10):
    resp = await client.post("/api/v1/activity-types", json={"code": "tour", "name": "Tour"})
    assert resp.status_code == 201
    resp = await client.post("/api/v1/activities", json={
        "activityTypeId": resp.json()["id"],
        "title": "City walk",
        "partySize": party_size,
        "adultPrice": "20.00",
        "childPrice": "10.00",
        "seniorPrice": "15.00",
    })
    assert resp.status_code == 201
    return resp.json()


async def _schedule(client, activity_id, capacity=None, start="2024-01-01T08:00:00Z", end="2024-01-01T10:00:00Z"):
    body = {"scheduledStart": start, "scheduledEnd": end}
    if capacity is not None:
        body["capacity"] = capacity
    resp = await client.post(f"/api/v1/activities/{activity_id}/schedules", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


def _booking(schedule_id, people=2, **extra):
    body = {
        "activityScheduleId": schedule_id,
        "customerName": "Ana Torres",
        "numberOfPeople": people,
        "adultCount": people,
        "childCount": 0,
        "seniorCount": 0,
        "transport": False,
    }
    body.update(extra)
    return body


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthz(self, client):
        resp = await client.get("/healthz")
        assert resp.status_code == 200
        assert resp.json() == {"db": "ok"}


class TestActivitiesApi:

    @pytest.mark.asyncio
    async def test_paginated_list(self, client):
        await _activity(client)
        resp = await client.get("/api/v1/activities", params={"page": 1, "limit": 5})
        assert resp.status_code == 200
        body = resp.json()
        assert body["total"] == 1
        assert body["pages"] == 1
        assert body["items"][0]["partySize"] == 10

    @pytest.mark.asyncio
    async def test_toggle_status(self, client):
        activity = await _activity(client)
        resp = await client.put(f"/api/v1/activities/{activity['id']}/toggle-status")
        assert resp.json()["status"] is False

    @pytest.mark.asyncio
    async def test_not_found_envelope(self, client):
        resp = await client.get("/api/v1/activities/missing")
        assert resp.status_code == 404
        body = resp.json()
        assert body["code"] == "NOT_FOUND"
        assert body["details"] == {"entity": "Activity", "id": "missing"}
        assert "error" in body


class TestBulkApi:

    @pytest.mark.asyncio
    async def test_bulk_reports_overlap(self, client):
        activity = await _activity(client)
        await _schedule(client, activity["id"])

        resp = await client.post(f"/api/v1/activities/{activity['id']}/schedules/bulk", json={
            "startDate": "2024-01-01",
            "endDate": "2024-01-02",
            "timeSlots": [{"startTime": "08:00", "endTime": "10:00", "capacity": 5}],
        })
        assert resp.status_code == 201
        body = resp.json()
        assert body["created"] == 1
        assert body["conflicts"][0]["date"] == "2024-01-01"
        assert body["conflicts"][0]["reason"] == "overlap"
        assert body["conflicts"][0]["timeSlot"] == {"startTime": "08:00", "endTime": "10:00", "capacity": 5}

    @pytest.mark.asyncio
    async def test_impossible_date_is_validation_error(self, client):
        activity = await _activity(client)
        resp = await client.post(f"/api/v1/activities/{activity['id']}/schedules/bulk", json={
            "startDate": "2024-02-30",
            "endDate": "2024-03-01",
            "timeSlots": [{"startTime": "08:00", "endTime": "10:00", "capacity": 5}],
        })
        assert resp.status_code == 400
        assert resp.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_available_listing(self, client):
        activity = await _activity(client)
        schedule = await _schedule(client, activity["id"], capacity=8)
        resp = await client.get(
            f"/api/v1/activities/{activity['id']}/schedules/available",
            params={"startDate": "2024-01-01", "endDate": "2024-01-01"},
        )
        assert resp.status_code == 200
        rows = resp.json()
        assert [r["scheduleId"] for r in rows] == [schedule["id"]]
        assert rows[0]["availableSpaces"] == 8
        assert rows[0]["activityTitle"] == "City walk"


class TestBookingApi:

    @pytest.mark.asyncio
    async def test_booking_lifecycle(self, client):
        activity = await _activity(client)
        schedule = await _schedule(client, activity["id"], capacity=10)

        resp = await client.post("/api/v1/bookings", json=_booking(schedule["id"], people=10))
        assert resp.status_code == 201, resp.text
        created = resp.json()
        assert created["availability"]["availableSpaces"] == 0
        assert created["booking"]["totalAmount"] in ("200.00", "200")

        resp = await client.post("/api/v1/bookings", json=_booking(schedule["id"], people=1))
        assert resp.status_code == 409
        assert resp.json()["code"] == "CAPACITY_EXCEEDED"
        assert resp.json()["details"]["available"] == 0

        booking_id = created["booking"]["id"]
        resp = await client.put(f"/api/v1/bookings/{booking_id}/cancel")
        assert resp.status_code == 200
        assert resp.json()["availability"]["bookedCount"] == 0

        resp = await client.put(f"/api/v1/bookings/{booking_id}/cancel")
        assert resp.json()["availability"]["bookedCount"] == 0

        resp = await client.get(f"/api/v1/schedules/{schedule['id']}/availability")
        assert resp.json()["availableSpaces"] == 10

    @pytest.mark.asyncio
    async def test_walk_in_attendees(self, client):
        activity = await _activity(client)
        schedule = await _schedule(client, activity["id"], capacity=5)

        resp = await client.post(f"/api/v1/schedules/{schedule['id']}/attendees", json={"quantity": 4})
        assert resp.status_code == 200, resp.text
        assert resp.json()["bookedCount"] == 4
        assert resp.json()["availableSpaces"] == 1

        resp = await client.post(f"/api/v1/schedules/{schedule['id']}/attendees", json={"quantity": 2})
        assert resp.status_code == 409
        assert resp.json()["code"] == "CAPACITY_EXCEEDED"
        assert resp.json()["details"] == {"requested": 2, "available": 1}

        resp = await client.post(f"/api/v1/schedules/{schedule['id']}/attendees", json={"quantity": 0})
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "quantity"

        resp = await client.get(f"/api/v1/schedules/{schedule['id']}")
        assert resp.json()["walkInCount"] == 4

    @pytest.mark.asyncio
    async def test_count_mismatch_envelope(self, client):
        activity = await _activity(client)
        schedule = await _schedule(client, activity["id"])
        resp = await client.post("/api/v1/bookings", json=_booking(
            schedule["id"], people=4, adultCount=2, childCount=1, seniorCount=0,
        ))
        assert resp.status_code == 422
        body = resp.json()
        assert body["code"] == "COUNT_MISMATCH"
        assert body["details"] == {"sum": 3, "required": 4}

    @pytest.mark.asyncio
    async def test_transport_needs_passengers(self, client):
        activity = await _activity(client)
        schedule = await _schedule(client, activity["id"])
        resp = await client.post("/api/v1/bookings", json=_booking(schedule["id"], transport=True))
        assert resp.status_code == 400
        assert resp.json()["details"]["field"] == "passenger_count"

    @pytest.mark.asyncio
    async def test_bad_email_is_request_validation_error(self, client):
        activity = await _activity(client)
        schedule = await _schedule(client, activity["id"])
        resp = await client.post("/api/v1/bookings", json=_booking(schedule["id"], customerEmail="not-an-email"))
        assert resp.status_code == 422
        assert resp.json()["code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_partial_update_and_listing(self, client):
        activity = await _activity(client)
        schedule = await _schedule(client, activity["id"], capacity=10)
        created = (await client.post("/api/v1/bookings", json=_booking(schedule["id"], people=2))).json()

        resp = await client.put(f"/api/v1/bookings/{created['booking']['id']}", json={
            "numberOfPeople": 5, "adultCount": 3, "childCount": 2,
        })
        assert resp.status_code == 200, resp.text
        assert resp.json()["availability"]["bookedCount"] == 5

        resp = await client.get("/api/v1/bookings", params={"activityScheduleId": schedule["id"]})
        body = resp.json()
        assert body["total"] == 1
        assert body["items"][0]["numberOfPeople"] == 5

    @pytest.mark.asyncio
    async def test_naive_datetime_rejected(self, client):
        activity = await _activity(client)
        resp = await client.post(f"/api/v1/activities/{activity['id']}/schedules", json={
            "scheduledStart": "2024-01-01T08:00:00",
            "scheduledEnd": "2024-01-01T10:00:00",
        })
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_quote(self, client):
        activity = await _activity(client)
        schedule = await _schedule(client, activity["id"])
        resp = await client.post("/api/v1/bookings/quote", json={
            "activityScheduleId": schedule["id"], "adultCount": 1, "childCount": 2,
        })
        assert resp.status_code == 200
        body = resp.json()
        assert float(body["totalAmount"]) == 40.0
        assert body["currency"] == "USD"


class TestAssignmentsApi:

    @pytest.mark.asyncio
    async def test_single_leader_enforced(self, client):
        activity = await _activity(client)
        schedule = await _schedule(client, activity["id"])
        a = (await client.post("/api/v1/guides", json={"name": "A", "canLead": True})).json()
        b = (await client.post("/api/v1/guides", json={"name": "B", "canLead": True})).json()

        resp = await client.put(f"/api/v1/schedules/{schedule['id']}/assignments", json={"assignments": [
            {"guideId": a["id"], "isLeader": True},
            {"guideId": b["id"], "isLeader": True},
        ]})
        assert resp.status_code == 409
        assert resp.json()["code"] == "CONFLICT"

        resp = await client.put(f"/api/v1/schedules/{schedule['id']}/assignments", json={"assignments": [
            {"guideId": a["id"], "isLeader": True},
            {"guideId": b["id"]},
        ]})
        assert resp.status_code == 200
        leaders = [x for x in resp.json() if x["isLeader"]]
        assert len(leaders) == 1
        assert leaders[0]["guide"]["name"] == "A"


class TestConfigApi:

    @pytest.mark.asyncio
    async def test_put_and_by_keys(self, client):
        resp = await client.put("/api/v1/config/currency", json={"value": "EUR"})
        assert resp.status_code == 200
        resp = await client.get("/api/v1/config/by-keys", params={"keys": "currency,missing"})
        assert [s["key"] for s in resp.json()] == ["currency"]
