"""
Tests for itinerary generation, activity status updates and re-optimization.
"""
from datetime import date

import pytest

from app.api.dependencies import get_generator
from app.main import app
from app.schemas.itinerary import Pace
from app.services.itinerary_generator import (
    GenerationFailure,
    GenerationRequest,
    ItineraryGenerator,
    MockItineraryGenerator,
    ReoptimizationRequest,
    day_count,
)


class FailingGenerator(ItineraryGenerator):
    async def generate(self, request):
        raise GenerationFailure("upstream down")

    async def suggest_alternatives(self, request):
        raise GenerationFailure("upstream down")


class ShortGenerator(MockItineraryGenerator):
    """Returns one day fewer than asked for."""

    async def generate(self, request):
        days = await super().generate(request)
        return days[:-1]


@pytest.fixture
def use_generator():
    def _use(generator):
        app.dependency_overrides[get_generator] = lambda: generator
    return _use


@pytest.fixture
def short_trip(create_trip, trip_payload):
    trip_payload.update(startDate="2024-06-01", endDate="2024-06-03")
    trip_payload["destinations"] = [
        {"location": "Lisbon", "startDate": "2024-06-01", "endDate": "2024-06-03"},
    ]
    return create_trip(trip_payload)


def test_day_count_is_inclusive():
    assert day_count(date(2024, 6, 1), date(2024, 6, 3)) == 3
    assert day_count(date(2024, 6, 1), date(2024, 6, 1)) == 1


class TestMockGenerator:
    @pytest.mark.asyncio
    async def test_three_day_trip(self):
        days = await MockItineraryGenerator().generate(
            GenerationRequest(["Lisbon"], date(2024, 6, 1), date(2024, 6, 3))
        )
        assert [d.day_index for d in days] == [1, 2, 3]
        assert [d.date for d in days] == [date(2024, 6, 1), date(2024, 6, 2), date(2024, 6, 3)]
        assert days[0].theme == "Arrival & City Exploration"
        assert all(len(d.activities) == 4 for d in days)

    @pytest.mark.asyncio
    async def test_template_repeats_for_longer_trips(self):
        days = await MockItineraryGenerator().generate(
            GenerationRequest(["Lisbon"], date(2024, 6, 1), date(2024, 6, 5), pace=Pace.FAST)
        )
        assert len(days) == 5
        assert days[3].theme == "Arrival & City Exploration (Day 4)"
        assert [a.title for a in days[4].activities] == [a.title for a in days[1].activities]

    @pytest.mark.asyncio
    async def test_one_day_trip(self):
        days = await MockItineraryGenerator().generate(
            GenerationRequest(["Lisbon"], date(2024, 6, 1), date(2024, 6, 1))
        )
        assert len(days) == 1

    @pytest.mark.asyncio
    async def test_two_suggestions(self):
        suggestions = await MockItineraryGenerator().suggest_alternatives(
            ReoptimizationRequest(["Porto"], failed_activity="Nature hike", time_available=90)
        )
        assert len(suggestions) == 2
        assert suggestions[0].title == "Alternative to Nature hike"
        assert suggestions[0].duration == 90


def test_generate_itinerary(client, auth_headers, short_trip):
    """A trip from 06-01 to 06-03 gets exactly three days."""
    response = client.post(
        f"/api/trips/{short_trip['id']}/generate",
        json={"interests": ["food", "history"], "pace": "relaxed"},
        headers=auth_headers,
    )

    assert response.status_code == 200
    itinerary = response.json()["itinerary"]
    assert [d["dayIndex"] for d in itinerary["days"]] == [1, 2, 3]
    assert [d["date"] for d in itinerary["days"]] == ["2024-06-01", "2024-06-02", "2024-06-03"]
    assert itinerary["needsReoptimization"] is False
    first = itinerary["days"][0]["activities"][0]
    assert first["id"] is not None
    assert first["status"] == "planned"


def test_interests_accept_comma_separated_string(client, auth_headers, short_trip):
    response = client.post(
        f"/api/trips/{short_trip['id']}/generate",
        json={"interests": "food, art"},
        headers=auth_headers,
    )
    assert response.status_code == 200


def test_regeneration_replaces_itinerary(client, auth_headers, short_trip):
    url = f"/api/trips/{short_trip['id']}/generate"
    client.post(url, json={}, headers=auth_headers)
    second = client.post(url, json={}, headers=auth_headers).json()["itinerary"]

    stored = client.get(f"/api/trips/{short_trip['id']}/itinerary", headers=auth_headers).json()["itinerary"]
    assert len(stored["days"]) == 3
    stored_ids = {a["id"] for d in stored["days"] for a in d["activities"]}
    assert stored_ids == {a["id"] for d in second["days"] for a in d["activities"]}
    assert len(stored_ids) == 12


def test_generation_failure_keeps_previous_itinerary(client, auth_headers, short_trip, use_generator):
    url = f"/api/trips/{short_trip['id']}/generate"
    before = client.post(url, json={}, headers=auth_headers).json()["itinerary"]

    use_generator(FailingGenerator())
    response = client.post(url, json={}, headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate itinerary"}
    after = client.get(f"/api/trips/{short_trip['id']}/itinerary", headers=auth_headers).json()["itinerary"]
    assert after == before


def test_partial_itinerary_is_rejected(client, auth_headers, short_trip, use_generator):
    use_generator(ShortGenerator())
    response = client.post(f"/api/trips/{short_trip['id']}/generate", json={}, headers=auth_headers)

    assert response.status_code == 500
    stored = client.get(f"/api/trips/{short_trip['id']}/itinerary", headers=auth_headers).json()
    assert stored["itinerary"]["days"] == []


def test_generate_unknown_trip(client, auth_headers):
    response = client.post("/api/trips/404/generate", json={}, headers=auth_headers)
    assert response.status_code == 404


def test_invalid_pace(client, auth_headers, short_trip):
    response = client.post(
        f"/api/trips/{short_trip['id']}/generate", json={"pace": "sprint"}, headers=auth_headers
    )
    assert response.status_code == 400


def test_status_cycle_drives_reoptimization_flag(client, auth_headers, short_trip):
    itinerary = client.post(
        f"/api/trips/{short_trip['id']}/generate", json={}, headers=auth_headers
    ).json()["itinerary"]
    activity_id = itinerary["days"][0]["activities"][0]["id"]
    url = f"/api/trips/{short_trip['id']}/activities/{activity_id}/status"

    observed = []
    for _ in range(3):
        body = client.patch(url, json={"advance": True}, headers=auth_headers).json()
        observed.append((body["activity"]["status"], body["needsReoptimization"]))

    assert observed == [("completed", False), ("skipped", True), ("planned", False)]


def test_explicit_status_update(client, auth_headers, short_trip):
    itinerary = client.post(
        f"/api/trips/{short_trip['id']}/generate", json={}, headers=auth_headers
    ).json()["itinerary"]
    activity_id = itinerary["days"][1]["activities"][2]["id"]

    response = client.patch(
        f"/api/trips/{short_trip['id']}/activities/{activity_id}/status",
        json={"status": "skipped"},
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["needsReoptimization"] is True

    stored = client.get(f"/api/trips/{short_trip['id']}/itinerary", headers=auth_headers).json()
    assert stored["itinerary"]["needsReoptimization"] is True


def test_status_update_needs_exactly_one_instruction(client, auth_headers, short_trip):
    itinerary = client.post(
        f"/api/trips/{short_trip['id']}/generate", json={}, headers=auth_headers
    ).json()["itinerary"]
    activity_id = itinerary["days"][0]["activities"][0]["id"]
    url = f"/api/trips/{short_trip['id']}/activities/{activity_id}/status"

    assert client.patch(url, json={}, headers=auth_headers).status_code == 400
    assert client.patch(url, json={"status": "skipped", "advance": True}, headers=auth_headers).status_code == 400


def test_status_update_unknown_activity(client, auth_headers, short_trip):
    response = client.patch(
        f"/api/trips/{short_trip['id']}/activities/999/status",
        json={"status": "completed"},
        headers=auth_headers,
    )
    assert response.status_code == 404


def test_reoptimize(client, auth_headers, short_trip):
    response = client.post(
        f"/api/trips/{short_trip['id']}/reoptimize",
        json={"failedActivity": "Museum visit", "timeAvailable": 120, "constraints": ["indoor"]},
        headers=auth_headers,
    )

    assert response.status_code == 200
    suggestions = response.json()["suggestions"]
    assert len(suggestions) == 2
    assert suggestions[0]["title"] == "Alternative to Museum visit"
    assert {"id", "title", "description", "estimatedCost", "duration", "reason"} <= set(suggestions[0])


def test_reoptimize_by_activity_id(client, auth_headers, short_trip):
    itinerary = client.post(
        f"/api/trips/{short_trip['id']}/generate", json={}, headers=auth_headers
    ).json()["itinerary"]
    activity = itinerary["days"][1]["activities"][1]

    suggestions = client.post(
        f"/api/trips/{short_trip['id']}/reoptimize",
        json={"failedActivityId": activity["id"]},
        headers=auth_headers,
    ).json()["suggestions"]
    assert suggestions[0]["title"] == f"Alternative to {activity['title']}"


def test_reoptimize_upstream_failure(client, auth_headers, short_trip, use_generator):
    use_generator(FailingGenerator())
    response = client.post(
        f"/api/trips/{short_trip['id']}/reoptimize", json={"failedActivity": "Hike"}, headers=auth_headers
    )
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to reoptimize itinerary"}
