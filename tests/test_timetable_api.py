from uuid import uuid4

from httpx import AsyncClient

from conftest import auth_headers, slot

BASE = "/api/v1/timetables"
YEAR = "2025-2026"


async def save(client: AsyncClient, headers, class_id, periods, method: str = "put", **extra):
    body = {"periods": periods, "academic_year": YEAR, **extra}
    return await client.request(method.upper(), f"{BASE}/{class_id}", json=body, headers=headers)


async def test_requires_token(client: AsyncClient, school) -> None:
    response = await client.get(f"{BASE}/{school.classes['A'].id}")
    assert response.status_code == 401


async def test_rejects_bad_token(client: AsyncClient, school) -> None:
    response = await client.get(f"{BASE}/{school.classes['A'].id}", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401


async def test_non_scheduler_role_is_forbidden(client: AsyncClient, school) -> None:
    headers = auth_headers(school.tenant.id, role="TEACHER")
    response = await client.get(f"{BASE}/{school.classes['A'].id}", headers=headers)
    assert response.status_code == 403


async def test_caller_without_tenant_is_forbidden(client: AsyncClient, school) -> None:
    response = await client.get(
        f"{BASE}/{school.classes['A'].id}", params={"academic_year": YEAR}, headers=auth_headers(None)
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "You must be part of an institution to access timetables"


async def test_load_empty_timetable(client: AsyncClient, school, scheduler_headers) -> None:
    response = await client.get(
        f"{BASE}/{school.classes['A'].id}", params={"academic_year": YEAR}, headers=scheduler_headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["is_empty"] is True
    assert data["periods"] == {}
    assert data["week_structure"] == "Mon-Fri"


async def test_unknown_class_is_404(client: AsyncClient, school, scheduler_headers) -> None:
    response = await client.get(f"{BASE}/{uuid4()}", params={"academic_year": YEAR}, headers=scheduler_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "Class not found"


async def test_cross_class_double_booking(client: AsyncClient, school, scheduler_headers) -> None:
    a, b = school.classes["A"], school.classes["B"]
    t1, math, phy = school.teachers["T1"], school.subjects["MATH"], school.subjects["PHY"]

    response = await save(client, scheduler_headers, a.id, {"Monday": [slot(t1, math, 3)]})
    assert response.status_code == 200

    # Editing class B: T1 is shown as unavailable before anything is written
    response = await client.get(
        f"{BASE}/availability",
        params={
            "teacher_id": str(t1.id),
            "day": "Monday",
            "period": 3,
            "excluding_class_id": str(b.id),
            "academic_year": YEAR,
        },
        headers=scheduler_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["available"] is False
    assert data["conflict"]["class_id"] == str(a.id)
    assert data["conflict"]["class_name"] == "Grade 10-A"

    # The save still goes through; the conflict is reported, not enforced
    response = await save(client, scheduler_headers, b.id, {"Monday": [slot(t1, phy, 3)]}, method="post")
    assert response.status_code == 200

    response = await client.get(
        f"{BASE}/{b.id}/conflicts", params={"academic_year": YEAR}, headers=scheduler_headers
    )
    assert response.status_code == 200
    report = response.json()
    assert len(report["conflicts"]) == 1
    conflict = report["conflicts"][0]
    assert conflict["type"] == "teacher_double_booking"
    assert (conflict["day"], conflict["period"]) == ("Monday", 3)
    assert conflict["conflicting_class_id"] == str(a.id)
    assert "Grade 10-A" in conflict["message"]


async def test_daily_maximum_warning(client: AsyncClient, school, scheduler_headers) -> None:
    c = school.classes["C"]
    t2, math = school.teachers["T2"], school.subjects["MATH"]
    response = await save(client, scheduler_headers, c.id, {"Tuesday": [slot(t2, math, p) for p in range(1, 6)]})
    assert response.status_code == 200

    response = await client.get(f"{BASE}/{c.id}/conflicts", params={"academic_year": YEAR}, headers=scheduler_headers)
    report = response.json()
    assert report["conflicts"] == []
    assert len(report["warnings"]) == 1
    warning = report["warnings"][0]
    assert warning["type"] == "teacher_max_periods"
    assert (warning["day"], warning["periods"], warning["max"]) == ("Tuesday", 5, 4)
    assert warning["message"] == "Dev Mehta exceeds maximum periods per day on Tuesday (5/4)"


async def test_publish_flow(client: AsyncClient, school, scheduler_headers) -> None:
    a = school.classes["A"]
    t1, t3, math = school.teachers["T1"], school.teachers["T3"], school.subjects["MATH"]

    response = await client.post(f"{BASE}/{a.id}/publish", params={"academic_year": YEAR}, headers=scheduler_headers)
    assert response.status_code == 404
    assert response.json()["detail"] == "No draft timetable found to publish"

    await save(client, scheduler_headers, a.id, {"Monday": [slot(t1, math, 1)]})
    response = await client.post(f"{BASE}/{a.id}/publish", params={"academic_year": YEAR}, headers=scheduler_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["message"] == "Timetable published successfully"
    assert body["timetable"]["is_published"] is True
    published_id = body["timetable"]["id"]

    await save(client, scheduler_headers, a.id, {"Monday": [slot(t3, math, 1)]})
    response = await client.get(f"{BASE}/{a.id}", params={"academic_year": YEAR}, headers=scheduler_headers)
    assert response.json()["is_published"] is False

    response = await client.get(f"{BASE}/{a.id}/published", params={"academic_year": YEAR}, headers=scheduler_headers)
    assert response.status_code == 200
    assert response.json()["id"] == published_id
    assert response.json()["periods"]["Monday"][0]["teacher_id"] == str(t1.id)


async def test_published_endpoint_404_without_publish(client: AsyncClient, school, scheduler_headers) -> None:
    response = await client.get(
        f"{BASE}/{school.classes['A'].id}/published", params={"academic_year": YEAR}, headers=scheduler_headers
    )
    assert response.status_code == 404


async def test_invalid_payloads(client: AsyncClient, school, scheduler_headers) -> None:
    a = school.classes["A"]
    t1, t3, math = school.teachers["T1"], school.teachers["T3"], school.subjects["MATH"]

    response = await save(client, scheduler_headers, a.id, {"Monday": [slot(t1, math, 1), slot(t3, math, 1)]})
    assert response.status_code == 400

    response = await save(client, scheduler_headers, a.id, {"Sunday": [slot(t1, math, 1)]})
    assert response.status_code == 400

    response = await save(client, scheduler_headers, a.id, {"Monday": [slot(t1, math, 0)]})
    assert response.status_code == 400

    response = await save(client, scheduler_headers, a.id, {"Monday": "first period"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid periods structure: Monday must be a list"

    response = await save(client, scheduler_headers, a.id, {"Monday": ["first period"]})
    assert response.status_code == 400


async def test_stale_version_conflict(client: AsyncClient, school, scheduler_headers) -> None:
    a = school.classes["A"]
    t1, t3, math = school.teachers["T1"], school.teachers["T3"], school.subjects["MATH"]
    first = (await save(client, scheduler_headers, a.id, {"Monday": [slot(t1, math, 1)]})).json()
    await save(client, scheduler_headers, a.id, {"Monday": [slot(t3, math, 1)]}, version=first["version"])
    response = await save(client, scheduler_headers, a.id, {"Monday": [slot(t1, math, 2)]}, version=first["version"])
    assert response.status_code == 409


async def test_list_all_timetables(client: AsyncClient, school, scheduler_headers) -> None:
    a, b = school.classes["A"], school.classes["B"]
    t1, t3, math = school.teachers["T1"], school.teachers["T3"], school.subjects["MATH"]
    await save(client, scheduler_headers, a.id, {"Monday": [slot(t1, math, 1)]})
    await client.post(f"{BASE}/{a.id}/publish", params={"academic_year": YEAR}, headers=scheduler_headers)
    await save(client, scheduler_headers, a.id, {"Monday": [slot(t3, math, 1)]})
    await save(client, scheduler_headers, b.id, {"Tuesday": [slot(t1, math, 2)]})

    response = await client.get(BASE, params={"academic_year": YEAR}, headers=scheduler_headers)
    assert response.status_code == 200
    rows = response.json()
    assert sorted((r["class_name"], r["is_published"]) for r in rows) == [
        ("Grade 10-A", False),
        ("Grade 10-A", True),
        ("Grade 10-B", False),
    ]


async def test_teacher_schedule(client: AsyncClient, school, scheduler_headers) -> None:
    a = school.classes["A"]
    t1, math = school.teachers["T1"], school.subjects["MATH"]
    await save(client, scheduler_headers, a.id, {"Wednesday": [slot(t1, math, 4)]})

    response = await client.get(
        f"{BASE}/teachers/{t1.id}/schedule", params={"academic_year": YEAR}, headers=scheduler_headers
    )
    assert response.status_code == 200
    placements = response.json()["placements"]
    assert [(p["class_name"], p["day"], p["period"]) for p in placements] == [("Grade 10-A", "Wednesday", 4)]


async def test_availability_rejects_bad_day(client: AsyncClient, school, scheduler_headers) -> None:
    response = await client.get(
        f"{BASE}/availability",
        params={"teacher_id": str(school.teachers["T1"].id), "day": "Mon", "period": 1},
        headers=scheduler_headers,
    )
    assert response.status_code == 422
