import pytest

from bioclock.core.oracle import PHRASES


def _log(client, **fields):
    body = {"substance": "LSD", "doseTime": "2024-05-01T12:00:00", **fields}
    return client.post("/api/doses", json=body)


# --- Dose log ---

def test_create_then_list_round_trip(client):
    r = _log(client, quantity="1.5", unit="tabs", route="Sublingual")
    assert r.status_code == 200
    dose = r.json()
    assert dose == {
        "id": 1,
        "substance": "LSD",
        "route": "Sublingual",
        "quantity": "1.5",
        "unit": "tabs",
        "doseTime": "2024-05-01T12:00:00",
    }
    listed = client.get("/api/doses").json()
    assert listed == [dose]

    assert client.delete("/api/doses/1").status_code == 200
    assert client.get("/api/doses").json() == []


def test_create_defaults(client):
    dose = _log(client).json()
    assert dose["quantity"] == "1"
    assert dose["unit"] == "mg"
    assert dose["route"] == "Oral"


def test_numeric_quantity_kept_as_text(client):
    assert _log(client, quantity=2.5).json()["quantity"] == "2.5"


def test_missing_fields_rejected(client):
    r = client.post("/api/doses", json={"doseTime": "2024-05-01T12:00:00"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing required field: substance"

    r = client.post("/api/doses", json={"substance": "LSD"})
    assert r.status_code == 400
    assert r.json()["detail"] == "Missing required field: doseTime"

    r = _log(client, doseTime="yesterday-ish")
    assert r.status_code == 400
    assert client.get("/api/doses").json() == []


def test_list_newest_first(client):
    _log(client, doseTime="2024-05-01T10:00:00")
    _log(client, doseTime="2024-05-02T10:00:00")
    _log(client, doseTime="2024-04-30T10:00:00")
    assert [d["id"] for d in client.get("/api/doses").json()] == [2, 1, 3]


def test_list_orders_by_instant_across_offsets(client):
    # 10:00+02:00 is 08:00Z, an hour before 09:00Z
    _log(client, doseTime="2024-05-01T10:00:00+02:00")
    _log(client, doseTime="2024-05-01T09:00:00Z")
    listed = client.get("/api/doses").json()
    assert [d["id"] for d in listed] == [2, 1]
    assert [d["doseTime"] for d in listed] == [
        "2024-05-01T09:00:00+00:00",
        "2024-05-01T10:00:00+02:00",
    ]


def test_delete_is_idempotent(client):
    _log(client)
    assert client.delete("/api/doses/1").status_code == 200
    r = client.delete("/api/doses/1")
    assert r.status_code == 200
    assert r.json()["deleted"] == 1
    assert client.delete("/api/doses/999").status_code == 200


def test_delete_invalid_id(client):
    r = client.delete("/api/doses/abc")
    assert r.status_code == 400
    assert r.json()["detail"] == "Invalid ID"


def test_clear_keeps_ids_monotonic(client):
    _log(client)
    _log(client)
    r = client.delete("/api/doses")
    assert r.json()["deleted"] == 2
    assert client.get("/api/doses").json() == []
    assert _log(client).json()["id"] == 3


# --- Timeline ---

def test_timeline_phases(client):
    _log(client, doseTime="2024-05-01T12:00:00")
    _log(client, substance="DMT", route="Smoked", doseTime="2024-05-01T11:00:00")

    data = client.get("/api/timeline", params={"now": "2024-05-01T12:10:00"}).json()
    assert data["now"] == "2024-05-01T12:10:00"
    by_substance = {d["substance"]: d["phase"] for d in data["doses"]}
    assert by_substance["LSD"]["stage"] == "Come Up"
    assert by_substance["DMT"]["stage"] == "Afterglow/Sober"
    assert by_substance["DMT"]["percent_complete"] == 100

    active = client.get(
        "/api/timeline", params={"now": "2024-05-01T12:10:00", "active_only": True},
    ).json()["doses"]
    assert [d["substance"] for d in active] == ["LSD"]


def test_timeline_unknown_substance(client):
    _log(client, substance="Mystery Powder")
    data = client.get("/api/timeline", params={"now": "2024-05-01T14:00:00"}).json()
    phase = data["doses"][0]["phase"]
    assert phase["duration_minutes"] == 240
    assert phase["stage"] == "Peak/Plateau"


def test_timeline_invalid_now(client):
    assert client.get("/api/timeline", params={"now": "soon"}).status_code == 400


# --- Substances ---

def test_substance_list(client):
    keys = [s["key"] for s in client.get("/api/substances", params={"q": "dmt"}).json()]
    assert keys == ["5-meo-dmt", "dmt"]


def test_substance_info(client):
    info = client.get("/api/substances/lsd").json()
    assert info["name"] == "LSD"
    assert info["route"] == "Oral"
    assert info["onset_minutes"] == 22.5
    assert info["duration_minutes"] == 600

    dmt = client.get("/api/substances/DMT").json()
    assert dmt["route"] == "Smoked"
    assert dmt["onset_minutes"] == 2
    assert dmt["duration_minutes"] == 20

    snorted = client.get("/api/substances/lsd", params={"route": "Insufflated"}).json()
    assert snorted["onset_minutes"] == 10


def test_substance_not_found(client):
    assert client.get("/api/substances/unobtainium").status_code == 404


def test_substance_info_dose_table(client):
    info = client.get("/api/substances/alprazolam").json()
    assert info["categories"] == ["benzodiazepine", "depressant"]
    assert list(info["doses"]) == ["Oral"]
    assert "Common" in info["doses"]["Oral"]


def test_interactions(client):
    body = client.get("/api/substances/Alprazolam/interactions").json()
    assert body["key"] == "alprazolam"
    assert body["source"] == "benzodiazepines"
    first = body["interactions"][0]
    assert first["name"] == "Alcohol"
    assert first["status"] == "Dangerous"

    none = client.get("/api/substances/2c-b/interactions").json()
    assert none["source"] is None
    assert none["interactions"] == []


def test_interactions_not_found(client):
    assert client.get("/api/substances/unobtainium/interactions").status_code == 404


# --- Tolerance ---

def test_tolerance(client):
    r = client.get("/api/tolerance", params={"desired_dose": 100, "days_since": 14, "last_dose": 80})
    body = r.json()
    assert body["equivalent_dose"] == 100
    assert body["tolerance_pct"] == 100
    assert body["last_dose"] == 80

    body = client.get("/api/tolerance", params={"desired_dose": 100, "days_since": 1}).json()
    assert round(body["equivalent_dose"], 2) == 280.06


def test_tolerance_zero_days_rejected(client):
    r = client.get("/api/tolerance", params={"desired_dose": 100, "days_since": 0})
    assert r.status_code == 400


@pytest.mark.parametrize("params", [
    {"desired_dose": 100, "days_since": "nan"},
    {"desired_dose": 100, "days_since": "inf"},
    {"desired_dose": "inf", "days_since": 3},
    {"desired_dose": 100, "days_since": 3, "last_dose": "inf"},
])
def test_tolerance_non_finite_rejected(client, params):
    r = client.get("/api/tolerance", params=params)
    assert r.status_code == 400


def test_tolerance_curve_non_finite_rejected(client):
    r = client.get("/api/tolerance/curve", params={"desired_dose": "inf"})
    assert r.status_code == 400


def test_tolerance_curve(client):
    points = client.get("/api/tolerance/curve", params={"desired_dose": 50}).json()["points"]
    assert len(points) == 14
    assert points[-1]["equivalent_dose"] == 50


# --- Oracle / root ---

def test_oracle(client):
    phrase = client.get("/api/oracle").json()["phrase"]
    assert phrase in PHRASES
    for _ in range(20):
        assert client.get("/api/oracle", params={"exclude": phrase}).json()["phrase"] != phrase


def test_root(client):
    assert client.get("/").json()["status"] == "online"
