import pytest
import httpx

from gaugewatch.core.timezones import TIMEZONE_REGISTRY


@pytest.mark.asyncio
async def test_root(async_client: httpx.AsyncClient):
    response = await async_client.get("/")
    assert response.status_code == 200
    assert response.json() == {"message": "GaugeWatch API is running"}


# --- /timezones ---

@pytest.mark.asyncio
async def test_list_timezones(async_client: httpx.AsyncClient):
    response = await async_client.get("/timezones")
    assert response.status_code == 200
    data = response.json()
    assert {entry["abbreviation"] for entry in data} == set(TIMEZONE_REGISTRY)
    aedt = next(entry for entry in data if entry["abbreviation"] == "AEDT")
    assert aedt["resolvedOffset"] == "+11:00"
    assert aedt["standardOffset"] == "+10:00"
    assert aedt["dstObserved"] is True


@pytest.mark.asyncio
async def test_list_timezones_never_policy(async_client: httpx.AsyncClient):
    response = await async_client.get("/timezones", params={"dstPolicy": "never"})
    assert response.status_code == 200
    aedt = next(entry for entry in response.json() if entry["abbreviation"] == "AEDT")
    assert aedt["resolvedOffset"] == "+10:00"


@pytest.mark.asyncio
async def test_list_timezones_rejects_unknown_policy(async_client: httpx.AsyncClient):
    response = await async_client.get("/timezones", params={"dstPolicy": "sometimes"})
    assert response.status_code == 422


# --- /bulletins/parse ---

@pytest.mark.asyncio
async def test_parse_bulletin(async_client: httpx.AsyncClient, sample_bulletin_html):
    response = await async_client.post(
        "/bulletins/parse",
        content=sample_bulletin_html.encode("utf-8"),
        headers={"Content-Type": "text/html"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["issuedAt"] == "2026-01-20T15:24:00+09:30"
    assert [record["id"] for record in data["records"]] == ["515008", "515010", "513020"]
    assert data["records"][0]["stationName"] == "Todd River at Bond Springs"
    assert data["records"][0]["timestamp"] == "2026-01-20T15:10:00+09:30"
    assert data["records"][1]["heightM"] is None
    assert len(data["warnings"]) == 3


@pytest.mark.asyncio
async def test_parse_bulletin_missing_issued_at(async_client: httpx.AsyncClient):
    response = await async_client.post("/bulletins/parse", content=b"<html><body><p>Nothing</p></body></html>")
    assert response.status_code == 422
    assert response.json() == {"detail": "Could not find 'Issued at' element", "errorType": "FormatError"}


@pytest.mark.asyncio
async def test_parse_bulletin_empty_body(async_client: httpx.AsyncClient):
    response = await async_client.post("/bulletins/parse", content=b"")
    assert response.status_code == 422
    assert response.json()["errorType"] == "FormatError"


@pytest.mark.asyncio
async def test_parse_bulletin_unknown_timezone(async_client: httpx.AsyncClient, bulletin_factory):
    html = bulletin_factory([], issued_at="<p>Issued at 03:24 PM XYZT Tuesday 20 January 2026</p>")
    response = await async_client.post("/bulletins/parse", content=html.encode("utf-8"))
    assert response.status_code == 422
    assert response.json()["errorType"] == "UnknownTimezoneError"


@pytest.mark.asyncio
async def test_parse_bulletin_dst_policy_query(async_client: httpx.AsyncClient, bulletin_factory, row_factory):
    html = bulletin_factory(
        [row_factory("Murray River at Albury", "09.30AM Mon")],
        issued_at="<p>Issued at 10:00 AM AEDT Monday 5 January 2026</p>",
    )
    response = await async_client.post("/bulletins/parse", params={"dstPolicy": "never"}, content=html.encode("utf-8"))
    assert response.status_code == 200
    assert response.json()["records"][0]["timestamp"] == "2026-01-05T09:30:00+10:00"


# --- /bulletins/batch ---

@pytest.mark.asyncio
async def test_parse_bulletin_batch(async_client: httpx.AsyncClient, sample_bulletin_html):
    payload = {"documents": {"nt.html": sample_bulletin_html, "broken.html": "<p>Nope</p>"}}
    response = await async_client.post("/bulletins/batch", json=payload)
    assert response.status_code == 200
    data = response.json()
    assert data["recordCount"] == 3
    assert data["failedCount"] == 1
    assert [doc["name"] for doc in data["documents"]] == ["nt.html", "broken.html"]
    assert data["documents"][0]["status"] == "Success"
    assert data["documents"][1]["status"] == "ParseFailed"
    assert data["documents"][1]["errorType"] == "FormatError"


@pytest.mark.asyncio
async def test_parse_bulletin_batch_requires_documents(async_client: httpx.AsyncClient):
    response = await async_client.post("/bulletins/batch", json={})
    assert response.status_code == 422


# --- /bulletins/local ---

@pytest.mark.asyncio
async def test_local_bulletins(async_client: httpx.AsyncClient, mocker, tmp_path, sample_bulletin_html):
    (tmp_path / "IDD60022.html").write_text(sample_bulletin_html, encoding="utf-8")
    mocker.patch("gaugewatch.main.BULLETIN_DIR", str(tmp_path))

    response = await async_client.get("/bulletins/local")

    assert response.status_code == 200
    data = response.json()
    assert data["recordCount"] == 3
    assert data["failedCount"] == 0
    assert data["documents"][0]["name"] == "IDD60022.html"


@pytest.mark.asyncio
async def test_local_bulletins_not_configured(async_client: httpx.AsyncClient, mocker):
    mocker.patch("gaugewatch.main.BULLETIN_DIR", None)
    response = await async_client.get("/bulletins/local")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_local_bulletins_missing_directory(async_client: httpx.AsyncClient, mocker, tmp_path):
    mocker.patch("gaugewatch.main.BULLETIN_DIR", str(tmp_path / "missing"))
    response = await async_client.get("/bulletins/local")
    assert response.status_code == 404
    assert "Bulletin directory not found" in response.json()["detail"]


# --- /observations/resolve-times ---

@pytest.mark.asyncio
async def test_resolve_observation_times(async_client: httpx.AsyncClient):
    payload = {
        "values": {
            "maximumTempLocalTime": "2:41 pm",
            "minimumTempLocalTime": "5:58 am",
            "endTime": "2025-12-18T17:30:00+11:00",
        }
    }
    response = await async_client.post("/observations/resolve-times", json=payload)
    assert response.status_code == 200
    values = response.json()["values"]
    assert values["maximumTempLocalTimeUTC"] == "2025-12-18T14:41:00+11:00"
    assert values["minimumTempLocalTimeUTC"] == "2025-12-18T05:58:00+11:00"
    assert values["endTime"] == "2025-12-18T17:30:00+11:00"


@pytest.mark.asyncio
async def test_resolve_observation_times_invalid_reference(async_client: httpx.AsyncClient):
    payload = {"values": {"maximumTempLocalTime": "2:41 pm", "endTime": "yesterday"}}
    response = await async_client.post("/observations/resolve-times", json=payload)
    assert response.status_code == 422
    assert response.json()["errorType"] == "InvalidReferenceError"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "values,error_type",
    [
        ({"maximumTempLocalTime": 1422, "endTime": "2025-12-18T17:30:00Z"}, "InvalidLocalTimeError"),
        ({"maximumTempLocalTime": "2:41 pm", "endTime": 1734500000}, "InvalidReferenceError"),
    ],
)
async def test_resolve_observation_times_numeric_fields(async_client: httpx.AsyncClient, values, error_type):
    response = await async_client.post("/observations/resolve-times", json={"values": values})
    assert response.status_code == 422
    assert response.json()["errorType"] == error_type
