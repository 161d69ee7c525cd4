"""QR code endpoint tests: mint, claim, scan and stats over HTTP."""

import uuid

import pytest
from httpx import AsyncClient


async def _bootstrap(client: AsyncClient, slug: str) -> dict:
    resp = await client.post("/v1/tenants", json={
        "tenant_name": f"{slug} Labs",
        "tenant_slug": slug,
        "owner_email": f"director@{slug}.com",
        "owner_password": "testpass123",
    })
    assert resp.status_code == 201
    return {"Authorization": f"Bearer {resp.json()['api_token']}"}


async def _mint(client: AsyncClient, headers: dict, count: int) -> list[dict]:
    resp = await client.post(
        "/v1/qr-codes/generate-blank", json={"count": count}, headers=headers,
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_generate_blank(client: AsyncClient):
    headers = await _bootstrap(client, "qr-mint")
    codes = await _mint(client, headers, 5)

    assert len(codes) == 5
    assert all(c["is_blank"] is True for c in codes)
    assert all(c["bound_resource_id"] is None for c in codes)
    assert all(c["payload"].endswith(f"/qr/blank/{c['id']}") for c in codes)
    assert len({c["id"] for c in codes}) == 5


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, 21])
async def test_generate_blank_out_of_range(client: AsyncClient, count: int):
    headers = await _bootstrap(client, f"qr-range-{count}")
    resp = await client.post(
        "/v1/qr-codes/generate-blank", json={"count": count}, headers=headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_argument"

    resp = await client.get("/v1/qr-codes", headers=headers)
    assert resp.json() == []


@pytest.mark.asyncio
async def test_requires_auth(client: AsyncClient):
    resp = await client.post("/v1/qr-codes/generate-blank", json={"count": 1})
    assert resp.status_code in (401, 403)


@pytest.mark.asyncio
async def test_claim_flow(client: AsyncClient):
    headers = await _bootstrap(client, "qr-claim")
    codes = await _mint(client, headers, 3)
    qr_id = codes[1]["id"]

    resp = await client.post(
        f"/v1/qr-codes/{qr_id}/claim",
        json={"cage_number": "C-1", "room_number": "ZRC-C61", "location": "Rack 4"},
        headers=headers,
    )
    assert resp.status_code == 201
    body = resp.json()
    assert body["qr_id"] == qr_id
    resource_id = body["resource_id"]

    resp = await client.get(f"/v1/qr-codes/{qr_id}", headers=headers)
    assert resp.json()["is_blank"] is False
    assert resp.json()["bound_resource_id"] == resource_id

    resp = await client.get(f"/v1/cages/{resource_id}", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["cage_number"] == "C-1"
    assert resp.json()["room_number"] == "ZRC-C61"

    # Second claim reports the existing cage and creates nothing
    resp = await client.post(
        f"/v1/qr-codes/{qr_id}/claim", json={"cage_number": "C-9"}, headers=headers,
    )
    assert resp.status_code == 409
    conflict = resp.json()
    assert conflict["code"] == "already_claimed"
    assert conflict["bound_resource_id"] == resource_id
    assert conflict["orphaned_resource_id"] is None

    resp = await client.get("/v1/cages", headers=headers)
    assert [c["cage_number"] for c in resp.json()] == ["C-1"]

    for other in (codes[0]["id"], codes[2]["id"]):
        resp = await client.get(f"/v1/qr-codes/{other}", headers=headers)
        assert resp.json()["is_blank"] is True


@pytest.mark.asyncio
async def test_claim_unknown_code(client: AsyncClient):
    headers = await _bootstrap(client, "qr-unknown")
    resp = await client.post(
        f"/v1/qr-codes/{uuid.uuid4()}/claim", json={"cage_number": "C-1"}, headers=headers,
    )
    assert resp.status_code == 404
    assert resp.json()["code"] == "not_found"


@pytest.mark.asyncio
async def test_claim_rejects_blank_cage_number(client: AsyncClient):
    headers = await _bootstrap(client, "qr-blank-number")
    [code] = await _mint(client, headers, 1)

    resp = await client.post(
        f"/v1/qr-codes/{code['id']}/claim", json={"cage_number": "   "}, headers=headers,
    )
    assert resp.status_code == 422

    resp = await client.get(f"/v1/qr-codes/{code['id']}", headers=headers)
    assert resp.json()["is_blank"] is True


@pytest.mark.asyncio
async def test_claim_duplicate_cage_number(client: AsyncClient):
    headers = await _bootstrap(client, "qr-dup-cage")
    [code] = await _mint(client, headers, 1)
    await client.post("/v1/cages", json={"cage_number": "C-5"}, headers=headers)

    resp = await client.post(
        f"/v1/qr-codes/{code['id']}/claim", json={"cage_number": "C-5"}, headers=headers,
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == "validation_failed"


@pytest.mark.asyncio
async def test_codes_scoped_to_company(client: AsyncClient):
    headers_a = await _bootstrap(client, "qr-scope-a")
    headers_b = await _bootstrap(client, "qr-scope-b")
    [code] = await _mint(client, headers_a, 1)

    resp = await client.get(f"/v1/qr-codes/{code['id']}", headers=headers_b)
    assert resp.status_code == 404

    resp = await client.post(
        f"/v1/qr-codes/{code['id']}/claim", json={"cage_number": "X-1"}, headers=headers_b,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_scan_routes_blank_then_bound(client: AsyncClient):
    headers = await _bootstrap(client, "qr-scan")
    [code] = await _mint(client, headers, 1)

    resp = await client.post(
        "/v1/qr-codes/scan", json={"payload": code["payload"]}, headers=headers,
    )
    assert resp.status_code == 200
    assert resp.json()["action"] == "claim"
    assert resp.json()["route"] == f"/qr/blank/{code['id']}"

    resp = await client.post(
        f"/v1/qr-codes/{code['id']}/claim", json={"cage_number": "S-1"}, headers=headers,
    )
    cage_id = resp.json()["resource_id"]

    resp = await client.post(
        "/v1/qr-codes/scan", json={"payload": code["payload"]}, headers=headers,
    )
    assert resp.json()["action"] == "view"
    assert resp.json()["route"] == f"/qr/cage/{cage_id}"
    assert resp.json()["resource_id"] == cage_id


@pytest.mark.asyncio
async def test_scan_cage_label_and_bare_id(client: AsyncClient):
    headers = await _bootstrap(client, "qr-scan-cage")
    resp = await client.post("/v1/cages", json={"cage_number": "L-1"}, headers=headers)
    cage_id = resp.json()["id"]

    resp = await client.post("/v1/qr-codes", json={"cage_id": cage_id}, headers=headers)
    assert resp.status_code == 201
    label = resp.json()
    assert label["is_blank"] is False
    assert label["payload"].endswith(f"/qr/cage/{cage_id}")

    resp = await client.post(
        "/v1/qr-codes/scan", json={"payload": label["payload"]}, headers=headers,
    )
    assert resp.json() == {
        "action": "view",
        "route": f"/qr/cage/{cage_id}",
        "qr_id": None,
        "resource_id": cage_id,
    }

    [blank] = await _mint(client, headers, 1)
    resp = await client.post("/v1/qr-codes/scan", json={"payload": blank["id"]}, headers=headers)
    assert resp.json()["action"] == "claim"


@pytest.mark.asyncio
async def test_scan_unknown_payload(client: AsyncClient):
    headers = await _bootstrap(client, "qr-scan-unknown")
    resp = await client.post(
        "/v1/qr-codes/scan", json={"payload": "not a label"}, headers=headers,
    )
    assert resp.status_code == 404

    resp = await client.post(
        "/v1/qr-codes/scan",
        json={"payload": f"http://localhost:5173/qr/blank/{uuid.uuid4()}"},
        headers=headers,
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_stats_invalidated_by_mint_and_claim(client: AsyncClient):
    headers = await _bootstrap(client, "qr-stats")

    resp = await client.get("/v1/qr-codes/stats", headers=headers)
    assert resp.json() == {"total": 0, "blank": 0, "claimed": 0}

    codes = await _mint(client, headers, 2)
    resp = await client.get("/v1/qr-codes/stats", headers=headers)
    assert resp.json() == {"total": 2, "blank": 2, "claimed": 0}

    await client.post(
        f"/v1/qr-codes/{codes[0]['id']}/claim", json={"cage_number": "ST-1"}, headers=headers,
    )
    resp = await client.get("/v1/qr-codes/stats", headers=headers)
    assert resp.json() == {"total": 2, "blank": 1, "claimed": 1}


@pytest.mark.asyncio
async def test_list_filter_blank(client: AsyncClient):
    headers = await _bootstrap(client, "qr-list")
    codes = await _mint(client, headers, 3)
    await client.post(
        f"/v1/qr-codes/{codes[0]['id']}/claim", json={"cage_number": "F-1"}, headers=headers,
    )

    resp = await client.get("/v1/qr-codes", params={"blank": "true"}, headers=headers)
    assert len(resp.json()) == 2
    resp = await client.get("/v1/qr-codes", params={"blank": "false"}, headers=headers)
    assert [c["id"] for c in resp.json()] == [codes[0]["id"]]
