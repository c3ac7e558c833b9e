from __future__ import annotations

import asyncio


async def test_start_simulation_feeds_store(service_client, repository):
    resp = await service_client.post("/api/sim/start/S1")
    assert resp.status == 200
    body = await resp.json()
    assert body["ok"] is True
    assert body["stationId"] == "S1"

    for _ in range(200):
        if repository.insert_calls == body["iterations"]:
            break
        await asyncio.sleep(0.01)
    assert repository.insert_calls == body["iterations"]
    assert {row.station_id for row in repository.rows} == {"S1"}
    assert "status" not in {row.key for row in repository.rows}

    resp = await service_client.get("/api/telemetry/S1")
    assert (await resp.json())["points"]
