from __future__ import annotations

import asyncio

import httpx
from fastapi.testclient import TestClient
from pymongo.errors import DocumentTooLarge

from stash.src.main import create_app


def test_save_then_read_hello(connector):
    client = TestClient(create_app(connector))

    r = client.post("/save", content=b"hello")
    assert r.status_code == 200
    assert r.content == b""

    r = client.get("/read")
    assert r.status_code == 200
    assert r.content == b"hello\n"
    assert r.headers["content-type"] == "application/octet-stream"


def test_save_empty_body_then_read_returns_only_newline(connector):
    client = TestClient(create_app(connector))

    assert client.post("/save").status_code == 200

    r = client.get("/read")
    assert r.status_code == 200
    assert r.content == b"\n"


def test_binary_body_is_stored_verbatim_regardless_of_content_type(connector, payloads):
    client = TestClient(create_app(connector))
    blob = b"\x00\xff\n\r{not json"

    r = client.post("/save", content=blob, headers={"content-type": "application/json"})
    assert r.status_code == 200
    assert payloads.docs[0]["data"] == blob

    assert client.get("/read").content == blob + b"\n"


def test_read_with_nothing_saved_fails(connector):
    client = TestClient(create_app(connector))

    r = client.get("/read")
    assert r.status_code == 500
    assert r.json()["detail"].startswith("RecordNotFoundError")


def test_reads_after_several_saves_return_a_saved_payload(connector):
    client = TestClient(create_app(connector))
    saved = {b"one", b"two", b"three"}
    for body in saved:
        client.post("/save", content=body)

    for _ in range(5):
        r = client.get("/read")
        assert r.status_code == 200
        assert r.content.endswith(b"\n")
        assert r.content[:-1] in saved


def test_store_write_failure_maps_to_500_and_app_keeps_serving(connector, broken_store, fake_client):
    client = TestClient(create_app(connector))

    r = client.post("/save", content=b"lost")
    assert r.status_code == 500
    assert r.json()["detail"].startswith("StoreWriteError")
    assert all(s.ended for s in fake_client.sessions)

    broken_store.fail_with = None
    assert client.post("/save", content=b"kept").status_code == 200
    assert client.get("/read").content == b"kept\n"


def test_store_read_failure_maps_to_500(connector, broken_store):
    client = TestClient(create_app(connector))

    r = client.get("/read")
    assert r.status_code == 500
    assert r.json()["detail"].startswith("StoreReadError")


def test_only_save_and_read_are_routed(connector):
    client = TestClient(create_app(connector))

    assert client.get("/save").status_code == 405
    assert client.post("/read").status_code == 405
    assert client.get("/other").status_code == 404


def test_concurrent_saves_then_reads_stay_within_saved_set(connector, payloads, fake_client):
    bodies = [f"payload-{i}-".encode() * (i + 1) for i in range(20)]
    app = create_app(connector)

    async def _run():
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://stash") as client:
            saves = await asyncio.gather(*(client.post("/save", content=b) for b in bodies))
            reads = await asyncio.gather(*(client.get("/read") for _ in bodies))
        return saves, reads

    saves, reads = asyncio.run(_run())

    assert all(r.status_code == 200 for r in saves)
    assert sorted(doc["data"] for doc in payloads.docs) == sorted(bodies)
    for r in reads:
        assert r.status_code == 200
        assert r.content[:-1] in bodies

    # one session per request, each released
    assert len(fake_client.sessions) == 2 * len(bodies)
    assert len({id(s) for s in fake_client.sessions}) == len(fake_client.sessions)
    assert all(s.ended for s in fake_client.sessions)


def test_oversized_payload_maps_to_json_500(connector, payloads):
    payloads.fail_with = DocumentTooLarge("BSON document too large")
    client = TestClient(create_app(connector))

    r = client.post("/save", content=b"big")
    assert r.status_code == 500
    assert r.json()["detail"].startswith("StoreWriteError")
