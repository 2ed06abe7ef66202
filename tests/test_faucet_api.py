import asyncio
import socket

import pytest
from aiohttp import web
from aiohttp import test_utils

from faucet.faucet_api import FaucetClient, FaucetResult

ADDRESS = "0x" + "ab" * 32


def _faucet_app(seen):
    async def ok(request):
        seen.append(request)
        return web.json_response({"status": "Success", "transactions": ["0xdead"]})

    async def rejected(request):
        return web.json_response({"message": "Address already funded"}, status=429)

    async def rejected_plain(request):
        return web.Response(text="boom", status=500)

    async def slow(request):
        await asyncio.sleep(1)
        return web.json_response({})

    async def text(request):
        return web.Response(text="queued")

    app = web.Application()
    app.router.add_get("/ok/{address}", ok)
    app.router.add_get("/rejected/{address}", rejected)
    app.router.add_get("/plain/{address}", rejected_plain)
    app.router.add_get("/slow/{address}", slow)
    app.router.add_get("/text/{address}", text)
    return app


@pytest.fixture
async def faucet_server():
    seen = []
    server = test_utils.TestServer(_faucet_app(seen))
    await server.start_server()
    server.seen = seen
    yield server
    await server.close()


def _client(server, path, timeout_sec=5.0):
    return FaucetClient(str(server.make_url(path)), timeout_sec=timeout_sec, user_agent="SupraFaucetBot/1.0")


async def test_success_returns_body_and_sends_user_agent(faucet_server):
    outcome = await _client(faucet_server, "/ok/").request_tokens(ADDRESS)
    assert outcome.success
    assert outcome.status == FaucetResult.OK
    assert outcome.payload["transactions"] == ["0xdead"]
    request = faucet_server.seen[0]
    assert request.match_info["address"] == ADDRESS
    assert request.headers["User-Agent"] == "SupraFaucetBot/1.0"


async def test_non_json_success_body_is_passed_through(faucet_server):
    outcome = await _client(faucet_server, "/text/").request_tokens(ADDRESS)
    assert outcome.success
    assert outcome.payload == "queued"


async def test_error_status_extracts_message(faucet_server):
    outcome = await _client(faucet_server, "/rejected/").request_tokens(ADDRESS)
    assert outcome.status == FaucetResult.UPSTREAM_REJECTED
    assert outcome.http_status == 429
    assert outcome.error_message == "API Error: 429 - Address already funded"


async def test_error_status_without_message(faucet_server):
    outcome = await _client(faucet_server, "/plain/").request_tokens(ADDRESS)
    assert outcome.status == FaucetResult.UPSTREAM_REJECTED
    assert outcome.error_message == "API Error: 500 - Unknown error"


async def test_timeout(faucet_server):
    outcome = await _client(faucet_server, "/slow/", timeout_sec=0.2).request_tokens(ADDRESS)
    assert outcome.status == FaucetResult.TIMEOUT
    assert "timeout" in outcome.error_message.lower()


async def test_unreachable():
    sock = socket.socket()
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    client = FaucetClient(f"http://127.0.0.1:{port}/faucet/", timeout_sec=2.0)
    outcome = await client.request_tokens(ADDRESS)
    assert outcome.status == FaucetResult.NETWORK_UNREACHABLE
    assert outcome.error_message == "Network error - unable to reach faucet service"
