"""Pytest fixtures for onedpy tests."""
import asyncio
import json
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from onedpy.core.api.graph_client import ChunkResponse
from onedpy.core.api.models import DriveItem
from onedpy.core.auth import Credentials, TokenGrant
from onedpy.core.crypto import QuickXorHash
from onedpy.core.exceptions import ChunkUploadError

MIB = 1024 * 1024


class FakeCredentials:
    """Credential provider that counts checks."""

    def __init__(self):
        self.checks = 0
        self.error: Optional[Exception] = None

    async def ensure_valid(self) -> None:
        self.checks += 1
        if self.error:
            raise self.error

    async def access_token(self) -> str:
        await self.ensure_valid()
        return "token"


class FakeRefresher:
    """TokenRefresher returning canned grants."""

    def __init__(self, expires_in: int = 3600, delay: float = 0):
        self.calls = 0
        self.expires_in = expires_in
        self.delay = delay

    async def refresh(self, credentials: Credentials) -> TokenGrant:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        return TokenGrant(
            access_token=f"access-{self.calls}",
            refresh_token=f"refresh-{self.calls}",
            expires_in=self.expires_in
        )


class FakeTransport:
    """
    In-memory upload session.

    Records every accepted range and reassembles the uploaded bytes.
    `failures` maps a chunk start offset to how many attempts fail
    before it is accepted (-1: always fails).
    """

    def __init__(
        self,
        failures: Optional[Dict[int, int]] = None,
        final_name: Optional[str] = None,
        delay: float = 0
    ):
        self.failures = dict(failures or {})
        self.delay = delay
        self.final_name = final_name
        self.sessions: List[str] = []
        self.attempts: Dict[int, int] = {}
        self.accepted: Dict[int, bytes] = {}
        self.item_lookups: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.session_error: Optional[Exception] = None
        self.total: Optional[int] = None

    async def create_upload_session(self, remote_path: str) -> str:
        if self.session_error:
            raise self.session_error
        self.sessions.append(remote_path)
        return f"https://upload.example.com/session/{len(self.sessions)}"

    async def upload_chunk(self, upload_url: str, data: bytes, start: int, end: int, total: int) -> ChunkResponse:
        self.total = total
        self.attempts[start] = self.attempts.get(start, 0) + 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            remaining = self.failures.get(start, 0)
            if remaining:
                if remaining > 0:
                    self.failures[start] = remaining - 1
                raise ChunkUploadError(
                    f"Chunk {start}-{end} rejected", start=start, end=end,
                    operation='upload_chunk', status=500, body='{"error":"boom"}'
                )
            assert len(data) == end - start + 1
            self.accepted[start] = data
            if sum(len(d) for d in self.accepted.values()) == total:
                name = self.final_name or self.sessions[-1].rsplit("/", 1)[-1]
                return ChunkResponse(201, json.dumps({'id': 'ITEM', 'name': name}))
            return ChunkResponse(202, '{"nextExpectedRanges":[]}')
        finally:
            self.in_flight -= 1

    async def get_item_by_path(self, remote_path: str) -> DriveItem:
        self.item_lookups.append(remote_path)
        return DriveItem(id='ITEM-ID', name=remote_path.rsplit('/', 1)[-1], size=self.total or 0)

    def reassembled(self) -> bytes:
        return b''.join(self.accepted[start] for start in sorted(self.accepted))

    def ranges(self) -> List[Tuple[int, int]]:
        return [(start, start + len(data) - 1) for start, data in sorted(self.accepted.items())]


@pytest.fixture
def make_file(tmp_path):
    """Factory writing a deterministic file of the given size."""
    def _make(size: int, name: str = "payload.bin") -> Tuple:
        data = bytes((i * 31 + 7) % 251 for i in range(size)) if size < MIB else os.urandom(size)
        path = tmp_path / name
        path.write_bytes(data)
        return path, data
    return _make


@pytest.fixture
def fake_credentials():
    return FakeCredentials()


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def token_blob():
    """Token JSON as stored by rclone (nanosecond expiry)."""
    expiry = datetime.now(timezone.utc) + timedelta(hours=1)
    return {
        'access_token': 'access-0',
        'token_type': 'Bearer',
        'refresh_token': 'refresh-0',
        'expiry': expiry.strftime('%Y-%m-%dT%H:%M:%S.123456789Z'),
    }


@pytest.fixture
def rclone_text(token_blob):
    """rclone.conf with two OneDrive remotes and one other backend."""
    token = json.dumps(token_blob)
    return (
        "[oned]\n"
        "type = onedrive\n"
        "client_id = cid\n"
        "client_secret = secret\n"
        f"token = {token}\n"
        "drive_id = DRIVE1\n"
        "drive_type = personal\n"
        "root_folder = Public\n"
        "base_url = https://index.example.com/\n"
        "\n"
        "[saurajcf]\n"
        "type = onedrive\n"
        "client_id = cid2\n"
        "client_secret = secret2\n"
        f"token = {token}\n"
        "drive_id = DRIVE2\n"
        "drive_type = business\n"
        "\n"
        "[s3]\n"
        "type = s3\n"
        "provider = AWS\n"
    )


@pytest.fixture
def rclone_file(tmp_path, rclone_text):
    path = tmp_path / "rclone.conf"
    path.write_text(rclone_text)
    return path


@pytest.fixture
def transport_factory():
    return FakeTransport


@pytest.fixture
def refresher_factory():
    return FakeRefresher


class FakeGraph:
    """
    Minimal Graph + identity platform server for wire-level tests.

    Serves one drive (DRIVE1), one upload session and the token
    endpoint. Every request is recorded as (method, path, query, headers, body).
    """

    def __init__(self):
        self.requests: List[Tuple[str, str, Dict[str, str], Dict[str, str], bytes]] = []
        self.received: Dict[int, bytes] = {}
        self.total: Optional[int] = None
        self.remote_path: Optional[str] = None
        self.hash_after = 0
        self.hash_requests = 0
        self.hash_value: Optional[str] = None
        self.session_status = 200
        self.chunk_failures: Dict[int, int] = {}
        self.token_status = 200
        self.token_body: Optional[str] = None
        self.server = None

    def url(self, path: str = '') -> str:
        return str(self.server.make_url(path))

    def requests_to(self, method: str, marker: str) -> List[Tuple]:
        return [r for r in self.requests if r[0] == method and marker in r[1]]

    async def handle(self, request):
        body = await request.read()
        self.requests.append((request.method, request.path, dict(request.query), dict(request.headers), body))
        path = request.path

        if path == '/token':
            if self.token_body is not None:
                return web.Response(status=self.token_status, text=self.token_body)
            return web.json_response(
                {'access_token': 'access-new', 'refresh_token': 'refresh-new', 'expires_in': 3600},
                status=self.token_status
            )

        if path.startswith('/upload/'):
            return self._put_chunk(request, body)

        if request.headers.get('Authorization', '').split(' ')[0] != 'Bearer':
            return web.json_response({'error': {'code': 'unauthenticated'}}, status=401)

        drive = '/v1.0/drives/DRIVE1'
        if request.method == 'POST' and path.endswith(':/createUploadSession'):
            if self.session_status != 200:
                return web.json_response({'error': {'code': 'accessDenied'}}, status=self.session_status)
            self.remote_path = path[len(drive + '/root:/'):-len(':/createUploadSession')]
            return web.json_response({'uploadUrl': self.url('/upload/session1'), 'expirationDateTime': '2030-01-01T00:00:00Z'})

        if request.method == 'GET' and path.startswith(drive + '/root:/'):
            item_path = path[len(drive + '/root:/'):]
            if item_path != self.remote_path:
                return web.json_response({'error': {'code': 'itemNotFound'}}, status=404)
            return web.json_response({'id': 'ITEM1', 'name': item_path.rsplit('/', 1)[-1], 'size': self.total})

        if request.method == 'GET' and path == drive + '/items/ITEM1':
            self.hash_requests += 1
            if self.hash_requests <= self.hash_after:
                return web.json_response({'id': 'ITEM1', 'file': {'mimeType': 'application/octet-stream'}})
            digest = self.hash_value or QuickXorHash(self.uploaded()).b64digest()
            return web.json_response({'id': 'ITEM1', 'file': {'hashes': {'quickXorHash': digest}}})

        if request.method == 'GET' and path == drive:
            return web.json_response({
                'id': 'DRIVE1',
                'quota': {'total': 1024 ** 4, 'used': 1536, 'remaining': 1024 ** 4 - 1536, 'deleted': 0, 'state': 'normal'}
            })

        return web.json_response({'error': {'code': 'notFound'}}, status=404)

    def _put_chunk(self, request, body: bytes):
        _, _, byte_range = request.headers['Content-Range'].partition(' ')
        span, _, total = byte_range.partition('/')
        start, _, end = span.partition('-')
        start, end, self.total = int(start), int(end), int(total)
        remaining = self.chunk_failures.get(start, 0)
        if remaining:
            self.chunk_failures[start] = remaining - 1
            return web.json_response({'error': {'code': 'serviceNotAvailable'}}, status=503)
        if len(body) != end - start + 1 or int(request.headers['Content-Length']) != len(body):
            return web.json_response({'error': {'code': 'invalidRange'}}, status=416)
        self.received[start] = body
        if sum(len(b) for b in self.received.values()) == self.total:
            name = self.remote_path.rsplit('/', 1)[-1]
            return web.json_response({'id': 'ITEM1', 'name': name, 'size': self.total}, status=201)
        return web.json_response({'nextExpectedRanges': [f"{end + 1}-"]}, status=202)

    def uploaded(self) -> bytes:
        return b''.join(self.received[start] for start in sorted(self.received))


@pytest_asyncio.fixture
async def graph_server():
    """Running FakeGraph server."""
    fake = FakeGraph()
    app = web.Application()
    app.router.add_route('*', '/{tail:.*}', fake.handle)
    server = TestServer(app)
    await server.start_server()
    fake.server = server
    yield fake
    await server.close()


@pytest.fixture
def graph_config(graph_server):
    """APIConfig pointing at the fake server."""
    from onedpy.core.api import APIConfig
    return APIConfig(graph_url=graph_server.url('/v1.0'), token_url=graph_server.url('/token'))
