"""Unit tests for HttpDirectoryClient."""

import json
from unittest.mock import AsyncMock

import httpx
import pytest

from cli.directory_client import HttpDirectoryClient
from common.exceptions import (
    ConfigurationError,
    ConnectivityError,
    DuplicateError,
    ForbiddenError,
    NotFoundError,
    RemoteError,
)
from common.types import LocalFile


def make_client(config, handler):
    """Create HttpDirectoryClient with mocked HTTP transport."""
    client = HttpDirectoryClient(config)
    client.session = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url='http://test')
    return client


@pytest.fixture
def no_sleep(monkeypatch):
    """Skip retry backoff delays."""
    sleep = AsyncMock()
    monkeypatch.setattr('cli.directory_client.asyncio.sleep', sleep)
    return sleep


@pytest.fixture
def sample_image(tmp_path):
    path = tmp_path / 'sunset.jpg'
    path.write_bytes(b'\xff\xd8\xff' + b'0' * 2048)
    return LocalFile.from_path(path)


@pytest.fixture
def api_handler():
    """Mock upload API answering the happy path for every endpoint."""
    requests = []

    def handler(request):
        requests.append(request)
        path, method = request.url.path, request.method

        if path == '/files' and method == 'GET':
            return httpx.Response(200, json={
                'files': [
                    {
                        'key': 'uploads/1700000000000-sunset.jpg',
                        'url': 'https://cdn.test/uploads/1700000000000-sunset.jpg',
                        'thumbnailUrl': 'https://cdn.test/thumbs/sunset.jpg',
                        'size': 2051,
                        'uploaded': '2024-01-01T00:00:00Z',
                        'categories': ['Library', 'Travel'],
                        'originalName': 'sunset.jpg',
                    },
                    {'key': 'uploads/bare.png', 'url': 'https://cdn.test/uploads/bare.png'},
                ],
                'count': 2,
            })
        if path.startswith('/files/') and method == 'DELETE':
            return httpx.Response(200, json={'success': True})
        if path == '/upload' and method == 'POST':
            return httpx.Response(200, json={
                'key': 'uploads/1700000000000-sunset.jpg',
                'url': 'https://cdn.test/uploads/1700000000000-sunset.jpg',
            })
        if path == '/gallery-order' and method == 'GET':
            return httpx.Response(200, json={'order': ['b', 'a']})
        if path == '/gallery-order' and method == 'PUT':
            return httpx.Response(200, json={'success': True})
        if path == '/categories' and method == 'GET':
            return httpx.Response(200, json={'categories': [
                {'id': 'c1', 'title': 'Library', 'isDefault': True},
                {'id': 'c2', 'title': 'Travel'},
            ]})
        if path == '/categories' and method == 'POST':
            return httpx.Response(201, json={'category': {'id': 'c3', 'title': json.loads(request.content)['title']}})
        if path == '/categories/order' and method == 'PUT':
            return httpx.Response(200, json={'success': True})
        if path.startswith('/categories/') and method == 'DELETE':
            return httpx.Response(200, json={'success': True})
        if path == '/health':
            return httpx.Response(200, json={'status': 'ok'})

        return httpx.Response(404, json={'error': 'Not found'})

    handler.requests = requests
    return handler


@pytest.fixture
def client(temp_config, api_handler):
    return make_client(temp_config, api_handler)


@pytest.mark.asyncio
async def test_list_files(client, api_handler):
    """Listing maps wire fields onto RemoteFileRecord."""
    records = await client.list_files()

    first, second = records
    assert first.key == 'uploads/1700000000000-sunset.jpg'
    assert first.thumbnail_url == 'https://cdn.test/thumbs/sunset.jpg'
    assert first.categories == ('Library', 'Travel')
    assert first.uploaded_at.year == 2024
    assert first.display_name == 'sunset.jpg'
    assert second.thumbnail_url == second.url
    assert second.size is None
    assert second.display_name == 'bare.png'

    request = api_handler.requests[0]
    assert request.headers['X-Upload-Key'] == 'test-upload-key'
    assert 'X-Request-ID' in request.headers


@pytest.mark.asyncio
async def test_custom_auth_header(temp_config, api_handler):
    temp_config.data['auth_header'] = 'Authorization'
    client = make_client(temp_config, api_handler)

    await client.list_files()

    assert api_handler.requests[0].headers['Authorization'] == 'test-upload-key'


@pytest.mark.asyncio
async def test_not_configured_fails_before_network(temp_config, api_handler):
    temp_config.set_api_key('')
    client = make_client(temp_config, api_handler)

    with pytest.raises(ConfigurationError):
        await client.list_files()

    assert api_handler.requests == []
    assert client.is_configured() is False


@pytest.mark.asyncio
async def test_delete_file_quotes_key(client, api_handler):
    assert await client.delete_file('uploads/my photo.jpg') is True

    request = api_handler.requests[0]
    assert request.method == 'DELETE'
    assert request.url.raw_path == b'/files/uploads/my%20photo.jpg'


@pytest.mark.asyncio
async def test_upload_one_sends_file_and_categories(client, api_handler, sample_image):
    progress = []

    result = await client.upload_one(sample_image, ['Library', 'Travel'], progress.append)

    assert result.key == 'uploads/1700000000000-sunset.jpg'
    assert result.url.startswith('https://cdn.test/')
    assert progress == [10, 30, 80, 100]

    body = api_handler.requests[0].content
    assert b'filename="sunset.jpg"' in body
    assert b'["Library", "Travel"]' in body


@pytest.mark.asyncio
async def test_upload_failure_never_reports_100(temp_config, sample_image):
    def handler(request):
        return httpx.Response(413, json={'error': 'File too large'})

    client = make_client(temp_config, handler)
    progress = []

    with pytest.raises(RemoteError) as exc_info:
        await client.upload_one(sample_image, [], progress.append)

    assert str(exc_info.value) == 'File too large'
    assert exc_info.value.status_code == 413
    assert 100 not in progress


@pytest.mark.asyncio
async def test_upload_is_not_retried(temp_config, sample_image, no_sleep):
    calls = 0

    def handler(request):
        nonlocal calls
        calls += 1
        return httpx.Response(500, json={'error': 'R2 write failed'})

    client = make_client(temp_config, handler)

    with pytest.raises(RemoteError, match='R2 write failed'):
        await client.upload_one(sample_image, [])

    assert calls == 1
    no_sleep.assert_not_called()


@pytest.mark.asyncio
async def test_gallery_order_roundtrip(client, api_handler):
    assert await client.get_persisted_order() == ['b', 'a']

    assert await client.save_persisted_order(['a', 'b']) is True

    request = api_handler.requests[-1]
    assert request.method == 'PUT'
    assert json.loads(request.content) == {'order': ['a', 'b']}


@pytest.mark.asyncio
async def test_categories_endpoints(client, api_handler):
    categories = await client.list_categories()
    assert [(c.id, c.is_default) for c in categories] == [('c1', True), ('c2', False)]

    created = await client.create_category('Food')
    assert (created.id, created.title) == ('c3', 'Food')

    assert await client.delete_category('c2') is True
    assert await client.save_category_order(['c2', 'c1']) is True

    order_request = api_handler.requests[-1]
    assert order_request.url.path == '/categories/order'
    assert json.loads(order_request.content) == {'order': ['c2', 'c1']}


@pytest.mark.asyncio
@pytest.mark.parametrize('status,error_cls', [
    (401, ForbiddenError),
    (403, ForbiddenError),
    (404, NotFoundError),
    (409, DuplicateError),
    (400, RemoteError),
])
async def test_status_mapping(temp_config, status, error_cls):
    def handler(request):
        return httpx.Response(status, json={'error': 'server says no'})

    client = make_client(temp_config, handler)

    with pytest.raises(error_cls) as exc_info:
        await client.delete_file('k')

    assert str(exc_info.value) == 'server says no'
    assert exc_info.value.status_code == status


@pytest.mark.asyncio
async def test_error_without_body_uses_fallback_message(temp_config):
    def handler(request):
        return httpx.Response(404)

    client = make_client(temp_config, handler)

    with pytest.raises(NotFoundError, match='Delete failed with status 404'):
        await client.delete_file('k')


@pytest.mark.asyncio
async def test_malformed_response(temp_config):
    def handler(request):
        return httpx.Response(200, json={'files': 'nope'})

    client = make_client(temp_config, handler)

    with pytest.raises(RemoteError, match='Unexpected response'):
        await client.list_files()


@pytest.mark.asyncio
async def test_retry_on_server_error(temp_config, no_sleep):
    """Test retry logic on 500 errors."""
    call_count = 0

    def failing_handler(request):
        nonlocal call_count
        call_count += 1
        if call_count < 3:
            return httpx.Response(500, json={'error': 'Server error'})
        return httpx.Response(200, json={'files': []})

    temp_config.data['max_retries'] = 3
    client = make_client(temp_config, failing_handler)

    assert await client.list_files() == []
    assert call_count == 3
    assert no_sleep.await_count == 2


@pytest.mark.asyncio
async def test_server_error_after_retries(temp_config, no_sleep):
    def handler(request):
        return httpx.Response(503, json={'error': 'Service unavailable'})

    temp_config.data['max_retries'] = 1
    client = make_client(temp_config, handler)

    with pytest.raises(RemoteError) as exc_info:
        await client.get_persisted_order()

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_no_retry_on_client_error(temp_config, no_sleep):
    """Test no retry on 4xx errors."""
    call_count = 0

    def error_handler(request):
        nonlocal call_count
        call_count += 1
        return httpx.Response(401, json={'error': 'Unauthorized'})

    client = make_client(temp_config, error_handler)

    with pytest.raises(ForbiddenError):
        await client.list_files()

    assert call_count == 1


@pytest.mark.asyncio
async def test_connection_error_handling(temp_config, no_sleep):
    """Test connection error handling."""
    def failing_handler(request):
        raise httpx.ConnectError("Connection refused")

    temp_config.data['max_retries'] = 1
    client = make_client(temp_config, failing_handler)

    with pytest.raises(ConnectivityError, match='Cannot connect to upload server'):
        await client.list_files()

    assert no_sleep.await_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize('error_cls', [httpx.ReadError, httpx.WriteError, httpx.RemoteProtocolError])
async def test_dropped_connection_is_connectivity_error(temp_config, no_sleep, error_cls):
    """Failures after the connection is up map to ConnectivityError without retrying."""
    calls = 0

    def dropping_handler(request):
        nonlocal calls
        calls += 1
        raise error_cls("connection dropped")

    temp_config.data['max_retries'] = 3
    client = make_client(temp_config, dropping_handler)

    with pytest.raises(ConnectivityError, match='connection dropped'):
        await client.list_files()

    assert calls == 1
    no_sleep.assert_not_called()


@pytest.mark.asyncio
async def test_timeout_error_handling(temp_config, no_sleep):
    def slow_handler(request):
        raise httpx.ReadTimeout("timed out")

    temp_config.data['max_retries'] = 0
    client = make_client(temp_config, slow_handler)

    with pytest.raises(ConnectivityError, match='timed out'):
        await client.list_files()


@pytest.mark.asyncio
async def test_check_health(client):
    assert await client.check_health() == {'status': 'ok'}


@pytest.mark.asyncio
async def test_close_session(client):
    """Test closing HTTP session."""
    await client.close()
    assert client.session.is_closed
