import socket
from http import HTTPStatus

import httpx
import pytest
import pytest_asyncio

from birb.errors import ApiServerError, BlogServiceError
from birb.server import ApiServer, BlogService, main


@pytest_asyncio.fixture
async def client(tmp_path):
    server = await ApiServer.connect("127.0.0.1", 0)
    server.database_path = str(tmp_path / "birb.db")
    app = await server.build_app()
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c
    await app.state.blog_service.database.connection.close()
    server.listener.close()


async def _publish(client, n):
    body = {"title": f"title {n}", "author": f"author {n}", "content": f"content {n}"}
    response = await client.post("/publish", json=body)
    assert response.status_code == HTTPStatus.OK
    return response.json()["id"]


@pytest.mark.asyncio
async def test_publish_then_get(client):
    blog_id = await _publish(client, 1)
    response = await client.get(f"/blog/{blog_id}")
    assert response.status_code == HTTPStatus.OK
    body = response.json()
    assert body["id"] == blog_id
    assert (body["title"], body["author"], body["content"]) == ("title 1", "author 1", "content 1")
    assert body["created_at"].endswith("Z")


@pytest.mark.asyncio
async def test_get_missing_blog(client):
    response = await client.get("/blog/4242")
    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.json() == {
        "error": "NOT_FOUND",
        "message": "Requested content was not found.",
    }


@pytest.mark.asyncio
async def test_get_blog_with_bad_id(client):
    response = await client.get("/blog/abc")
    assert response.status_code == HTTPStatus.BAD_REQUEST
    too_big = await client.get(f"/blog/{2**31}")
    assert too_big.status_code == HTTPStatus.BAD_REQUEST


@pytest.mark.asyncio
async def test_list_blogs(client):
    assert (await client.get("/blogs")).json() == []
    ids = [await _publish(client, n) for n in range(3)]
    posts = (await client.get("/blogs")).json()
    assert [p["id"] for p in posts] == ids
    assert [p["author"] for p in posts] == ["author 0", "author 1", "author 2"]


@pytest.mark.asyncio
async def test_publish_missing_field(client):
    response = await client.post("/publish", json={"title": "t", "content": "c"})
    assert response.status_code == HTTPStatus.UNPROCESSABLE_ENTITY


@pytest.mark.asyncio
async def test_publish_malformed_json(client):
    response = await client.post(
        "/publish", content=b"{not json", headers={"content-type": "application/json"}
    )
    assert response.status_code == HTTPStatus.BAD_REQUEST


@pytest.mark.asyncio
async def test_publish_without_json_content_type(client):
    response = await client.post("/publish", content=b'{"title": "t"}')
    assert response.status_code == HTTPStatus.UNSUPPORTED_MEDIA_TYPE


@pytest.mark.asyncio
async def test_unknown_route(client):
    response = await client.get("/nowhere")
    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.json() == {
        "error": "ROUTE_NOT_FOUND",
        "message": "nowhere isn't a valid route!",
    }


@pytest.mark.asyncio
async def test_wrong_method(client):
    response = await client.post("/blogs")
    assert response.status_code == HTTPStatus.METHOD_NOT_ALLOWED


@pytest.mark.asyncio
async def test_cors_allows_any_origin(client):
    response = await client.get("/blogs", headers={"origin": "http://example.com"})
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_connect_binds_listener():
    server = await ApiServer.connect("127.0.0.1", 0)
    try:
        host, port = server.listener.getsockname()[:2]
        assert host == "127.0.0.1"
        assert port > 0
    finally:
        server.listener.close()


@pytest.mark.asyncio
async def test_connect_to_busy_port_fails():
    busy = socket.create_server(("127.0.0.1", 0))
    try:
        port = busy.getsockname()[1]
        with pytest.raises(ApiServerError):
            await ApiServer.connect("127.0.0.1", port)
    finally:
        busy.close()


@pytest.mark.asyncio
async def test_blog_service_create_with_bad_path(tmp_path):
    with pytest.raises(BlogServiceError):
        await BlogService.create(tmp_path / "missing" / "birb.db")


@pytest.mark.asyncio
async def test_build_app_with_bad_path(tmp_path):
    server = await ApiServer.connect("127.0.0.1", 0)
    server.database_path = str(tmp_path / "missing" / "birb.db")
    try:
        with pytest.raises(ApiServerError) as info:
            await server.build_app()
        assert isinstance(info.value.cause, BlogServiceError)
    finally:
        server.listener.close()


@pytest.mark.asyncio
async def test_blog_service_routes(tmp_path):
    service = await BlogService.create(tmp_path / "birb.db")
    try:
        paths = [route.path for route in service.routes()]
        assert paths == ["/blog/{id}", "/publish", "/blogs"]
    finally:
        await service.database.connection.close()


def test_main_reports_fatal_error(tmp_path, capsys):
    bad = str(tmp_path / "missing" / "birb.db")
    code = main(["--host", "127.0.0.1", "--port", "0", "--database", bad])
    assert code == 1
    assert "Fatal error" in capsys.readouterr().err