"""The HTTP API server and its blog service."""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import re
import socket
import sqlite3
import sys
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, replace

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from birb.blog import BlogSchema, IdResponse, NewBlogPost
from birb.connection import DatabaseConnection
from birb.errors import ApiServerError, BlogServiceError, ErrorResponse, SchemaError

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 7853
DEFAULT_DATABASE = "birb.db"
DATABASE_ENV = "BIRB_DATABASE"

_INTEGER = re.compile(r"[+-]?[0-9]+")


def _parse_id(text: str) -> int:
    if _INTEGER.fullmatch(text) and -(2**31) <= int(text) < 2**31:
        return int(text)
    raise ValueError(f"Cannot parse `{text}` to a `i32`")


def _is_json_content(content_type: str) -> bool:
    mime = content_type.split(";", 1)[0].strip().lower()
    return mime == "application/json" or (mime.startswith("application/") and mime.endswith("+json"))


@dataclass
class BlogService:
    """Routes for reading and publishing blog posts."""

    database: BlogSchema

    @classmethod
    async def create(cls, database_path: str | os.PathLike[str]) -> BlogService:
        try:
            connection = await DatabaseConnection.connect(database_path)
        except (sqlite3.Error, OSError) as exc:
            raise BlogServiceError(exc) from exc
        return cls(BlogSchema(connection))

    def routes(self) -> list[Route]:
        return [
            Route("/blog/{id}", self._get_blog, methods=["GET"]),
            Route("/publish", self._post_blog, methods=["POST"]),
            Route("/blogs", self._get_blogs, methods=["GET"]),
        ]

    async def _with_posts(self, action) -> Response:
        try:
            async with await self.database.posts() as table:
                return JSONResponse(await action(table))
        except SchemaError as exc:
            return exc.error_response().response()

    async def _get_blog(self, request: Request) -> Response:
        try:
            blog_id = _parse_id(request.path_params["id"])
        except ValueError as exc:
            return PlainTextResponse(f"Invalid URL: {exc}", status_code=400)
        return await self._with_posts(lambda table: _dict_of(table.get(blog_id)))

    async def _post_blog(self, request: Request) -> Response:
        if not _is_json_content(request.headers.get("content-type", "")):
            return PlainTextResponse(
                "Expected request with `Content-Type: application/json`", status_code=415
            )
        try:
            data = json.loads(await request.body())
        except ValueError as exc:
            return PlainTextResponse(
                f"Failed to parse the request body as JSON: {exc}", status_code=400
            )
        try:
            new_post = NewBlogPost.from_dict(data)
        except (TypeError, ValueError) as exc:
            return PlainTextResponse(
                f"Failed to deserialize the JSON body into the target type: {exc}",
                status_code=422,
            )

        async def publish(table):
            return IdResponse(await table.insert(new_post)).to_dict()

        return await self._with_posts(publish)

    async def _get_blogs(self, request: Request) -> Response:
        async def list_all(table):
            return [post.to_dict() for post in await table.get_all()]

        return await self._with_posts(list_all)


async def _dict_of(awaitable):
    return (await awaitable).to_dict()


async def wildcard(request: Request) -> Response:
    """Answer any unknown route with a ROUTE_NOT_FOUND error."""
    path = request.path_params.get("wildcard", "")
    if not path:
        return Response(status_code=404)
    return ErrorResponse("ROUTE_NOT_FOUND", f"{path} isn't a valid route!", 404).response()


def _default_database() -> str:
    return os.environ.get(DATABASE_ENV, DEFAULT_DATABASE)


@dataclass
class ApiServer:
    """A bound listening socket plus the database the services use."""

    listener: socket.socket
    database_path: str = field(default_factory=_default_database)

    @classmethod
    async def connect(cls, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> ApiServer:
        try:
            return cls(socket.create_server((host, port)))
        except OSError as exc:
            raise ApiServerError(exc) from exc

    async def build_app(self) -> Starlette:
        """Set up the services and return the ASGI application."""
        try:
            service = await BlogService.create(self.database_path)
        except BlogServiceError as exc:
            raise ApiServerError(exc) from exc

        @asynccontextmanager
        async def lifespan(app: Starlette):
            try:
                yield
            finally:
                await service.database.connection.close()

        cors = Middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["*"],
        )
        app = Starlette(
            routes=[*service.routes(), Route("/{wildcard:path}", wildcard, methods=["GET"])],
            middleware=[cors],
            lifespan=lifespan,
        )
        app.state.blog_service = service
        return app

    async def run(self) -> None:
        """Serve requests on the listening socket until shut down."""
        try:
            config = uvicorn.Config(await self.build_app(), lifespan="on")
            await uvicorn.Server(config).serve(sockets=[self.listener])
        except OSError as exc:
            raise ApiServerError(exc) from exc
        finally:
            self.listener.close()


async def _serve(host: str, port: int, database: str) -> None:
    server = await ApiServer.connect(host, port)
    await replace(server, database_path=database).run()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="birb", description="Serve the blog API.")
    parser.add_argument("--host", default=DEFAULT_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--database", default=_default_database())
    args = parser.parse_args(argv)
    try:
        asyncio.run(_serve(args.host, args.port, args.database))
    except ApiServerError as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())