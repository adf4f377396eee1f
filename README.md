# birb

birb is a small blog backend. It serves a JSON HTTP API for publishing blog
posts and reading them back, and keeps the posts in an SQLite database.

## Installation

```
pip install .
```

To run the tests as well:

```
pip install ".[test]"
pytest
```

## Running the server

```
birb
```

Options:

| Option       | Default                                          |
|--------------|--------------------------------------------------|
| `--host`     | `0.0.0.0`                                        |
| `--port`     | `7853`                                           |
| `--database` | the `BIRB_DATABASE` environment variable, else `birb.db` |

The posts table is created in the database file on first use. The server
allows cross-origin requests from any origin. If the socket cannot be bound
or the database cannot be opened, `birb` prints `Fatal error: ...` to
standard error and exits with status 1.

## API

| Method | Path          | Description                                   |
|--------|---------------|-----------------------------------------------|
| GET    | `/blog/{id}`  | Fetch one post by its numeric id              |
| POST   | `/publish`    | Create a post; returns `{"id": <new id>}`     |
| GET    | `/blogs`      | List every post                               |

A new post is sent as JSON with `Content-Type: application/json`:

```json
{"title": "Hello", "author": "Ada", "content": "First post."}
```

Unknown keys are ignored. A stored post comes back with its `id` and a
`created_at` timestamp in UTC, for example `"2024-05-01T12:00:00Z"`.

### Errors

Errors from the database and unknown routes are returned as JSON with an
`error` code and a readable `message`:

```json
{"error": "NOT_FOUND", "message": "Requested content was not found."}
```

| Code               | Status | When                                      |
|--------------------|--------|-------------------------------------------|
| `NOT_FOUND`        | 404    | The requested post does not exist         |
| `INTERNAL_ERROR`   | 500    | A database error occurred                 |
| `ROUTE_NOT_FOUND`  | 404    | No route matches the requested GET path   |

Malformed requests get a plain-text answer instead: 400 for an id that is
not a 32-bit integer or a body that is not JSON, 415 for a missing JSON
content type, and 422 for a body with a missing or non-string field.

## Using it from Python

- `birb.server`: `ApiServer.connect(host, port)` binds the socket,
  `ApiServer.build_app()` returns the Starlette application (for mounting or
  testing), and `ApiServer.run()` serves it with uvicorn. `BlogService`
  holds the blog routes.
- `birb.blog`: `BlogSchema.posts()` borrows a connection and returns a
  `PostsTable`, with `insert`, `get`, `get_all` and `delete`. Used with
  `async with`, the table hands its connection back when done. `NewBlogPost`,
  `BlogPost` and `IdResponse` are the records it works with.
- `birb.connection`: `DatabaseConnection` is a bounded pool of SQLite
  connections (100 by default).
- `birb.errors`: `ErrorResponse`, `SchemaError` with `NotFoundError` and
  `FatalSchemaError`, `schema_error_from`, `BlogServiceError` and
  `ApiServerError`.
- `birb.table`: the `SqlTable` base class and the `table_op` helper.
- `birb.auth`: the `Admin` and `RefreshToken` records, `Salt`, `HashedData`
  and `AuthSchema`.
- `birb.ttl`: `TTLData` and `TTL`, a sliding expiry that each read extends
  up to a fixed cap, and the `CacheIdentifier` enum.

## What it does not do

- There is no authentication. `AuthSchema` and the admin and refresh-token
  records exist, but nothing stores them and no route uses them; anyone can
  publish.
- Posts cannot be edited, and deleting a post is only possible from Python
  (`PostsTable.delete`), not over HTTP.
- There is no cache. `birb.ttl` provides expiry bookkeeping only; no cache is
  built on it.