"""Table and column lineage calls against the lineage-tracking REST API.

Both operations send a ``GET`` whose body is a JSON document. The API expects
exactly that shape, so the request must not be turned into a ``POST`` or a
query string.
"""

from __future__ import annotations

import http.client
import json
from dataclasses import dataclass
from typing import Any, Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .cli_shared import (
    ApiError,
    AuthenticationError,
    DecodeError,
    RenderError,
    RequestBuildError,
    RequestSetupError,
    ResponseReadError,
    TransportError,
    _eprint,
)
from .workspace import WorkspaceConfig

TABLE_LINEAGE_PATH = "/api/2.0/lineage-tracking/table-lineage"
COLUMN_LINEAGE_PATH = "/api/2.0/lineage-tracking/column-lineage"

Render = Callable[[Any], None]


@dataclass(frozen=True)
class TableLineageRequest:
    table_name: str
    include_entity_lineage: bool = True

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"table_name": self.table_name}
        # false is sent as an absent key
        if self.include_entity_lineage:
            out["include_entity_lineage"] = True
        return out


@dataclass(frozen=True)
class ColumnLineageRequest:
    table_name: str
    column_name: str

    def to_dict(self) -> dict[str, Any]:
        return {"table_name": self.table_name, "column_name": self.column_name}


def _encode_payload(payload: TableLineageRequest | ColumnLineageRequest) -> bytes:
    try:
        return json.dumps(payload.to_dict(), separators=(",", ":")).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise RequestBuildError(f"failed to marshal request: {e}") from e


def _http_request(
    request: Request,
    *,
    timeout_seconds: float | None = None,
) -> tuple[int, bytes]:
    kwargs: dict[str, Any] = {}
    if timeout_seconds is not None:
        kwargs["timeout"] = timeout_seconds
    try:
        resp = urlopen(request, **kwargs)
    except HTTPError as e:
        resp = e
    except (URLError, OSError, UnicodeError, http.client.HTTPException) as e:
        raise TransportError(f"failed to execute request: {e}") from e

    with resp:
        status = int(getattr(resp, "status", None) or getattr(resp, "code", 0) or 0)
        try:
            data = resp.read()
        except (OSError, http.client.HTTPException) as e:
            raise ResponseReadError(f"failed to read response: {e}") from e
    return status, data


def _decode_object(raw: bytes) -> dict[str, Any]:
    try:
        parsed = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise DecodeError(f"failed to parse response: {e}") from e
    if not isinstance(parsed, dict):
        raise DecodeError("failed to parse response: expected JSON object")
    return parsed


def execute_lineage_request(
    workspace: WorkspaceConfig,
    path: str,
    payload: TableLineageRequest | ColumnLineageRequest,
    *,
    timeout_seconds: float | None = None,
    verbose: bool = False,
) -> dict[str, Any]:
    body = _encode_payload(payload)

    url = f"{workspace.host}{path}"
    try:
        request = Request(url, data=body, method="GET")
    except ValueError as e:
        raise RequestSetupError(f"failed to create request: {e}") from e
    request.add_header("Content-Type", "application/json")

    try:
        workspace.authenticate(request)
    except Exception as e:
        raise AuthenticationError(f"failed to authenticate: {e}") from e

    if verbose:
        _eprint(f"> GET {url} ({len(body)} bytes)")
    status, raw = _http_request(request, timeout_seconds=timeout_seconds)
    if verbose:
        _eprint(f"< {status} ({len(raw)} bytes)")

    if status != 200:
        raise ApiError(status, raw.decode("utf-8", errors="replace"))
    return _decode_object(raw)


def _render(render: Render | None, response: dict[str, Any]) -> None:
    if render is None:
        return
    try:
        render(response)
    except OSError as e:
        raise RenderError(f"failed to render response: {e}") from e


def get_table_lineage(
    workspace: WorkspaceConfig,
    table_name: str,
    include_entity_lineage: bool = True,
    *,
    render: Render | None = None,
    timeout_seconds: float | None = None,
    verbose: bool = False,
) -> dict[str, Any]:
    req = TableLineageRequest(table_name=table_name, include_entity_lineage=include_entity_lineage)
    response = execute_lineage_request(
        workspace,
        TABLE_LINEAGE_PATH,
        req,
        timeout_seconds=timeout_seconds,
        verbose=verbose,
    )
    _render(render, response)
    return response


def get_column_lineage(
    workspace: WorkspaceConfig,
    table_name: str,
    column_name: str,
    *,
    render: Render | None = None,
    timeout_seconds: float | None = None,
    verbose: bool = False,
) -> dict[str, Any]:
    req = ColumnLineageRequest(table_name=table_name, column_name=column_name)
    response = execute_lineage_request(
        workspace,
        COLUMN_LINEAGE_PATH,
        req,
        timeout_seconds=timeout_seconds,
        verbose=verbose,
    )
    _render(render, response)
    return response
