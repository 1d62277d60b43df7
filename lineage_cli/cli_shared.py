from __future__ import annotations

import json
import os
import sys
from dataclasses import dataclass
from typing import Any

from rich.console import Console
from rich.markup import escape


class LineageCliError(Exception):
    pass


class UsageError(LineageCliError):
    pass


class OpError(LineageCliError):
    pass


class RequestBuildError(OpError):
    """Raised when a request payload cannot be serialized."""


class RequestSetupError(OpError):
    """Raised when the HTTP request object cannot be constructed."""


class AuthenticationError(OpError):
    """Raised when the workspace authenticator rejects an outgoing request."""


class TransportError(OpError):
    """Raised when the HTTP call itself fails (DNS, connect, timeout)."""


class ResponseReadError(OpError):
    """Raised when the response body cannot be read in full."""


class ApiError(OpError):
    """Raised for any non-200 response; keeps the raw server body verbatim."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"API error (status {status}): {body}")
        self.status = status
        self.body = body


class DecodeError(OpError):
    """Raised when a 200 response is not a JSON object."""


class RenderError(OpError):
    """Raised when the output sink fails to display a decoded response."""


DATABRICKS_HOST = "DATABRICKS_HOST"
DATABRICKS_TOKEN = "DATABRICKS_TOKEN"
DATABRICKS_CONFIG_FILE = "DATABRICKS_CONFIG_FILE"
DATABRICKS_CONFIG_PROFILE = "DATABRICKS_CONFIG_PROFILE"
DEFAULT_CONFIG_FILE = "~/.databrickscfg"
DEFAULT_PROFILE = "DEFAULT"


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


_ERROR_CONSOLE = Console(stderr=True)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}", highlight=False, soft_wrap=True)


@dataclass(frozen=True)
class GlobalOpts:
    host: str | None = None
    token: str | None = None
    profile: str | None = None
    timeout_seconds: float | None = None
    pretty: bool = True
    verbose: bool = False


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def _require_str(val: str | None, name: str, *, hint: str) -> str:
    v = (val or "").strip()
    if not v:
        raise UsageError(f"missing {name} ({hint})")
    return v


def _print_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True) + "\n")
    else:
        sys.stdout.write(json.dumps(obj, separators=(",", ":"), sort_keys=True) + "\n")
