from __future__ import annotations

import configparser
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable
from urllib.request import Request

from .cli_shared import (
    DATABRICKS_CONFIG_FILE,
    DATABRICKS_CONFIG_PROFILE,
    DATABRICKS_HOST,
    DATABRICKS_TOKEN,
    DEFAULT_CONFIG_FILE,
    DEFAULT_PROFILE,
    AuthenticationError,
    UsageError,
    _require_str,
)

Authenticator = Callable[[Request], None]


@dataclass(frozen=True)
class BearerTokenAuthenticator:
    token: str = field(repr=False)

    def __call__(self, request: Request) -> None:
        token = (self.token or "").strip()
        if not token:
            raise AuthenticationError("empty workspace token")
        request.add_header("Authorization", f"Bearer {token}")


@dataclass(frozen=True)
class WorkspaceConfig:
    """Connection settings for one workspace.

    ``authenticator`` annotates an outgoing request in place (typically by
    adding an ``Authorization`` header) and raises when it cannot.
    """

    host: str
    authenticator: Authenticator

    def authenticate(self, request: Request) -> None:
        self.authenticator(request)


def normalize_host(raw: str) -> str:
    host = (raw or "").strip().rstrip("/")
    if not host:
        return ""
    if "://" not in host:
        host = f"https://{host}"
    return host


def load_profile(*, path: str | Path, profile: str) -> dict[str, str]:
    """Read one section of a ``.databrickscfg``-style INI file.

    A missing file yields an empty mapping; a missing named profile is an
    error unless it is the default profile.
    """

    cfg_path = Path(path).expanduser()
    if not cfg_path.exists():
        if profile != DEFAULT_PROFILE:
            raise UsageError(f"config file not found: {cfg_path} (needed for profile {profile!r})")
        return {}
    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read(cfg_path, encoding="utf-8")
    except configparser.Error as e:
        raise UsageError(f"invalid config file {cfg_path}: {e}") from e
    if profile == DEFAULT_PROFILE:
        return {k: v.strip() for k, v in parser.defaults().items()}
    if not parser.has_section(profile):
        raise UsageError(f"profile {profile!r} not found in {cfg_path}")
    return {k: v.strip() for k, v in parser.items(profile)}


def resolve_workspace_config(
    *,
    host: str | None,
    token: str | None,
    profile: str | None,
    env_or_none: Callable[..., str | None],
) -> WorkspaceConfig:
    """Resolve host and token from flags, then env, then the config profile."""

    resolved_host = (host or env_or_none(DATABRICKS_HOST) or "").strip()
    resolved_token = (token or env_or_none(DATABRICKS_TOKEN) or "").strip()

    if not resolved_host or not resolved_token:
        profile_name = (profile or env_or_none(DATABRICKS_CONFIG_PROFILE) or DEFAULT_PROFILE).strip()
        cfg_file = env_or_none(DATABRICKS_CONFIG_FILE) or DEFAULT_CONFIG_FILE
        section = load_profile(path=cfg_file, profile=profile_name)
        resolved_host = resolved_host or section.get("host", "")
        resolved_token = resolved_token or section.get("token", "")

    resolved_host = normalize_host(
        _require_str(resolved_host, "workspace host", hint=f"--host or env {DATABRICKS_HOST}")
    )
    resolved_token = _require_str(resolved_token, "workspace token", hint=f"--token or env {DATABRICKS_TOKEN}")
    return WorkspaceConfig(host=resolved_host, authenticator=BearerTokenAuthenticator(resolved_token))
