from __future__ import annotations

import sys
from typing import Any

import typer
from dotenv import load_dotenv

from . import __version__
from .cli_shared import (
    DATABRICKS_CONFIG_PROFILE,
    DATABRICKS_HOST,
    DATABRICKS_TOKEN,
    GlobalOpts,
    OpError,
    UsageError,
    _env_or_none,
    _print_json,
    _rich_error,
)
from .lineage_api import get_column_lineage, get_table_lineage
from .workspace import WorkspaceConfig, resolve_workspace_config

PROG_NAME = "lineage-cli"


def _bootstrap_env() -> None:
    # Discover and load .env without overriding already-exported values.
    load_dotenv()


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PROG_NAME} {__version__}")
        raise typer.Exit(code=0)


_TRUE_VALUES = {"1", "true", "t", "yes", "y", "on"}
_FALSE_VALUES = {"0", "false", "f", "no", "n", "off"}


def _parse_bool(raw: str, *, option: str) -> bool:
    v = str(raw or "").strip().lower()
    if v in _TRUE_VALUES:
        return True
    if v in _FALSE_VALUES:
        return False
    raise typer.BadParameter(f"{raw!r} is not a valid boolean", param_hint=f"'{option}'")


def _positive_timeout(value: float | None) -> float | None:
    if value is not None and value <= 0:
        raise typer.BadParameter("must be greater than 0")
    return value


def build_root_command() -> typer.Typer:
    """Build the ``lineage-cli`` app with the ``lineage-tracking`` group attached."""

    root = typer.Typer(
        name=PROG_NAME,
        help="Workspace catalog helpers.",
        no_args_is_help=True,
        add_completion=False,
    )
    root.callback()(app_callback)

    lineage_app = typer.Typer(
        help="Retrieve Unity Catalog table and column lineage using the Data Lineage REST API.",
        short_help="Retrieve table and column lineage",
        no_args_is_help=True,
    )
    lineage_app.command(
        "table-lineage",
        help="Get table lineage for a Unity Catalog table.\n\n"
        "Provide a fully qualified table name like catalog.schema.table.",
        short_help="Get table lineage",
    )(table_lineage)
    lineage_app.command(
        "column-lineage",
        help="Get column lineage for a Unity Catalog table column.\n\n"
        "Provide a fully qualified table name like catalog.schema.table.",
        short_help="Get column lineage",
    )(column_lineage)

    root.add_typer(lineage_app, name="lineage-tracking", rich_help_panel="catalog")
    return root


def app_callback(
    ctx: typer.Context,
    host: str | None = typer.Option(None, "--host", help=f"Workspace URL (env override: {DATABRICKS_HOST})"),
    token: str | None = typer.Option(
        None,
        "--token",
        help=f"Personal access token (env override: {DATABRICKS_TOKEN})",
    ),
    profile: str | None = typer.Option(
        None,
        "--profile",
        help=f"Profile in ~/.databrickscfg (env override: {DATABRICKS_CONFIG_PROFILE})",
    ),
    timeout: float | None = typer.Option(
        None,
        "--timeout",
        callback=_positive_timeout,
        help="Request timeout in seconds (default: no timeout)",
    ),
    plain_json: bool = typer.Option(False, "--plain-json", help="Emit compact JSON output"),
    verbose: bool = typer.Option(False, "--verbose", help="Log request and response lines to stderr"),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    del version
    ctx.obj = {
        "g": GlobalOpts(
            host=host,
            token=token,
            profile=profile,
            timeout_seconds=timeout,
            pretty=not plain_json,
            verbose=verbose,
        )
    }


def _ctx_global(ctx: typer.Context) -> GlobalOpts:
    root = ctx.find_root()
    if isinstance(root.obj, dict) and isinstance(root.obj.get("g"), GlobalOpts):
        return root.obj["g"]
    return GlobalOpts()


def _workspace(g: GlobalOpts) -> WorkspaceConfig:
    return resolve_workspace_config(
        host=g.host,
        token=g.token,
        profile=g.profile,
        env_or_none=_env_or_none,
    )


def _invoke(ctx: typer.Context, func: Any, **kwargs: Any) -> None:
    g = _ctx_global(ctx)
    try:
        func(
            _workspace(g),
            render=lambda obj: _print_json(obj, pretty=g.pretty),
            timeout_seconds=g.timeout_seconds,
            verbose=g.verbose,
            **kwargs,
        )
    except UsageError as e:
        _rich_error(str(e))
        raise typer.Exit(code=2)
    except OpError as e:
        _rich_error(str(e))
        raise typer.Exit(code=1)


def table_lineage(
    ctx: typer.Context,
    table_name: str = typer.Argument(..., metavar="TABLE_NAME", help="Fully qualified table name"),
    include_entity_lineage: str = typer.Option(
        "true",
        "--include-entity-lineage",
        metavar="true|false",
        is_flag=False,
        flag_value="true",
        help="Include notebook, job, or dashboard lineage when available",
    ),
) -> None:
    include = _parse_bool(include_entity_lineage, option="--include-entity-lineage")
    _invoke(
        ctx,
        get_table_lineage,
        table_name=table_name,
        include_entity_lineage=include,
    )


def column_lineage(
    ctx: typer.Context,
    table_name: str = typer.Argument(..., metavar="TABLE_NAME", help="Fully qualified table name"),
    column_name: str = typer.Argument(..., metavar="COLUMN_NAME", help="Column name"),
) -> None:
    _invoke(ctx, get_column_lineage, table_name=table_name, column_name=column_name)


app = build_root_command()


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    _bootstrap_env()
    # Typer reports its own usage errors (exit 2), aborts and Ctrl-C (exit 1)
    # and ends every run with SystemExit.
    try:
        app(args=argv, prog_name=PROG_NAME)
    except SystemExit as e:
        if e.code is None:
            return 0
        if isinstance(e.code, int):
            return e.code
        _rich_error(str(e.code))
        return 1
    except UsageError as e:
        _rich_error(str(e))
        return 2
    except OpError as e:
        _rich_error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
