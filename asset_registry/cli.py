"""
Admin CLI for the asset registry.

Commands:
  - init            : create (or verify) a registry store and its administrator
  - mint            : mint one asset
  - bulk-mint       : mint several assets from arguments or a file
  - transfer        : claim an asset as its recipient
  - destroy         : destroy an asset as its owner
  - admin-destroy   : destroy an asset as the administrator
  - set-metadata    : replace the metadata of an owned asset
  - show / list     : asset details (one id / a range of ids)
  - audit           : audit records of one asset
  - stats           : registry counters
  - rebuild-audit   : recompute transfer counters from the audit records
  - serve           : run the HTTP API on this store

Usage:
  asset-registry --db sqlite:///registry.db --admin admin mint "ipfs://a"

Domain errors print `CODE: message` to stderr and exit with status 1.
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, List, Optional

import typer

from .config import Settings, load_config
from .errors import RegistryError
from .logging import get_logger, setup_logging
from .registry import AssetRegistry, open_registry

app = typer.Typer(add_completion=False, help="Asset Registry: admin CLI")
log = get_logger(__name__)


@dataclass
class CliState:
    settings: Settings
    db: str
    admin: str


def _state(ctx: typer.Context) -> CliState:
    return ctx.obj


def _echo_json(obj: Any) -> None:
    typer.echo(json.dumps(obj, indent=2, sort_keys=True))


@contextmanager
def _registry(ctx: typer.Context) -> Iterator[AssetRegistry]:
    st = _state(ctx)
    try:
        reg = open_registry(st.db, administrator=st.admin, limits=st.settings.to_limits())
    except ValueError as e:
        typer.echo(f"invalid --db: {e}", err=True)
        raise typer.Exit(code=2)
    except RegistryError as e:
        typer.echo(f"{e.to_dict()['code']}: {e.message}", err=True)
        raise typer.Exit(code=1)
    try:
        yield reg
    except RegistryError as e:
        typer.echo(f"{e.to_dict()['code']}: {e.message}", err=True)
        raise typer.Exit(code=1)
    finally:
        reg.close()


@app.callback()
def _global_options(
    ctx: typer.Context,
    db: Optional[str] = typer.Option(None, "--db", help="Store URI (default: $ASSET_REGISTRY_DB_URI)"),
    admin: Optional[str] = typer.Option(
        None, "--admin", help="Administrator identity (default: $ASSET_REGISTRY_ADMINISTRATOR)"
    ),
    log_level: str = typer.Option("WARNING", "--log-level", help="Log level for registry events"),
):
    """
    Shared options for all subcommands.
    """
    cfg = load_config()
    setup_logging(level=log_level.upper(), log_format="console")
    ctx.obj = CliState(settings=cfg, db=db or cfg.db_uri, admin=admin or cfg.administrator)


@app.command("init")
def init(ctx: typer.Context):
    """
    Create the store (if needed) and bind the administrator.
    """
    with _registry(ctx) as reg:
        _echo_json(reg.stats())


@app.command("mint")
def mint(
    ctx: typer.Context,
    metadata: str = typer.Argument(..., help="Metadata string"),
    caller: Optional[str] = typer.Option(None, "--caller", help="Acting identity (default: administrator)"),
):
    """
    Mint one asset; prints the new id.
    """
    with _registry(ctx) as reg:
        typer.echo(str(reg.mint(caller or _state(ctx).admin, metadata)))


def _read_items(path: Path) -> List[str]:
    # One item per line; the trailing newline does not add an empty item
    text = path.read_text(encoding="utf-8")
    return text.splitlines()


@app.command("bulk-mint")
def bulk_mint(
    ctx: typer.Context,
    items: Optional[List[str]] = typer.Argument(None, help="Metadata strings"),
    file: Optional[Path] = typer.Option(
        None, "--file", "-f", exists=True, dir_okay=False, help="Read items from a file, one per line"
    ),
    caller: Optional[str] = typer.Option(None, "--caller", help="Acting identity (default: administrator)"),
):
    """
    Mint several assets in one call; prints ids, requested count and
    skipped input indexes.
    """
    batch: List[str] = list(items or [])
    if file is not None:
        batch.extend(_read_items(file))
    with _registry(ctx) as reg:
        result = reg.bulk_mint_detailed(caller or _state(ctx).admin, batch)
        _echo_json(result.to_dict())


@app.command("transfer")
def transfer(
    ctx: typer.Context,
    asset_id: int = typer.Argument(..., help="Asset id"),
    sender: str = typer.Option(..., "--from", help="Current owner"),
    recipient: str = typer.Option(..., "--to", help="New owner"),
    caller: Optional[str] = typer.Option(None, "--caller", help="Acting identity (default: --to)"),
):
    """
    Claim an asset: the caller must be the recipient.
    """
    with _registry(ctx) as reg:
        reg.transfer(caller or recipient, asset_id, sender, recipient)
        typer.echo(f"asset {asset_id}: {sender} -> {recipient}")


@app.command("destroy")
def destroy(
    ctx: typer.Context,
    asset_id: int = typer.Argument(..., help="Asset id"),
    caller: str = typer.Option(..., "--caller", help="Owner identity"),
):
    """
    Destroy an asset as its owner.
    """
    with _registry(ctx) as reg:
        reg.destroy(caller, asset_id)
        typer.echo(f"asset {asset_id} destroyed")


@app.command("admin-destroy")
def admin_destroy(
    ctx: typer.Context,
    asset_id: int = typer.Argument(..., help="Asset id"),
    caller: Optional[str] = typer.Option(None, "--caller", help="Acting identity (default: administrator)"),
):
    """
    Destroy any live asset as the administrator.
    """
    with _registry(ctx) as reg:
        reg.admin_destroy(caller or _state(ctx).admin, asset_id)
        typer.echo(f"asset {asset_id} destroyed")


@app.command("set-metadata")
def set_metadata(
    ctx: typer.Context,
    asset_id: int = typer.Argument(..., help="Asset id"),
    metadata: str = typer.Argument(..., help="New metadata string"),
    caller: str = typer.Option(..., "--caller", help="Owner identity"),
):
    """
    Replace the metadata of an owned, live asset.
    """
    with _registry(ctx) as reg:
        reg.update_metadata(caller, asset_id, metadata)
        typer.echo(f"asset {asset_id} metadata updated")


@app.command("show")
def show(ctx: typer.Context, asset_id: int = typer.Argument(..., help="Asset id")):
    """
    Print asset details as JSON.
    """
    with _registry(ctx) as reg:
        rec = reg.asset_details(asset_id)
    if rec is None:
        typer.echo(f"asset {asset_id} not found", err=True)
        raise typer.Exit(code=1)
    _echo_json(rec.to_dict())


@app.command("list")
def list_assets(
    ctx: typer.Context,
    start: int = typer.Option(1, "--start", min=1, help="First id"),
    count: int = typer.Option(20, "--count", min=1, help="Number of ids (capped at the bulk limit)"),
):
    with _registry(ctx) as reg:
        _echo_json([r.to_dict() for r in reg.details_range(start, count)])


@app.command("audit")
def audit(ctx: typer.Context, asset_id: int = typer.Argument(..., help="Asset id")):
    """
    Print audit records of one asset, one JSON object per line.
    """
    with _registry(ctx) as reg:
        for rec in reg.audit_records(asset_id):
            typer.echo(json.dumps(rec.to_dict(), sort_keys=True))


@app.command("stats")
def stats(ctx: typer.Context):
    with _registry(ctx) as reg:
        _echo_json(reg.stats())


@app.command("rebuild-audit")
def rebuild_audit(ctx: typer.Context):
    """
    Rewrite transfer counters and last-operation markers from the audit log.
    """
    with _registry(ctx) as reg:
        n = reg.rebuild_audit_cache()
        typer.echo(f"rebuilt {n} assets")


@app.command("serve")
def serve(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: settings)"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (default: settings)"),
):
    """
    Serve the HTTP API on the selected store.
    """
    import uvicorn

    from .api.app import create_app

    st = _state(ctx)
    cfg = st.settings.model_copy(update={"db_uri": st.db, "administrator": st.admin})
    setup_logging(level=cfg.log_level, log_format=cfg.log_format)
    log.info("serve", host=host or cfg.host, port=port or cfg.port, db=cfg.db_uri)
    uvicorn.run(create_app(cfg), host=host or cfg.host, port=port or cfg.port)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
