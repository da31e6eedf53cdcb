"""Typer-based command line interface for the SapCloud client."""
from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Optional

import click
import typer

from ..auth import AuthOrchestrator, AuthOutcome
from ..config import AppConfig, dump_default_config, load_config
from ..crypto import KeyStore, Signer
from ..exceptions import SapCloudError
from ..logging import configure_logging
from ..transport import HttpTransport

app = typer.Typer(help="SapCloud client identity and authentication")


@app.callback()
def main(ctx: typer.Context, config: Optional[Path] = typer.Option(None, "--config", metavar="PATH")) -> None:
    try:
        ctx.obj = load_config(config)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2)
    configure_logging(ctx.obj.logging.normalized_level())


def _config() -> AppConfig:
    return click.get_current_context().obj


def _fail(exc: SapCloudError) -> None:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=1)


def _load_identity(config: AppConfig) -> KeyStore:
    store = KeyStore(comment=config.identity.comment)
    try:
        store.load_private_key(config.identity.key_path, config.identity.passphrase_bytes())
    except SapCloudError as exc:
        _fail(exc)
    return store


@app.command()
def keygen(
    force: bool = typer.Option(False, "--force", help="Overwrite an existing identity"),
) -> None:
    """Generate a device identity and write it to the configured key path."""
    config = _config()
    identity = config.identity
    if identity.key_path.exists() and not force:
        typer.echo(f"Identity already exists at {identity.key_path} (use --force to replace it)", err=True)
        raise typer.Exit(code=2)
    store = KeyStore(comment=identity.comment)
    try:
        store.generate_key_pair()
        store.save_private_key(identity.key_path, identity.passphrase_bytes())
        store.save_public_key(identity.public_key_path)
    except SapCloudError as exc:
        _fail(exc)
    typer.echo(f"Generated new SSH key pair in {identity.key_path.parent}")
    typer.echo(store.get_public_key_string())


@app.command()
def pubkey() -> None:
    """Print the portable public key of the configured identity."""
    store = _load_identity(_config())
    typer.echo(store.get_public_key_string())


@app.command()
def sign(challenge: str = typer.Argument(..., help="Base64 challenge issued by the server")) -> None:
    """Sign a base64 challenge and print the base64 signature."""
    store = _load_identity(_config())
    try:
        typer.echo(Signer(store).sign_challenge(challenge))
    except SapCloudError as exc:
        _fail(exc)


@app.command()
def login() -> None:
    """Run the challenge-response handshake against the configured server."""
    config = _config()
    outcome = asyncio.run(_login(config))
    typer.echo(json.dumps(outcome.as_dict(), indent=2))
    if not outcome.succeeded:
        raise typer.Exit(code=1)


async def _login(config: AppConfig) -> AuthOutcome:
    async with HttpTransport(config.server) as transport:
        orchestrator = AuthOrchestrator.from_config(config, transport)
        return await orchestrator.authenticate()


@app.command("config-init")
def config_init(target: Path = typer.Argument(..., help="Where to write the default configuration")) -> None:
    dump_default_config(target)
    typer.echo(f"Default configuration written to {target}")


@app.command()
def version() -> None:
    from ..version import __version__

    typer.echo(f"sapcloud-client {__version__}")


if __name__ == "__main__":  # pragma: no cover
    app()
