"""Typer CLI entrypoint."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer

from hwprovider.core.envelope import Message, Transaction
from hwprovider.core.errors import HWProviderError
from hwprovider.core.provider import HWProvider

app = typer.Typer(help="Hardware wallet signing through capability-aware transports")

TransportOption = typer.Option(None, "--transport", help="usb, ble, hid or u2f (default: first available)")
IndexOption = typer.Option(None, "--index", min=0, help="Address index on the device")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _build_provider() -> HWProvider:
    provider = HWProvider()
    for warning in getattr(provider, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return provider


def _connect(transport: str | None) -> HWProvider:
    provider = _build_provider()
    provider.connect(transport)
    return provider


def _fail(exc: Exception) -> None:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1) from None


@app.command("transports")
def list_transports() -> None:
    """List transport types in probe order and whether they are usable here."""
    try:
        provider = _build_provider()
        supported = set(provider.selector.supported_types())
        for candidate in provider.selector.candidates:
            status = "supported" if candidate.transport_type in supported else "unavailable"
            typer.echo(f"{candidate.transport_type}: {status}")
    except HWProviderError as exc:
        _fail(exc)


@app.command("info")
def show_info(transport: str | None = TransportOption) -> None:
    """Show the device app version and the capabilities derived from it."""
    try:
        provider = _connect(transport)
        try:
            config = provider.get_app_configuration()
            capabilities = provider.get_capabilities()
        finally:
            provider.close()
        typer.echo(f"Profile: {provider.profile.name}")
        typer.echo(f"App version: {config.version}")
        typer.echo(f"Account index: {config.account_index}, address index: {config.address_index}")
        typer.echo(f"Sign using hash: {'yes' if capabilities.must_sign_using_hash else 'no'}")
        typer.echo(f"Guarded transactions: {'yes' if capabilities.supports_guardian_option else 'no'}")
    except HWProviderError as exc:
        _fail(exc)


@app.command("accounts")
def list_accounts(
    page: int = typer.Option(0, "--page", min=0),
    page_size: int = typer.Option(10, "--page-size", min=1),
    transport: str | None = TransportOption,
) -> None:
    """List device addresses, one page at a time."""
    try:
        provider = _connect(transport)
        try:
            addresses = provider.get_accounts(page, page_size)
        finally:
            provider.close()
        start = page * page_size
        for offset, address in enumerate(addresses):
            typer.echo(f"{start + offset}: {address}")
    except HWProviderError as exc:
        _fail(exc)


@app.command("address")
def show_address(
    index: int = typer.Option(0, "--index", min=0, help="Address index on the device"),
    transport: str | None = TransportOption,
) -> None:
    """Select an address on the device and display it there for verification."""
    try:
        provider = _connect(transport)
        try:
            address = provider.login(index)
        finally:
            provider.close()
        typer.echo(address)
    except HWProviderError as exc:
        _fail(exc)


@app.command("sign-message")
def sign_message(
    text: str,
    index: int | None = IndexOption,
    transport: str | None = TransportOption,
) -> None:
    """Sign TEXT as a message with the selected address."""
    try:
        provider = _connect(transport)
        try:
            if index is not None:
                provider.set_address_index(index)
            message = Message(data=text.encode("utf-8"), address=provider.get_address())
            signed = provider.sign_message(message)
        finally:
            provider.close()
        typer.echo(f"address={signed.address}")
        typer.echo(f"signature={signed.signature.hex()}")
    except HWProviderError as exc:
        _fail(exc)


@app.command("sign-tx")
def sign_transactions(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON transaction or list of transactions"),
    index: int | None = IndexOption,
    transport: str | None = TransportOption,
) -> None:
    """Sign the transaction(s) in PATH and print them as signed JSON."""
    try:
        try:
            doc = json.loads(path.read_text(encoding="utf-8"))
            batch = isinstance(doc, list)
            transactions = [Transaction.from_dict(item) for item in (doc if batch else [doc])]
        except (ValueError, KeyError, TypeError) as exc:
            typer.echo(f"Error: Invalid transaction file {path}: {exc}", err=True)
            raise typer.Exit(code=1) from None

        provider = _connect(transport)
        try:
            if index is not None:
                provider.set_address_index(index)
            signed = provider.sign_transactions(transactions)
        finally:
            provider.close()
        output = [tx.to_dict() for tx in signed]
        typer.echo(json.dumps(output if batch else output[0], indent=2))
    except HWProviderError as exc:
        _fail(exc)


@app.command("token-login")
def token_login(
    token: str,
    index: int | None = IndexOption,
    transport: str | None = TransportOption,
) -> None:
    """Sign an auth TOKEN, proving ownership of the selected address."""
    try:
        provider = _connect(transport)
        try:
            proof = provider.token_login(token.encode("utf-8"), index)
        finally:
            provider.close()
        typer.echo(f"address={proof.address}")
        typer.echo(f"signature={proof.signature.hex()}")
    except HWProviderError as exc:
        _fail(exc)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
