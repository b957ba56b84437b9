"""Typer CLI entrypoint."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import replace
from pathlib import Path

import typer

from z2madapter.api import Bridge
from z2madapter.core.config import load_config
from z2madapter.core.errors import AdapterError, ConfigError
from z2madapter.core.model import DeviceDescription

app = typer.Typer(help="Bridge zigbee2mqtt devices into a device-control host")


def _configure_logging(level: str) -> None:
    if not isinstance(logging.getLevelName(level.upper()), int):
        raise ConfigError(f"Unknown log level '{level}'")
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_bridge(
    config_path: Path | None = None,
    prefix: str | None = None,
    host: str | None = None,
    port: int | None = None,
) -> Bridge:
    config = load_config(config_path)
    if prefix:
        config = replace(config, prefix=prefix.strip("/"))
    if host or port:
        mqtt = replace(config.mqtt, host=host or config.mqtt.host, port=port or config.mqtt.port)
        config = replace(config, mqtt=mqtt)
    bridge = Bridge(config)
    for warning in getattr(bridge, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return bridge


def _echo_description(description: DeviceDescription) -> None:
    types = ", ".join(description.type) or "-"
    typer.echo(f"  name: {description.name} [{types}]")
    for name, prop in sorted(description.properties.items()):
        flags = " read-only" if prop.read_only else ""
        unit = f" {prop.unit}" if prop.unit else ""
        typer.echo(f"  property {name}: {prop.type}{unit}{flags}")
    for name in sorted(description.actions):
        typer.echo(f"  action {name}")
    for name, event in sorted(description.events.items()):
        source = f" <- {event.source}" if event.source else ""
        typer.echo(f"  event {name}{source}")


@app.command("run")
def run_adapter(
    config: Path | None = typer.Option(None, "--config", help="Path to config YAML"),
    prefix: str | None = typer.Option(None, "--prefix", help="Topic prefix"),
    host: str | None = typer.Option(None, "--host", help="MQTT broker host"),
    port: int | None = typer.Option(None, "--port", help="MQTT broker port"),
    log_level: str = typer.Option("info", "--log-level", help="Logging level"),
) -> None:
    """Connect to the broker and bridge devices until interrupted."""
    try:
        _configure_logging(log_level)
        bridge = _build_bridge(config, prefix, host, port)
        asyncio.run(bridge.run())
    except AdapterError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        typer.echo("Stopped")


@app.command("catalog")
def list_catalog() -> None:
    """List the static catalog entries and their capabilities."""
    try:
        bridge = _build_bridge()
        entries = bridge.list_catalog()
        if not entries:
            typer.echo("No catalog entries loaded")
            raise typer.Exit(code=1)

        for model_id, description in entries:
            typer.echo(f"{model_id}:")
            _echo_description(description)
    except AdapterError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("infer")
def infer_device(
    path: Path = typer.Argument(..., help="JSON device record or bridge/devices payload"),
) -> None:
    """Show the description each device record resolves to."""
    try:
        try:
            doc = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            typer.echo(f"Error: Could not read {path}: {exc}", err=True)
            raise typer.Exit(code=1) from None

        bridge = _build_bridge()
        records = doc if isinstance(doc, list) else [doc]
        for record in records:
            friendly_name, source, description = bridge.describe(record)
            if description is None:
                typer.echo(f"{friendly_name}: <no definition>")
                continue
            typer.echo(f"{friendly_name}: from {source}")
            _echo_description(description)
    except AdapterError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("pair")
def pair(
    config: Path | None = typer.Option(None, "--config", help="Path to config YAML"),
    timeout: float | None = typer.Option(None, "--timeout", help="Pairing window in seconds"),
) -> None:
    """Ask the bridge to re-announce its devices."""
    try:
        bridge = _build_bridge(config)
        asyncio.run(bridge.pair(timeout))
        typer.echo(f"Pairing request sent to {bridge.config.prefix}/bridge/config/devices/get")
    except AdapterError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
