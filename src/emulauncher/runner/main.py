from __future__ import annotations

import json
from typing import Any

import typer

from emulauncher.boundary.status import Envelope, StatusBoundary
from emulauncher.config.loader import load_settings
from emulauncher.device.android_emulator import AndroidEmulatorManager
from emulauncher.device.models import GpuMode, LaunchOptions
from emulauncher.utils.logging import bind_context

# Create a CLI application using Typer
app = typer.Typer(add_completion=False, help="Manage Android virtual devices.")


@app.callback()
def main(
    ctx: typer.Context,
    config: str = typer.Option(None, help="Path to the YAML configuration file"),
) -> None:
    """Load settings once and build the manager used by the invoked command."""
    settings = load_settings(config)
    ctx.obj = StatusBoundary(AndroidEmulatorManager(settings))


def _emit(envelope: Envelope) -> Any:
    typer.echo(json.dumps(envelope.to_payload(), ensure_ascii=False))
    raise typer.Exit(code=0 if envelope.success else 1)


def _options(
    cold_boot: bool, wipe_data: bool, no_audio: bool, gpu: GpuMode | None, read_only: bool
) -> LaunchOptions | None:
    # No flag at all means "use the configured defaults"
    if not (cold_boot or wipe_data or no_audio or read_only) and gpu is None:
        return None
    return LaunchOptions(
        cold_boot=cold_boot,
        wipe_data=wipe_data,
        no_audio=no_audio,
        gpu_mode=gpu,
        read_only=read_only,
    )


@app.command("sdk-status")
def sdk_status(ctx: typer.Context) -> Any:
    """Report whether the SDK, the emulator and adb were found."""
    bind_context(operation="sdk_status")
    _emit(ctx.obj.sdk_status())


@app.command("list")
def list_devices(ctx: typer.Context) -> Any:
    """List configured AVDs and whether they are running."""
    bind_context(operation="list")
    _emit(ctx.obj.list_devices())


@app.command()
def launch(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="AVD name"),
    cold_boot: bool = typer.Option(False, "--cold-boot", help="Skip the quick-boot snapshot"),
    wipe_data: bool = typer.Option(False, "--wipe-data", help="Reset user data"),
    no_audio: bool = typer.Option(False, "--no-audio", help="Disable audio"),
    gpu: GpuMode = typer.Option(None, "--gpu", help="GPU rendering mode"),
    read_only: bool = typer.Option(False, "--read-only", help="Run the AVD read-only"),
) -> Any:
    """Start one AVD in the background."""
    bind_context(device=name, operation="launch")
    _emit(ctx.obj.launch(name, _options(cold_boot, wipe_data, no_audio, gpu, read_only)))


@app.command()
def kill(ctx: typer.Context, name: str = typer.Argument(..., help="AVD name")) -> Any:
    """Stop one AVD."""
    bind_context(device=name, operation="kill")
    _emit(ctx.obj.kill(name))


@app.command("launch-multiple")
def launch_multiple(
    ctx: typer.Context,
    names: list[str] = typer.Argument(..., help="AVD names, launched in order"),
    cold_boot: bool = typer.Option(False, "--cold-boot", help="Skip the quick-boot snapshot"),
    wipe_data: bool = typer.Option(False, "--wipe-data", help="Reset user data"),
    no_audio: bool = typer.Option(False, "--no-audio", help="Disable audio"),
    gpu: GpuMode = typer.Option(None, "--gpu", help="GPU rendering mode"),
    read_only: bool = typer.Option(False, "--read-only", help="Run the AVDs read-only"),
) -> Any:
    """Start several AVDs; one failure does not stop the others."""
    bind_context(operation="launch_multiple")
    _emit(ctx.obj.launch_multiple(names, _options(cold_boot, wipe_data, no_audio, gpu, read_only)))


if __name__ == "__main__":
    app()
