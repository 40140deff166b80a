"""Servicebay CLI - Main Entry Point.

Commands:
    run      - Start a container and keep it running until interrupted
    inspect  - Run discovery only and report what would be started
    config   - Print the resolved layered configuration
"""

import asyncio
import json
import logging
import signal
import sys
from typing import Any, Dict, Optional, Tuple

import click

from . import __version__, __cli_name__
from .output import (
    _CHECK,
    _CROSS,
    bullet,
    dim,
    error,
    info,
    kv,
    section,
    success,
    warning,
)
from ..config import YAMLConfigReader
from ..container import Container
from ..errors import ContainerError


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    logging.getLogger("servicebay").setLevel(level)


def _build_container(
    name: Optional[str],
    packages: Tuple[str, ...],
    classes: Tuple[str, ...],
    configs: Tuple[str, ...],
    env_file: Optional[str],
) -> Container:
    reader = YAMLConfigReader(extra_paths=configs, env_file=env_file)
    container = Container(name, config_reader=reader)
    for package in packages:
        container.add_package_to_scan(package)
    for class_name in classes:
        container.add_class_to_scan(class_name)
    return container


async def _serve(container: Container, check: bool) -> None:
    try:
        await container.start()
        if check:
            return

        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, stop_event.set)
            except NotImplementedError:
                # Windows event loops; KeyboardInterrupt still ends the run
                pass
        await stop_event.wait()
    finally:
        await container.stop()


def _describe_discovery(container: Container) -> Dict[str, Any]:
    return {
        "name": container.name,
        "services": [
            {
                "type": record.name,
                "marker": record.descriptor.marker.value if record.descriptor.marker else None,
                "intercepted": record.intercepted,
            }
            for record in container.service_records
        ],
        "addons": [
            f"{type(addon).__module__}.{type(addon).__qualname__}"
            for addon in container.discovered_addons
        ],
        "types": [
            f"{cls.__module__}.{cls.__qualname__}"
            for cls in container.discovered_types
        ],
        "warnings": [str(w) for w in container.discovery_warnings],
    }


# Shared scan-target options
_package_option = click.option(
    '--package', '-p', 'packages', multiple=True, help='Package to scan (repeatable)'
)
_class_option = click.option(
    '--class', '-c', 'classes', multiple=True, help='Fully-qualified class to scan (repeatable)'
)
_config_option = click.option(
    '--config', 'configs', multiple=True, type=click.Path(dir_okay=False),
    help='Extra YAML config file, highest precedence (repeatable)',
)
_env_file_option = click.option(
    '--env-file', type=click.Path(dir_okay=False), help='.env file feeding ${VAR} interpolation'
)


@click.group()
@click.version_option(version=__version__, prog_name=__cli_name__)
@click.option('--verbose', '-v', is_flag=True, help='Verbose output')
@click.option('--quiet', '-q', is_flag=True, help='Minimal output')
@click.pass_context
def cli(ctx, verbose: bool, quiet: bool):
    """Discover, wire and run singleton services.

    \b
    Quick start:
      servicebay inspect -p myapp.services
      servicebay run -p myapp.services
    """
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose
    ctx.obj['quiet'] = quiet
    _configure_logging(verbose, quiet)


# ============================================================================
# Commands
# ============================================================================

@cli.command('run')
@_package_option
@_class_option
@_config_option
@_env_file_option
@click.option('--name', type=str, help='Container name (config may override)')
@click.option('--check', is_flag=True, help='Start and stop immediately (boot smoke test)')
@click.pass_context
def run(ctx, packages, classes, configs, env_file, name: Optional[str], check: bool):
    """
    Start a container and run until SIGINT/SIGTERM.

    Examples:
      servicebay run -p myapp.services
      servicebay run -p myapp.services --config conf/prod.yaml
      servicebay run -c myapp.clock.Clock --check
    """
    container = _build_container(name, packages, classes, configs, env_file)

    try:
        asyncio.run(_serve(container, check))
    except KeyboardInterrupt:
        if not ctx.obj['quiet']:
            info(f"\n{_CHECK} Container stopped")
        return
    except ContainerError as e:
        error(f"{_CROSS} Container error: {e}")
        sys.exit(1)

    if not ctx.obj['quiet']:
        for w in container.discovery_warnings:
            warning(f"  ! {w}")
        for e in container.teardown_errors:
            warning(f"  ! {e}")
        success(f"{_CHECK} Container '{container.name}' stopped")


@cli.command('inspect')
@_package_option
@_class_option
@_config_option
@_env_file_option
@click.option('--name', type=str, help='Container name (config may override)')
@click.option('--json-output', is_flag=True, help='Output as JSON')
@click.pass_context
def inspect_cmd(ctx, packages, classes, configs, env_file, name: Optional[str], json_output: bool):
    """
    Run discovery only and list what start() would initialize.

    Examples:
      servicebay inspect -p myapp.services
      servicebay inspect -p myapp.services --json-output
    """
    container = _build_container(name, packages, classes, configs, env_file)
    asyncio.run(container.discover())
    report = _describe_discovery(container)

    if json_output:
        click.echo(json.dumps(report, indent=2))
        return

    section(f"Container '{report['name']}'")
    kv("Types considered", len(report["types"]))
    kv("Services", len(report["services"]))
    kv("Addons", len(report["addons"]))
    kv("Warnings", len(report["warnings"]))

    if report["services"]:
        click.echo()
        section("Services")
        for entry in report["services"]:
            suffix = " (intercepted)" if entry["intercepted"] else ""
            bullet(f"{entry['type']}{suffix}")

    if report["addons"]:
        click.echo()
        section("Addons")
        for addon in report["addons"]:
            bullet(addon)

    if report["warnings"]:
        click.echo()
        section("Warnings", fg="yellow")
        for w in report["warnings"]:
            warning(f"  ! {w}")
    elif not ctx.obj['quiet']:
        click.echo()
        dim("  No discovery warnings")


@cli.command('config')
@_config_option
@_env_file_option
@click.option('--json-output', is_flag=True, help='Output as JSON')
def config_cmd(configs, env_file, json_output: bool):
    """
    Print the resolved layered configuration.

    Examples:
      servicebay config
      servicebay config --config conf/local.yaml --json-output
    """
    reader = YAMLConfigReader(extra_paths=configs, env_file=env_file)
    try:
        store = reader.read()
    except ContainerError as e:
        error(f"{_CROSS} {e}")
        sys.exit(1)

    if json_output:
        click.echo(json.dumps(store.all(), indent=2, default=str))
        return

    section("Configuration")
    for source in reader.mounted:
        dim(f"  mounted {source}")
    for key, value in store.items():
        kv(key, json.dumps(value, default=str), key_width=32)


def main():
    """Entry point for `servicebay` command."""
    cli(obj={})


if __name__ == '__main__':
    main()
