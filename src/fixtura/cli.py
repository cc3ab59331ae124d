"""
fixtura command line.

Inspect the factories a test suite declares without running the suite:

    fixtura factories tests.factories
    fixtura plan tests.factories --factory user --trait admin
    fixtura attributes tests.factories --factory user --trait admin --set name=Ann

MODULE arguments are importable modules that declare factories on import.
"""

from __future__ import annotations

import importlib
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from rich.console import Console
from rich.table import Table

from ._version import get_version
from .core.config import load_config
from .core.errors import FixturaError
from .core.ir import Association, Computed, Fixed
from .core.logging import setup_logging
from .core.registry import get_registry
from .core.runner import configure, get_runner

app = typer.Typer(
    help="fixtura - trait-based test data factories",
    no_args_is_help=True,
)

console = Console()

ModulesArg = Annotated[list[str], typer.Argument(help="Modules that declare factories")]
FactoryOpt = Annotated[str, typer.Option("--factory", "-f", help="Factory name")]
TraitsOpt = Annotated[
    list[str] | None,
    typer.Option("--trait", "-t", help="Call-time trait, repeatable, applied in order"),
]


def version_callback(value: bool) -> None:
    if value:
        typer.echo(f"fixtura {get_version()}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log at DEBUG level")] = False,
    log_file: Annotated[
        Path | None, typer.Option("--log-file", help="Also write JSONL logs to this file")
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Config file (default: fixtura.toml or pyproject.toml)"),
    ] = None,
) -> None:
    """Global options."""
    try:
        settings = load_config(config)
    except FixturaError as e:
        raise _fail(e) from e

    configure(settings)
    setup_logging("DEBUG" if verbose else settings.log_level, log_file=log_file)


def _fail(error: FixturaError, prefix: str = "") -> typer.Exit:
    """Report an error and its notes on stderr; returns the Exit to raise."""
    typer.echo(f"Error: {prefix}{error}", err=True)
    for note in getattr(error, "__notes__", ()):
        typer.echo(f"  {note}", err=True)
    return typer.Exit(code=1)


def _load_modules(modules: list[str]) -> None:
    for name in modules:
        try:
            importlib.import_module(name)
        except ImportError as e:
            typer.echo(f"Error: cannot import {name}: {e}", err=True)
            raise typer.Exit(code=1) from e
        except FixturaError as e:
            raise _fail(e, prefix=f"{name}: ") from e


def _describe(value: Fixed | Computed | Association) -> str:
    if isinstance(value, Fixed):
        return repr(value.value)
    if isinstance(value, Computed):
        return f"computed {getattr(value.fn, '__name__', 'fn')}"
    target = value.factory or "(same name)"
    traits = f" [{', '.join(value.traits)}]" if value.traits else ""
    return f"association {target}{traits}"


def _parse_assignment(assignment: str) -> tuple[str, Any]:
    """Parse key=value; the value is read as JSON when it parses, else kept as text."""
    key, sep, raw = assignment.partition("=")
    if not sep or not key:
        raise typer.BadParameter(f"Expected key=value, got '{assignment}'", param_hint="--set")
    try:
        return key, json.loads(raw)
    except json.JSONDecodeError:
        return key, raw


@app.command(name="factories")
def factories_command(modules: ModulesArg) -> None:
    """List registered factories and traits."""
    _load_modules(modules)
    registry = get_registry()

    if not registry.factories:
        console.print("[dim]No factories registered.[/dim]")
        return

    table = Table(title="Factories")
    table.add_column("Factory")
    table.add_column("Parent", style="dim")
    table.add_column("Model")
    table.add_column("Traits")
    table.add_column("Local traits")

    for definition in registry.factories.values():
        model = definition.build_class
        table.add_row(
            definition.name,
            definition.parent.name if definition.parent else "",
            model.__name__ if model is not None else "",
            ", ".join(definition.applied_traits),
            ", ".join(definition.traits),
        )

    console.print(table)
    if registry.traits:
        console.print(f"Global traits: {', '.join(registry.traits)}")


@app.command(name="plan")
def plan_command(modules: ModulesArg, factory: FactoryOpt, trait: TraitsOpt = None) -> None:
    """Show the compiled layer stack and where each attribute comes from."""
    _load_modules(modules)
    try:
        plan = get_runner().compile(factory, trait or ())
    except FixturaError as e:
        raise _fail(e) from e

    layers = Table(title=f"Layers for '{plan.factory}' (lowest precedence first)")
    layers.add_column("#", style="dim")
    layers.add_column("Layer")
    layers.add_column("Attributes")
    layers.add_column("Hooks")
    for index, layer in enumerate(plan.layers, start=1):
        hooks = []
        if layer.constructor is not None:
            hooks.append("constructor")
        if layer.persistor is not None:
            hooks.append("persistor")
        hooks.extend(str(callback.event) for callback in layer.callbacks)
        layers.add_row(
            str(index),
            layer.label,
            ", ".join(declaration.name for declaration in layer.attributes),
            ", ".join(hooks),
        )
    console.print(layers)

    attributes = Table(title="Attributes")
    attributes.add_column("Name")
    attributes.add_column("Value")
    attributes.add_column("From")
    for declaration in plan.attributes:
        attributes.add_row(declaration.name, _describe(declaration.value), declaration.origin)
    console.print(attributes)


@app.command(name="attributes")
def attributes_command(
    modules: ModulesArg,
    factory: FactoryOpt,
    trait: TraitsOpt = None,
    assignments: Annotated[
        list[str] | None,
        typer.Option("--set", "-s", help="Override as key=value (JSON values accepted)"),
    ] = None,
) -> None:
    """Print attributes_for the factory as JSON."""
    _load_modules(modules)
    overrides = dict(_parse_assignment(item) for item in assignments or ())
    try:
        result = get_runner().attributes_for(factory, *(trait or ()), **overrides)
    except FixturaError as e:
        raise _fail(e) from e

    typer.echo(json.dumps(result, indent=2, default=str))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
