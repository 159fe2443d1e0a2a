from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from gwauth.config import load_settings
from gwauth.errors import GwAuthError, ValidationError
from gwauth.naming.derive import derive_resource_id
from gwauth.orchestrator.pipeline import run_patch
from gwauth.patch.applier import planned_fields, validate_declarations
from gwauth.service.declarations import declarations_from_service, load_service


app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()
logger = logging.getLogger("gwauth")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _fail(exc: GwAuthError) -> NoReturn:
    logger.error("%s", exc)
    console.print(f"[bold red]error[/bold red]: {exc}")
    if isinstance(exc, ValidationError) and len(exc.problems) > 1:
        for p in exc.problems:
            console.print(f"  - {p}")
    raise typer.Exit(code=1)


@app.callback()
def root(
    log_level: Optional[str] = typer.Option(None, help="Log level (default: $GWAUTH_LOG_LEVEL or WARNING)"),
) -> None:
    settings = load_settings(log_level=log_level)
    _setup_logging(settings.log_level)


@app.command()
def derive(
    path: str = typer.Argument(..., help="http event path, e.g. items/{id}"),
    method: str = typer.Argument(..., help="HTTP method"),
) -> None:
    settings = load_settings()
    console.print(derive_resource_id(path, method, prefix=settings.resource_prefix))


@app.command()
def plan(
    service: str = typer.Argument(..., help="Service definition (JSON)"),
) -> None:
    settings = load_settings()
    try:
        declarations = declarations_from_service(load_service(Path(service).expanduser()))
        problems = validate_declarations(declarations)
        if problems:
            raise ValidationError(problems)
    except GwAuthError as exc:
        _fail(exc)

    todo = [d for d in declarations if d.needs_patch]
    console.print(f"[bold]http events:[/bold] {len(declarations)}, needing patches: {len(todo)}")

    table = Table(show_header=True, header_style="bold")
    table.add_column("FUNCTION", no_wrap=True)
    table.add_column("METHOD", no_wrap=True)
    table.add_column("PATH")
    table.add_column("RESOURCE")
    table.add_column("WRITES")

    for d in todo:
        table.add_row(
            d.function_name,
            d.method.upper(),
            d.path,
            derive_resource_id(d.path, d.method, prefix=settings.resource_prefix),
            ", ".join(planned_fields(d)),
        )

    console.print(table)


@app.command()
def apply(
    service: str = typer.Argument(..., help="Service definition (JSON)"),
    template: str = typer.Argument(..., help="Compiled CloudFormation template (JSON)"),
    out: Optional[str] = typer.Option(None, help="Output path (default: overwrite template)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Resolve and patch in memory only"),
) -> None:
    settings = load_settings()
    try:
        result = run_patch(
            Path(service).expanduser(),
            Path(template).expanduser(),
            out_path=Path(out) if out else None,
            dry_run=dry_run,
            settings=settings,
        )
    except GwAuthError as exc:
        _fail(exc)

    console.print(f"[bold green]gwauth[/bold green] apply: {template}")
    console.print(f"http events: {len(result.declarations)}")
    console.print(f"Patched resources: [bold]{result.patched}[/bold]")
    for a in result.applied:
        console.print(f"  {a.method.upper():<6} {a.path:<35} -> {a.resource_id} ({', '.join(a.fields)})")

    if result.written:
        console.print(f"[bold green]Wrote[/bold green] patched template to: {result.out_path}")
    else:
        console.print("Dry run: nothing written.")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
