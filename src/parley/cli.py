"""
Parley CLI.

Commands:
- catalog: List downloadable models
- download: Download a model with a progress bar
- installed / active / select / delete: Manage installed models
- translate: Translate a line of text with the active model
- languages: List supported languages
- serve: Start the conversation server
"""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from .errors import ParleyError

app = typer.Typer(
    name="parley",
    help="Face-to-face conversation translation with a local model",
)
console = Console()


def _store():
    from .config import ParleyConfig
    from .model_store import ModelStore

    return ModelStore.from_config(ParleyConfig())


def _fail(exc: ParleyError) -> None:
    console.print(f"[red]✗ {exc}[/red]")
    raise typer.Exit(1)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Show log output"),
):
    """Face-to-face conversation translation with a local model."""
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


@app.command()
def catalog():
    """List models available for download."""
    store = _store()
    active = store.get_active()

    table = Table(title="Available models")
    table.add_column("Identifier", style="cyan")
    table.add_column("Name")
    table.add_column("Size", justify="right")
    table.add_column("Status")

    for descriptor in store.catalog:
        path = store.path_for(descriptor)
        if active is not None and active == path:
            status = "[green]active[/green]"
        elif path.is_file():
            status = "installed"
        else:
            status = "[dim]not installed[/dim]"
        table.add_row(descriptor.identifier, descriptor.name, descriptor.size, status)

    console.print(table)


@app.command()
def download(
    identifier: str = typer.Argument(..., help="Model identifier from the catalog"),
):
    """Download a model and make it the active one."""
    store = _store()
    descriptor = store.find(identifier)
    if descriptor is None:
        console.print(f"[red]Unknown model: {identifier}[/red]")
        raise typer.Exit(1)

    console.print(f"[blue]Downloading {descriptor.name}[/blue]")
    console.print(f"  Size: {descriptor.size}")
    console.print(f"  Destination: {store.path_for(descriptor)}")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task(f"Downloading {descriptor.file_name}...", total=1.0)
        try:
            path = store.download(
                descriptor, on_progress=lambda f: progress.update(task, completed=f)
            )
        except ParleyError as exc:
            _fail(exc)
        progress.update(task, description=f"[green]✓ {descriptor.identifier} downloaded[/green]")

    console.print(f"[green]✓[/green] Active model: {path}")


@app.command()
def installed():
    """List installed model files."""
    store = _store()
    models = store.installed()
    if not models:
        console.print("[yellow]No models installed.[/yellow]")
        return

    active = store.get_active()
    table = Table(title=f"Installed models in {store.models_dir}")
    table.add_column("File", style="cyan")
    table.add_column("Size (MB)", justify="right")
    table.add_column("Installed")
    table.add_column("Active")

    for model in models:
        table.add_row(
            model.path.name,
            f"{model.size_bytes / 1024 / 1024:.1f}",
            model.installed_at.strftime("%Y-%m-%d %H:%M"),
            "✓" if active == model.path else "",
        )

    console.print(table)


@app.command()
def active():
    """Show the active model."""
    path = _store().get_active()
    if path is None:
        console.print("[yellow]No model selected.[/yellow]")
    else:
        console.print(str(path))


@app.command()
def select(
    path: Path = typer.Argument(..., help="Installed model file"),
):
    """Make an installed model the active one."""
    try:
        selected = _store().select_active(path)
    except ParleyError as exc:
        _fail(exc)
    console.print(f"[green]✓[/green] Active model: {selected}")


@app.command()
def delete(
    path: Path = typer.Argument(..., help="Installed model file"),
):
    """Delete an installed model."""
    try:
        _store().delete(path)
    except ParleyError as exc:
        _fail(exc)
    console.print(f"[green]✓[/green] Deleted {path}")


@app.command()
def translate(
    text: str = typer.Argument(..., help="Text to translate"),
    source_lang: str = typer.Option("en", "-s", "--source", help="Source language"),
    target_lang: str = typer.Option("es", "-t", "--target", help="Target language"),
):
    """Translate a line of text with the active model."""
    from .config import ParleyConfig
    from .model_store import ModelStore
    from .translation import TranslationEngine, TransformersRuntime

    config = ParleyConfig()
    engine = TranslationEngine(
        ModelStore.from_config(config),
        TransformersRuntime(config.device, config.dtype),
        config.generation_params(),
    )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        progress.add_task("Translating...", total=None)
        try:
            result = asyncio.run(engine.translate(text, source_lang, target_lang))
        except ParleyError as exc:
            _fail(exc)

    console.print(f"[green]✓[/green] Translation: {result}")
    console.print(f"Source: {source_lang} → Target: {target_lang}")


@app.command()
def languages():
    """List supported languages."""
    from .config import ParleyConfig
    from .languages import language_name, speech_locale

    for tag in ParleyConfig().supported_languages:
        console.print(f"  [cyan]{tag}[/cyan]  {language_name(tag)} ({speech_locale(tag)})")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", "--host", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", help="Port to listen on"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
):
    """Start the conversation server."""
    import uvicorn

    console.print(f"[bold blue]Starting Parley server on {host}:{port}[/bold blue]")

    uvicorn.run(
        "parley.streaming:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"Parley v{__version__}")


if __name__ == "__main__":
    app()
