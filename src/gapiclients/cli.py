"""
Command line: regenerate the client modules and the catalog page.
"""
from pathlib import Path
from typing import List, Optional
import asyncio
import json
import logging

import typer
from rich.console import Console
from rich.table import Table

from .access import auth
from .discovery import list_apis
from .generator.compile import CodeModule, api_modules, index_html

app = typer.Typer(no_args_is_help=True, help="Google API client generator.")

_console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_auth_config(path: Optional[Path]) -> None:
    if path is None:
        return
    with open(path, "r", encoding="utf-8") as f:
        auth.config = json.load(f)


def write_modules(out: Path, modules: List[CodeModule], index: str) -> List[Path]:
    """
    Lay the modules out as build/<version>/<name>.py and the catalog as
    docs/index.html under the output root.
    """
    written = []
    docs = out / "docs"
    docs.mkdir(parents=True, exist_ok=True)
    (docs / "index.html").write_text(index, encoding="utf-8")
    written.append(docs / "index.html")
    for m in modules:
        d = out / "build" / m.dir
        d.mkdir(parents=True, exist_ok=True)
        p = d / m.filename
        p.write_text(m.source, encoding="utf-8")
        written.append(p)
    return written


@app.command()
def generate(
    out: Path = typer.Option(Path("."), "--out", "-o", help="Output root for build/ and docs/."),
    origin: str = typer.Option(..., help="Where the generated code is published."),
    preferred: bool = typer.Option(True, "--preferred/--all", help="Only the preferred version of each API."),
    api: Optional[List[str]] = typer.Option(None, "--api", "-a", help="Limit to these API names."),
    auth_config: Optional[Path] = typer.Option(None, help="JSON file with auth settings."),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Generate client modules for the discovery catalog."""
    _setup_logging(verbose)
    _load_auth_config(auth_config)
    items = list_apis(preferred=preferred)
    if api:
        wanted = set(api)
        items = [i for i in items if i.name in wanted]
    if not items:
        raise typer.BadParameter("no matching APIs in the discovery catalog")
    modules = asyncio.run(api_modules(origin, items))
    written = write_modules(out, modules, index_html(origin, items, modules))
    _console.print(f"Wrote {len(written)} files, {len(items) - len(modules)} APIs skipped")


@app.command("list")
def list_command(
    preferred: bool = typer.Option(True, "--preferred/--all"),
    name: Optional[str] = typer.Option(None, help="Only versions of this API."),
) -> None:
    """Show the discovery catalog."""
    table = Table(title="Google APIs")
    table.add_column("Name", style="bright_green", no_wrap=True)
    table.add_column("Version")
    table.add_column("Title", style="dim")
    for i in list_apis(preferred=preferred, name=name):
        table.add_row(i.name or "", i.version or "", i.title or "")
    _console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
