"""
Query commands for filterbar.

Exercise the tokenizer and the value dropdown from the command line against
a YAML candidate file.
"""

import asyncio
from typing import Optional

import typer
from rich.table import Table

from filterbar.config.settings import get_candidates_path, get_default_scope
from filterbar.dropdown import DropdownController
from filterbar.exceptions import FilterBarError
from filterbar.models.keys import DEFAULT_REGISTRY
from filterbar.services.cache import CandidateCache
from filterbar.services.candidate_source import YamlCandidateSource
from filterbar.services.tokenizer import QueryTokenizer, describe_quote
from filterbar.utils.error_handling import handle_cli_error
from filterbar.utils.output import console, print_json

KEY_ACTIONS = {"down": 1, "up": -1}


async def _open_dropdown(
    query: str,
    cursor: Optional[int],
    scope: Optional[str],
    candidates_file: Optional[str],
) -> DropdownController:
    """Type ``query`` into a fresh controller and wait for its candidates."""
    source = YamlCandidateSource(get_candidates_path(candidates_file))
    controller = DropdownController(
        source,
        cache=CandidateCache(),
        scope_key=scope or get_default_scope(),
    )
    await controller.set_input(query, cursor)
    await controller.wait_until_loaded()
    if controller.error:
        raise FilterBarError(controller.error)
    return controller


@handle_cli_error("tokenizing query")
def tokenize(
    query: str = typer.Argument(..., help="Query text, e.g. 'author:@me label:~bu'"),
    cursor: Optional[int] = typer.Option(None, "--cursor", "-c", help="Caret offset (default: end)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """Show the filter token under the cursor."""
    token = QueryTokenizer().locate_active_token(query, cursor)
    data = {
        "key": token.key.key if token.key else None,
        "fragment": token.fragment,
        "has_sigil": token.has_sigil,
        "quote": describe_quote(token),
        "start": token.start,
        "end": token.end,
    }
    if json_output:
        print_json(data)
        return

    if token.key is None:
        console.print("[dim]No filter key at cursor (plain text)[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in data.items():
        table.add_row(name, repr(value) if isinstance(value, str) else str(value))
    console.print(table)


@handle_cli_error("listing suggestions")
def suggest(
    query: str = typer.Argument(..., help="Query text"),
    cursor: Optional[int] = typer.Option(None, "--cursor", "-c", help="Caret offset (default: end)"),
    scope: Optional[str] = typer.Option(None, "--scope", "-s", help="Scope key (default: FILTERBAR_SCOPE)"),
    candidates_file: Optional[str] = typer.Option(None, "--file", "-f", help="YAML candidate file"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
) -> None:
    """List the dropdown rows for the filter under the cursor."""
    controller = asyncio.run(_open_dropdown(query, cursor, scope, candidates_file))
    state = controller.state

    if json_output:
        print_json(
            {
                "open": state.is_open,
                "key": controller.token.key.key if controller.token.key else None,
                "fragment": controller.token.fragment,
                "items": [{"title": item.title, "none": item.is_none} for item in state.items],
            }
        )
        return

    if not state.is_open:
        console.print("[dim]No filter key at cursor; dropdown stays closed[/dim]")
        return

    if not state.items:
        console.print(f"[yellow]No {controller.token.key.key} values match '{controller.token.fragment}'[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Value", style="cyan")
    for index, item in enumerate(state.items):
        title = f"[italic]{item.title}[/italic]" if item.is_none else item.title
        table.add_row(str(index), title)
    console.print(table)


@handle_cli_error("completing query")
def complete(
    query: str = typer.Argument(..., help="Query text"),
    cursor: Optional[int] = typer.Option(None, "--cursor", "-c", help="Caret offset (default: end)"),
    type_text: Optional[str] = typer.Option(None, "--type", "-t", help="Text typed after the dropdown opens"),
    select: Optional[str] = typer.Option(None, "--select", help="Click the row with this title"),
    keys: Optional[str] = typer.Option(None, "--keys", "-k", help="Key presses, e.g. down,down,enter"),
    scope: Optional[str] = typer.Option(None, "--scope", "-s", help="Scope key (default: FILTERBAR_SCOPE)"),
    candidates_file: Optional[str] = typer.Option(None, "--file", "-f", help="YAML candidate file"),
) -> None:
    """Drive the dropdown and print the resulting query."""
    if select and keys:
        raise typer.BadParameter("--select and --keys are mutually exclusive")

    async def _run() -> Optional[str]:
        controller = await _open_dropdown(query, cursor, scope, candidates_file)
        if type_text:
            await controller.type_text(type_text)
            await controller.wait_until_loaded()
        if select:
            return controller.select_title(select)
        if keys:
            result = None
            for key in (k.strip().lower() for k in keys.split(",") if k.strip()):
                if key == "enter":
                    result = controller.commit()
                elif key in KEY_ACTIONS:
                    controller.move_selection(KEY_ACTIONS[key])
                else:
                    raise typer.BadParameter(f"Unknown key '{key}' (use up, down, enter)")
            return result
        return controller.commit()

    result = asyncio.run(_run())
    if result is None:
        console.print("[red]Nothing was selected[/red]")
        raise typer.Exit(1)
    typer.echo(result)


def keys() -> None:
    """List the recognized filter keys."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Key", style="cyan")
    table.add_column("Sigil", justify="center")
    table.add_column("Values")
    table.add_column("None row")
    for descriptor in DEFAULT_REGISTRY:
        table.add_row(
            descriptor.key,
            descriptor.sigil,
            descriptor.value_kind.value,
            descriptor.none_title or "[dim]-[/dim]",
        )
    console.print(table)
