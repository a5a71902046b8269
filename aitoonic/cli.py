"""Command line for catalog administration."""

import json
import logging
from pathlib import Path

import click

from aitoonic import admin
from aitoonic.catalog import load_snapshot
from aitoonic.config import log_level
from aitoonic.data_store import get_store
from aitoonic.errors import CatalogError
from aitoonic.logging_config import setup_logging
from aitoonic.search import MatchPolicy
from aitoonic.search import result_href
from aitoonic.search import search

logger = logging.getLogger(__name__)

SECTION = click.Choice(admin.SECTIONS)


@click.group()
def main() -> None:
    """Manage Aitoonic tools, agents and categories."""
    setup_logging(log_level())


@main.command("list")
@click.argument("section", type=SECTION)
@click.option("--search", "search_term", default="", help="Substring to match in name or description.")
@click.option("--sort", "sort_field", default="name", show_default=True, help="Field to sort on.")
@click.option("--desc", is_flag=True, help="Sort descending.")
def list_items(section: str, search_term: str, sort_field: str, desc: bool) -> None:
    """List rows of a section."""
    rows = get_store().select_all(section)
    for row in admin.filter_items(rows, search_term, sort_field, "desc" if desc else "asc"):
        click.echo(f"{row.get('id', '')}\t{row.get('name', '')}")


@main.command("import")
@click.argument("section", type=SECTION)
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_items(section: str, path: Path) -> None:
    """Create or update rows from a JSON file holding a list of objects."""
    payload = json.loads(path.read_text())
    if isinstance(payload, dict):
        payload = payload.get("items", [])
    if not isinstance(payload, list):
        raise click.ClickException(f"{path} must contain a JSON list of {section}")

    store = get_store()
    saved = 0
    for item in payload:
        if not isinstance(item, dict):
            logger.error(f"Skipping {item!r}: not a JSON object")
            continue
        try:
            admin.save_item(store, section, item)
            saved += 1
        except (CatalogError, ValueError) as e:
            logger.error(f"Skipping {item.get('name', '?')}: {e}")
    click.echo(f"Saved {saved} of {len(payload)} {section}")


@main.command("delete")
@click.argument("section", type=SECTION)
@click.argument("item_id")
def delete(section: str, item_id: str) -> None:
    """Delete one row by id."""
    try:
        admin.delete_item(get_store(), section, item_id)
    except CatalogError as e:
        raise click.ClickException(str(e))
    click.echo(f"Deleted {section}/{item_id}")


@main.command("search")
@click.argument("query")
@click.option("--details", is_flag=True, help="Also match descriptions and agent capabilities.")
def search_catalog(query: str, details: bool) -> None:
    """Run the site search against the stored catalog."""
    snapshot = load_snapshot(get_store())
    policy = MatchPolicy.NAME_OR_DETAILS if details else MatchPolicy.NAME_ONLY
    results = search(query, snapshot.tools, snapshot.agents, snapshot.categories, policy=policy)
    if not results:
        click.echo("No results")
        return
    for result in results:
        click.echo(f"{result.type}\t{result.name}\t{result_href(result)}")


if __name__ == "__main__":
    main()
