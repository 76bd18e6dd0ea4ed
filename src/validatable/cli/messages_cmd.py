"""Message catalog CLI commands."""

from pathlib import Path

import click

from validatable.config import Settings
from validatable.localization import MessageCatalog


@click.group()
def messages():
    """Message catalog commands."""
    pass


@messages.command()
@click.argument("key")
@click.option(
    "--catalog",
    "catalog_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML message catalog (defaults to VALIDATABLE_CATALOG_PATH).",
)
@click.option("--locale", default=None, help="Locale to resolve (defaults to VALIDATABLE_LOCALE).")
@click.pass_obj
def lookup(settings: Settings, key: str, catalog_path: Path | None, locale: str | None):
    """Resolve KEY through a message catalog."""
    catalog_path = catalog_path or settings.catalog_path
    if catalog_path is None:
        click.echo("Error: no catalog given (use --catalog or VALIDATABLE_CATALOG_PATH)", err=True)
        raise SystemExit(1)

    try:
        catalog = MessageCatalog.from_yaml(catalog_path, locale=locale or settings.locale)
    except ValueError as e:
        click.echo(click.style(str(e), fg="red"), err=True)
        raise SystemExit(1)

    text = catalog.resolve(key)
    if text is None:
        click.echo(
            f"Key '{key}' not found (searched: {', '.join(catalog.sections())})", err=True
        )
        raise SystemExit(1)
    click.echo(text)
