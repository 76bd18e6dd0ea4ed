"""validatable CLI entry point."""

import click

from validatable.config import Settings


@click.group()
@click.pass_context
def cli(ctx: click.Context):
    """validatable: declarative property validation CLI."""
    settings = Settings.from_env()
    settings.configure_logging()
    ctx.obj = settings


# Register subcommand groups
from validatable.cli.messages_cmd import messages  # noqa: E402
from validatable.cli.rules_cmd import rules  # noqa: E402

cli.add_command(rules)
cli.add_command(messages)
