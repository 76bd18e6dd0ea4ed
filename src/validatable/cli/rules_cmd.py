"""Rule table CLI commands: check and show."""

from pathlib import Path

import click

from validatable.errors import ConfigurationError
from validatable.metadata import load_rule_table, validate_rule_table
from validatable.rules import CustomHandler


@click.group()
def rules():
    """Rule table commands."""
    pass


@rules.command()
@click.argument(
    "paths",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
def check(paths: tuple[Path, ...], strict: bool):
    """Validate rule table YAML files against the rule table schema."""
    issues = []
    for path in paths:
        issues.extend(validate_rule_table(path, strict=strict))

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    click.echo(f"\nChecked {len(paths)} rule table(s):")
    for path in paths:
        table = load_rule_table(path)
        label = table.type_name or path.stem
        click.echo(
            f"  ✓ {label} ({len(table.rules)} properties, {table.rule_count} rules)"
        )

    click.echo(click.style("\nAll rule tables are valid.", fg="green", bold=True))


@rules.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def show(path: Path):
    """Print the rules declared in a rule table."""
    try:
        table = load_rule_table(path)
    except ConfigurationError as e:
        click.echo(click.style(str(e), fg="red"), err=True)
        raise SystemExit(1)

    click.echo(click.style(table.type_name or path.stem, bold=True))
    for property_name, property_rules in table.rules.items():
        click.echo(f"\n{property_name}")
        for index, rule in enumerate(property_rules, start=1):
            parts = [f"  {index}. {rule.kind} [{rule.severity.value}]"]
            if isinstance(rule, CustomHandler):
                parts.append(f"handler={rule.handler}")
            than = getattr(rule, "than", None)
            if than is not None:
                parts.append(f"than={than}")
            if rule.when_valid:
                parts.append(f"when={rule.when_valid}")
            if rule.key:
                parts.append(f"key={rule.key}")
            click.echo(" ".join(parts))
            if rule.message:
                click.echo(f"       \"{rule.message}\"")
