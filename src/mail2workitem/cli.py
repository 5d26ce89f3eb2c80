"""Command line interface entry point."""

from __future__ import annotations

import logging
import sys
from datetime import datetime

import click

from mail2workitem.configuration import (
    DEFAULT_CONFIG_FILENAME,
    ConfigurationError,
    load_configuration,
    write_placeholder_configuration,
)
from mail2workitem.field_resolution import FieldResolutionPolicy, MessageContext

UNSET_MARKER = "<unset>"


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="mail2workitem")
@click.option("--verbose", is_flag=True, default=False, help="Log debug details to stderr.")
def cli(verbose: bool) -> None:
    """Inspect mail-to-work-item bridge configuration documents."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


@cli.command(name="generate-config")
@click.option(
    "--output",
    "output_path",
    required=False,
    default=DEFAULT_CONFIG_FILENAME,
    show_default=True,
    type=click.Path(path_type=str),
    help="Path to the YAML configuration template to write",
)
def generate_config(output_path: str) -> None:
    """Generate a placeholder YAML configuration with guidance comments."""
    try:
        resolved_output = write_placeholder_configuration(output_path)
    except (FileExistsError, OSError) as exc:
        raise CliError(str(exc)) from exc
    click.echo(str(resolved_output))


@cli.command(name="validate")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to XML/YAML/JSON configuration file",
)
def validate(config_path: str) -> None:
    """Load the configuration and list its instances."""
    try:
        document = load_configuration(config_path)
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc
    for instance in document.instances:
        click.echo(
            f"{instance.name}\t{instance.tfs_server.project}\t"
            f"{instance.email.service_type.value}\t{instance.work_items.processing_strategy.value}"
            + ("\tsimulation" if instance.tfs_server.simulation_mode else "")
        )


@cli.command(name="resolve-field")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to XML/YAML/JSON configuration file",
)
@click.option("--instance", "instance_name", required=True, help="Instance name")
@click.option("--field", "field_name", required=True, help="Work item field to resolve")
@click.option("--sender", "sender_alias", default=None, help="Sender alias of the message")
@click.option("--subject", default="", help="Message subject")
@click.option("--body", default="", help="Message body")
@click.option(
    "--date",
    "reference_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reference date for date-based overrides (defaults to today, UTC)",
)
def resolve_field(  # pylint: disable=too-many-arguments,too-many-positional-arguments
    config_path: str,
    instance_name: str,
    field_name: str,
    sender_alias: str | None,
    subject: str,
    body: str,
    reference_date: datetime | None,
) -> None:
    """Print the effective value of a work item field for a message."""
    try:
        document = load_configuration(config_path)
        instance = document.instance(instance_name)
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc
    except KeyError as exc:
        raise CliError(f"Unknown instance: {instance_name}") from exc
    policy = FieldResolutionPolicy(instance.work_items)
    value = policy.effective_value(
        field_name,
        MessageContext(sender_alias=sender_alias, subject=subject, body=body),
        reference_date,
    )
    click.echo(UNSET_MARKER if value is None else value)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
