"""Main CLI entry point for eo-roles."""

import logging
import sys

import click

from eo_roles import __version__
from eo_roles.config import LOG_FORMAT, LOG_LEVEL
from eo_roles.models import EORolesError


def _run(func, *args):
    """Call a report runner, turning library errors into CLI errors."""
    try:
        return func(*args)
    except EORolesError as exc:
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level.")
def main(verbose):
    """EO Roles: role inference, drift detection and edge risk for data definitions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else LOG_LEVEL,
        format=LOG_FORMAT,
    )


@main.command()
def roles():
    """Describe the roles and print the susceptibility matrix."""
    from eo_roles.report import print_roles
    print_roles()


@main.command()
@click.argument("workspace_file", type=click.Path(exists=True))
@click.option("-d", "--definition", "definition_id", default=None,
              help="Only resolve this definition id.")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table",
              help="Output format.")
def profile(workspace_file, definition_id, output_format):
    """Resolve the effective role of every definition.

    WORKSPACE_FILE is a JSON file with definitions, edges and assertions.
    """
    from eo_roles.report import run_profile
    _run(run_profile, workspace_file, definition_id, output_format)


@main.command()
@click.argument("workspace_file", type=click.Path(exists=True))
@click.option("--apply", is_flag=True, help="Store the suggestions as assertions.")
@click.option("-o", "--output", "output_file", type=click.Path(), default=None,
              help="Where to write the updated workspace (defaults to WORKSPACE_FILE).")
def suggest(workspace_file, apply, output_file):
    """Suggest assertions for definitions that have none."""
    from eo_roles.report import run_suggest
    _run(run_suggest, workspace_file, apply, output_file)


@main.command()
@click.argument("workspace_file", type=click.Path(exists=True))
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table",
              help="Output format.")
@click.option("--fail-on-hard", is_flag=True,
              help="Exit with status 1 when any assertion shows hard drift.")
def drift(workspace_file, output_format, fail_on_hard):
    """Check every stored assertion against observed behavior."""
    from eo_roles.report import run_drift
    hard = _run(run_drift, workspace_file, output_format)
    if fail_on_hard and hard:
        sys.exit(1)


@main.command()
@click.argument("workspace_file", type=click.Path(exists=True))
@click.option("--min-risk", default=0.0, type=float, help="Hide edges below this adjusted risk.")
@click.option("--format", "output_format", type=click.Choice(["table", "json"]), default="table",
              help="Output format.")
def risk(workspace_file, min_risk, output_format):
    """Price every edge by the effective role of its target."""
    from eo_roles.report import run_risk
    _run(run_risk, workspace_file, min_risk, output_format)


if __name__ == "__main__":
    main()
