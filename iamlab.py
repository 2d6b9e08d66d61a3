#!/usr/bin/env python
import json
import sys
from contextlib import redirect_stdout

import click

import modules.backend as backend
import modules.fileparser as fileparser
import modules.helpers as helpers
import modules.interpreter as interpreter
import modules.tfwrapper as tfwrapper
import modules.validation as validation
from modules.exceptions import IamLabError
from modules.provider_runtime import get_provider_config
from modules.utils.provider_utils import canonical_service

__version__ = "0.1"


def my_excepthook(exc_type, exc_value, exc_traceback):
    print(f"Unhandled error: {exc_type}, {exc_value}, {exc_traceback}")


def _show_error(error: Exception) -> None:
    click.echo(click.style(f"\nERROR: {error}\n", fg="red", bold=True), err=True)
    sys.exit(1)


def compile_tfdata(source: tuple, varfile: tuple, debug: bool, expand: bool = True) -> dict:
    """Parse lab sources, resolve variables and expand resource templates.

    Args:
        source: Tuple of lab directories
        varfile: Tuple of paths to .tfvars files
        debug: Print resolved variables and export tfdata.json
        expand: Expand resource templates into instances

    Returns:
        dict: tfdata dictionary with templates and, when expanded, instances
    """
    tfdata = fileparser.read_tfsource(source, varfile)
    tfdata = interpreter.resolve_all_variables(tfdata, debug)
    if expand:
        tfdata = interpreter.expand_all(tfdata)
    if debug:
        helpers.export_tfdata(tfdata)
    return tfdata


def _run(debug: bool, func, *args, **kwargs):
    if not debug:
        sys.excepthook = my_excepthook
    try:
        return func(*args, **kwargs)
    except IamLabError as e:
        if debug:
            raise
        _show_error(e)


@click.version_option(version=__version__, prog_name="iamlab")
@click.group()
def cli():
    """
    iamlab expands and checks the IAM user lab's Terraform configuration

    For help with a specific command type:

    iamlab [COMMAND] --help

    """
    pass


source_option = click.option(
    "--source",
    multiple=True,
    default=["."],
    help="Lab directory containing .tf files",
)
varfile_option = click.option(
    "--varfile", multiple=True, default=[], help="Path to .tfvars variables file"
)
debug_option = click.option(
    "--debug", is_flag=True, default=False, help="Dump exception tracebacks"
)


@cli.command()
@debug_option
@source_option
@varfile_option
@click.option("--json", "as_json", is_flag=True, default=False, help="Output instances as JSON")
def expand(debug, source, varfile, as_json):
    """Lists the resource instances the engine would create"""

    def _expand():
        if as_json:
            # progress goes to stderr so stdout carries only the document
            with redirect_stdout(sys.stderr):
                tfdata = compile_tfdata(source, varfile, debug)
            click.echo(
                json.dumps(helpers.instances_as_dict(tfdata["instances"]), indent=4)
            )
        else:
            tfdata = compile_tfdata(source, varfile, debug)
            click.echo(click.style("\nResources to create:\n", fg="white", bold=True))
            click.echo(helpers.render_plan(tfdata["instances"]))

    _run(debug, _expand)


@cli.command()
@debug_option
@source_option
@varfile_option
@click.option("--alias", default=None, help="Provider alias to resolve against")
@click.argument("service")
def endpoint(debug, source, varfile, alias, service):
    """Shows the URL a service's API calls are sent to"""

    def _endpoint():
        tfdata = compile_tfdata(source, varfile, debug, expand=False)
        provider = get_provider_config(tfdata, "aws", alias)
        url = provider.endpoint_for(service)
        label = " (override)" if provider.is_overridden(service) else " (provider default)"
        click.echo(f"\n{canonical_service(service)}: {url}{label}")

    _run(debug, _endpoint)


@cli.command()
@debug_option
@source_option
@varfile_option
def validate(debug, source, varfile):
    """Checks the lab configuration before running the engine"""

    def _validate():
        tfdata = compile_tfdata(source, varfile, debug)
        problems = validation.validate_lab(tfdata)
        if problems:
            click.echo(click.style("\nProblems found:", fg="red", bold=True))
            for problem in problems:
                click.echo(f"  - {problem}")
            sys.exit(1)
        click.echo(click.style("\nLab configuration is ready.", fg="green", bold=True))

    _run(debug, _validate)


@cli.command()
@debug_option
@click.option("--url", default=None, help="Mock backend base URL")
@click.option("--service", default="iam", help="Service that must be available")
def check(debug, url, service):
    """Checks that the mock backend is reachable"""

    def _check():
        services = backend.check_backend(url)
        if services and not backend.service_ready(services, service):
            click.echo(
                click.style(
                    f"\n  WARNING: mock backend reports {service} as "
                    f"{services.get(service, 'missing')}",
                    fg="yellow",
                )
            )
            sys.exit(1)
        click.echo(click.style("\nMock backend is ready.", fg="green", bold=True))

    _run(debug, _check)


@cli.command()
@debug_option
@source_option
@varfile_option
@click.option("--yes", is_flag=True, default=False, help="Apply without confirmation")
@click.option(
    "--skip-check", is_flag=True, default=False, help="Do not probe the mock backend"
)
def provision(debug, source, varfile, yes, skip_check):
    """Runs terraform init, plan and apply against the lab"""

    if len(source) > 1:
        raise click.BadParameter(
            "provision runs against a single lab directory", param_hint="--source"
        )

    def _provision():
        click.echo(click.style("\nPreflight check..", fg="white", bold=True))
        tfwrapper.check_terraform()
        tfdata = compile_tfdata(source, varfile, debug)
        provider = get_provider_config(tfdata, "aws")
        if not skip_check and provider.is_overridden("iam"):
            backend.check_backend(provider.endpoint_for("iam"))
        click.echo(click.style("\nResources to create:\n", fg="white", bold=True))
        click.echo(helpers.render_plan(tfdata["instances"]))
        if tfwrapper.provision(source[0], varfile, yes):
            click.echo("\nCompleted!")

    _run(debug, _provision)


if __name__ == "__main__":
    cli()
