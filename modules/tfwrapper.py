import os
import shutil
import subprocess
from typing import List, Sequence

import click

from modules.exceptions import TerraformCommandError

TERRAFORM = "terraform"
# Saved plan, relative to the lab directory
PLAN_FILE = "tfplan"


def check_terraform() -> str:
    """Return the terraform binary location and print its version.

    Raises:
        TerraformCommandError: If terraform is not installed or not v1.x
    """
    location = shutil.which(TERRAFORM)
    if not location:
        raise TerraformCommandError(
            "terraform command executable not detected in path. Please install "
            "Terraform >= v1.0.0 first"
        )
    click.echo(f"  terraform command detected: {location}")
    try:
        result = subprocess.run(
            [TERRAFORM, "-v"], capture_output=True, text=True, check=True
        )
        version_line = result.stdout.split("\n")[0]
        version = version_line.split(" ")[1].replace("v", "")
    except (subprocess.CalledProcessError, IndexError, FileNotFoundError) as e:
        raise TerraformCommandError(
            "Failed to check Terraform version", context={"error": str(e)}
        )
    click.echo(f"  terraform version detected: {version_line}")
    if version.split(".")[0] != "1":
        raise TerraformCommandError(
            f"Terraform Version '{version}' is not supported. Please upgrade to >= v1.0.0",
            context={"version": version},
        )
    return location


def varfile_args(varfiles: Sequence[str]) -> List[str]:
    args = []
    for vfile in varfiles:
        args.append(f"-var-file={os.path.abspath(vfile)}")
    return args


def run_terraform(args: List[str], workdir: str) -> None:
    """Run one terraform command in ``workdir`` with output on the console.

    The engine's own messages are not captured so that its errors reach the
    user verbatim.

    Raises:
        TerraformCommandError: If the command exits with a non-zero code
    """
    command = [TERRAFORM] + args
    click.echo(click.style(f"\n$ {' '.join(command)}\n", fg="white", bold=True))
    result = subprocess.run(command, cwd=workdir)
    if result.returncode != 0:
        raise TerraformCommandError(
            f"'terraform {args[0]}' failed. Check the output above for the engine error.",
            context={"command": " ".join(command), "returncode": result.returncode},
        )


def tf_init(workdir: str) -> None:
    click.echo(click.style("\nInitialising Terraform..", fg="white", bold=True))
    run_terraform(["init", "-input=false"], workdir)


def tf_plan(workdir: str, varfiles: Sequence[str] = ()) -> None:
    click.echo(click.style("\nGenerating Terraform Plan..", fg="white", bold=True))
    run_terraform(
        ["plan", "-input=false", f"-out={PLAN_FILE}"] + varfile_args(varfiles), workdir
    )


def tf_apply(workdir: str, auto_approve: bool = False) -> bool:
    """Apply the saved plan after asking for confirmation.

    The saved plan already carries the variable values, so exactly the
    changes shown by ``tf_plan`` are applied.

    Returns:
        True if apply ran, False if the user declined
    """
    if not auto_approve and not click.confirm(
        "\nDo you want to perform these actions?", default=False
    ):
        click.echo("Apply cancelled.")
        return False
    click.echo(click.style("\nApplying Terraform Plan..", fg="white", bold=True))
    run_terraform(["apply", "-input=false", PLAN_FILE], workdir)
    return True


def provision(
    workdir: str, varfiles: Sequence[str] = (), auto_approve: bool = False
) -> bool:
    """Run the initialise, preview, apply sequence against ``workdir``."""
    tf_init(workdir)
    tf_plan(workdir, varfiles)
    return tf_apply(workdir, auto_approve)
