"""Helper functions module for iamlab.

This module provides output helpers: plan-style rendering of expanded
resource instances, JSON conversion and the debug export of parsed data.
"""

import dataclasses
import json
from typing import Any, Dict, List

import click

# Sections of parsed data written by the debug export
EXPORT_SECTIONS = [
    "codepath",
    "varfile_list",
    "all_provider",
    "all_variable",
    "all_locals",
    "all_resource",
    "variable_types",
    "variable_values",
    "local_values",
    "templates",
    "instances",
]


def to_jsonable(value: Any) -> Any:
    """Convert dataclass records (templates, instances, configs) to plain data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, list):
        return [to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    return value


def instances_as_dict(instances: List[Any]) -> List[Dict[str, Any]]:
    return [to_jsonable(instance) for instance in instances]


def format_value(value: Any) -> str:
    if isinstance(value, str):
        if value.startswith("("):
            return value
        return json.dumps(value)
    return json.dumps(value, sort_keys=True)


def render_plan(instances: List[Any]) -> str:
    """Render instances the way ``terraform plan`` lists resources to create.

    Args:
        instances: ResourceInstance records in creation order

    Returns:
        Multi-line plan text ending with the ``Plan: N to add`` summary
    """
    lines = []
    for instance in instances:
        lines.append(f"  # {instance.address} will be created")
        lines.append(f'  + resource "{instance.type}" "{instance.local_name}" {{')
        if instance.attributes:
            width = max(len(k) for k in instance.attributes)
            for key in sorted(instance.attributes):
                lines.append(
                    f"      + {key.ljust(width)} = {format_value(instance.attributes[key])}"
                )
        lines.append("    }")
        lines.append("")
    lines.append(f"Plan: {len(instances)} to add, 0 to change, 0 to destroy.")
    return "\n".join(lines)


def export_tfdata(tfdata: Dict[str, Any], filename: str = "tfdata.json") -> None:
    """Export parsed data to a JSON file for debugging.

    Args:
        tfdata: Parsed data dictionary to export
        filename: Output file name
    """
    export = {k: to_jsonable(tfdata[k]) for k in EXPORT_SECTIONS if k in tfdata}
    with open(filename, "w") as file:
        json.dump(export, file, indent=4, default=str)
    click.echo(
        click.style(
            f"\nINFO: Debug flag used. Current state has been written to {filename}\n",
            fg="yellow",
            bold=True,
        )
    )
