import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import click

from modules.exceptions import ExpressionError, VariableResolutionError
from modules.tf_function_handlers import evaluate_template, tf_function_handlers
from modules.utils.string_utils import as_bool, strip_interpolation
from modules.utils.terraform_utils import NOTFOUND, decode_env_value, getvar, tfvar_read

# Resource arguments that steer the engine rather than describe the resource
META_ARGUMENTS = ["count", "for_each", "depends_on", "lifecycle", "provider", "provisioner"]


@dataclass
class ListVariable:
    """A declared variable whose value is an ordered list of strings."""

    name: str
    default: List[str] = field(default_factory=list)
    element_type: str = "string"


@dataclass
class ResourceTemplate:
    """One ``resource "<type>" "<local_name>"`` block before expansion."""

    type: str
    local_name: str
    count_expr: Any = None
    attributes: Dict[str, Any] = field(default_factory=dict)

    @property
    def address(self) -> str:
        return f"{self.type}.{self.local_name}"

    @property
    def name_expr(self) -> Any:
        return self.attributes.get("name")


@dataclass
class ResourceInstance:
    """A concrete resource the engine would create from a template."""

    address: str
    type: str
    local_name: str
    index: int
    name: Any
    attributes: Dict[str, Any] = field(default_factory=dict)


def resolve_all_variables(tfdata: dict, debug: bool = False) -> dict:
    # Load default variable values, then varfile and environment overrides
    tfdata = get_variable_values(tfdata)
    # Merge all locals blocks into one lookup
    tfdata = extract_locals(tfdata)
    # Parse resource blocks into templates
    tfdata["templates"] = get_resource_templates(tfdata)
    if debug:
        output_variables(tfdata)
    return tfdata


def variable_type(block: Dict[str, Any]) -> str:
    """Return the declared type of a variable block, inferring it when absent."""
    if "type" in block:
        return strip_interpolation(str(block["type"])).replace(" ", "")
    default = block.get("default")
    if isinstance(default, list):
        return "list(string)"
    if isinstance(default, dict):
        return "map(string)"
    if isinstance(default, bool):
        return "bool"
    if isinstance(default, (int, float)):
        return "number"
    return "string"


def convert_value(value: Any, var_type: str, name: str) -> Any:
    """Apply Terraform's automatic conversion for primitive element types."""
    if value is None:
        return value
    if var_type in ("list(string)", "set(string)", "tuple(string)"):
        if not isinstance(value, list):
            raise VariableResolutionError(
                "Invalid value for variable: list required",
                context={"variable": name, "value": value},
            )
        return [tf_function_handlers.tostring(v) for v in value]
    if var_type == "string" and isinstance(value, (int, float, bool)):
        return tf_function_handlers.tostring(value)
    if var_type == "number":
        return tf_function_handlers.tonumber(value)
    if var_type == "bool":
        return as_bool(value)
    return value


def get_variable_values(tfdata: dict) -> dict:
    """Resolve every declared variable from defaults, varfiles and TF_VAR_ env."""
    click.echo(click.style("\nProcessing variables..", fg="white", bold=True))
    var_types: Dict[str, str] = dict()
    var_values: Dict[str, Any] = dict()

    # Load default values from all variable blocks
    for _file, var_list in tfdata.get("all_variable", {}).items():
        for item in var_list:
            for var_name, block in item.items():
                var_types[var_name] = variable_type(block)
                if "default" in block:
                    var_values[var_name] = block["default"]

    # Over-write defaults with varfile values, in load order
    for varfile in tfdata.get("varfile_list", []):
        for uservar, value in tfvar_read(varfile).items():
            if uservar not in var_types:
                click.echo(
                    click.style(
                        f"  WARNING: Value for undeclared variable {uservar} in {varfile}",
                        fg="yellow",
                    )
                )
                continue
            var_values[uservar] = value

    # Environment variables win over every file
    for var_name, var_type in var_types.items():
        if os.getenv(f"TF_VAR_{var_name}") is not None:
            var_values[var_name] = decode_env_value(getvar(var_name, var_values), var_type)

    for var_name, value in var_values.items():
        var_values[var_name] = convert_value(value, var_types[var_name], var_name)

    tfdata["variable_types"] = var_types
    tfdata["variable_values"] = var_values
    return tfdata


def get_list_variables(tfdata: dict) -> List[ListVariable]:
    """Return the declared list-of-string variables with their resolved values."""
    list_vars = []
    for var_name, var_type in tfdata.get("variable_types", {}).items():
        if var_type.startswith(("list", "set", "tuple")):
            value = tfdata.get("variable_values", {}).get(var_name, [])
            list_vars.append(ListVariable(name=var_name, default=list(value)))
    return list_vars


def extract_locals(tfdata: dict) -> dict:
    local_values: Dict[str, Any] = dict()
    for _file, localvarlist in tfdata.get("all_locals", {}).items():
        for local in localvarlist:
            local_values.update(local)
    tfdata["local_values"] = local_values
    return tfdata


def get_resource_templates(tfdata: dict) -> List[ResourceTemplate]:
    """Create a ResourceTemplate for every resource block in file order."""
    templates = []
    for _file, resource_list in tfdata.get("all_resource", {}).items():
        for item in resource_list:
            for resource_type, named_blocks in item.items():
                for local_name, block in named_blocks.items():
                    if "for_each" in block:
                        raise ExpressionError(
                            "for_each is not supported, use count",
                            context={"resource": f"{resource_type}.{local_name}"},
                        )
                    templates.append(
                        ResourceTemplate(
                            type=resource_type,
                            local_name=local_name,
                            count_expr=block.get("count"),
                            attributes={
                                k: v for k, v in block.items() if k not in META_ARGUMENTS
                            },
                        )
                    )
    return templates


def resolve_count(template: ResourceTemplate, tfdata: dict) -> Optional[int]:
    """Evaluate a template's count; None when the template has no count.

    Raises:
        ExpressionError: If the count is not a whole, non-negative number
    """
    if template.count_expr is None:
        return None
    value = evaluate_template(template.count_expr, tfdata)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ExpressionError(
            "Invalid count argument: a whole number is required",
            context={"resource": template.address, "count": template.count_expr},
        )
    if value < 0:
        raise ExpressionError(
            "Invalid count argument: must not be negative",
            context={"resource": template.address, "count": value},
        )
    return value


def expand_template(template: ResourceTemplate, tfdata: dict) -> List[ResourceInstance]:
    """Expand one template into the instances the engine would create.

    A counted template yields ``count`` instances indexed from 0, addressed
    ``<type>.<name>[<index>]``. A template without count yields a single
    instance at index 0 addressed ``<type>.<name>``. A count of 0 yields
    no instances.
    """
    count = resolve_count(template, tfdata)
    indexes = [None] if count is None else list(range(count))
    instances = []
    for index in indexes:
        attributes = evaluate_template(template.attributes, tfdata, index)
        address = template.address if index is None else f"{template.address}[{index}]"
        instances.append(
            ResourceInstance(
                address=address,
                type=template.type,
                local_name=template.local_name,
                index=index or 0,
                name=attributes.get("name"),
                attributes=attributes,
            )
        )
    return instances


def expand_over_list(
    template: ResourceTemplate, variable: ListVariable
) -> List[ResourceInstance]:
    """Expand a template against a single list variable.

    Instance ``i`` takes ``variable.default[i]`` wherever the template
    references ``var.<variable.name>[count.index]``.
    """
    scope = {
        "variable_types": {variable.name: f"list({variable.element_type})"},
        "variable_values": {variable.name: list(variable.default)},
        "local_values": {},
    }
    return expand_template(template, scope)


def find_duplicate_names(instances: List[ResourceInstance]) -> List[Any]:
    seen = set()
    duplicates = []
    for instance in instances:
        key = str(instance.name)
        if instance.name is not None and key in seen and instance.name not in duplicates:
            duplicates.append(instance.name)
        seen.add(key)
    return duplicates


def expand_all(tfdata: dict) -> dict:
    """Expand every resource template found in the parsed files."""
    click.echo(click.style("\nExpanding resources..", fg="white", bold=True))
    if "templates" not in tfdata:
        tfdata["templates"] = get_resource_templates(tfdata)
    if not tfdata["templates"]:
        click.echo(click.style("\nWARNING: Unable to find any resources ", fg="red", bold=True))
    all_instances: List[ResourceInstance] = []
    for template in tfdata["templates"]:
        instances = expand_template(template, tfdata)
        click.echo(f"   {template.address} x {len(instances)}")
        duplicates = find_duplicate_names(instances)
        if duplicates:
            click.echo(
                click.style(
                    f"   WARNING: {template.address} repeats name(s) {duplicates}; "
                    "the provider decides whether this is an error",
                    fg="yellow",
                )
            )
        all_instances.extend(instances)
    tfdata["instances"] = all_instances
    return tfdata


def output_variables(tfdata: dict) -> None:
    click.echo("\n  Variable List:")
    for var_name, var_type in tfdata.get("variable_types", {}).items():
        value = tfdata.get("variable_values", {}).get(var_name, NOTFOUND)
        showval = str(value)
        if len(showval) > 60:
            showval = showval[:60] + "..."
        click.echo(f"      var.{var_name} ({var_type}) = {showval}")
    for local_name, value in tfdata.get("local_values", {}).items():
        click.echo(f"      local.{local_name} = {value}")
