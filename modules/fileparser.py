"""File parser module for iamlab.

This module handles discovery and parsing of Terraform files (.tf) and
variable files (.tfvars) in a lab directory. It parses HCL2 syntax and
extracts the provider, variable, locals and resource sections.
"""

import os
from typing import Any, Dict, List, Optional, Tuple

import click
import hcl2

from modules.exceptions import TerraformParsingError
from modules.utils.terraform_utils import normalize

# Terraform sections to extract during parsing
EXTRACT: List[str] = [
    "provider",
    "variable",
    "locals",
    "resource",
    "output",
]


def is_varfile(filename: str) -> bool:
    """Return True for variable files Terraform loads automatically."""
    name = os.path.basename(filename).lower()
    return name == "terraform.tfvars" or name.endswith(".auto.tfvars")


def find_tf_files(source: str, recursive: bool = False) -> List[str]:
    """Discover Terraform files in a local directory.

    Args:
        source: Local directory path
        recursive: Whether to recursively search subdirectories (default: False)

    Returns:
        Sorted list of paths to .tf, terraform.tfvars and *.auto.tfvars files

    Raises:
        TerraformParsingError: If the directory does not exist or has no .tf files
    """
    source_location = source.strip()
    if not os.path.isdir(source_location):
        raise TerraformParsingError(
            "Source location is not a directory", context={"source": source}
        )
    click.echo(f"  Added Source Location: {source}")

    paths = []
    if recursive:
        for root, dirs, files in os.walk(source_location):
            dirs[:] = [d for d in dirs if not d.startswith(".")]
            for file in files:
                if file.lower().endswith(".tf") or is_varfile(file):
                    paths.append(os.path.join(root, file))
    else:
        for file in os.listdir(source_location):
            if file.lower().endswith(".tf") or is_varfile(file):
                paths.append(os.path.join(source_location, file))

    if not any(p.lower().endswith(".tf") for p in paths):
        raise TerraformParsingError(
            "No Terraform .tf files found in source location. Use --source "
            "parameter to specify the lab directory",
            context={"source": source},
        )
    return sorted(paths)


def parse_file(filename: str) -> Dict[str, Any]:
    """Parse one HCL2 file.

    Raises:
        TerraformParsingError: If the file contains invalid HCL2
    """
    with click.open_file(filename, "r", encoding="utf8") as f:
        try:
            return normalize(hcl2.load(f))
        except Exception as error:
            raise TerraformParsingError(
                "A Terraform HCL parsing error occurred",
                context={"file": filename, "error": str(error)},
            )


def iterative_parse(
    tf_file_paths: List[str],
    extract_sections: List[str],
    tfdata: Dict[str, Any],
) -> Dict[str, Any]:
    """Parse Terraform files and extract the requested sections.

    Each extracted section is stored under ``all_<section>`` keyed by file
    name, preserving the list-of-blocks shape the parser returns.

    Args:
        tf_file_paths: List of Terraform file paths to parse
        extract_sections: List of section names to extract (e.g., 'resource')
        tfdata: Main data dictionary to populate with parsed content

    Returns:
        Updated tfdata dictionary with parsed content
    """
    for filename in tf_file_paths:
        click.echo(f"  Parsing {filename}")
        hcl_dict = parse_file(filename)
        for section in extract_sections:
            if section in hcl_dict:
                section_name = "all_" + section
                tfdata.setdefault(section_name, {})
                tfdata[section_name][filename] = hcl_dict[section]
                click.echo(
                    click.style(
                        f"    Found {len(hcl_dict[section])} {section} stanza(s)",
                        fg="green",
                    )
                )
    return tfdata


def read_tfsource(
    source_list: Tuple[str, ...],
    varfile_list: Tuple[str, ...] = (),
    tfdata: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Parse all Terraform files from source locations.

    Main entry point for parsing. Auto-loaded variable files found in the
    source directories are applied before the explicitly supplied ones, the
    same order Terraform uses.

    Args:
        source_list: Tuple of source directory paths
        varfile_list: Tuple of variable file paths (.tfvars)
        tfdata: Dictionary to populate with parsed data

    Returns:
        Updated tfdata dictionary containing all parsed Terraform data
    """
    if tfdata is None:
        tfdata = dict()
    click.echo(click.style("\nParsing Terraform Source Files..", fg="white", bold=True))

    auto_varfiles: List[str] = []
    for source in source_list:
        file_paths = find_tf_files(source)
        tf_file_paths = [f for f in file_paths if f.lower().endswith(".tf")]
        auto_varfiles.extend(f for f in file_paths if is_varfile(f))
        tfdata = iterative_parse(tf_file_paths, EXTRACT, tfdata)
        tfdata.setdefault("codepath", []).append(source)

    for file in auto_varfiles:
        click.echo(f"  Will use auto variables from file : {file}")

    # terraform.tfvars loads before *.auto.tfvars
    auto_varfiles.sort(
        key=lambda f: (os.path.basename(f).lower() != "terraform.tfvars", f)
    )
    tfdata["varfile_list"] = auto_varfiles + [str(v) for v in varfile_list]
    return tfdata
