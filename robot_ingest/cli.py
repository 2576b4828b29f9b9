import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Annotated

import tyro

from .diagnostics import Diagnostic, DiagnosticPolicy, ParsingError
from .formatters import ColorFormatter, IngestReport, PlainFormatter
from .parsers import add_model_from_urdf
from .plant import MultibodyModel
from .workspace import DataSource, PackageMap, ParsingWorkspace


class Format(Enum):
    plain = PlainFormatter
    color = ColorFormatter


def _ignore(diagnostic: Diagnostic) -> None:
    pass


def main(
    path: Path,
    /,
    model_name: str | None = None,
    package_path: Annotated[tuple[Path, ...], tyro.conf.arg(metavar="DIR [DIR ...]")] = (),
    format: Format = Format.color,
    strict: bool = False,
    verbose: bool = False,
) -> int:
    """Parse a URDF file and report every error and warning found in it.

    Args:
        path: Path to the URDF file
        model_name: Name of the model instance, defaults to the robot's name attribute
        package_path: Folders searched for package.xml manifests to resolve package:// URIs
        format: Output format of the report
        strict: Stop at the first error or warning
        verbose: Log every committed body and joint

    Returns:
        Exit status, 1 if any error was reported
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    package_map = PackageMap()
    for folder in package_path:
        package_map.populate_from_folder(folder)

    # the report prints every diagnostic, so the policy only records them
    policy = DiagnosticPolicy(on_warning=_ignore, on_error=_ignore)
    if strict:
        policy.set_actions_to_throw()

    model = MultibodyModel()
    workspace = ParsingWorkspace(builder=model, package_map=package_map, diagnostic=policy)

    try:
        model_instance = add_model_from_urdf(DataSource.from_file(path), model_name, workspace)
    except ParsingError:
        model_instance = None

    report = IngestReport(model=model, model_instance=model_instance, diagnostics=list(policy.diagnostics))
    print(format.value(report).format())

    return 1 if report.num_errors or model_instance is None else 0


def tyro_cli():
    sys.exit(tyro.cli(main, prog="robot-ingest"))


if __name__ == "__main__":
    tyro_cli()
