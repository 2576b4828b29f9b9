from pathlib import Path

import pytest

from robot_ingest.diagnostics import DiagnosticPolicy
from robot_ingest.parsers import add_model_from_urdf
from robot_ingest.plant import MultibodyModel
from robot_ingest.workspace import DataSource, PackageMap, ParsingWorkspace


@pytest.fixture
def data_dir() -> Path:
    """Path to test data directory"""
    return Path(__file__).parent / "urdf_data"


@pytest.fixture
def model() -> MultibodyModel:
    return MultibodyModel()


@pytest.fixture
def policy() -> DiagnosticPolicy:
    return DiagnosticPolicy()


@pytest.fixture
def package_map(data_dir: Path) -> PackageMap:
    package_map = PackageMap()
    package_map.populate_from_folder(data_dir)
    return package_map


@pytest.fixture
def workspace(model: MultibodyModel, package_map: PackageMap, policy: DiagnosticPolicy) -> ParsingWorkspace:
    return ParsingWorkspace(builder=model, package_map=package_map, diagnostic=policy)


@pytest.fixture
def add_string(workspace: ParsingWorkspace):
    """Parse in-memory URDF text into the workspace's model"""

    def add(text: str, model_name: str | None = None) -> int | None:
        return add_model_from_urdf(DataSource.from_contents(text), model_name, workspace)

    return add


@pytest.fixture
def add_file(workspace: ParsingWorkspace):
    """Parse a URDF file into the workspace's model"""

    def add(path: Path, model_name: str | None = None) -> int | None:
        return add_model_from_urdf(DataSource.from_file(path), model_name, workspace)

    return add
