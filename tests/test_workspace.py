from pathlib import Path

import pytest

from robot_ingest.diagnostics import DiagnosticPolicy
from robot_ingest.model import Capsule, Ellipsoid, Mesh
from robot_ingest.plant import MultibodyModel
from robot_ingest.workspace import DataSource, PackageMap


def test_data_source_requires_exactly_one() -> None:
    """Test that a data source is either a file or contents"""
    with pytest.raises(ValueError):
        DataSource()
    with pytest.raises(ValueError):
        DataSource(filename=Path("a.urdf"), contents="<robot/>")


def test_data_source_root_dir(data_dir: Path) -> None:
    """Test that only file data sources have a root directory"""
    assert DataSource.from_file(data_dir / "ver_package_mesh.urdf").root_dir == data_dir.absolute()
    assert DataSource.from_contents("<robot/>").root_dir is None


def test_populate_from_folder(package_map: PackageMap, data_dir: Path) -> None:
    """Test that packages are discovered from their manifests"""
    assert package_map.contains("box_model")
    assert package_map.get_path("box_model") == data_dir / "box_model"


def test_package_map_conflict(tmp_path: Path) -> None:
    """Test that a package name cannot be rebound to another directory"""
    package_map = PackageMap({"pkg": tmp_path})
    package_map.add("pkg", tmp_path)

    with pytest.raises(ValueError, match="already registered"):
        package_map.add("pkg", tmp_path / "other")


def test_get_path_unknown() -> None:
    """Test that looking up an unregistered package raises KeyError"""
    with pytest.raises(KeyError):
        PackageMap().get_path("missing")


def test_populate_skips_bad_manifests(tmp_path: Path) -> None:
    """Test that manifests without a usable name are skipped"""
    (tmp_path / "broken").mkdir()
    (tmp_path / "broken" / "package.xml").write_text("<package><name>")
    (tmp_path / "nameless").mkdir()
    (tmp_path / "nameless" / "package.xml").write_text("<package/>")
    (tmp_path / "good").mkdir()
    (tmp_path / "good" / "package.xml").write_text("<package><name> good_pkg </name></package>")

    package_map = PackageMap()
    package_map.populate_from_folder(tmp_path)

    assert package_map.packages == {"good_pkg": tmp_path / "good"}


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("package://pkg/meshes/a.obj", "/pkgs/pkg/meshes/a.obj"),
        ("model://pkg/a.obj", "/pkgs/pkg/a.obj"),
        ("file:///abs/a.obj", "/abs/a.obj"),
        ("/abs/a.obj", "/abs/a.obj"),
        ("meshes/a.obj", "/robots/meshes/a.obj"),
    ],
)
def test_resolve(uri: str, expected: str) -> None:
    """Test that every supported URI form resolves to a path"""
    package_map = PackageMap({"pkg": "/pkgs/pkg"})
    assert package_map.resolve(uri, Path("/robots")) == Path(expected)


def test_resolve_errors() -> None:
    """Test that unknown packages and relative paths without a document directory are rejected"""
    package_map = PackageMap()

    with pytest.raises(ValueError, match="unknown package 'pkg'"):
        package_map.resolve("package://pkg/a.obj", Path("/robots"))
    with pytest.raises(ValueError, match="not backed by a file"):
        package_map.resolve("meshes/a.obj", None)


def test_package_mesh(add_file, data_dir: Path, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that mesh URIs, materials and drake shapes are read from a file"""
    add_file(data_dir / "ver_package_mesh.urdf")

    assert not policy.diagnostics
    link = model.get_body_by_name("base_link").link

    assert link.mass == 2.5
    assert link.inertial.origin.xyz == (0.0, 0.0, 0.1)
    assert link.inertial.inertia.moments == (0.01, 0.02, 0.03)
    assert link.inertial.inertia.products == (0.0, 0.0, 0.0)

    mesh_visual, capsule_visual = link.visuals
    assert isinstance(mesh_visual.geometry, Mesh)
    assert mesh_visual.geometry.filename == "package://box_model/meshes/box.obj"
    assert Path(mesh_visual.geometry.resolved_path) == data_dir / "box_model" / "meshes" / "box.obj"
    assert mesh_visual.geometry.scale == (2.0, 2.0, 2.0)
    assert mesh_visual.material.rgba == (0.0, 0.0, 0.0, 1.0)

    assert isinstance(capsule_visual.geometry, Capsule)
    assert capsule_visual.material.name == "black"
    assert capsule_visual.material.rgba == (1.0, 0.0, 0.0, 1.0)

    mesh_collision, ellipsoid_collision = link.collisions
    assert Path(mesh_collision.geometry.resolved_path) == data_dir.absolute() / "meshes" / "box.obj"
    assert isinstance(ellipsoid_collision.geometry, Ellipsoid)
    assert (ellipsoid_collision.geometry.a, ellipsoid_collision.geometry.b, ellipsoid_collision.geometry.c) == (
        0.1,
        0.2,
        0.3,
    )


def test_unknown_package_skips_visual(add_string, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that an unresolvable mesh drops only its visual"""
    add_string(
        """
        <robot name='a'>
          <link name='base'>
            <visual>
              <geometry><mesh filename='package://nowhere/a.obj'/></geometry>
            </visual>
            <visual>
              <geometry><sphere radius='1'/></geometry>
            </visual>
          </link>
        </robot>"""
    )

    assert "unknown package 'nowhere'" in policy.take_error()
    assert len(model.get_body_by_name("base").link.visuals) == 1


@pytest.mark.parametrize(
    "visual, message",
    [
        ("<visual/>", "The <visual> of link 'base' is missing a <geometry> element."),
        ("<visual><geometry/></visual>", "The <geometry> of a <visual> of link 'base' does not contain a shape."),
        ("<visual><geometry><cone/></geometry></visual>", "Link 'base' has an unsupported geometry <cone>."),
        (
            "<visual><geometry><cylinder radius='1'/></geometry></visual>",
            "The <cylinder> of link 'base' is missing the 'length' attribute.",
        ),
    ],
)
def test_geometry_errors(add_string, policy: DiagnosticPolicy, model: MultibodyModel, visual: str, message: str) -> None:
    """Test that malformed geometry is reported and the link is still committed"""
    add_string(f"<robot name='a'><link name='base'>{visual}</link></robot>")

    assert policy.take_error().endswith(message)
    assert model.get_body_by_name("base").link.visuals == ()
