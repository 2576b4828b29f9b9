import logging
from dataclasses import dataclass, field
from pathlib import Path

from lxml import etree

from .diagnostics import DiagnosticPolicy
from .plant import ModelBuilder

__all__ = ["DataSource", "PackageMap", "ParsingWorkspace"]

console_logger = logging.getLogger(__name__)

PACKAGE_SCHEMES = ("package://", "model://")
FILE_SCHEME = "file://"


@dataclass(frozen=True)
class DataSource:
    """A document to parse, backed by either a file or in-memory text

    Exactly one of filename and contents is set.

    Attributes:
        filename: Path to the document on disk
        contents: Document text
    """

    filename: Path | None = None
    contents: str | None = None

    def __post_init__(self):
        if (self.filename is None) == (self.contents is None):
            raise ValueError("DataSource requires exactly one of filename or contents")

    @classmethod
    def from_file(cls, filename: Path | str) -> "DataSource":
        return cls(filename=Path(filename))

    @classmethod
    def from_contents(cls, contents: str) -> "DataSource":
        return cls(contents=contents)

    @property
    def is_file(self) -> bool:
        return self.filename is not None

    @property
    def root_dir(self) -> Path | None:
        """Directory relative mesh paths are resolved against, None for in-memory text"""
        if self.filename is None:
            return None
        return self.filename.absolute().parent


class PackageMap:
    """Read-only resolver from package names to directories

    Attributes:
        packages: Dict mapping package names to package directories
    """

    def __init__(self, packages: dict[str, Path | str] | None = None):
        self.packages: dict[str, Path] = {}
        for name, path in (packages or {}).items():
            self.add(name, path)

    def add(self, name: str, path: Path | str) -> None:
        """Register a package

        Args:
            name: Package name
            path: Package directory

        Raises:
            ValueError: If the name is already registered with a different directory
        """
        path = Path(path)
        existing = self.packages.get(name)
        if existing is not None and existing != path:
            raise ValueError(f"Package '{name}' is already registered at '{existing}'")

        self.packages[name] = path

    def contains(self, name: str) -> bool:
        return name in self.packages

    def get_path(self, name: str) -> Path:
        """Get the directory of a package

        Raises:
            KeyError: If the package is not registered
        """
        if name not in self.packages:
            raise KeyError(f"Package '{name}' is not registered")

        return self.packages[name]

    def populate_from_folder(self, folder: Path | str) -> None:
        """Register every package found below a folder

        A package is a directory containing a package.xml manifest whose
        <name> element gives the package name. The first manifest found for
        a name wins.

        Args:
            folder: Folder to search recursively
        """
        for manifest in sorted(Path(folder).rglob("package.xml")):
            try:
                name = etree.parse(str(manifest)).getroot().findtext("name")
            except etree.XMLSyntaxError as e:
                console_logger.warning(f"Skipping unreadable package manifest '{manifest}': {e}")
                continue

            if not name:
                console_logger.warning(f"Package manifest '{manifest}' has no <name> element")
                continue

            name = name.strip()
            if self.contains(name):
                console_logger.warning(
                    f"Package '{name}' at '{manifest.parent}' ignored; already registered at '{self.packages[name]}'"
                )
                continue

            self.add(name, manifest.parent)

    def resolve(self, uri: str, root_dir: Path | None) -> Path:
        """Resolve a mesh URI to a filesystem path

        Args:
            uri: package://, model://, file:// URI, or a plain path
            root_dir: Directory of the referencing document, None for in-memory text

        Returns:
            Resolved path; the file itself is not opened

        Raises:
            ValueError: If the URI cannot be resolved
        """
        for scheme in PACKAGE_SCHEMES:
            if uri.startswith(scheme):
                package, _, relative = uri[len(scheme) :].partition("/")
                if not self.contains(package):
                    raise ValueError(f"URI '{uri}' refers to unknown package '{package}'")
                return self.packages[package] / relative

        if uri.startswith(FILE_SCHEME):
            return Path(uri[len(FILE_SCHEME) :])

        path = Path(uri)
        if path.is_absolute():
            return path

        if root_dir is None:
            raise ValueError(f"URI '{uri}' is a relative path, but the document is not backed by a file")

        return root_dir / path


@dataclass(frozen=True)
class ParsingWorkspace:
    """Collaborators threaded through every element handler

    Attributes:
        builder: Model builder receiving committed specs
        package_map: Resolver for package:// URIs
        diagnostic: Policy receiving every diagnostic as it is produced
    """

    builder: ModelBuilder
    package_map: PackageMap = field(default_factory=PackageMap)
    diagnostic: DiagnosticPolicy = field(default_factory=DiagnosticPolicy)
