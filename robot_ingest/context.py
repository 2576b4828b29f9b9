from dataclasses import dataclass, field
from pathlib import Path

from lxml import etree

from .attributes import ElementError
from .diagnostics import DocumentDiagnostic
from .index import NameIndex
from .model import Material
from .plant import ModelBuilder
from .workspace import ParsingWorkspace

__all__ = ["ParseContext", "WORLD_LINK"]

WORLD_LINK = "world"


@dataclass
class ParseContext:
    """State of one parse call, handed to every element handler

    Attributes:
        workspace: Collaborators supplied by the caller
        diagnostic: Diagnostic sink bound to the document
        tree: Parsed document
        model_instance: Model instance receiving committed specs
        root_dir: Directory of the document, None for in-memory text
        index: Names committed so far
        materials: Global materials declared so far
    """

    workspace: ParsingWorkspace
    diagnostic: DocumentDiagnostic
    tree: etree._ElementTree
    model_instance: int
    root_dir: Path | None = None
    index: NameIndex = field(default_factory=NameIndex)
    materials: dict[str, Material] = field(default_factory=dict)

    @property
    def builder(self) -> ModelBuilder:
        return self.workspace.builder

    def metadata(self, elem: etree._Element) -> dict:
        """Get source tracking metadata for element

        Args:
            elem: Element to get metadata for

        Returns:
            Dict with _line_number, _source_path, _source_file
        """
        return {
            "_line_number": elem.sourceline,
            "_source_path": self.tree.getpath(elem),
            "_source_file": self.diagnostic.filename,
        }

    def resolve_link(self, name: str, element: str) -> int:
        """Resolve a link name to a body handle

        The 'world' link resolves to the world body even when the document
        does not declare it.

        Args:
            name: Link name
            element: Name of the referencing element, used in the error

        Returns:
            Body handle

        Raises:
            ElementError: If no link with that name has been committed
        """
        entry = self.index.links.get(name)
        if entry is not None:
            return entry.handle
        if name == WORLD_LINK:
            return self.builder.world_body

        raise ElementError(
            f"Could not find link named '{name}' with model instance ID {self.model_instance} for element '{element}'."
        )
