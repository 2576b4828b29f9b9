import logging
from collections.abc import Callable

from lxml import etree

from .attributes import (
    child_elements,
    drake,
    is_ignored,
    qualify_drake_prefixes,
    read_pose_attributes,
    require_attribute,
    tag_name,
)
from .bushings import parse_linear_bushing
from .collision_filters import apply_collision_filter_groups, parse_collision_filter_group
from .context import WORLD_LINK, ParseContext
from .diagnostics import DocumentDiagnostic
from .geometry import parse_collisions, parse_global_material, parse_inertial, parse_visuals
from .joints import parse_joint
from .model import FrameSpec, LinkSpec
from .transmissions import parse_transmission
from .workspace import DataSource, ParsingWorkspace

__all__ = ["XMLParser", "URDFParser", "add_model_from_urdf"]

console_logger = logging.getLogger(__name__)

ROBOT_TAG = "robot"

WORLD_INERTIAL_WARNING = (
    'A URDF file declared the "world" link and then attempted to assign mass properties (via the <inertial> tag). '
    "Only geometries, <collision> and <visual>, can be assigned to the world link. "
    "The <inertial> tag is being ignored."
)


class XMLParser:
    """Base class for XML parsers reporting through a document diagnostic

    Attributes:
        data_source: Document to parse
        diagnostic: Diagnostic sink bound to the document
        tree: Parsed XML tree (None until loaded)
    """

    def __init__(self, data_source: DataSource, diagnostic: DocumentDiagnostic):
        """Initialize parser

        Args:
            data_source: Document to parse
            diagnostic: Diagnostic sink bound to the document
        """
        self.data_source = data_source
        self.diagnostic = diagnostic
        self._tree = None

    @property
    def tree(self) -> etree._ElementTree | None:
        return self._tree

    def _load(self) -> bool:
        """Load the XML document, reporting an error if it cannot be read or is malformed

        Returns:
            True if the document was loaded
        """
        if self.data_source.is_file:
            filename = self.data_source.filename
            if not filename.exists():
                self.diagnostic.error(None, f"Failed to parse XML file: File not found: {filename}")
                return False
            failure = "Failed to parse XML file"
        else:
            failure = "Failed to parse XML string"

        try:
            self._tree = self._read_tree()
        except (OSError, etree.XMLSyntaxError) as e:
            self.diagnostic.error(None, f"{failure}: {e}")
            return False

        return True

    def _read_tree(self) -> etree._ElementTree:
        """Parse the document, tolerating an undeclared drake prefix

        Raises:
            OSError: If the file cannot be read
            etree.XMLSyntaxError: If the document is malformed
        """
        try:
            return self._parse_source(None)
        except etree.XMLSyntaxError as e:
            if not _only_undeclared_drake_prefix(e):
                raise

        tree = self._parse_source(etree.XMLParser(recover=True))
        qualify_drake_prefixes(tree.getroot())
        return tree

    def _parse_source(self, parser: etree.XMLParser | None) -> etree._ElementTree:
        if self.data_source.is_file:
            return etree.parse(str(self.data_source.filename), parser)

        # encode so documents carrying an encoding declaration are accepted
        contents = self.data_source.contents.lstrip().encode("utf-8")
        return etree.fromstring(contents, parser).getroottree()


def _only_undeclared_drake_prefix(error: etree.XMLSyntaxError) -> bool:
    """Whether every parse error is a use of the drake prefix without its namespace declaration"""
    errors = error.error_log.filter_from_errors()
    return bool(errors) and all(
        entry.type == etree.ErrorTypes.NS_ERR_UNDEFINED_NAMESPACE and "prefix drake " in entry.message
        for entry in errors
    )


ElementHandler = Callable[[ParseContext, etree._Element], object]


class URDFParser(XMLParser):
    """Parser for URDF documents

    The root's children are visited once, in document order. Each element is
    handed to the handler registered for its tag; a handler either commits
    its element to the model builder or reports why it could not, and the
    walk continues with the next sibling either way. Elements without a
    handler are ignored.
    """

    def __init__(self, data_source: DataSource, workspace: ParsingWorkspace, model_name: str | None = None):
        """Initialize URDF parser

        Args:
            data_source: Document to parse
            workspace: Builder, package map and diagnostic policy
            model_name: Name of the model instance, defaults to the robot's name attribute
        """
        if data_source.is_file:
            filename = str(data_source.filename.absolute())
        else:
            filename = None

        super().__init__(data_source, DocumentDiagnostic(workspace.diagnostic, filename))
        self.workspace = workspace
        self.model_name = model_name

    def parse(self) -> int | None:
        """Parse the URDF document into a new model instance

        Returns:
            Model instance handle, or None if a fatal error was reported
        """
        if not self._load():
            return None

        root = self._tree.getroot()
        if root.tag != ROBOT_TAG:
            self.diagnostic.error(root, "URDF does not contain a robot tag.")
            return None

        model_name = self.model_name or root.get("name")
        if not model_name:
            self.diagnostic.error(root, "Your robot must have a name attribute or a model name must be specified.")
            return None

        model_instance = self.workspace.builder.add_model_instance(model_name)
        ctx = ParseContext(
            workspace=self.workspace,
            diagnostic=self.diagnostic,
            tree=self._tree,
            model_instance=model_instance,
            root_dir=self.data_source.root_dir,
        )

        for elem in child_elements(root):
            if is_ignored(elem):
                continue

            handler = ELEMENT_HANDLERS.get(elem.tag)
            if handler is None:
                console_logger.debug(f"Ignoring unsupported element <{tag_name(elem)}> at line {elem.sourceline}")
                continue

            handler(ctx, elem)

        filtered = apply_collision_filter_groups(ctx)

        console_logger.debug(
            f"Parsed model '{model_name}': {len(ctx.index.links)} links, {len(ctx.index.joints)} joints, "
            f"{len(ctx.index.actuators)} actuators, {len(filtered)} filtered pairs"
        )
        return model_instance


def parse_link(ctx: ParseContext, link_elem: etree._Element) -> LinkSpec | None:
    """Parse a link element and commit it as a rigid body

    A link named 'world' is not a new body; its geometry is attached to the
    world body and any inertial is ignored with a warning.

    Args:
        ctx: Parse context
        link_elem: Link element

    Returns:
        The committed LinkSpec, or None if an error was reported
    """
    try:
        name = require_attribute(link_elem, "name", "link tag is missing name attribute.")
        ctx.index.links.check_unique(name)

        if name == WORLD_LINK:
            inertial = None
            if link_elem.find("inertial") is not None:
                ctx.diagnostic.warning(link_elem, WORLD_INERTIAL_WARNING)
        else:
            inertial = parse_inertial(ctx, link_elem)
    except ValueError as e:
        ctx.diagnostic.error(link_elem, str(e))
        return None

    link = LinkSpec(
        name=name,
        inertial=inertial,
        collisions=parse_collisions(ctx, link_elem, name),
        visuals=parse_visuals(ctx, link_elem, name),
        **ctx.metadata(link_elem),
    )

    if name == WORLD_LINK:
        ctx.builder.register_world_geometry(ctx.model_instance, link)
        body = ctx.builder.world_body
    else:
        body = ctx.builder.add_rigid_body(ctx.model_instance, link)

    ctx.index.links.add(name, body, link)
    # body frames are addressable by link name
    if name not in ctx.index.frames:
        ctx.index.frames.add(name, ctx.builder.body_frame(body), link)

    return link


def parse_frame(ctx: ParseContext, frame_elem: etree._Element) -> FrameSpec | None:
    """Parse a frame element and commit it as a frame fixed to its link

    Args:
        ctx: Parse context
        frame_elem: Frame element

    Returns:
        The committed FrameSpec, or None if an error was reported
    """
    try:
        name = require_attribute(frame_elem, "name", "Failed parsing frame name.")
        link_name = require_attribute(frame_elem, "link", f"missing link name for frame {name}.")
        body = ctx.resolve_link(link_name, "frame")
        ctx.index.frames.check_unique(name)
        pose = read_pose_attributes(frame_elem, **ctx.metadata(frame_elem))
    except ValueError as e:
        ctx.diagnostic.error(frame_elem, str(e))
        return None

    frame = FrameSpec(name=name, link=link_name, pose=pose, **ctx.metadata(frame_elem))
    handle = ctx.builder.add_frame(ctx.model_instance, frame, body)
    ctx.index.frames.add(name, handle, frame)
    return frame


def parse_loop_joint(ctx: ParseContext, loop_joint_elem: etree._Element) -> None:
    ctx.diagnostic.error(loop_joint_elem, "loop joints are not supported in MultibodyPlant")


ELEMENT_HANDLERS: dict[str, ElementHandler] = {
    "link": parse_link,
    "joint": parse_joint,
    drake("joint"): parse_joint,
    "material": parse_global_material,
    "frame": parse_frame,
    "transmission": parse_transmission,
    "loop_joint": parse_loop_joint,
    drake("linear_bushing_rpy"): parse_linear_bushing,
    drake("collision_filter_group"): parse_collision_filter_group,
}


def add_model_from_urdf(
    data_source: DataSource, model_name: str | None, workspace: ParsingWorkspace
) -> int | None:
    """Parse a URDF document and add its contents to the workspace's builder as a new model instance

    Args:
        data_source: File or in-memory text to parse
        model_name: Name of the model instance, None or empty to use the robot's name attribute
        workspace: Builder, package map and diagnostic policy

    Returns:
        Model instance handle, or None if a fatal error was reported
    """
    return URDFParser(data_source, workspace, model_name).parse()
