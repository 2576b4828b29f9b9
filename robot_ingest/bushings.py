from lxml import etree

from .attributes import ElementError, drake, parse_vector, require_attribute
from .context import ParseContext
from .index import Entry
from .model import BushingSpec

__all__ = ["BUSHING_CONSTANTS", "parse_linear_bushing"]

# Declared order of the constant tags; BushingSpec fields share the suffix.
BUSHING_CONSTANTS = (
    "bushing_torque_stiffness",
    "bushing_torque_damping",
    "bushing_force_stiffness",
    "bushing_force_damping",
)


def parse_linear_bushing(ctx: ParseContext, bushing_elem: etree._Element) -> BushingSpec | None:
    """Parse a <drake:linear_bushing_rpy> element and commit its force element

    Args:
        ctx: Parse context
        bushing_elem: Bushing element

    Returns:
        The committed BushingSpec, or None if an error was reported
    """
    try:
        frame_a_name, frame_a = _read_frame(ctx, bushing_elem, "bushing_frameA")
        frame_c_name, frame_c = _read_frame(ctx, bushing_elem, "bushing_frameC")
        constants = {tag.removeprefix("bushing_"): _read_constant(bushing_elem, tag) for tag in BUSHING_CONSTANTS}
    except ValueError as e:
        ctx.diagnostic.error(bushing_elem, str(e))
        return None

    bushing = BushingSpec(frame_a=frame_a_name, frame_c=frame_c_name, **constants, **ctx.metadata(bushing_elem))
    ctx.builder.add_force_element(ctx.model_instance, bushing, frame_a.handle, frame_c.handle)
    return bushing


def _find_tag(bushing_elem: etree._Element, tag: str) -> etree._Element:
    tag_elem = bushing_elem.find(drake(tag))
    if tag_elem is None:
        raise ElementError(f"Unable to find the <drake:{tag}> tag")

    return tag_elem


def _read_frame(ctx: ParseContext, bushing_elem: etree._Element, tag: str) -> tuple[str, Entry]:
    """Read a frame reference tag and resolve it against committed frames

    Raises:
        ElementError: If the tag or its name attribute is missing, or the frame does not exist
    """
    tag_elem = _find_tag(bushing_elem, tag)
    name = require_attribute(tag_elem, "name", f"Unable to read the 'name' attribute for the <drake:{tag}> tag")

    entry = ctx.index.frames.get(name)
    if entry is None:
        raise ElementError(f"Frame: {name} specified for <drake:{tag}> does not exist in the model.")

    return name, entry


def _read_constant(bushing_elem: etree._Element, tag: str) -> tuple[float, float, float]:
    """Read a 3-vector constant tag

    Raises:
        ElementError: If the tag or its value attribute is missing, or the value is not three numbers
    """
    tag_elem = _find_tag(bushing_elem, tag)
    value = require_attribute(tag_elem, "value", f"Unable to read the 'value' attribute for the <drake:{tag}> tag")

    try:
        return parse_vector(value, 3)  # ty: ignore[invalid-return-type]
    except ValueError as e:
        raise ElementError(f"Unable to parse the 'value' attribute for the <drake:{tag}> tag: {e}") from None
