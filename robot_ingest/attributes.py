"""Typed, defaulted readers for attributes and child tags of URDF elements.

Readers raise ElementError for missing required values and ValueError for
malformed numeric text. Both carry a message naming the offending tag or
attribute; element handlers catch them at their element boundary and report
them as located errors.
"""

import math
from collections.abc import Callable

from lxml import etree

from .model import Pose

__all__ = [
    "DRAKE_NAMESPACE",
    "ElementError",
    "drake",
    "tag_name",
    "is_drake_element",
    "is_ignored",
    "parse_vector",
    "parse_scalar",
    "read_scalar",
    "read_vector",
    "require_attribute",
    "rpy_to_quat",
    "read_origin",
    "read_pose_attributes",
    "child_elements",
    "qualify_drake_prefixes",
]

DRAKE_NAMESPACE = "http://drake.mit.edu"
DRAKE_PREFIX = "drake:"


class ElementError(ValueError):
    """A required attribute or sub-element is missing or invalid"""

    pass


def drake(name: str) -> str:
    """Qualify a tag or attribute name with the drake namespace

    Args:
        name: Local name, e.g. 'joint'

    Returns:
        Clark-notation name, e.g. '{http://drake.mit.edu}joint'
    """
    return f"{{{DRAKE_NAMESPACE}}}{name}"


def tag_name(elem: etree._Element) -> str:
    """Tag name as written in the document, e.g. 'drake:joint'"""
    qname = etree.QName(elem)
    if qname.namespace == DRAKE_NAMESPACE:
        return f"drake:{qname.localname}"
    return qname.localname


def is_drake_element(elem: etree._Element) -> bool:
    return etree.QName(elem).namespace == DRAKE_NAMESPACE


def child_elements(elem: etree._Element) -> list[etree._Element]:
    """Child elements in document order, skipping comments and processing instructions"""
    return [child for child in elem if isinstance(child.tag, str)]


def is_ignored(elem: etree._Element) -> bool:
    """Whether an element carries an explicit ignore marker

    Args:
        elem: Element to check

    Returns:
        True if drake_ignore="true" or ignore="true" is set
    """
    return elem.get("drake_ignore") == "true" or elem.get("ignore") == "true"


def parse_vector(vector: str, length: int) -> tuple[float, ...]:
    """Parse space-separated string into tuple of floats

    Args:
        vector: Space-separated string of numbers
        length: Expected number of values

    Returns:
        Tuple of floats

    Raises:
        ValueError: If format is invalid
    """
    parts = vector.strip().split()
    if len(parts) != length:
        raise ValueError(f"Expected {length} space-separated values, got {len(parts)}: '{vector}'")

    try:
        return tuple(float(x) for x in parts)
    except ValueError:
        raise ValueError(f"Expected {length} numeric values, got '{vector}'") from None


def parse_scalar(value: str) -> float:
    """Parse a single float

    Raises:
        ValueError: If the text is not a number
    """
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Expected a numeric value, got '{value}'") from None


def read_scalar(elem: etree._Element, attribute: str, default: float) -> float:
    """Read an optional scalar attribute

    Args:
        elem: Element holding the attribute
        attribute: Attribute name (Clark notation for namespaced attributes)
        default: Value used when the attribute is absent

    Returns:
        Parsed value or default
    """
    value = elem.get(attribute)
    if value is None:
        return default

    return parse_scalar(value)


def read_vector(elem: etree._Element, attribute: str, length: int, default: tuple[float, ...]) -> tuple[float, ...]:
    """Read an optional vector attribute

    Args:
        elem: Element holding the attribute
        attribute: Attribute name
        length: Expected number of values
        default: Value used when the attribute is absent

    Returns:
        Parsed tuple or default
    """
    value = elem.get(attribute)
    if value is None:
        return default

    return parse_vector(value, length)


def require_attribute(elem: etree._Element, attribute: str, message: str) -> str:
    """Read a required attribute

    Args:
        elem: Element holding the attribute
        attribute: Attribute name
        message: Error text used when the attribute is missing

    Returns:
        Attribute value

    Raises:
        ElementError: If the attribute is missing
    """
    value = elem.get(attribute)
    if value is None:
        raise ElementError(message)

    return value


def rpy_to_quat(rpy: tuple[float, float, float], precision: int = 6) -> tuple[float, float, float, float]:
    """Convert roll-pitch-yaw Euler angles to unit quaternion

    Args:
        rpy: Tuple of (roll, pitch, yaw) in radians
        precision: Number of decimal places to round to, defaults to 6

    Returns:
        (w, x, y, z) unit quaternion
    """
    roll, pitch, yaw = rpy
    cr, cp, cy = math.cos(0.5 * roll), math.cos(0.5 * pitch), math.cos(0.5 * yaw)
    sr, sp, sy = math.sin(0.5 * roll), math.sin(0.5 * pitch), math.sin(0.5 * yaw)

    qw = cr * cp * cy + sr * sp * sy
    qx = sr * cp * cy - cr * sp * sy
    qy = cr * sp * cy + sr * cp * sy
    qz = cr * cp * sy - sr * sp * cy

    # canonicalize
    if qw < 0:
        sign = -1
    else:
        sign = 1

    return tuple(round(sign * q, precision) for q in (qw, qx, qy, qz))


def read_pose_attributes(elem: etree._Element, **metadata) -> Pose:
    """Read xyz/rpy attributes of an element into a Pose

    Args:
        elem: Element carrying optional xyz and rpy attributes
        metadata: Source tracking metadata forwarded to the Pose

    Returns:
        Pose, identity components where attributes are absent
    """
    xyz = read_vector(elem, "xyz", 3, (0.0, 0.0, 0.0))
    rpy = read_vector(elem, "rpy", 3, (0.0, 0.0, 0.0))

    return Pose(xyz=xyz, quat=rpy_to_quat(rpy), **metadata)


def read_origin(parent_elem: etree._Element, metadata: Callable[[etree._Element], dict] | None = None) -> Pose:
    """Read the origin child of an element

    Args:
        parent_elem: Parent element containing origin element
        metadata: Callable producing source tracking metadata for the origin element

    Returns:
        Pose with xyz and quat, or default Pose if no origin is defined
    """
    origin_elem = parent_elem.find("origin")
    if origin_elem is None:
        return Pose()

    return read_pose_attributes(origin_elem, **(metadata(origin_elem) if metadata else {}))


def qualify_drake_prefixes(root: etree._Element) -> None:
    """Move literal 'drake:' tags and attributes into the drake namespace

    A document that uses the drake prefix without declaring it can only be
    read by a recovering parser, which keeps the prefix as part of the name.
    Rewriting those names in place makes such a tree look the same as one
    that declared the namespace.

    Args:
        root: Root of the recovered tree
    """
    for elem in root.iter():
        if not isinstance(elem.tag, str):
            continue

        if elem.tag.startswith(DRAKE_PREFIX):
            elem.tag = drake(elem.tag[len(DRAKE_PREFIX) :])

        for attribute in [key for key in elem.attrib if key.startswith(DRAKE_PREFIX)]:
            value = elem.attrib.pop(attribute)
            elem.set(drake(attribute[len(DRAKE_PREFIX) :]), value)
