"""Joint type registry and the per-type parse-and-validate routines.

Each joint keyword maps to a JointTypeInfo whose parse function receives a
JointSpec already filled with the fields every joint shares (name, type,
parent, child, origin) and returns the completed spec, or None when the
joint is recognized but not committed.
"""

import math
from collections.abc import Callable
from dataclasses import dataclass, replace

from lxml import etree

from .attributes import (
    ElementError,
    drake,
    is_drake_element,
    parse_vector,
    read_origin,
    read_scalar,
    read_vector,
    require_attribute,
)
from .context import ParseContext
from .model import INF, JointSpec, JointType

__all__ = ["JointTypeInfo", "JOINT_TYPES", "register_joint_type", "parse_joint"]

JointParser = Callable[[ParseContext, etree._Element, JointSpec], JointSpec | None]

AXIS_EPSILON = 1e-8


@dataclass(frozen=True)
class JointTypeInfo:
    """Registry entry for one joint keyword

    Attributes:
        type: Joint variant produced
        custom: Whether the type must be declared as <drake:joint> instead of <joint>
        parse: Routine reading the type-specific attributes
    """

    type: JointType
    custom: bool
    parse: JointParser


JOINT_TYPES: dict[str, JointTypeInfo] = {}


def register_joint_type(keyword: str, joint_type: JointType, custom: bool = False) -> Callable[[JointParser], JointParser]:
    """Register a parse routine for a joint keyword

    Args:
        keyword: Value of the joint's type attribute
        joint_type: Joint variant produced
        custom: Whether the type belongs under <drake:joint>

    Returns:
        Decorator registering the routine unchanged
    """

    def decorator(parse: JointParser) -> JointParser:
        JOINT_TYPES[keyword] = JointTypeInfo(joint_type, custom, parse)
        return parse

    return decorator


def parse_joint(ctx: ParseContext, joint_elem: etree._Element) -> JointSpec | None:
    """Parse a <joint> or <drake:joint> element and commit it

    Args:
        ctx: Parse context
        joint_elem: Joint element

    Returns:
        The committed JointSpec, or None if the joint was not committed
    """
    try:
        joint = _read_joint(ctx, joint_elem)
        if joint is None:
            return None

        spec, parent_body, child_body = joint
    except ValueError as e:
        ctx.diagnostic.error(joint_elem, str(e))
        return None

    handle = ctx.builder.add_joint(ctx.model_instance, spec, parent_body, child_body)
    ctx.index.joints.add(spec.name, handle, spec)
    return spec


def _read_joint(ctx: ParseContext, joint_elem: etree._Element) -> tuple[JointSpec, int, int] | None:
    name = require_attribute(joint_elem, "name", "joint tag is missing name attribute")
    ctx.index.joints.check_unique(name)

    type_name = require_attribute(joint_elem, "type", f"joint '{name}' is missing type attribute")

    info = JOINT_TYPES.get(type_name)
    if info is None:
        raise ElementError(f"Joint '{name}' has unrecognized type: '{type_name}'")

    if info.custom and not is_drake_element(joint_elem):
        raise ElementError(f"Joint {name} of type {type_name} is a custom joint type, and should be a <drake:joint>")
    if not info.custom and is_drake_element(joint_elem):
        raise ElementError(f"Joint {name} of type {type_name} is a standard joint type, and should be a <joint>")

    parent_elem = joint_elem.find("parent")
    if parent_elem is None:
        raise ElementError(f"joint '{name}' doesn't have a parent node!")
    parent = require_attribute(parent_elem, "link", f"joint {name}'s parent does not have a link attribute!")

    child_elem = joint_elem.find("child")
    if child_elem is None:
        raise ElementError(f"joint '{name}' doesn't have a child node!")
    child = require_attribute(child_elem, "link", f"joint {name}'s child does not have a link attribute!")

    parent_body = ctx.resolve_link(parent, "joint")
    child_body = ctx.resolve_link(child, "joint")

    base = JointSpec(
        name=name,
        type=info.type,
        parent=parent,
        child=child,
        origin=read_origin(joint_elem, ctx.metadata),
        **ctx.metadata(joint_elem),
    )

    spec = info.parse(ctx, joint_elem, base)
    if spec is None:
        return None

    return spec, parent_body, child_body


def _read_axis(joint_elem: etree._Element, name: str) -> tuple[float, float, float]:
    """Parse axis element

    Args:
        joint_elem: Joint element containing axis element
        name: Joint name, used in the error

    Returns:
        Unit axis, (1.0, 0.0, 0.0) if no axis is defined

    Raises:
        ElementError: If the axis has zero or non-finite magnitude
    """
    axis_elem = joint_elem.find("axis")
    if axis_elem is None:
        return (1.0, 0.0, 0.0)

    axis = parse_vector(axis_elem.get("xyz", "1 0 0"), 3)
    norm = math.sqrt(sum(a * a for a in axis))
    if not math.isfinite(norm) or norm < AXIS_EPSILON:
        raise ElementError(f"Joint '{name}' axis is zero.  Don't do that.")

    return tuple(a / norm for a in axis)  # ty: ignore[invalid-return-type]


def _read_dynamics(ctx: ParseContext, joint_elem: etree._Element, name: str) -> etree._Element | None:
    """Find the dynamics element, warning about deprecated attributes

    Args:
        ctx: Parse context
        joint_elem: Joint element
        name: Joint name, used in warnings

    Returns:
        The dynamics element, or None if absent
    """
    dynamics_elem = joint_elem.find("dynamics")
    if dynamics_elem is None:
        return None

    if dynamics_elem.get("friction") is not None:
        ctx.diagnostic.warning(
            dynamics_elem, f"A joint friction value was specified for joint '{name}' and will be ignored."
        )
    if dynamics_elem.get("coulomb_window") is not None:
        ctx.diagnostic.warning(
            dynamics_elem, f"The coulomb_window attribute of joint '{name}' is deprecated and is being ignored."
        )

    return dynamics_elem


def _read_scalar_damping(ctx: ParseContext, joint_elem: etree._Element, name: str) -> float:
    dynamics_elem = _read_dynamics(ctx, joint_elem, name)
    if dynamics_elem is None:
        return 0.0

    return read_scalar(dynamics_elem, "damping", 0.0)


def _unbounded(num_dofs: int) -> dict[str, tuple[float, ...]]:
    return {
        "position_lower": (-INF,) * num_dofs,
        "position_upper": (INF,) * num_dofs,
        "velocity_lower": (-INF,) * num_dofs,
        "velocity_upper": (INF,) * num_dofs,
        "acceleration_lower": (-INF,) * num_dofs,
        "acceleration_upper": (INF,) * num_dofs,
    }


def _read_limits(joint_elem: etree._Element, bounded_position: bool) -> dict:
    """Parse limit element of a single-dof joint

    Every bound defaults independently to -inf/+inf; velocity and
    acceleration limits are symmetric.

    Args:
        joint_elem: Joint element containing limit element
        bounded_position: Whether lower/upper are honored

    Returns:
        Dict of JointSpec limit fields
    """
    limits = _unbounded(1)
    limits["effort_limit"] = INF

    limit_elem = joint_elem.find("limit")
    if limit_elem is None:
        return limits

    if bounded_position:
        limits["position_lower"] = (read_scalar(limit_elem, "lower", -INF),)
        limits["position_upper"] = (read_scalar(limit_elem, "upper", INF),)

    velocity = read_scalar(limit_elem, "velocity", INF)
    limits["velocity_lower"] = (-velocity,)
    limits["velocity_upper"] = (velocity,)

    acceleration = read_scalar(limit_elem, drake("acceleration"), INF)
    limits["acceleration_lower"] = (-acceleration,)
    limits["acceleration_upper"] = (acceleration,)

    limits["effort_limit"] = read_scalar(limit_elem, "effort", INF)
    return limits


def _single_dof(ctx: ParseContext, joint_elem: etree._Element, base: JointSpec, bounded_position: bool) -> JointSpec:
    return replace(
        base,
        axis=_read_axis(joint_elem, base.name),
        damping=_read_scalar_damping(ctx, joint_elem, base.name),
        **_read_limits(joint_elem, bounded_position),
    )


@register_joint_type("revolute", JointType.REVOLUTE)
def _parse_revolute(ctx: ParseContext, joint_elem: etree._Element, base: JointSpec) -> JointSpec:
    return _single_dof(ctx, joint_elem, base, bounded_position=True)


@register_joint_type("continuous", JointType.CONTINUOUS)
def _parse_continuous(ctx: ParseContext, joint_elem: etree._Element, base: JointSpec) -> JointSpec:
    return _single_dof(ctx, joint_elem, base, bounded_position=False)


@register_joint_type("prismatic", JointType.PRISMATIC)
def _parse_prismatic(ctx: ParseContext, joint_elem: etree._Element, base: JointSpec) -> JointSpec:
    return _single_dof(ctx, joint_elem, base, bounded_position=True)


@register_joint_type("fixed", JointType.FIXED)
def _parse_fixed(ctx: ParseContext, joint_elem: etree._Element, base: JointSpec) -> JointSpec:
    return base


@register_joint_type("floating", JointType.FLOATING)
def _parse_floating(ctx: ParseContext, joint_elem: etree._Element, base: JointSpec) -> None:
    ctx.diagnostic.warning(
        joint_elem,
        f"Joint '{base.name}' specified as type floating which is not supported by MultibodyPlant.  "
        f"Leaving '{base.child}' as a free body.",
    )
    return None


@register_joint_type("planar", JointType.PLANAR)
def _parse_planar(ctx: ParseContext, joint_elem: etree._Element, base: JointSpec) -> JointSpec:
    """Planar joint; the axis is the plane normal and damping is given per dof"""
    axis = _read_axis(joint_elem, base.name)

    dynamics_elem = _read_dynamics(ctx, joint_elem, base.name)
    if dynamics_elem is not None:
        damping = read_vector(dynamics_elem, "damping", 3, (0.0, 0.0, 0.0))
    else:
        damping = (0.0, 0.0, 0.0)

    return replace(base, axis=axis, damping=damping, **_unbounded(3))


@register_joint_type("ball", JointType.BALL, custom=True)
def _parse_ball(ctx: ParseContext, joint_elem: etree._Element, base: JointSpec) -> JointSpec:
    return replace(base, damping=_read_scalar_damping(ctx, joint_elem, base.name), **_unbounded(3))


@register_joint_type("universal", JointType.UNIVERSAL, custom=True)
def _parse_universal(ctx: ParseContext, joint_elem: etree._Element, base: JointSpec) -> JointSpec:
    return replace(base, damping=_read_scalar_damping(ctx, joint_elem, base.name), **_unbounded(2))
