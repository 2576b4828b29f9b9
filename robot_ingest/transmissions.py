from lxml import etree

from .attributes import ElementError, drake, parse_scalar, require_attribute
from .context import ParseContext
from .model import ActuatorSpec, JointType, TransmissionSpec

__all__ = ["SUPPORTED_TRANSMISSION", "parse_transmission"]

SUPPORTED_TRANSMISSION = "SimpleTransmission"


def parse_transmission(ctx: ParseContext, transmission_elem: etree._Element) -> TransmissionSpec | None:
    """Parse a transmission element and commit its actuator

    Unsupported transmission types, fixed joints and joints with a zero
    effort limit are skipped with a warning.

    Args:
        ctx: Parse context
        transmission_elem: Transmission element

    Returns:
        The TransmissionSpec whose actuator was committed, or None if nothing was committed
    """
    try:
        return _read_transmission(ctx, transmission_elem)
    except ValueError as e:
        ctx.diagnostic.error(transmission_elem, str(e))
        return None


def _read_type(transmission_elem: etree._Element) -> str:
    """Read the transmission type from the type attribute or a nested <type> element

    Raises:
        ElementError: If neither declares a type
    """
    type_name = transmission_elem.get("type")
    if type_name is None:
        type_name = transmission_elem.findtext("type")

    if type_name is None or not type_name.strip():
        raise ElementError("Transmission element is missing a type.")

    return type_name.strip()


def _read_transmission(ctx: ParseContext, transmission_elem: etree._Element) -> TransmissionSpec | None:
    type_name = _read_type(transmission_elem)
    if SUPPORTED_TRANSMISSION not in type_name:
        ctx.diagnostic.warning(
            transmission_elem,
            "A <transmission> has a type that isn't 'SimpleTransmission'. Drake only supports "
            "'SimpleTransmission'; all other transmission types will be ignored.",
        )
        return None

    actuator_elem = transmission_elem.find("actuator")
    if actuator_elem is None:
        raise ElementError("Transmission is missing an actuator element.")
    actuator_name = require_attribute(actuator_elem, "name", "Transmission is missing an actuator name.")

    joint_elem = transmission_elem.find("joint")
    if joint_elem is None:
        raise ElementError("Transmission is missing a joint element.")
    joint_name = require_attribute(joint_elem, "name", "Transmission is missing a joint name.")

    entry = ctx.index.joints.get(joint_name)
    if entry is None:
        raise ElementError(f"Transmission specifies joint '{joint_name}' which does not exist.")

    joint = entry.spec
    if joint.type is JointType.FIXED:
        ctx.diagnostic.warning(
            transmission_elem, f'Skipping transmission since it\'s attached to a fixed joint "{joint_name}".'
        )
        return None

    if joint.effort_limit < 0:
        raise ElementError(f"Transmission specifies joint '{joint_name}' which has a negative effort limit.")

    if joint.effort_limit == 0:
        ctx.diagnostic.warning(
            transmission_elem,
            f'Skipping transmission since it\'s attached to joint "{joint_name}" which has a zero effort limit '
            f"{joint.effort_limit:g}.",
        )
        return None

    rotor_inertia = _read_reflected_inertia(actuator_elem, actuator_name, "rotor_inertia", 0.0)
    gear_ratio = _read_reflected_inertia(actuator_elem, actuator_name, "gear_ratio", 1.0)

    ctx.index.actuators.check_unique(actuator_name)
    actuator = ActuatorSpec(
        name=actuator_name,
        joint=joint_name,
        effort_limit=joint.effort_limit,
        rotor_inertia=rotor_inertia,
        gear_ratio=gear_ratio,
        **ctx.metadata(actuator_elem),
    )

    handle = ctx.builder.add_joint_actuator(ctx.model_instance, actuator, entry.handle)
    ctx.index.actuators.add(actuator_name, handle, actuator)

    return TransmissionSpec(type=type_name, actuator=actuator, joint=joint_name, **ctx.metadata(transmission_elem))


def _read_reflected_inertia(actuator_elem: etree._Element, actuator_name: str, tag: str, default: float) -> float:
    """Read a drake:rotor_inertia or drake:gear_ratio extension of an actuator

    Args:
        actuator_elem: Actuator element
        actuator_name: Name of the actuator, used in the error
        tag: Local name of the extension tag
        default: Value used when the tag is absent

    Returns:
        Parsed value or default

    Raises:
        ElementError: If the tag is present without a value attribute
    """
    tag_elem = actuator_elem.find(drake(tag))
    if tag_elem is None:
        return default

    value = require_attribute(
        tag_elem, "value", f'joint actuator {actuator_name}\'s drake:{tag} does not have a "value" attribute!'
    )
    return parse_scalar(value)
