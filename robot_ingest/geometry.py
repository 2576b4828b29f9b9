from lxml import etree

from .attributes import (
    ElementError,
    child_elements,
    drake,
    parse_scalar,
    parse_vector,
    read_origin,
    read_scalar,
    require_attribute,
    tag_name,
)
from .context import ParseContext
from .model import (
    Box,
    Capsule,
    Collision,
    Cylinder,
    Ellipsoid,
    Geometry,
    Inertia,
    Inertial,
    Material,
    Mesh,
    Sphere,
    Visual,
)

__all__ = ["parse_global_material", "parse_inertial", "parse_visuals", "parse_collisions"]


def parse_global_material(ctx: ParseContext, material_elem: etree._Element) -> Material | None:
    """Parse a top-level material element and commit it to the material table

    Args:
        ctx: Parse context
        material_elem: Top-level material element

    Returns:
        Material object, or None if an error was reported
    """
    try:
        name = require_attribute(material_elem, "name", "Material tag is missing a name.")
        if name in ctx.materials:
            raise ElementError(f"Duplicate material name: '{name}'")

        material = _read_material(ctx, material_elem, name, rgba=None, texture_filename=None)
    except ValueError as e:
        ctx.diagnostic.error(material_elem, str(e))
        return None

    ctx.materials[name] = material
    return material


def parse_inertial(ctx: ParseContext, link_elem: etree._Element) -> Inertial | None:
    """Parse inertial element

    Missing mass and inertia entries default to zero.

    Args:
        ctx: Parse context
        link_elem: Link element containing inertial element

    Returns:
        Inertial object, or None if no inertial is defined

    Raises:
        ValueError: If a value is not numeric
        ElementError: If a zero mass carries non-zero rotational inertia
    """
    inertial_elem = link_elem.find("inertial")
    if inertial_elem is None:
        return None

    origin = read_origin(inertial_elem, ctx.metadata)

    mass_elem = inertial_elem.find("mass")
    if mass_elem is not None:
        mass = read_scalar(mass_elem, "value", 0.0)
    else:
        mass = 0.0

    inertia_elem = inertial_elem.find("inertia")
    if inertia_elem is not None:
        inertia = Inertia(
            ixx=read_scalar(inertia_elem, "ixx", 0.0),
            ixy=read_scalar(inertia_elem, "ixy", 0.0),
            ixz=read_scalar(inertia_elem, "ixz", 0.0),
            iyy=read_scalar(inertia_elem, "iyy", 0.0),
            iyz=read_scalar(inertia_elem, "iyz", 0.0),
            izz=read_scalar(inertia_elem, "izz", 0.0),
            **ctx.metadata(inertia_elem),
        )
    else:
        inertia = Inertia()

    if mass == 0.0 and (any(inertia.moments) or any(inertia.products)):
        raise ElementError(f"Link '{link_elem.get('name')}' has zero mass and non-zero rotational inertia.")

    return Inertial(origin=origin, mass=mass, inertia=inertia, **ctx.metadata(inertial_elem))


def parse_collisions(ctx: ParseContext, link_elem: etree._Element, link_name: str) -> tuple[Collision, ...]:
    """Parse all collision elements

    A malformed collision element is reported and skipped; the rest of the
    link is kept.

    Args:
        ctx: Parse context
        link_elem: Link element containing collision elements
        link_name: Name of the link, used in error messages

    Returns:
        Tuple of Collision objects
    """
    collisions = []

    for collision_elem in link_elem.findall("collision"):
        try:
            name = collision_elem.get("name")
            origin = read_origin(collision_elem, ctx.metadata)
            geometry = _parse_geometry(ctx, collision_elem, link_name)
        except ValueError as e:
            ctx.diagnostic.error(collision_elem, str(e))
            continue

        collisions.append(Collision(name=name, origin=origin, geometry=geometry, **ctx.metadata(collision_elem)))

    return tuple(collisions)


def parse_visuals(ctx: ParseContext, link_elem: etree._Element, link_name: str) -> tuple[Visual, ...]:
    """Parse all visual elements

    A malformed visual element is reported and skipped; the rest of the link
    is kept.

    Args:
        ctx: Parse context
        link_elem: Link element containing visual elements
        link_name: Name of the link, used in error messages

    Returns:
        Tuple of Visual objects
    """
    visuals = []

    for visual_elem in link_elem.findall("visual"):
        try:
            name = visual_elem.get("name")
            origin = read_origin(visual_elem, ctx.metadata)
            geometry = _parse_geometry(ctx, visual_elem, link_name)
            material = _parse_material(ctx, visual_elem)
        except ValueError as e:
            ctx.diagnostic.error(visual_elem, str(e))
            continue

        visuals.append(
            Visual(name=name, origin=origin, geometry=geometry, material=material, **ctx.metadata(visual_elem))
        )

    return tuple(visuals)


def _shape_value(shape_elem: etree._Element, attribute: str, link_name: str) -> float:
    value = require_attribute(
        shape_elem,
        attribute,
        f"The <{tag_name(shape_elem)}> of link '{link_name}' is missing the '{attribute}' attribute.",
    )
    return parse_scalar(value)


def _parse_geometry(ctx: ParseContext, parent_elem: etree._Element, link_name: str) -> Geometry:
    """Parse geometry element

    Args:
        ctx: Parse context
        parent_elem: Visual or collision element containing geometry element
        link_name: Name of the owning link

    Returns:
        Geometry object

    Raises:
        ElementError: If the geometry is missing, empty, or of an unsupported shape
    """
    kind = tag_name(parent_elem)
    geometry_elem = parent_elem.find("geometry")
    if geometry_elem is None:
        raise ElementError(f"The <{kind}> of link '{link_name}' is missing a <geometry> element.")

    shapes = child_elements(geometry_elem)
    if not shapes:
        raise ElementError(f"The <geometry> of a <{kind}> of link '{link_name}' does not contain a shape.")

    # material tags are tolerated beside the shape
    shape_elem = next((shape for shape in shapes if shape.tag != "material"), shapes[0])
    tag = shape_elem.tag
    metadata = ctx.metadata(shape_elem)

    if tag == "box":
        size = parse_vector(
            require_attribute(shape_elem, "size", f"The <box> of link '{link_name}' is missing the 'size' attribute."),
            3,
        )
        return Box(size=size, **metadata)  # ty: ignore[invalid-argument-type]

    elif tag == "cylinder":
        radius = _shape_value(shape_elem, "radius", link_name)
        length = _shape_value(shape_elem, "length", link_name)
        return Cylinder(radius=radius, length=length, **metadata)

    elif tag in ("capsule", drake("capsule")):
        radius = _shape_value(shape_elem, "radius", link_name)
        length = _shape_value(shape_elem, "length", link_name)
        return Capsule(radius=radius, length=length, **metadata)

    elif tag == drake("ellipsoid"):
        a = _shape_value(shape_elem, "a", link_name)
        b = _shape_value(shape_elem, "b", link_name)
        c = _shape_value(shape_elem, "c", link_name)
        return Ellipsoid(a=a, b=b, c=c, **metadata)

    elif tag == "sphere":
        radius = _shape_value(shape_elem, "radius", link_name)
        return Sphere(radius=radius, **metadata)

    elif tag == "mesh":
        filename = require_attribute(
            shape_elem, "filename", f"The <mesh> of link '{link_name}' is missing the 'filename' attribute."
        )
        resolved = ctx.workspace.package_map.resolve(filename, ctx.root_dir)
        scale = parse_vector(shape_elem.get("scale", "1 1 1"), 3)
        return Mesh(filename=filename, resolved_path=str(resolved), scale=scale, **metadata)  # ty: ignore[invalid-argument-type]

    raise ElementError(f"Link '{link_name}' has an unsupported geometry <{tag_name(shape_elem)}>.")


def _parse_material(ctx: ParseContext, visual_elem: etree._Element) -> Material | None:
    """Parse material element

    A named material starts from the global definition; inline color and
    texture override it.

    Args:
        ctx: Parse context
        visual_elem: Visual element containing material

    Returns:
        Material object, or None if no material is defined
    """
    material_elem = visual_elem.find("material")
    if material_elem is None:
        return None

    name = material_elem.get("name")

    if name in ctx.materials:
        resolved = ctx.materials[name]
        rgba = resolved.rgba
        texture_filename = resolved.texture_filename
    else:
        rgba = None
        texture_filename = None

    return _read_material(ctx, material_elem, name, rgba, texture_filename)


def _read_material(
    ctx: ParseContext,
    material_elem: etree._Element,
    name: str | None,
    rgba: tuple[float, ...] | None,
    texture_filename: str | None,
) -> Material:
    color_elem = material_elem.find("color")
    if color_elem is not None:
        rgba = parse_vector(color_elem.get("rgba", "0 0 0 0"), 4)

    texture_elem = material_elem.find("texture")
    if texture_elem is not None:
        texture_filename = texture_elem.get("filename")

    return Material(
        name=name,
        rgba=rgba,  # ty: ignore[invalid-argument-type]
        texture_filename=texture_filename,
        **ctx.metadata(material_elem),
    )
