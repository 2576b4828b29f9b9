import math
from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "Base",
    "Pose",
    "Geometry",
    "Box",
    "Capsule",
    "Cylinder",
    "Ellipsoid",
    "Sphere",
    "Mesh",
    "Inertia",
    "Inertial",
    "Collision",
    "Material",
    "Visual",
    "LinkSpec",
    "JointType",
    "JointSpec",
    "FrameSpec",
    "ActuatorSpec",
    "TransmissionSpec",
    "BushingSpec",
    "CollisionFilterGroupSpec",
]

INF = math.inf


@dataclass(frozen=True)
class Base:
    """Base class for specs with source tracking metadata

    Attributes:
        line_number: Line number of element in source document
        source_path: Hierarchical path to element in source document
        source_file: Path to source file, or the literal-string label for in-memory text
    """

    _line_number: int | None = field(default=None, repr=False, compare=False, kw_only=True)
    _source_path: str | None = field(default=None, repr=False, compare=False, kw_only=True)
    _source_file: str | None = field(default=None, repr=False, compare=False, kw_only=True)


@dataclass(frozen=True)
class Pose(Base):
    """Position and orientation in SE(3)

    Attributes:
        xyz: (x, y, z) position in meters, defaults to (0.0, 0.0, 0.0)
        quat: (w, x, y, z) unit quaternion, defaults to (1.0, 0.0, 0.0, 0.0)
    """

    xyz: tuple[float, float, float] = (0.0, 0.0, 0.0)
    quat: tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Geometry(Base):
    """Base class for geometric shapes"""

    pass


@dataclass(frozen=True)
class Box(Geometry):
    """Box geometry

    Attributes:
        size: (x, y, z) dimensions in meters
    """

    size: tuple[float, float, float] = (0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Capsule(Geometry):
    """Capsule geometry

    Attributes:
        radius: Radius in meters
        length: Length of the cylindrical section in meters
    """

    radius: float = 0.0
    length: float = 0.0


@dataclass(frozen=True)
class Cylinder(Geometry):
    """Cylinder geometry

    Attributes:
        radius: Radius in meters
        length: Length in meters
    """

    radius: float = 0.0
    length: float = 0.0


@dataclass(frozen=True)
class Ellipsoid(Geometry):
    """Ellipsoid geometry

    Attributes:
        a, b, c: Principal semi-axes in meters
    """

    a: float = 0.0
    b: float = 0.0
    c: float = 0.0


@dataclass(frozen=True)
class Sphere(Geometry):
    """Sphere geometry

    Attributes:
        radius: Radius in meters
    """

    radius: float = 0.0


@dataclass(frozen=True)
class Mesh(Geometry):
    """Mesh geometry

    Attributes:
        filename: URI to mesh file as written in the document
        resolved_path: Filesystem path the URI resolved to
        scale: (x, y, z) scale factors, defaults to (1.0, 1.0, 1.0)
    """

    filename: str = ""
    resolved_path: str = ""
    scale: tuple[float, float, float] = (1.0, 1.0, 1.0)


@dataclass(frozen=True)
class Inertia(Base):
    """Inertia tensor

    Attributes:
        ixx, ixy, ixz, iyy, iyz, izz: Components of the 3x3 symmetric inertia tensor in kg*m^2
    """

    ixx: float = 0.0
    ixy: float = 0.0
    ixz: float = 0.0
    iyy: float = 0.0
    iyz: float = 0.0
    izz: float = 0.0

    @property
    def moments(self) -> tuple[float, float, float]:
        return (self.ixx, self.iyy, self.izz)

    @property
    def products(self) -> tuple[float, float, float]:
        return (self.ixy, self.ixz, self.iyz)


@dataclass(frozen=True)
class Inertial(Base):
    """Inertial properties of a link

    Attributes:
        origin: Pose of inertial frame w.r.t. link frame, defaults to the identity
        mass: Mass in kilograms
        inertia: Inertia tensor
    """

    origin: Pose = field(default_factory=Pose)
    mass: float = 0.0
    inertia: Inertia = field(default_factory=Inertia)


@dataclass(frozen=True)
class Collision(Base):
    """Collision geometry of a link

    Attributes:
        name: Optional name of the collision element
        origin: Pose of collision geometry w.r.t. link frame, defaults to the identity
        geometry: Geometric shape for collision checking
    """

    name: str | None = None
    origin: Pose = field(default_factory=Pose)
    geometry: Geometry | None = None


@dataclass(frozen=True)
class Material(Base):
    """Material properties for visual elements

    Attributes:
        name: Name of the material, defaults to None if not specified
        rgba: (r, g, b, a) color values from 0-1, defaults to None if not specified
        texture_filename: URI to texture file, defaults to None if not specified
    """

    name: str | None = None
    rgba: tuple[float, float, float, float] | None = None
    texture_filename: str | None = None


@dataclass(frozen=True)
class Visual(Base):
    """Visual geometry of a link

    Attributes:
        name: Optional name of the visual element
        origin: Pose of visual geometry w.r.t. link frame, defaults to the identity
        geometry: Geometric shape for visualization
        material: Material properties, defaults to None if not specified
    """

    name: str | None = None
    origin: Pose = field(default_factory=Pose)
    geometry: Geometry | None = None
    material: Material | None = None


@dataclass(frozen=True)
class LinkSpec(Base):
    """Robot link

    Attributes:
        name: Name of the link
        inertial: Inertial properties, None when the document declares none
        collisions: Collision geometries, defaults to empty tuple
        visuals: Visual geometries, defaults to empty tuple
    """

    name: str
    inertial: Inertial | None = None
    collisions: tuple[Collision, ...] = ()
    visuals: tuple[Visual, ...] = ()

    @property
    def mass(self) -> float:
        return self.inertial.mass if self.inertial is not None else 0.0


class JointType(Enum):
    """Closed set of joint variants the parser can commit"""

    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"
    FIXED = "fixed"
    FLOATING = "floating"
    PLANAR = "planar"
    BALL = "ball"
    UNIVERSAL = "universal"


@dataclass(frozen=True)
class JointSpec(Base):
    """Joint connecting two links

    Limit tuples have one entry per degree of freedom and default to -inf/+inf.

    Attributes:
        name: Name of the joint
        type: Joint variant
        parent: Name of the parent link
        child: Name of the child link
        origin: Pose of child link frame w.r.t. parent link frame, defaults to the identity
        axis: Unit axis of motion (plane normal for planar joints), defaults to (1.0, 0.0, 0.0)
        damping: Scalar damping, or one value per dof for planar joints
        position_lower, position_upper: Position limits
        velocity_lower, velocity_upper: Velocity limits
        acceleration_lower, acceleration_upper: Acceleration limits
        effort_limit: Maximum actuation effort, defaults to +inf
    """

    name: str
    type: JointType
    parent: str
    child: str
    origin: Pose = field(default_factory=Pose)
    axis: tuple[float, float, float] = (1.0, 0.0, 0.0)
    damping: float | tuple[float, ...] = 0.0
    position_lower: tuple[float, ...] = ()
    position_upper: tuple[float, ...] = ()
    velocity_lower: tuple[float, ...] = ()
    velocity_upper: tuple[float, ...] = ()
    acceleration_lower: tuple[float, ...] = ()
    acceleration_upper: tuple[float, ...] = ()
    effort_limit: float = INF

    @property
    def num_dofs(self) -> int:
        return len(self.position_lower)


@dataclass(frozen=True)
class FrameSpec(Base):
    """Frame fixed to a link

    Attributes:
        name: Name of the frame
        link: Name of the link the frame is attached to
        pose: Pose of the frame w.r.t. the link frame
    """

    name: str
    link: str
    pose: Pose = field(default_factory=Pose)


@dataclass(frozen=True)
class ActuatorSpec(Base):
    """Joint actuator with optional reflected inertia parameters

    Attributes:
        name: Name of the actuator
        joint: Name of the actuated joint
        effort_limit: Maximum effort, copied from the joint's limit
        rotor_inertia: Rotor inertia, defaults to 0.0
        gear_ratio: Gear ratio, defaults to 1.0
    """

    name: str
    joint: str
    effort_limit: float = INF
    rotor_inertia: float = 0.0
    gear_ratio: float = 1.0


@dataclass(frozen=True)
class TransmissionSpec(Base):
    """Transmission binding one actuator to one joint

    Attributes:
        type: Declared transmission type
        actuator: The actuator driven by the transmission
        joint: Name of the transmission's joint
    """

    type: str
    actuator: ActuatorSpec
    joint: str


@dataclass(frozen=True)
class BushingSpec(Base):
    """Linear roll-pitch-yaw bushing between two frames

    Attributes:
        frame_a: Name of frame A
        frame_c: Name of frame C
        torque_stiffness, torque_damping: Rotational constants
        force_stiffness, force_damping: Translational constants
    """

    frame_a: str
    frame_c: str
    torque_stiffness: tuple[float, float, float]
    torque_damping: tuple[float, float, float]
    force_stiffness: tuple[float, float, float]
    force_damping: tuple[float, float, float]

    @property
    def constants(self) -> tuple[float, ...]:
        """All twelve constants in declared order"""
        return self.torque_stiffness + self.torque_damping + self.force_stiffness + self.force_damping


@dataclass(frozen=True)
class CollisionFilterGroupSpec(Base):
    """Named set of links with collision filtering rules

    Attributes:
        name: Name of the group
        members: Names of member links
        ignored_groups: Names of groups whose members never collide with this group's members
        self_filtering: Whether members of this group never collide with each other
    """

    name: str
    members: frozenset[str] = frozenset()
    ignored_groups: frozenset[str] = frozenset()
    self_filtering: bool = True
