import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from .model import ActuatorSpec, BushingSpec, FrameSpec, JointSpec, LinkSpec, Pose

__all__ = ["ModelBuilder", "MultibodyModel", "Body", "Frame", "Joint", "JointActuator", "ForceElement"]

console_logger = logging.getLogger(__name__)

WORLD_MODEL_INSTANCE = 0
DEFAULT_MODEL_INSTANCE = 1
WORLD_BODY = 0


class ModelBuilder(ABC):
    """Kinematic-tree store that receives committed specs from the parser

    Handles returned by the add_* methods are opaque integers; the parser only
    passes them back into the builder.
    """

    @property
    @abstractmethod
    def world_body(self) -> int:
        """Handle of the world body"""
        pass

    @abstractmethod
    def add_model_instance(self, name: str) -> int:
        """Create a model instance

        Raises:
            ValueError: If a model instance with this name already exists
        """
        pass

    @abstractmethod
    def add_rigid_body(self, model_instance: int, link: LinkSpec) -> int:
        pass

    @abstractmethod
    def body_frame(self, body: int) -> int:
        """Handle of the frame rigidly attached to a body's origin"""
        pass

    @abstractmethod
    def register_world_geometry(self, model_instance: int, link: LinkSpec) -> None:
        """Attach the visual and collision geometry of a link declared as 'world' to the world body"""
        pass

    @abstractmethod
    def add_frame(self, model_instance: int, frame: FrameSpec, body: int) -> int:
        pass

    @abstractmethod
    def add_joint(self, model_instance: int, joint: JointSpec, parent_body: int, child_body: int) -> int:
        pass

    @abstractmethod
    def add_joint_actuator(self, model_instance: int, actuator: ActuatorSpec, joint: int) -> int:
        pass

    @abstractmethod
    def add_force_element(self, model_instance: int, bushing: BushingSpec, frame_a: int, frame_c: int) -> int:
        pass

    @abstractmethod
    def exclude_collisions_between(self, body_a: int, body_b: int) -> None:
        pass


@dataclass(frozen=True)
class Body:
    index: int
    name: str
    model_instance: int
    link: LinkSpec | None = None


@dataclass(frozen=True)
class Frame:
    index: int
    name: str
    model_instance: int
    body: int
    pose: Pose = field(default_factory=Pose)


@dataclass(frozen=True)
class Joint:
    index: int
    model_instance: int
    spec: JointSpec
    parent_body: int
    child_body: int

    @property
    def name(self) -> str:
        return self.spec.name


@dataclass(frozen=True)
class JointActuator:
    index: int
    model_instance: int
    spec: ActuatorSpec
    joint: int

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def effort_limit(self) -> float:
        return self.spec.effort_limit


@dataclass(frozen=True)
class ForceElement:
    index: int
    model_instance: int
    spec: BushingSpec
    frame_a: int
    frame_c: int


class MultibodyModel(ModelBuilder):
    """In-memory ModelBuilder that records everything it is given

    Instance 0 is the world model instance and instance 1 the default model
    instance, so the first model added from a document gets instance 2.

    Attributes:
        model_instances: Model instance names indexed by handle
        bodies: Bodies indexed by handle, the world body first
        frames: Frames indexed by handle, the world frame first
        joints: Joints indexed by handle
        actuators: Joint actuators indexed by handle
        force_elements: Force elements indexed by handle
        world_geometry: Links whose geometry was attached to the world body
    """

    def __init__(self):
        self.model_instances: list[str] = ["WorldModelInstance", "DefaultModelInstance"]
        self.bodies: list[Body] = [Body(WORLD_BODY, "world", WORLD_MODEL_INSTANCE)]
        self.frames: list[Frame] = [Frame(0, "world", WORLD_MODEL_INSTANCE, WORLD_BODY)]
        self.joints: list[Joint] = []
        self.actuators: list[JointActuator] = []
        self.force_elements: list[ForceElement] = []
        self.world_geometry: list[tuple[int, LinkSpec]] = []
        self._body_frames: dict[int, int] = {WORLD_BODY: 0}
        self._filtered_pairs: set[frozenset[int]] = set()

    @property
    def world_body(self) -> int:
        return WORLD_BODY

    def add_model_instance(self, name: str) -> int:
        if name in self.model_instances:
            raise ValueError(f"Model instance '{name}' already exists")

        self.model_instances.append(name)
        return len(self.model_instances) - 1

    def add_rigid_body(self, model_instance: int, link: LinkSpec) -> int:
        body = Body(len(self.bodies), link.name, model_instance, link)
        self.bodies.append(body)

        frame = Frame(len(self.frames), link.name, model_instance, body.index)
        self.frames.append(frame)
        self._body_frames[body.index] = frame.index

        console_logger.debug(f"Added body '{link.name}' to model instance {model_instance}")
        return body.index

    def body_frame(self, body: int) -> int:
        return self._body_frames[body]

    def register_world_geometry(self, model_instance: int, link: LinkSpec) -> None:
        self.world_geometry.append((model_instance, link))

    def add_frame(self, model_instance: int, frame: FrameSpec, body: int) -> int:
        index = len(self.frames)
        self.frames.append(Frame(index, frame.name, model_instance, body, frame.pose))
        return index

    def add_joint(self, model_instance: int, joint: JointSpec, parent_body: int, child_body: int) -> int:
        index = len(self.joints)
        self.joints.append(Joint(index, model_instance, joint, parent_body, child_body))
        console_logger.debug(f"Added {joint.type.value} joint '{joint.name}' to model instance {model_instance}")
        return index

    def add_joint_actuator(self, model_instance: int, actuator: ActuatorSpec, joint: int) -> int:
        index = len(self.actuators)
        self.actuators.append(JointActuator(index, model_instance, actuator, joint))
        return index

    def add_force_element(self, model_instance: int, bushing: BushingSpec, frame_a: int, frame_c: int) -> int:
        index = len(self.force_elements)
        self.force_elements.append(ForceElement(index, model_instance, bushing, frame_a, frame_c))
        return index

    def exclude_collisions_between(self, body_a: int, body_b: int) -> None:
        if body_a != body_b:
            self._filtered_pairs.add(frozenset((body_a, body_b)))

    def collision_filtered(self, body_a: int, body_b: int) -> bool:
        return frozenset((body_a, body_b)) in self._filtered_pairs

    @property
    def num_filtered_pairs(self) -> int:
        return len(self._filtered_pairs)

    def num_filtered_pairs_in(self, model_instance: int) -> int:
        """Number of filtered pairs with a body in the given model instance"""
        return sum(
            any(self.bodies[body].model_instance == model_instance for body in pair) for pair in self._filtered_pairs
        )

    def get_model_instance_by_name(self, name: str) -> int:
        """Get model instance handle by name

        Raises:
            KeyError: If no model instance has this name
        """
        if name not in self.model_instances:
            raise KeyError(f"No model instance named '{name}'")

        return self.model_instances.index(name)

    def model_instance_name(self, model_instance: int) -> str:
        return self.model_instances[model_instance]

    def get_body_by_name(self, name: str, model_instance: int | None = None) -> Body:
        return self._get_by_name(self.bodies, name, model_instance, "body")

    def get_frame_by_name(self, name: str, model_instance: int | None = None) -> Frame:
        return self._get_by_name(self.frames, name, model_instance, "frame")

    def get_joint_by_name(self, name: str, model_instance: int | None = None) -> Joint:
        return self._get_by_name(self.joints, name, model_instance, "joint")

    def get_joint_actuator_by_name(self, name: str, model_instance: int | None = None) -> JointActuator:
        return self._get_by_name(self.actuators, name, model_instance, "joint actuator")

    def has_joint_named(self, name: str, model_instance: int | None = None) -> bool:
        return bool(self._find(self.joints, name, model_instance))

    def has_joint_actuator_named(self, name: str, model_instance: int | None = None) -> bool:
        return bool(self._find(self.actuators, name, model_instance))

    def has_frame_named(self, name: str, model_instance: int | None = None) -> bool:
        return bool(self._find(self.frames, name, model_instance))

    def _find(self, items: list, name: str, model_instance: int | None) -> list:
        return [
            item
            for item in items
            if item.name == name and (model_instance is None or item.model_instance == model_instance)
        ]

    def _get_by_name(self, items: list, name: str, model_instance: int | None, kind: str):
        """Look up a uniquely named item

        Args:
            items: Items to search
            name: Name of the item
            model_instance: Restrict the search to this model instance, or None for all instances
            kind: Item kind used in error messages

        Raises:
            KeyError: If there is no match
            ValueError: If the name is ambiguous across model instances
        """
        matches = self._find(items, name, model_instance)
        if not matches:
            raise KeyError(f"No {kind} named '{name}'")
        if len(matches) > 1:
            raise ValueError(f"{kind.capitalize()} name '{name}' is ambiguous across model instances")

        return matches[0]
