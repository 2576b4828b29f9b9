import math
from pathlib import Path

import pytest

from robot_ingest.diagnostics import DiagnosticPolicy
from robot_ingest.joints import JOINT_TYPES, register_joint_type
from robot_ingest.model import JointType
from robot_ingest.plant import MultibodyModel

INF = math.inf

TWO_LINKS = """
    <robot xmlns:drake="http://drake.mit.edu" name="a">
      <link name="parent"/>
      <link name="child"/>
      {}
    </robot>"""


@pytest.fixture
def joint_model(add_file, data_dir: Path, policy: DiagnosticPolicy, model: MultibodyModel) -> MultibodyModel:
    """Model holding every joint of the joint parsing fixture"""
    add_file(data_dir / "ver_joint_parsing_test.urdf")
    assert not policy.diagnostics
    return model


def test_joint_name_broken(add_string, policy: DiagnosticPolicy) -> None:
    """Test that a joint without a name is reported"""
    add_string(TWO_LINKS.format("<joint naQQQme='broken'/>"))
    assert policy.take_error().endswith("joint tag is missing name attribute")


def test_joint_type_broken(add_string, policy: DiagnosticPolicy) -> None:
    """Test that a joint without a type is reported"""
    add_string(TWO_LINKS.format("<joint name='a' tQQQype='revolute'/>"))
    assert policy.take_error().endswith("joint 'a' is missing type attribute")


def test_joint_type_unknown(add_string, policy: DiagnosticPolicy) -> None:
    """Test that an unregistered joint type is reported"""
    add_string(
        TWO_LINKS.format(
            """
            <joint name='j' type='who'>
              <parent link='parent'/>
              <child link='child'/>
            </joint>"""
        )
    )
    assert policy.take_error().endswith("Joint 'j' has unrecognized type: 'who'")


def test_joint_no_parent(add_string, policy: DiagnosticPolicy) -> None:
    """Test that a joint without a parent is reported"""
    add_string(TWO_LINKS.format("<joint name='a' type='revolute'/>"))
    assert policy.take_error().endswith("joint 'a' doesn't have a parent node!")


def test_joint_parent_link_broken(add_string, policy: DiagnosticPolicy) -> None:
    """Test that a parent without a link attribute is reported"""
    add_string(
        TWO_LINKS.format(
            """
            <joint name='a' type='revolute'>
              <parent liQQQnk='parent'/>
            </joint>"""
        )
    )
    assert policy.take_error().endswith("joint a's parent does not have a link attribute!")


def test_joint_no_child(add_string, policy: DiagnosticPolicy) -> None:
    """Test that a joint without a child is reported"""
    add_string(
        TWO_LINKS.format(
            """
            <joint name='a' type='revolute'>
              <parent link='parent'/>
            </joint>"""
        )
    )
    assert policy.take_error().endswith("joint 'a' doesn't have a child node!")


def test_joint_child_link_broken(add_string, policy: DiagnosticPolicy) -> None:
    """Test that a child without a link attribute is reported"""
    add_string(
        TWO_LINKS.format(
            """
            <joint name='a' type='revolute'>
              <parent link='parent'/>
              <child liQQQnk='child'/>
            </joint>"""
        )
    )
    assert policy.take_error().endswith("joint a's child does not have a link attribute!")


def test_joint_parent_link_unknown(add_string, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that a parent naming an undeclared link is reported"""
    add_string(
        """
        <robot name='a'>
          <link name='child'/>
          <joint name='a' type='revolute'>
            <parent link='parent'/>
            <child link='child'/>
          </joint>
        </robot>"""
    )
    assert policy.take_error().endswith(
        "Could not find link named 'parent' with model instance ID 2 for element 'joint'."
    )
    assert not model.joints


def test_duplicate_joint_name(add_string, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that a second joint with the same name is reported and skipped"""
    add_string(
        """
        <robot name='a'>
          <link name='l1'/>
          <link name='l2'/>
          <link name='l3'/>
          <joint name='j' type='fixed'><parent link='l1'/><child link='l2'/></joint>
          <joint name='j' type='fixed'><parent link='l2'/><child link='l3'/></joint>
        </robot>"""
    )
    assert policy.take_error().endswith("Duplicate joint name: 'j'")
    assert len(model.joints) == 1


def test_joint_friction_warning(add_string, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that a friction value is ignored with a warning"""
    add_string(
        TWO_LINKS.format(
            """
            <joint name='a' type='revolute'>
              <parent link='parent'/>
              <child link='child'/>
              <dynamics friction='10'/>
            </joint>"""
        )
    )
    assert "joint friction" in policy.take_warning()
    assert model.has_joint_named("a")


def test_joint_coulomb_window_warning(add_string, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that the deprecated coulomb_window attribute is ignored with a warning"""
    add_string(
        TWO_LINKS.format(
            """
            <joint name='a' type='revolute'>
              <parent link='parent'/>
              <child link='child'/>
              <dynamics coulomb_window='10'/>
            </joint>"""
        )
    )
    warning = policy.take_warning()
    assert "coulomb_window" in warning
    assert "ignored" in warning
    assert model.has_joint_named("a")


@pytest.mark.parametrize("xyz", ["0 0 0", "nan nan nan", "inf 0 0"])
def test_degenerate_axis(add_string, policy: DiagnosticPolicy, model: MultibodyModel, xyz: str) -> None:
    """Test that a zero or non-finite axis is reported, the joint skipped and the model still added"""
    model_instance = add_string(
        TWO_LINKS.format(
            f"""
            <joint name='joint' type='revolute'>
              <axis xyz='{xyz}'/>
              <parent link='parent'/>
              <child link='child'/>
            </joint>"""
        )
    )
    assert model_instance is not None
    assert policy.take_error().endswith("Joint 'joint' axis is zero.  Don't do that.")
    assert not model.joints


def test_bad_limit_value(add_string, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that non-numeric limit text is reported and the joint skipped"""
    add_string(
        TWO_LINKS.format(
            """
            <joint name='joint' type='revolute'>
              <parent link='parent'/>
              <child link='child'/>
              <limit lower='low'/>
            </joint>"""
        )
    )
    assert "Expected a numeric value, got 'low'" in policy.take_error()
    assert not model.joints


def test_floating_joint(add_string, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that a floating joint leaves its child free with a warning"""
    add_string(
        TWO_LINKS.format(
            """
            <joint name='float' type='floating'>
              <parent link='parent'/>
              <child link='child'/>
            </joint>"""
        )
    )
    assert policy.take_warning().endswith(
        "Joint 'float' specified as type floating which is not supported by MultibodyPlant.  "
        "Leaving 'child' as a free body."
    )
    assert not policy.diagnostics
    assert not model.joints


def test_joint_tag_mismatch(add_file, data_dir: Path, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that standard and custom joint types must use their own tags"""
    add_file(data_dir / "err_joint_tag_mismatch_1.urdf")
    assert policy.take_error().endswith(
        "Joint fixed_joint of type fixed is a standard joint type, and should be a <joint>"
    )

    add_file(data_dir / "err_joint_tag_mismatch_2.urdf")
    assert policy.take_error().endswith(
        "Joint ball_joint of type ball is a custom joint type, and should be a <drake:joint>"
    )
    assert not model.joints


def test_revolute_joint(joint_model: MultibodyModel) -> None:
    """Test that every revolute limit is read"""
    joint = joint_model.get_joint_by_name("revolute_joint").spec

    assert joint.type is JointType.REVOLUTE
    assert joint.parent == "link1"
    assert joint.child == "link2"
    assert joint.origin.xyz == (0.0, 0.0, 0.5)
    assert joint.axis == (0.0, 0.0, 1.0)
    assert joint.damping == 0.1
    assert joint.position_lower == (-1.0,)
    assert joint.position_upper == (2.0,)
    assert joint.velocity_lower == (-10.0,)
    assert joint.velocity_upper == (10.0,)
    assert joint.acceleration_lower == (-20.0,)
    assert joint.acceleration_upper == (20.0,)
    assert joint.effort_limit == 100.0


def test_prismatic_joint(joint_model: MultibodyModel) -> None:
    """Test that a prismatic joint without an acceleration limit is unbounded in acceleration"""
    joint = joint_model.get_joint_by_name("prismatic_joint").spec

    assert joint.type is JointType.PRISMATIC
    assert joint.axis == (0.0, 1.0, 0.0)
    assert joint.position_lower == (-2.0,)
    assert joint.position_upper == (1.0,)
    assert joint.velocity_upper == (5.0,)
    assert joint.acceleration_lower == (-INF,)
    assert joint.acceleration_upper == (INF,)
    assert joint.effort_limit == 5.0


def test_joint_without_limits(joint_model: MultibodyModel) -> None:
    """Test that a joint without a limit element is unbounded and undamped"""
    joint = joint_model.get_joint_by_name("revolute_joint_no_limits").spec

    assert joint.position_lower == (-INF,)
    assert joint.position_upper == (INF,)
    assert joint.velocity_lower == (-INF,)
    assert joint.velocity_upper == (INF,)
    assert joint.acceleration_lower == (-INF,)
    assert joint.acceleration_upper == (INF,)
    assert joint.effort_limit == INF
    assert joint.damping == 0.0


def test_continuous_joint(joint_model: MultibodyModel) -> None:
    """Test that a continuous joint ignores position limits but keeps the others"""
    joint = joint_model.get_joint_by_name("continuous_joint").spec

    assert joint.type is JointType.CONTINUOUS
    assert joint.position_lower == (-INF,)
    assert joint.position_upper == (INF,)
    assert joint.velocity_lower == (-4.0,)
    assert joint.velocity_upper == (4.0,)
    assert joint.effort_limit == 30.0


def test_planar_joint(joint_model: MultibodyModel) -> None:
    """Test that a planar joint has three unbounded dofs and per-dof damping"""
    joint = joint_model.get_joint_by_name("planar_joint").spec

    assert joint.type is JointType.PLANAR
    assert joint.num_dofs == 3
    assert joint.axis == (0.0, 0.0, 1.0)
    assert joint.damping == (0.1, 0.2, 0.3)
    assert joint.position_lower == (-INF,) * 3
    assert joint.position_upper == (INF,) * 3
    assert joint.velocity_lower == (-INF,) * 3
    assert joint.velocity_upper == (INF,) * 3


def test_ball_joint(joint_model: MultibodyModel) -> None:
    """Test that a ball joint has three unbounded dofs and scalar damping"""
    joint = joint_model.get_joint_by_name("ball_joint").spec

    assert joint.type is JointType.BALL
    assert joint.num_dofs == 3
    assert joint.damping == 0.1
    assert joint.position_upper == (INF,) * 3


def test_universal_joint(joint_model: MultibodyModel) -> None:
    """Test that a universal joint has two unbounded dofs and scalar damping"""
    joint = joint_model.get_joint_by_name("universal_joint").spec

    assert joint.type is JointType.UNIVERSAL
    assert joint.num_dofs == 2
    assert joint.damping == 0.2
    assert joint.acceleration_lower == (-INF,) * 2


def test_fixed_joint_to_world(joint_model: MultibodyModel) -> None:
    """Test that the undeclared world link resolves to the world body"""
    joint = joint_model.get_joint_by_name("fixed_joint")

    assert joint.spec.type is JointType.FIXED
    assert joint.spec.num_dofs == 0
    assert joint.parent_body == joint_model.world_body
    assert joint.child_body == joint_model.get_body_by_name("link1").index


def test_register_joint_type(add_string, policy: DiagnosticPolicy, model: MultibodyModel) -> None:
    """Test that a new keyword can be registered without touching the dispatcher"""

    @register_joint_type("weld", JointType.FIXED)
    def _parse_weld(ctx, joint_elem, base):
        return base

    try:
        add_string(
            TWO_LINKS.format(
                """
                <joint name='w' type='weld'>
                  <parent link='parent'/>
                  <child link='child'/>
                </joint>"""
            )
        )
    finally:
        del JOINT_TYPES["weld"]

    assert not policy.diagnostics
    assert model.get_joint_by_name("w").spec.type is JointType.FIXED
