"""Derived Simox metadata: end-effector description and joint set.

Actors are derived from a naming convention: all joints (and optionally links)
of one finger share the first character of their names, e.g. 'f', 'l', 'm',
't'. Nothing validates the convention. Two fingers whose names start with the
same character end up in one actor.
"""

from collections import OrderedDict

import lxml.etree as ET

from urdf2simox.converter.kinematic_model import Joint, KinematicModel, Link
from urdf2simox.utils.xml_utils import make_named

SIMOX_COMMENT = "This node is for Simox (e.g., GraspPlanner in Simox)!"
TEMPLATE_COMMENT = "This is just a template. Please set values manually!"
CONSIDER_COLLISIONS_COMMENT = "Note that considerCollisions = None, Actors, or All!"


def actor_key(name: str) -> str:
    """Partition key of a link or joint name: its first character."""
    return name[0]


def actor_keys(model: KinematicModel, include_link_prefixes: bool = False) -> list[str]:
    """Return the sorted actor keys of a model.

    Args:
        model: The kinematic model.
        include_link_prefixes: Also derive keys from link names. By default
            only joint names define actors.
    """
    names = [joint.name for joint in model.joints]
    if include_link_prefixes:
        names += [link.name for link in model.links]
    return sorted({actor_key(name) for name in names if name})


def partition_actors(
    model: KinematicModel, include_link_prefixes: bool = False
) -> "OrderedDict[str, tuple[list[Link], list[Joint]]]":
    """Group links and joints by actor key.

    Returns:
        Mapping of actor key to (links in model order, joints in name order).
    """
    actors = OrderedDict()
    for key in actor_keys(model, include_link_prefixes):
        links = [
            link for link in model.links if link.name and actor_key(link.name) == key
        ]
        joints = [joint for joint in model.joints if actor_key(joint.name) == key]
        actors[key] = (links, joints)
    return actors


def build_preshape(model: KinematicModel) -> ET._Element:
    preshape = make_named("Preshape", "Grasp Preshape")
    preshape.append(ET.Comment(TEMPLATE_COMMENT))
    for joint in model.joints:
        preshape.append(make_named("Node", joint.name, unit="radian", value="0.0"))
    return preshape


def build_actor(key: str, links: list[Link], joints: list[Joint]) -> ET._Element:
    actor = make_named("Actor", key)
    actor.append(ET.Comment(CONSIDER_COLLISIONS_COMMENT))
    for link in links:
        actor.append(make_named("Node", link.name, considerCollisions="None"))
    for joint in joints:
        actor.append(make_named("Node", joint.name, considerCollisions="None"))
    return actor


def build_endeffector(
    model: KinematicModel,
    hand_name_upper: str,
    hand_base: str,
    hand_tcp: str,
    hand_gcp: str,
    base_link: str,
    include_link_prefixes: bool = False,
) -> ET._Element:
    """Build the <Endeffector> element used by the Simox grasp planner.

    Children are, in order: a Preshape template with every joint at 0.0, a
    Static block holding the base link, and one Actor per actor key.
    """
    endeffector = make_named(
        "Endeffector", hand_name_upper, base=hand_base, tcp=hand_tcp, gcp=hand_gcp
    )
    endeffector.append(ET.Comment(SIMOX_COMMENT))
    endeffector.append(build_preshape(model))

    static = ET.SubElement(endeffector, "Static")
    static.append(make_named("Node", base_link))

    for key, (links, joints) in partition_actors(model, include_link_prefixes).items():
        endeffector.append(build_actor(key, links, joints))

    return endeffector


def build_joint_set(model: KinematicModel, hand_name_upper: str) -> ET._Element:
    """Build the flat <RobotNodeSet> listing every joint by name."""
    node_set = make_named("RobotNodeSet", f"{hand_name_upper} Joints")
    node_set.append(ET.Comment(SIMOX_COMMENT))
    for joint in model.joints:
        node_set.append(make_named("Node", joint.name))
    return node_set
