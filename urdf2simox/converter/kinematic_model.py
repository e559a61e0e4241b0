"""In-memory kinematic model parsed from URDF.

The model keeps links and joints in flat tables keyed by name. Links refer to
their outgoing joints by name and joints refer to their parent and child links
by name, so there is no cyclic ownership between the two.

Key conventions:
- links[0] is the root link (the only link that is no joint's child)
- joints are sorted by name, not by tree position
- rotations are stored as scipy Rotations and re-derived as roll-pitch-yaw
"""

import logging
import os

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

import lxml.etree as ET
import numpy as np

from scipy.spatial.transform import Rotation

from urdf2simox.converter.errors import (
    EmptyModelError,
    SourceLoadError,
    UnresolvedJointError,
    UnresolvedLinkError,
)

console_logger = logging.getLogger(__name__)

DEFAULT_PARAM_NAME = "robot_description"

# URDF default when <axis> is omitted.
DEFAULT_JOINT_AXIS = (1.0, 0.0, 0.0)


class JointType(Enum):
    REVOLUTE = "revolute"
    CONTINUOUS = "continuous"
    PRISMATIC = "prismatic"
    FIXED = "fixed"
    FLOATING = "floating"
    PLANAR = "planar"
    UNKNOWN = "unknown"

    @classmethod
    def from_urdf(cls, value: str | None) -> "JointType":
        for joint_type in cls:
            if joint_type.value == value:
                return joint_type
        return cls.UNKNOWN


@dataclass
class Pose:
    """Rigid transform with a translation and a rotation."""

    position: tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Rotation = field(default_factory=Rotation.identity)

    @classmethod
    def from_xyz_rpy(
        cls, xyz: tuple[float, float, float], rpy: tuple[float, float, float]
    ) -> "Pose":
        """Build a pose from URDF-style xyz and fixed-axis roll-pitch-yaw."""
        return cls(
            position=tuple(float(v) for v in xyz),
            rotation=Rotation.from_euler("xyz", rpy),
        )

    def rpy(self) -> tuple[float, float, float]:
        """Return (roll, pitch, yaw) in radians re-derived from the rotation."""
        angles = self.rotation.as_euler("xyz")
        # Clear round-off noise so identity rotations print as 0.000.
        angles = np.where(np.abs(angles) < 1e-12, 0.0, angles)
        return tuple(float(a) for a in angles)


@dataclass
class MeshGeometry:
    filename: str
    scale: tuple[float, float, float] = (1.0, 1.0, 1.0)


@dataclass
class BoxGeometry:
    size: tuple[float, float, float]


@dataclass
class CylinderGeometry:
    radius: float
    length: float


@dataclass
class SphereGeometry:
    radius: float


Geometry = MeshGeometry | BoxGeometry | CylinderGeometry | SphereGeometry


@dataclass
class Visual:
    origin: Pose
    geometry: Geometry | None


@dataclass
class JointLimits:
    lower: float = 0.0
    upper: float = 0.0
    effort: float = 0.0
    velocity: float = 0.0


@dataclass
class Link:
    name: str
    visual: Visual | None = None
    child_joints: list[str] = field(default_factory=list)
    """Names of the outgoing joints in document order."""


@dataclass
class Joint:
    name: str
    type: JointType
    parent_link_name: str
    child_link_name: str
    parent_to_joint_origin_transform: Pose = field(default_factory=Pose)
    axis: tuple[float, float, float] | None = None
    limits: JointLimits | None = None


class KinematicModel:
    """Read-only link/joint tables for one URDF robot."""

    def __init__(self, name: str, links: list[Link], joints: list[Joint]):
        if not links:
            raise EmptyModelError(f"There are no links in robot '{name}'.")

        self.name = name
        self.links = list(links)
        self._link_table = {link.name: link for link in self.links}

        self._joint_table = {joint.name: joint for joint in joints}
        # Every joint is some link's child joint.
        flattened = [
            self.get_joint(joint_name)
            for link in self.links
            for joint_name in link.child_joints
        ]
        self.joints = sorted(flattened, key=lambda joint: joint.name)
        self._joint_table = {joint.name: joint for joint in self.joints}

    @property
    def root_link(self) -> Link:
        return self.links[0]

    def get_link(self, name: str) -> Link:
        """Look up a link by name.

        Raises:
            UnresolvedLinkError: If no link has this name.
        """
        try:
            return self._link_table[name]
        except KeyError:
            raise UnresolvedLinkError(
                f"Link '{name}' is not part of robot '{self.name}'."
            ) from None

    def get_joint(self, name: str) -> Joint:
        """Look up a joint by name.

        Raises:
            UnresolvedJointError: If no joint has this name.
        """
        try:
            return self._joint_table[name]
        except KeyError:
            raise UnresolvedJointError(
                f"Joint '{name}' is not part of robot '{self.name}'."
            ) from None

    def child_joints(self, link: Link) -> list[Joint]:
        """Return the outgoing joints of a link in document order."""
        return [self.get_joint(joint_name) for joint_name in link.child_joints]


def _parse_floats(text: str, count: int, what: str, source: str) -> tuple:
    try:
        values = tuple(float(v) for v in text.split())
    except ValueError:
        raise SourceLoadError(
            f"Invalid {what} '{text}' in {source}: expected {count} numbers."
        ) from None
    if len(values) != count:
        raise SourceLoadError(
            f"Invalid {what} '{text}' in {source}: expected {count} numbers, "
            f"got {len(values)}."
        )
    return values


def parse_origin(origin_elem: ET._Element | None, source: str) -> Pose:
    """Parse a URDF <origin> element. A missing element is the identity."""
    if origin_elem is None:
        return Pose()
    xyz = _parse_floats(origin_elem.get("xyz", "0 0 0"), 3, "origin xyz", source)
    rpy = _parse_floats(origin_elem.get("rpy", "0 0 0"), 3, "origin rpy", source)
    return Pose.from_xyz_rpy(xyz, rpy)


def parse_geometry(geometry_elem: ET._Element | None, source: str) -> Geometry | None:
    if geometry_elem is None:
        return None

    mesh = geometry_elem.find("mesh")
    if mesh is not None:
        filename = mesh.get("filename")
        if not filename:
            raise SourceLoadError(f"Mesh without filename in {source}.")
        scale = _parse_floats(mesh.get("scale", "1 1 1"), 3, "mesh scale", source)
        return MeshGeometry(filename=filename, scale=scale)

    box = geometry_elem.find("box")
    if box is not None:
        return BoxGeometry(
            size=_parse_floats(box.get("size", "0 0 0"), 3, "box size", source)
        )

    cylinder = geometry_elem.find("cylinder")
    if cylinder is not None:
        (radius,) = _parse_floats(
            cylinder.get("radius", "0"), 1, "cylinder radius", source
        )
        (length,) = _parse_floats(
            cylinder.get("length", "0"), 1, "cylinder length", source
        )
        return CylinderGeometry(radius=radius, length=length)

    sphere = geometry_elem.find("sphere")
    if sphere is not None:
        (radius,) = _parse_floats(sphere.get("radius", "0"), 1, "sphere radius", source)
        return SphereGeometry(radius=radius)

    return None


def _parse_link(link_elem: ET._Element, source: str) -> Link:
    name = link_elem.get("name")
    if not name:
        raise SourceLoadError(f"Found a <link> without a name in {source}.")

    # Only the first visual is used, as for urdf::Link::visual.
    visual = None
    visual_elem = link_elem.find("visual")
    if visual_elem is not None:
        visual = Visual(
            origin=parse_origin(visual_elem.find("origin"), source),
            geometry=parse_geometry(visual_elem.find("geometry"), source),
        )
    return Link(name=name, visual=visual)


def _parse_joint(joint_elem: ET._Element, source: str) -> Joint:
    name = joint_elem.get("name")
    if not name:
        raise SourceLoadError(f"Found a <joint> without a name in {source}.")

    parent_elem = joint_elem.find("parent")
    child_elem = joint_elem.find("child")
    parent_link = parent_elem.get("link") if parent_elem is not None else None
    child_link = child_elem.get("link") if child_elem is not None else None
    if not parent_link or not child_link:
        raise SourceLoadError(
            f"Joint '{name}' in {source} must have both a parent and a child link."
        )

    joint_type = JointType.from_urdf(joint_elem.get("type"))

    axis = None
    if joint_type not in (JointType.FIXED, JointType.FLOATING):
        axis_elem = joint_elem.find("axis")
        if axis_elem is not None:
            axis = _parse_floats(axis_elem.get("xyz", "1 0 0"), 3, "axis", source)
        else:
            axis = DEFAULT_JOINT_AXIS

    limits = None
    limit_elem = joint_elem.find("limit")
    if limit_elem is not None:
        try:
            limits = JointLimits(
                lower=float(limit_elem.get("lower", "0")),
                upper=float(limit_elem.get("upper", "0")),
                effort=float(limit_elem.get("effort", "0")),
                velocity=float(limit_elem.get("velocity", "0")),
            )
        except ValueError as e:
            raise SourceLoadError(f"Invalid limits for joint '{name}': {e}") from e
    elif joint_type in (JointType.REVOLUTE, JointType.PRISMATIC):
        raise SourceLoadError(
            f"Joint '{name}' in {source} is {joint_type.value} but has no <limit>."
        )

    return Joint(
        name=name,
        type=joint_type,
        parent_link_name=parent_link,
        child_link_name=child_link,
        parent_to_joint_origin_transform=parse_origin(
            joint_elem.find("origin"), source
        ),
        axis=axis,
        limits=limits,
    )


def _build_model(root: ET._Element, source: str) -> KinematicModel:
    if root.tag != "robot":
        raise SourceLoadError(
            f"Expected <robot> root element in {source}, got <{root.tag}>."
        )
    robot_name = root.get("name", "unnamed_robot")

    links: dict[str, Link] = {}
    for link_elem in root.findall("link"):
        link = _parse_link(link_elem, source)
        if link.name in links:
            raise SourceLoadError(f"Duplicate link '{link.name}' in {source}.")
        links[link.name] = link

    if not links:
        raise EmptyModelError(f"There are no links in {source}.")

    joints: dict[str, Joint] = {}
    child_links = set()
    for joint_elem in root.findall("joint"):
        joint = _parse_joint(joint_elem, source)
        if joint.name in joints:
            raise SourceLoadError(f"Duplicate joint '{joint.name}' in {source}.")
        for link_name in (joint.parent_link_name, joint.child_link_name):
            if link_name not in links:
                raise SourceLoadError(
                    f"Joint '{joint.name}' references unknown link '{link_name}' "
                    f"in {source}."
                )
        if joint.child_link_name in child_links:
            raise SourceLoadError(
                f"Link '{joint.child_link_name}' has more than one parent joint "
                f"in {source}."
            )
        joints[joint.name] = joint
        child_links.add(joint.child_link_name)
        links[joint.parent_link_name].child_joints.append(joint.name)

    root_links = [name for name in links if name not in child_links]
    if len(root_links) != 1:
        raise SourceLoadError(
            f"Expected exactly one root link in {source}, found {root_links}."
        )

    # Root first, then the remaining links in document order.
    ordered_links = [links[root_links[0]]] + [
        link for name, link in links.items() if name != root_links[0]
    ]
    return KinematicModel(
        name=robot_name, links=ordered_links, joints=list(joints.values())
    )


def parse_urdf_string(xml_text: str, source: str = "<string>") -> KinematicModel:
    """Parse URDF text into a KinematicModel.

    Args:
        xml_text: URDF document.
        source: Human-readable origin used in error messages.

    Raises:
        SourceLoadError: If the document is not a valid URDF tree.
        EmptyModelError: If the robot has no links.
    """
    try:
        root = ET.fromstring(xml_text.encode("utf-8"))
    except ET.XMLSyntaxError as e:
        raise SourceLoadError(f"Failed to parse {source}: {e}") from e
    return _build_model(root, source)


def parse_urdf_file(urdf_path: Path | str) -> KinematicModel:
    """Parse a URDF file into a KinematicModel.

    Raises:
        SourceLoadError: If the file is missing, unreadable or not valid URDF.
        EmptyModelError: If the robot has no links.
    """
    urdf_path = Path(urdf_path)
    try:
        tree = ET.parse(str(urdf_path))
    except OSError as e:
        raise SourceLoadError(f"Failed to parse urdf file {urdf_path}: {e}") from e
    except ET.XMLSyntaxError as e:
        raise SourceLoadError(f"Failed to parse urdf file {urdf_path}: {e}") from e
    return _build_model(tree.getroot(), str(urdf_path))


def get_param_from_environment(param_name: str) -> str | None:
    """Read a named parameter from the environment.

    'robot_description' is looked up as $ROBOT_DESCRIPTION.
    """
    return os.environ.get(param_name.upper())


def load_model(
    from_param: bool,
    urdf_file: Path | str | None = None,
    param_name: str = DEFAULT_PARAM_NAME,
    param_getter: Callable[[str], str | None] | None = None,
) -> KinematicModel:
    """Load exactly one kinematic model from a parameter or a URDF file.

    Args:
        from_param: Read the URDF text from the named parameter instead of a file.
        urdf_file: Path to the URDF file. Required when from_param is False.
        param_name: Name of the parameter holding the URDF text.
        param_getter: Callable mapping a parameter name to its value. Defaults
            to reading the upper-cased name from the environment.

    Returns:
        The loaded model.

    Raises:
        SourceLoadError: If the source is missing or cannot be parsed.
        EmptyModelError: If the robot has no links.
    """
    if from_param:
        getter = param_getter or get_param_from_environment
        xml_text = getter(param_name)
        if not xml_text:
            raise SourceLoadError(f"Failed to parse param {param_name}.")
        model = parse_urdf_string(xml_text, source=f"param {param_name}")
    else:
        if urdf_file is None:
            raise SourceLoadError("No urdf file given and from_param is false.")
        model = parse_urdf_file(urdf_file)

    console_logger.info(
        f"Loaded robot '{model.name}' with {len(model.links)} links and "
        f"{len(model.joints)} joints (root link '{model.root_link.name}')"
    )
    return model
