"""URDF to Simox robot XML converter for robot hands.

This module walks a KinematicModel from its root link and emits the Simox
<Robot> document consumed by the Simox grasp planner.

Key transformations:
- hand file name 'shadowhand.xml' → <Robot Type="SHADOWHAND">
- synthetic base/tcp/gcp RobotNodes anchoring the hand
- <link> → RobotNode with Transform, Visualization and CollisionModel
- <joint> → RobotNode with Transform and a revolute or fixed Joint block
- joint names → Endeffector (Preshape, Static, Actors) and RobotNodeSet

Nodes are emitted depth-first: a link, then for each child joint the joint
followed by the child link's whole subtree.
"""

import logging

from pathlib import Path

import lxml.etree as ET

from urdf2simox.converter.endeffector import build_endeffector, build_joint_set
from urdf2simox.converter.errors import (
    MalformedFilenameError,
    UnsupportedGeometryError,
    UnsupportedJointTypeError,
)
from urdf2simox.converter.kinematic_model import (
    Joint,
    JointType,
    KinematicModel,
    Link,
    MeshGeometry,
)
from urdf2simox.converter.mesh_resolver import MeshReferenceResolver
from urdf2simox.utils.xml_utils import (
    format_float,
    make_axis,
    make_named,
    make_transform,
    write_xml,
)

console_logger = logging.getLogger(__name__)

# Hand frames relative to the hand base, measured by hand.
TCP_TRANSLATION = (-0.01, -0.035, 0.07)
GCP_TRANSLATION = (-0.01, -0.035, 0.07)
GCP_ROLLPITCHYAW = (1.0, 0.0, 0.0)

TCP_COMMENT = "Translation values were set manually!"
GCP_COMMENT = "Translation and rollpitchyaw values were set manually!"

MESH_FILE_TYPE = "Inventor"


def validate_filename(filename: str) -> str:
    """Return the hand name of an output filename like 'shadowhand.xml'.

    Raises:
        MalformedFilenameError: If the name does not have exactly one extension.
    """
    parts = filename.split(".")
    if len(parts) != 2:
        raise MalformedFilenameError(
            f"{filename} should be something like dms.xml or shadowhand.xml."
        )
    return parts[0]


class UrdfToSimoxXml:
    """Convert a hand KinematicModel into a Simox robot XML file."""

    def __init__(
        self,
        model: KinematicModel,
        mesh_resolver: MeshReferenceResolver,
        include_link_prefixes: bool = False,
    ):
        """
        Args:
            model: Loaded kinematic model. Not modified.
            mesh_resolver: Resolver that converts mesh references.
            include_link_prefixes: Derive actors from link names as well as
                joint names.
        """
        self.model = model
        self.mesh_resolver = mesh_resolver
        self.include_link_prefixes = include_link_prefixes

    def write(self, output_dir: Path | str, filename: str) -> Path:
        """Build the Simox document and write it to output_dir/filename.

        The document is built completely before anything is written, so a
        failed conversion never leaves an XML file behind.

        Returns:
            Path to the written file.
        """
        output_dir = Path(output_dir)
        robot = self.build_tree(output_dir=output_dir, filename=filename)
        return write_xml(robot, output_dir / filename)

    def build_tree(self, output_dir: Path | str, filename: str) -> ET._Element:
        """Build the <Robot> element for the hand named by filename.

        Args:
            output_dir: Directory under which converted meshes are placed.
            filename: Output file name, e.g. 'shadowhand.xml'.

        Returns:
            The <Robot> root element.
        """
        output_dir = Path(output_dir)
        hand_name = validate_filename(filename)
        hand_name_upper = hand_name.upper()
        hand_name_lower = hand_name.lower()

        hand_base = f"{hand_name_lower}_hand_base"
        hand_tcp = f"{hand_name_lower}_hand_tcp"
        hand_gcp = f"{hand_name_lower}_hand_gcp"
        base_link = self.model.root_link.name

        robot = ET.Element("Robot")
        robot.set("Type", hand_name_upper)
        robot.set("RootNode", hand_base)

        robot.append(
            self.build_hand_base_node(hand_base, hand_tcp, hand_gcp, base_link)
        )
        robot.append(self.build_hand_tcp_node(hand_tcp))
        robot.append(self.build_hand_gcp_node(hand_gcp))
        robot.extend(self.emit_link(self.model.root_link, output_dir))
        robot.append(
            build_endeffector(
                self.model,
                hand_name_upper=hand_name_upper,
                hand_base=hand_base,
                hand_tcp=hand_tcp,
                hand_gcp=hand_gcp,
                base_link=base_link,
                include_link_prefixes=self.include_link_prefixes,
            )
        )
        robot.append(build_joint_set(self.model, hand_name_upper))

        console_logger.info(
            f"Built Simox tree for {hand_name_upper} with {len(robot)} elements"
        )
        return robot

    @staticmethod
    def build_hand_base_node(
        hand_base: str, hand_tcp: str, hand_gcp: str, base_link: str
    ) -> ET._Element:
        node = make_named("RobotNode", hand_base)
        for child in (hand_tcp, hand_gcp, base_link):
            node.append(make_named("Child", child))
        return node

    @staticmethod
    def build_hand_tcp_node(hand_tcp: str) -> ET._Element:
        node = make_named("RobotNode", hand_tcp)
        node.append(ET.Comment(TCP_COMMENT))
        node.append(make_transform(TCP_TRANSLATION))
        return node

    @staticmethod
    def build_hand_gcp_node(hand_gcp: str) -> ET._Element:
        node = make_named("RobotNode", hand_gcp)
        node.append(ET.Comment(GCP_COMMENT))
        node.append(make_transform(GCP_TRANSLATION, GCP_ROLLPITCHYAW))
        return node

    def emit_link(self, link: Link, output_dir: Path) -> list[ET._Element]:
        """Emit the RobotNode of a link followed by the subtrees of its joints.

        Raises:
            UnsupportedGeometryError: If the visual geometry is not a mesh.
        """
        node = make_named("RobotNode", link.name)

        if link.visual is not None:
            pose = link.visual.origin
            node.append(make_transform(pose.position, pose.rpy()))

            geometry = link.visual.geometry
            if not isinstance(geometry, MeshGeometry):
                raise UnsupportedGeometryError(
                    f"Link '{link.name}' has {type(geometry).__name__} visual "
                    "geometry. MESH is the only supported geometry type."
                )

            # Visualization and collision model both point at the converted
            # visual mesh. Each reference is resolved separately.
            visualization = ET.SubElement(node, "Visualization")
            visualization.set("enable", "true")
            visual_path = self.mesh_resolver.resolve(geometry.filename, output_dir)
            visualization.append(self._mesh_file(visual_path))

            collision_model = ET.SubElement(node, "CollisionModel")
            collision_path = self.mesh_resolver.resolve(geometry.filename, output_dir)
            collision_model.append(self._mesh_file(collision_path))
        else:
            console_logger.debug(f"Link '{link.name}' has no visual, emitting frame")

        child_joints = self.model.child_joints(link)
        for joint in child_joints:
            node.append(make_named("Child", joint.name))

        elements = [node]
        for joint in child_joints:
            elements.extend(self.emit_joint(joint, output_dir))
        return elements

    def emit_joint(self, joint: Joint, output_dir: Path) -> list[ET._Element]:
        """Emit the RobotNode of a joint followed by its child link's subtree.

        Raises:
            UnsupportedJointTypeError: If the joint is not revolute or fixed.
            UnresolvedLinkError: If the child link does not exist.
        """
        node = make_named("RobotNode", joint.name)
        pose = joint.parent_to_joint_origin_transform
        node.append(make_transform(pose.position, pose.rpy()))

        if joint.type == JointType.REVOLUTE:
            joint_elem = ET.SubElement(node, "Joint")
            joint_elem.set("type", "revolute")
            joint_elem.append(make_axis(*joint.axis))
            limits = ET.SubElement(joint_elem, "Limits")
            limits.set("unit", "radian")
            limits.set("lo", format_float(joint.limits.lower))
            limits.set("hi", format_float(joint.limits.upper))
        elif joint.type == JointType.FIXED:
            joint_elem = ET.SubElement(node, "Joint")
            joint_elem.set("type", "fixed")
        else:
            raise UnsupportedJointTypeError(
                f"Joint '{joint.name}' is {joint.type.value}. Only revolute and "
                "fixed joints are supported at the moment."
            )

        child_link = self.model.get_link(joint.child_link_name)
        node.append(make_named("Child", child_link.name))

        return [node] + self.emit_link(child_link, output_dir)

    @staticmethod
    def _mesh_file(path: str) -> ET._Element:
        file_elem = ET.Element("File")
        file_elem.set("type", MESH_FILE_TYPE)
        file_elem.text = path
        return file_elem
