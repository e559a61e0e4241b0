import unittest

import lxml.etree as ET

from tests.unit.mock_utils import HAND_URDF

from urdf2simox.converter.endeffector import (
    actor_keys,
    build_endeffector,
    build_joint_set,
    partition_actors,
)
from urdf2simox.converter.kinematic_model import parse_urdf_string


def _comments(elem):
    return [child.text for child in elem if child.tag is ET.Comment]


def _nodes(elem):
    return [child for child in elem if child.tag == "Node"]


class TestActorPartition(unittest.TestCase):
    """Test actor grouping by first character of names."""

    def setUp(self):
        self.model = parse_urdf_string(HAND_URDF)

    def test_actor_keys_from_joints(self):
        self.assertEqual(actor_keys(self.model), ["f", "t"])

    def test_actor_keys_with_link_prefixes(self):
        self.assertEqual(
            actor_keys(self.model, include_link_prefixes=True), ["f", "p", "t"]
        )

    def test_partition_links_then_joints(self):
        actors = partition_actors(self.model)
        self.assertEqual(list(actors), ["f", "t"])
        links, joints = actors["f"]
        self.assertEqual([link.name for link in links], ["ffproximal", "ffdistal"])
        self.assertEqual([joint.name for joint in joints], ["ffj1", "ffj3"])

    def test_partition_is_disjoint_cover_with_link_prefixes(self):
        actors = partition_actors(self.model, include_link_prefixes=True)
        names = [
            item.name for links, joints in actors.values() for item in links + joints
        ]
        expected = [link.name for link in self.model.links] + [
            joint.name for joint in self.model.joints
        ]
        self.assertEqual(sorted(names), sorted(expected))
        self.assertEqual(len(names), len(set(names)))

    def test_single_link_has_no_actors(self):
        model = parse_urdf_string(
            """<robot name="r"><link name="palm"><visual><geometry>
            <mesh filename="package://pkg/meshes/palm.STL"/>
            </geometry></visual></link></robot>"""
        )
        self.assertEqual(actor_keys(model), [])
        self.assertEqual(partition_actors(model), {})


class TestBuildEndeffector(unittest.TestCase):
    """Test the Endeffector element layout."""

    def setUp(self):
        self.model = parse_urdf_string(HAND_URDF)
        self.endeffector = build_endeffector(
            self.model,
            hand_name_upper="SHADOWHAND",
            hand_base="shadowhand_hand_base",
            hand_tcp="shadowhand_hand_tcp",
            hand_gcp="shadowhand_hand_gcp",
            base_link="palm",
        )

    def test_attributes(self):
        self.assertEqual(
            dict(self.endeffector.attrib),
            {
                "name": "SHADOWHAND",
                "base": "shadowhand_hand_base",
                "tcp": "shadowhand_hand_tcp",
                "gcp": "shadowhand_hand_gcp",
            },
        )
        self.assertEqual(
            _comments(self.endeffector),
            ["This node is for Simox (e.g., GraspPlanner in Simox)!"],
        )

    def test_child_order(self):
        tags = [child.tag for child in self.endeffector if child.tag is not ET.Comment]
        self.assertEqual(tags, ["Preshape", "Static", "Actor", "Actor"])

    def test_preshape_template(self):
        preshape = self.endeffector.find("Preshape")
        self.assertEqual(preshape.get("name"), "Grasp Preshape")
        self.assertEqual(
            _comments(preshape),
            ["This is just a template. Please set values manually!"],
        )
        nodes = _nodes(preshape)
        self.assertEqual([n.get("name") for n in nodes], ["ffj1", "ffj3", "thj5"])
        for node in nodes:
            self.assertEqual(node.get("unit"), "radian")
            self.assertEqual(node.get("value"), "0.0")

    def test_static_references_base_link(self):
        static = self.endeffector.find("Static")
        self.assertEqual([n.get("name") for n in _nodes(static)], ["palm"])

    def test_actor_nodes(self):
        actors = self.endeffector.findall("Actor")
        self.assertEqual([a.get("name") for a in actors], ["f", "t"])
        self.assertEqual(
            [n.get("name") for n in _nodes(actors[0])],
            ["ffproximal", "ffdistal", "ffj1", "ffj3"],
        )
        self.assertEqual([n.get("name") for n in _nodes(actors[1])], ["thbase", "thj5"])
        for node in _nodes(actors[0]):
            self.assertEqual(node.get("considerCollisions"), "None")
        self.assertEqual(
            _comments(actors[0]),
            ["Note that considerCollisions = None, Actors, or All!"],
        )

    def test_link_without_joint_prefix_is_in_no_actor(self):
        actor_node_names = [
            node.get("name")
            for actor in self.endeffector.findall("Actor")
            for node in _nodes(actor)
        ]
        self.assertNotIn("palm", actor_node_names)
        self.assertNotIn("p", [a.get("name") for a in self.endeffector.findall("Actor")])

    def test_link_prefix_actor_with_include_link_prefixes(self):
        endeffector = build_endeffector(
            self.model,
            hand_name_upper="SHADOWHAND",
            hand_base="shadowhand_hand_base",
            hand_tcp="shadowhand_hand_tcp",
            hand_gcp="shadowhand_hand_gcp",
            base_link="palm",
            include_link_prefixes=True,
        )
        actors = endeffector.findall("Actor")
        self.assertEqual([a.get("name") for a in actors], ["f", "p", "t"])
        self.assertEqual([n.get("name") for n in _nodes(actors[1])], ["palm"])


class TestBuildJointSet(unittest.TestCase):
    def test_joint_set(self):
        model = parse_urdf_string(HAND_URDF)
        node_set = build_joint_set(model, "SHADOWHAND")
        self.assertEqual(node_set.tag, "RobotNodeSet")
        self.assertEqual(node_set.get("name"), "SHADOWHAND Joints")
        names = [n.get("name") for n in _nodes(node_set)]
        self.assertEqual(names, ["ffj1", "ffj3", "thj5"])
        self.assertEqual(len(names), len(set(names)))


if __name__ == "__main__":
    unittest.main()
