import shutil
import tempfile
import unittest

from pathlib import Path

import lxml.etree as ET

from urdf2simox.utils.xml_utils import (
    format_float,
    make_named,
    make_transform,
    to_xml_string,
    write_xml,
)


class TestFormatFloat(unittest.TestCase):
    """Test fixed-point number formatting."""

    def test_three_decimals(self):
        self.assertEqual(format_float(0.0), "0.000")
        self.assertEqual(format_float(0.07), "0.070")
        self.assertEqual(format_float(-0.01), "-0.010")
        self.assertEqual(format_float(1.5), "1.500")

    def test_rounding(self):
        self.assertEqual(format_float(-0.0349999), "-0.035")
        self.assertEqual(format_float(1.5707963), "1.571")


class TestTransformElements(unittest.TestCase):
    def test_translation_only(self):
        transform = make_transform((-0.01, -0.035, 0.07))
        self.assertEqual([child.tag for child in transform], ["Translation"])
        translation = transform.find("Translation")
        self.assertEqual(
            dict(translation.attrib),
            {"x": "-0.010", "y": "-0.035", "z": "0.070", "unitsLength": "m"},
        )

    def test_translation_and_rollpitchyaw(self):
        transform = make_transform((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))
        self.assertEqual(
            [child.tag for child in transform], ["Translation", "rollpitchyaw"]
        )
        rpy = transform.find("rollpitchyaw")
        self.assertEqual(list(rpy.attrib), ["roll", "pitch", "yaw", "unitsAngle"])
        self.assertEqual(rpy.get("roll"), "1.000")
        self.assertEqual(rpy.get("unitsAngle"), "radian")

    def test_make_named_attribute_order(self):
        node = make_named("Node", "ffj3", unit="radian", value="0.0")
        self.assertEqual(list(node.attrib), ["name", "unit", "value"])


class TestWriteXml(unittest.TestCase):
    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_tab_indentation_and_declaration(self):
        root = ET.Element("Robot", Type="HAND")
        node = ET.SubElement(root, "RobotNode", name="a&b")
        node.append(ET.Comment("manual"))
        ET.SubElement(node, "Child", name="c")

        content = to_xml_string(root)
        self.assertEqual(
            content,
            '<?xml version="1.0" encoding="utf-8"?>\n'
            '<Robot Type="HAND">\n'
            '\t<RobotNode name="a&amp;b">\n'
            "\t\t<!--manual-->\n"
            '\t\t<Child name="c"/>\n'
            "\t</RobotNode>\n"
            "</Robot>\n",
        )

    def test_write_creates_directory(self):
        root = ET.Element("Robot")
        output_path = self.temp_dir / "nested" / "hand.xml"
        result = write_xml(root, output_path)
        self.assertEqual(result, output_path)
        self.assertTrue(output_path.exists())
        self.assertEqual(ET.parse(str(output_path)).getroot().tag, "Robot")


if __name__ == "__main__":
    unittest.main()
