"""Simox XML utilities for number formatting, transform elements, and writing.

Simox robot files store every number as fixed-point text with three decimals
and every rotation as roll-pitch-yaw in radians.
"""

import logging

from pathlib import Path

import lxml.etree as ET

console_logger = logging.getLogger(__name__)

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>\n'


def format_float(value: float) -> str:
    """Format a number as fixed-point text with three decimals.

    Example:
        >>> format_float(-0.0349999)
        '-0.035'
        >>> format_float(0.0)
        '0.000'
    """
    return f"{value:.3f}"


def make_translation(x: float, y: float, z: float) -> ET._Element:
    """Create a <Translation> element in meters."""
    translation = ET.Element("Translation")
    translation.set("x", format_float(x))
    translation.set("y", format_float(y))
    translation.set("z", format_float(z))
    translation.set("unitsLength", "m")
    return translation


def make_rollpitchyaw(roll: float, pitch: float, yaw: float) -> ET._Element:
    """Create a <rollpitchyaw> element in radians."""
    rollpitchyaw = ET.Element("rollpitchyaw")
    rollpitchyaw.set("roll", format_float(roll))
    rollpitchyaw.set("pitch", format_float(pitch))
    rollpitchyaw.set("yaw", format_float(yaw))
    rollpitchyaw.set("unitsAngle", "radian")
    return rollpitchyaw


def make_transform(
    xyz: tuple[float, float, float], rpy: tuple[float, float, float] | None = None
) -> ET._Element:
    """Create a <Transform> element with a translation and optional rotation."""
    transform = ET.Element("Transform")
    transform.append(make_translation(*xyz))
    if rpy is not None:
        transform.append(make_rollpitchyaw(*rpy))
    return transform


def make_axis(x: float, y: float, z: float) -> ET._Element:
    axis = ET.Element("Axis")
    axis.set("x", format_float(x))
    axis.set("y", format_float(y))
    axis.set("z", format_float(z))
    return axis


def make_named(tag: str, name: str, **attributes: str) -> ET._Element:
    """Create an element whose first attribute is 'name'."""
    elem = ET.Element(tag)
    elem.set("name", name)
    for key, value in attributes.items():
        elem.set(key, value)
    return elem


def to_xml_string(root: ET._Element) -> str:
    """Serialize an element tree with tab indentation and an XML declaration."""
    ET.indent(root, space="\t")
    return XML_DECLARATION + ET.tostring(root, encoding="unicode") + "\n"


def write_xml(root: ET._Element, output_path: Path) -> Path:
    """Write an element tree to disk, creating the parent directory.

    Args:
        root: Root element of the fully built document.
        output_path: Destination file.

    Returns:
        Path to the written file.
    """
    content = to_xml_string(root)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(content)
    console_logger.info(f"Saved Simox XML file: {output_path}")
    return output_path
