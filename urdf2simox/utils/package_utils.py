"""Utilities for locating ROS-style packages on disk.

A package is a directory containing a package.xml whose <name> element names
the package. Packages are discovered via ROS_PACKAGE_PATH, the same way
'package://<name>/...' URIs are resolved by ROS and Drake.
"""

import logging
import os

from pathlib import Path

import lxml.etree as ET

from urdf2simox.converter.errors import MalformedMeshReferenceError

console_logger = logging.getLogger(__name__)

PACKAGE_PATH_ENV = "ROS_PACKAGE_PATH"


class PackageNotFoundError(MalformedMeshReferenceError):
    """No package with the requested name could be found."""


def read_package_name(package_xml: Path) -> str | None:
    """Return the <name> declared in a package.xml, or None if unreadable."""
    try:
        root = ET.parse(str(package_xml)).getroot()
    except (OSError, ET.XMLSyntaxError) as e:
        console_logger.warning(f"Ignoring unreadable {package_xml}: {e}")
        return None
    name_elem = root.find("name")
    if name_elem is None or not name_elem.text:
        return None
    return name_elem.text.strip()


def create_package_xml(package_dir: Path, name: str) -> Path:
    """Create a minimal package.xml so that package_dir is discoverable.

    Usage:
        export ROS_PACKAGE_PATH=/path/to/parent_dir:$ROS_PACKAGE_PATH

    Args:
        package_dir: Directory that becomes the package root.
        name: Package name used in package://<name>/ URIs.

    Returns:
        Path to the written package.xml.
    """
    package_xml = f"""<?xml version="1.0"?>
<package format="2">
  <name>{name}</name>
  <version>1.0.0</version>
  <description>Robot description package</description>
  <maintainer email="noreply@example.com">urdf2simox</maintainer>
  <license>MIT</license>
</package>
"""
    package_dir.mkdir(parents=True, exist_ok=True)
    path = package_dir / "package.xml"
    path.write_text(package_xml)
    return path


class PackageLocator:
    """Map package names to installation directories.

    Explicit overrides win over discovery. Discovery walks each search path
    and stops descending at the first directory that holds a package.xml.
    """

    def __init__(
        self,
        overrides: dict[str, str | Path] | None = None,
        search_paths: list[str | Path] | None = None,
    ):
        """
        Args:
            overrides: Package name to directory mapping checked first.
            search_paths: Directories to scan. Defaults to $ROS_PACKAGE_PATH.
        """
        self._overrides = {
            name: Path(path) for name, path in (overrides or {}).items()
        }
        if search_paths is None:
            env_value = os.environ.get(PACKAGE_PATH_ENV, "")
            search_paths = [p for p in env_value.split(os.pathsep) if p]
        self.search_paths = [Path(p) for p in search_paths]
        self._cache: dict[str, Path] = {}

    def __call__(self, package_name: str) -> Path:
        return self.get_path(package_name)

    def get_path(self, package_name: str) -> Path:
        """Return the installation directory of a package.

        Raises:
            PackageNotFoundError: If the package is unknown.
        """
        if package_name in self._overrides:
            return self._overrides[package_name]
        if package_name in self._cache:
            return self._cache[package_name]

        for search_path in self.search_paths:
            found = self._find_in(search_path, package_name)
            if found is not None:
                console_logger.debug(f"Found package '{package_name}' at {found}")
                self._cache[package_name] = found
                return found

        raise PackageNotFoundError(
            f"Package '{package_name}' not found in overrides or "
            f"{PACKAGE_PATH_ENV}={os.pathsep.join(map(str, self.search_paths))}."
        )

    def _find_in(self, search_path: Path, package_name: str) -> Path | None:
        if not search_path.is_dir():
            return None
        for dirpath, dirnames, filenames in os.walk(search_path):
            if "package.xml" in filenames:
                # Nested packages are not allowed, stop descending.
                dirnames[:] = []
                if read_package_name(Path(dirpath) / "package.xml") == package_name:
                    return Path(dirpath)
            else:
                dirnames.sort()
        return None
