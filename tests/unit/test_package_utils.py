import os
import shutil
import tempfile
import unittest

from pathlib import Path
from unittest.mock import patch

from urdf2simox.converter.errors import MalformedMeshReferenceError
from urdf2simox.utils.package_utils import (
    PackageLocator,
    PackageNotFoundError,
    create_package_xml,
    read_package_name,
)


class TestPackageLocator(unittest.TestCase):
    """Test package discovery via overrides and search paths."""

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())
        self.workspace = self.temp_dir / "src"
        create_package_xml(self.workspace / "dms_description", "dms_description")
        create_package_xml(
            self.workspace / "hands" / "sr_description", "sr_description"
        )

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_create_and_read_package_xml(self):
        package_xml = self.workspace / "dms_description" / "package.xml"
        self.assertTrue(package_xml.exists())
        self.assertEqual(read_package_name(package_xml), "dms_description")

    def test_find_in_search_path(self):
        locator = PackageLocator(search_paths=[self.workspace])
        self.assertEqual(
            locator.get_path("dms_description"), self.workspace / "dms_description"
        )
        self.assertEqual(
            locator.get_path("sr_description"),
            self.workspace / "hands" / "sr_description",
        )

    def test_override_wins(self):
        locator = PackageLocator(
            overrides={"dms_description": "/opt/dms_description"},
            search_paths=[self.workspace],
        )
        self.assertEqual(
            locator.get_path("dms_description"), Path("/opt/dms_description")
        )

    def test_callable(self):
        locator = PackageLocator(overrides={"pkg": "/opt/pkg"}, search_paths=[])
        self.assertEqual(locator("pkg"), Path("/opt/pkg"))

    def test_nested_packages_are_not_searched(self):
        create_package_xml(
            self.workspace / "dms_description" / "nested", "nested_package"
        )
        locator = PackageLocator(search_paths=[self.workspace])
        with self.assertRaises(PackageNotFoundError):
            locator.get_path("nested_package")

    def test_unknown_package(self):
        locator = PackageLocator(search_paths=[self.workspace])
        with self.assertRaises(PackageNotFoundError) as ctx:
            locator.get_path("missing_description")
        self.assertIsInstance(ctx.exception, MalformedMeshReferenceError)

    def test_ros_package_path_environment(self):
        with patch.dict(os.environ, {"ROS_PACKAGE_PATH": str(self.workspace)}):
            locator = PackageLocator()
        self.assertEqual(
            locator.get_path("dms_description"), self.workspace / "dms_description"
        )

    def test_unreadable_package_xml_is_skipped(self):
        broken = self.workspace / "broken"
        broken.mkdir()
        (broken / "package.xml").write_text("<package><name>")
        locator = PackageLocator(search_paths=[self.workspace])
        self.assertEqual(
            locator.get_path("dms_description"), self.workspace / "dms_description"
        )


if __name__ == "__main__":
    unittest.main()
