"""Resolve URDF mesh references and convert them for Simox.

URDF meshes are referenced as 'package://<package>/<relative/path>'. Simox
loads Inventor/VRML files, so each referenced mesh is converted by an external
tool into '<output_dir>/meshes/<stem>.wrl' and the Simox XML refers to that
converted file.
"""

import logging
import subprocess

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol

from urdf2simox.converter.errors import (
    MalformedMeshReferenceError,
    MeshConversionError,
)

console_logger = logging.getLogger(__name__)

PACKAGE_PREFIX = "package://"
MESH_SUBDIR = "meshes"
DEFAULT_TARGET_EXTENSION = "wrl"
DEFAULT_CONVERTER_COMMAND = "meshlabserver"

# meshlabserver prints this and still exits with 0 when it cannot read a mesh.
DEFAULT_FAILURE_MARKER = "loaded has 0 vn"


@dataclass(frozen=True)
class MeshReference:
    """A parsed 'package://<package>/<relative/path>' URI."""

    uri: str
    package_name: str
    relative_parts: tuple[str, ...]

    @classmethod
    def parse(cls, uri: str) -> "MeshReference":
        """Split a package URI into package name and relative path segments.

        Example:
            >>> ref = MeshReference.parse("package://dms/meshes/base_link.STL")
            >>> ref.package_name, ref.relative_parts
            ('dms', ('meshes', 'base_link.STL'))

        Raises:
            MalformedMeshReferenceError: If the prefix is missing or there is
                no path after the package name.
        """
        if not uri.startswith(PACKAGE_PREFIX):
            raise MalformedMeshReferenceError(
                f"The prefix of {uri} is NOT {PACKAGE_PREFIX}."
            )
        segments = uri[len(PACKAGE_PREFIX) :].split("/")
        if len(segments) < 2:
            raise MalformedMeshReferenceError(f"{uri} is either empty or too short.")
        return cls(
            uri=uri, package_name=segments[0], relative_parts=tuple(segments[1:])
        )

    @property
    def stem(self) -> str:
        """Last path segment up to its first '.', e.g. 'base_link'."""
        basename = self.uri.rsplit("/", 1)[-1]
        return basename.split(".", 1)[0]


@dataclass
class ConversionResult:
    success: bool
    output: str = ""
    """Diagnostic text captured from the converter."""


class MeshConverter(Protocol):
    def __call__(self, source: Path, target: Path) -> ConversionResult: ...


class MeshlabConverter:
    """Convert meshes by running meshlabserver as a blocking subprocess."""

    def __init__(
        self,
        command: str = DEFAULT_CONVERTER_COMMAND,
        failure_marker: str = DEFAULT_FAILURE_MARKER,
    ):
        self.command = command
        self.failure_marker = failure_marker

    def build_command(self, source: Path, target: Path) -> list[str]:
        return [self.command, "-i", str(source), "-o", str(target)]

    def __call__(self, source: Path, target: Path) -> ConversionResult:
        cmd = self.build_command(source, target)
        console_logger.debug(f"Running mesh conversion: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except FileNotFoundError:
            return ConversionResult(
                success=False, output=f"Mesh converter '{self.command}' not found."
            )

        for line in result.stdout.splitlines():
            if self.failure_marker in line:
                return ConversionResult(success=False, output=result.stdout)

        if result.returncode != 0:
            return ConversionResult(
                success=False, output=result.stdout + result.stderr
            )
        return ConversionResult(success=True, output=result.stdout)


class MeshReferenceResolver:
    """Map package mesh URIs to converted mesh files under an output directory."""

    def __init__(
        self,
        package_locator: Callable[[str], Path],
        converter: MeshConverter,
        target_extension: str = DEFAULT_TARGET_EXTENSION,
        cache_conversions: bool = False,
    ):
        """
        Args:
            package_locator: Callable mapping a package name to its directory.
            converter: Mesh converter invoked once per resolved reference.
            target_extension: Extension of the converted mesh files.
            cache_conversions: Skip converting the same (source, target) pair
                twice. Off by default, so every reference triggers a conversion.
        """
        self.package_locator = package_locator
        self.converter = converter
        self.target_extension = target_extension
        self.cache_conversions = cache_conversions
        self._converted: set[tuple[Path, Path]] = set()

    def source_path(self, ref: MeshReference) -> Path:
        return Path(self.package_locator(ref.package_name)).joinpath(
            *ref.relative_parts
        )

    def target_path(self, ref: MeshReference, output_dir: Path) -> Path:
        return output_dir / MESH_SUBDIR / f"{ref.stem}.{self.target_extension}"

    def resolve(self, uri: str, output_dir: Path | str) -> str:
        """Convert the referenced mesh and return the converted file path.

        Args:
            uri: Mesh filename from the URDF, e.g. 'package://pkg/meshes/a.STL'.
            output_dir: Directory under which 'meshes/' is created.

        Returns:
            Path of the converted mesh, as written into the Simox XML.

        Raises:
            MalformedMeshReferenceError: If the URI cannot be resolved.
            MeshConversionError: If the converter reports a failure.
        """
        output_dir = Path(output_dir)
        ref = MeshReference.parse(uri)
        source = self.source_path(ref)
        target = self.target_path(ref, output_dir)
        target.parent.mkdir(parents=True, exist_ok=True)

        if self.cache_conversions and (source, target) in self._converted:
            return str(target)

        result = self.converter(source, target)
        if not result.success:
            raise MeshConversionError(
                f"Converting {source} to {target} failed. Check URDF mesh data.\n"
                f"{result.output}"
            )
        self._converted.add((source, target))
        console_logger.info(f"Converted mesh {uri} -> {target}")
        return str(target)
