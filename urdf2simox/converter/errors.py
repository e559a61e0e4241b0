"""Error types raised while converting a URDF model to Simox XML.

Every failure is raised at the point of detection and propagated unchanged to
the caller. Only the command-line entry point turns them into a process exit.
"""


class ConversionError(Exception):
    """Base class for all URDF to Simox conversion failures."""


class SourceLoadError(ConversionError):
    """The URDF source (file or parameter) could not be read or parsed."""


class EmptyModelError(ConversionError):
    """The parsed model contains no links."""


class MalformedFilenameError(ConversionError):
    """The output filename is not of the form '<hand_name>.<extension>'."""


class UnsupportedGeometryError(ConversionError):
    """A link's visual geometry is something other than a mesh."""


class UnsupportedJointTypeError(ConversionError):
    """A joint is neither revolute nor fixed."""


class UnresolvedLinkError(ConversionError):
    """A joint references a link that does not exist in the model."""


class MalformedMeshReferenceError(ConversionError):
    """A mesh filename is not a resolvable 'package://<pkg>/<path>' URI."""


class MeshConversionError(ConversionError):
    """The external mesh converter reported a failure."""


class UnresolvedJointError(ConversionError):
    """A link or caller references a joint that does not exist in the model."""
