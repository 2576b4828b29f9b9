from .diagnostics import Diagnostic, DiagnosticPolicy, ParsingError, Severity
from .joints import JOINT_TYPES, register_joint_type
from .parsers import URDFParser, add_model_from_urdf
from .plant import ModelBuilder, MultibodyModel
from .workspace import DataSource, PackageMap, ParsingWorkspace

__all__ = [
    "add_model_from_urdf",
    "URDFParser",
    "DataSource",
    "PackageMap",
    "ParsingWorkspace",
    "ModelBuilder",
    "MultibodyModel",
    "Diagnostic",
    "DiagnosticPolicy",
    "ParsingError",
    "Severity",
    "JOINT_TYPES",
    "register_joint_type",
]
