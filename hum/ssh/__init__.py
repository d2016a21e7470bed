"""SSH key handling and connection validation."""

from .key_inspector import (
    ConversionResult,
    KeyFormat,
    KeyMaterialInspector,
    KeyMaterialState,
    convert_to_pem,
    inspect_key_file,
    inspect_key_text,
)
from .connector import ConnectionOutcome, ConnectionResult, SshConnector
from .key_deployer import KeyDeployer, KeyPair, generate_key_pair

__all__ = [
    "ConversionResult",
    "KeyFormat",
    "KeyMaterialInspector",
    "KeyMaterialState",
    "convert_to_pem",
    "inspect_key_file",
    "inspect_key_text",
    "ConnectionOutcome",
    "ConnectionResult",
    "SshConnector",
    "KeyDeployer",
    "KeyPair",
    "generate_key_pair",
]
