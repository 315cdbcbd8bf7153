"""
asice: ASiC-E container writer.

Features:

- Ordered writer protocol: add entries, sign once, close; violations raise
  ProtocolError before any byte is written.
- Per-entry digests over several hashlib algorithms at once.
- Optional per-entry encryption via XChaCha20-Poly1305 with Argon2id key derivation.
- Pluggable signature strategies; the bundled one writes META-INF/ASiCManifest.xml
  and a detached PyCryptodomex signature over it.
- Processors hooked at the initial, before-signature and after-signature points,
  e.g. the OASIS META-INF/manifest.xml writer.
"""

from .config import WriterConfig
from .encryption import EncryptionFilter, XChaChaEncryptionFilter
from .errors import AsicError, ProtocolError
from .model import Container, DataObject, Mode
from .processor import OasisManifestProcessor, Processor, ProcessorState
from .signature import KeySigner, ManifestSignatureCreator, SignatureCreator
from .writer import AsicWriter, WriterState

__version__ = "0.1"

__all__ = [
    "AsicWriter",
    "WriterState",
    "WriterConfig",
    "Container",
    "DataObject",
    "Mode",
    "EncryptionFilter",
    "XChaChaEncryptionFilter",
    "Processor",
    "ProcessorState",
    "OasisManifestProcessor",
    "SignatureCreator",
    "ManifestSignatureCreator",
    "KeySigner",
    "AsicError",
    "ProtocolError",
]
