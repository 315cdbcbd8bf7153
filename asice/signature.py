from __future__ import annotations

import abc
import base64
import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, List, Optional, Union

from Cryptodome.Hash import SHA256
from Cryptodome.PublicKey import ECC, RSA
from Cryptodome.Signature import DSS, eddsa, pkcs1_15

from .constants import (
    ASIC_MANIFEST_PATH,
    DIGEST_METHOD_URIS,
    MIME_SIGNATURE,
    MIME_XML,
    NS_ASIC,
    NS_DS,
    SIGNATURE_PATH,
)
from .errors import EmptyContainerError, RootFileError, SignatureCreationError
from .model import Container, DataObject

if TYPE_CHECKING:  # pragma: no cover
    from .config import WriterConfig
    from .layer import AsicWriterLayer


logger = logging.getLogger(__name__)

_EDWARDS_CURVES = ("Ed25519", "Ed448")

Key = Union[RSA.RsaKey, ECC.EccKey]


class SignatureCreator(abc.ABC):
    """Strategy that turns the registered entries into manifest and signature entries."""

    @abc.abstractmethod
    def create(self, layer: "AsicWriterLayer", container: Container, config: "WriterConfig") -> None:
        ...

    @abc.abstractmethod
    def supports_root_file(self) -> bool:
        ...


class KeySigner:
    """Detached signatures with a PyCryptodomex RSA or ECC key.

    RSA keys use PKCS#1 v1.5 over SHA-256, Edwards curves use pure EdDSA
    (RFC 8032) and NIST curves use FIPS 186-3 DSS over SHA-256.
    """

    def __init__(self, key: Key):
        if not key.has_private():
            raise ValueError("Signing requires a private key")
        self.key = key

    @property
    def algorithm(self) -> str:
        if isinstance(self.key, RSA.RsaKey):
            return "rsa-pkcs1v15-sha256"
        if self.key.curve in _EDWARDS_CURVES:
            return self.key.curve.lower()
        return "ecdsa-sha256"

    def sign(self, message: bytes) -> bytes:
        if isinstance(self.key, RSA.RsaKey):
            return pkcs1_15.new(self.key).sign(SHA256.new(message))
        if self.key.curve in _EDWARDS_CURVES:
            return eddsa.new(self.key, "rfc8032").sign(message)
        return DSS.new(self.key, "fips-186-3").sign(SHA256.new(message))

    def verify(self, message: bytes, signature: bytes) -> bool:
        pub = self.key.public_key()
        try:
            if isinstance(pub, RSA.RsaKey):
                pkcs1_15.new(pub).verify(SHA256.new(message), signature)
            elif pub.curve in _EDWARDS_CURVES:
                eddsa.new(pub, "rfc8032").verify(message, signature)
            else:
                DSS.new(pub, "fips-186-3").verify(SHA256.new(message), signature)
        except ValueError:
            return False
        return True

    def public_key_pem(self) -> str:
        pem = self.key.public_key().export_key(format="PEM")
        return pem.decode("ascii") if isinstance(pem, bytes) else pem


class ManifestSignatureCreator(SignatureCreator):
    """Write META-INF/ASiCManifest.xml and a detached signature over it.

    Every DATA entry is referenced with its MIME type and the digest of the
    first configured algorithm. The root file, when set, must name a DATA
    entry and is flagged with ``Rootfile="true"``.
    """

    def __init__(
        self,
        signer: KeySigner,
        *,
        root_file_supported: bool = True,
        manifest_path: str = ASIC_MANIFEST_PATH,
        signature_path: str = SIGNATURE_PATH,
    ):
        self.signer = signer
        self.root_file_supported = root_file_supported
        self.manifest_path = manifest_path
        self.signature_path = signature_path

    def supports_root_file(self) -> bool:
        return self.root_file_supported

    def create(self, layer: "AsicWriterLayer", container: Container, config: "WriterConfig") -> None:
        data = container.of_type(DataObject.Type.DATA)
        if not data:
            raise EmptyContainerError("Container holds no data entries to sign")
        for obj in data:
            if not obj.complete:
                raise SignatureCreationError(f"Entry not closed before signing: {obj.path}")
        root = container.root_file
        if root is not None:
            if not self.root_file_supported:
                raise RootFileError("Root file is not supported by this signature configuration")
            if root not in {o.path for o in data}:
                raise RootFileError(f"Root file was not added to the container: {root}")
        algorithm = layer.algorithms[0]
        if algorithm not in DIGEST_METHOD_URIS:
            raise SignatureCreationError(f"No XML digest method known for {algorithm}")

        manifest = self.build_manifest(data, root, algorithm)
        with layer.add_content(DataObject.Type.MANIFEST, self.manifest_path, MIME_XML) as out:
            out.write(manifest)
        signature = self.signer.sign(manifest)
        with layer.add_content(DataObject.Type.SIGNATURE, self.signature_path, MIME_SIGNATURE) as out:
            out.write(signature)
        logger.debug("signed %d entries with %s", len(data), self.signer.algorithm)

    def build_manifest(self, data: List[DataObject], root: Optional[str], algorithm: str) -> bytes:
        ET.register_namespace("asic", NS_ASIC)
        ET.register_namespace("ds", NS_DS)
        manifest = ET.Element(f"{{{NS_ASIC}}}ASiCManifest")
        ET.SubElement(manifest, f"{{{NS_ASIC}}}SigReference", {"URI": self.signature_path, "MimeType": MIME_SIGNATURE})
        for obj in data:
            attrs = {"URI": obj.path, "MimeType": obj.mime_type}
            if obj.path == root:
                attrs["Rootfile"] = "true"
            ref = ET.SubElement(manifest, f"{{{NS_ASIC}}}DataObjectReference", attrs)
            ET.SubElement(ref, f"{{{NS_DS}}}DigestMethod", {"Algorithm": DIGEST_METHOD_URIS[algorithm]})
            value = ET.SubElement(ref, f"{{{NS_DS}}}DigestValue")
            value.text = base64.b64encode(obj.digests[algorithm]).decode("ascii")
        return ET.tostring(manifest, encoding="utf-8", xml_declaration=True)
