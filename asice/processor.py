from __future__ import annotations

import abc
import enum
import logging
import xml.etree.ElementTree as ET
from typing import TYPE_CHECKING, Iterable

from .constants import ASICE_MIME_TYPE, MIME_XML, NS_MANIFEST, OASIS_MANIFEST_PATH
from .model import Container, DataObject

if TYPE_CHECKING:  # pragma: no cover
    from .config import WriterConfig
    from .layer import AsicWriterLayer


logger = logging.getLogger(__name__)


class ProcessorState(enum.Enum):
    INITIAL = "initial"
    BEFORE_SIGNATURE = "before-signature"
    AFTER_SIGNATURE = "after-signature"


class Processor(abc.ABC):
    """Extension invoked by the writer at one lifecycle point."""

    state: ProcessorState

    @abc.abstractmethod
    def perform(self, layer: "AsicWriterLayer", container: Container, config: "WriterConfig") -> None:
        ...


def perform_processors(
    processors: Iterable[Processor],
    state: ProcessorState,
    layer: "AsicWriterLayer",
    container: Container,
    config: "WriterConfig",
) -> None:
    """Run the processors registered for ``state`` in declared order.

    The first failure stops the remaining processors and propagates as raised.
    Entries written by earlier processors stay in the archive.
    """
    for p in processors:
        if p.state != state:
            continue
        logger.debug("processor %s at %s", type(p).__name__, state.value)
        p.perform(layer, container, config)


class OasisManifestProcessor(Processor):
    """Write META-INF/manifest.xml in the OASIS OpenDocument manifest format."""

    def __init__(self, state: ProcessorState = ProcessorState.AFTER_SIGNATURE):
        self.state = state

    def perform(self, layer: "AsicWriterLayer", container: Container, config: "WriterConfig") -> None:
        ET.register_namespace("manifest", NS_MANIFEST)
        root = ET.Element(f"{{{NS_MANIFEST}}}manifest")
        ET.SubElement(
            root,
            f"{{{NS_MANIFEST}}}file-entry",
            {f"{{{NS_MANIFEST}}}full-path": "/", f"{{{NS_MANIFEST}}}media-type": ASICE_MIME_TYPE},
        )
        for obj in container.of_type(DataObject.Type.DATA):
            ET.SubElement(
                root,
                f"{{{NS_MANIFEST}}}file-entry",
                {f"{{{NS_MANIFEST}}}full-path": obj.path, f"{{{NS_MANIFEST}}}media-type": obj.mime_type},
            )
        payload = ET.tostring(root, encoding="utf-8", xml_declaration=True)
        with layer.add_content(DataObject.Type.MANIFEST, OASIS_MANIFEST_PATH, MIME_XML) as out:
            out.write(payload)
