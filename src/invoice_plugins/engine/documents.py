"""Storage for documents retrieved during a run."""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional
import structlog


logger = structlog.get_logger()

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass
class Document:
    """A saved invoice artifact."""
    kind: str                    # "download" or "print"
    path: Path
    size: int
    source_url: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)


class DocumentStore:
    """Writes document bytes under ``output_dir`` and keeps them in run order."""

    def __init__(self, output_dir: str = "./data/documents"):
        self.output_dir = Path(output_dir)
        self.documents: list[Document] = []

    def save(
        self,
        content: bytes,
        kind: str,
        suffix: str,
        metadata: Optional[dict[str, Any]] = None,
        source_url: Optional[str] = None,
    ) -> Document:
        """Write ``content`` and record it."""
        metadata = metadata or {}
        self.output_dir.mkdir(parents=True, exist_ok=True)

        path = self._free_path(metadata, suffix)
        path.write_bytes(content)

        document = Document(
            kind=kind,
            path=path,
            size=len(content),
            source_url=source_url,
            metadata=metadata,
        )
        self.documents.append(document)
        logger.info("document_saved", kind=kind, path=str(path), size=document.size)
        return document

    def _free_path(self, metadata: dict[str, Any], suffix: str) -> Path:
        base = str(metadata.get("id") or f"document-{len(self.documents) + 1}")
        stem = _UNSAFE_CHARS.sub("_", base).strip("._") or "document"

        # Never overwrite a document saved earlier in the same run
        taken = {doc.path.name for doc in self.documents}
        name = f"{stem}{suffix}"
        counter = 2
        while name in taken:
            name = f"{stem}-{counter}{suffix}"
            counter += 1
        return self.output_dir / name
