"""In-memory document store for editor integrations.

Every open, change or save re-lints the full latest text of a document and
replaces whatever was published for its URI. Updates for the same URI are
serialized so an older buffer can never be published after a newer one.
"""

from __future__ import annotations

import logging
import threading
from pathlib import PurePosixPath
from typing import Callable, Dict, List, Optional
from urllib.parse import urlparse

from .config import SUPPORTED_EXTENSIONS
from .linter import lint
from .schemas import EditorDiagnostic, PublishDiagnosticsParams

logger = logging.getLogger(__name__)

Publisher = Callable[[PublishDiagnosticsParams], None]


def is_supported_uri(uri: str) -> bool:
    path = urlparse(uri).path or uri
    return PurePosixPath(path).suffix.lower() in SUPPORTED_EXTENSIONS


class DocumentStore:
    def __init__(self, publish: Publisher) -> None:
        self._publish = publish
        self._documents: Dict[str, str] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, uri: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(uri, threading.Lock())

    def text(self, uri: str) -> Optional[str]:
        return self._documents.get(uri)

    def open(self, uri: str, text: str) -> None:
        self._update(uri, text)

    def change(self, uri: str, text: str) -> None:
        self._update(uri, text)

    def save(self, uri: str) -> None:
        if not is_supported_uri(uri):
            return
        with self._lock_for(uri):
            text = self._documents.get(uri)
            if text is None:
                logger.debug("Save for unknown document %s ignored", uri)
                return
            self._lint_and_publish(uri, text)

    def close(self, uri: str) -> None:
        # The lock outlives the buffer so a reopen waits for an in-flight update.
        with self._lock_for(uri):
            self._documents.pop(uri, None)

    def _update(self, uri: str, text: str) -> None:
        if not is_supported_uri(uri):
            return
        with self._lock_for(uri):
            self._documents[uri] = text
            self._lint_and_publish(uri, text)

    def _lint_and_publish(self, uri: str, text: str) -> None:
        diagnostics: List[EditorDiagnostic] = [
            EditorDiagnostic.from_diagnostic(diagnostic) for diagnostic in lint(text, uri)
        ]
        logger.debug("Publishing %d diagnostic(s) for %s", len(diagnostics), uri)
        self._publish(PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics))


__all__ = ["DocumentStore", "Publisher", "is_supported_uri"]
