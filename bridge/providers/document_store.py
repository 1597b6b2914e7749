"""Instruction document loading."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from bridge.core.errors import ConfigurationUnavailable, DocumentUnreadable


@runtime_checkable
class DocumentStore(Protocol):
    def read_text(self, path: str) -> str: ...


class FileDocumentStore:
    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = Path(base_dir) if base_dir else None

    def _resolve(self, path: str) -> Path:
        p = Path(path).expanduser()
        if not p.is_absolute() and self.base_dir is not None:
            p = self.base_dir / p
        return p

    def read_text(self, path: str) -> str:
        if not path or not str(path).strip():
            raise ConfigurationUnavailable("instruction document path is empty")
        p = self._resolve(str(path).strip())
        if not p.exists():
            raise ConfigurationUnavailable(f"instruction document not found: {p}")
        try:
            return p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise DocumentUnreadable(f"cannot read instruction document {p}: {e}", path=str(p)) from e
