import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Optional

from werkzeug.security import safe_join

from docvault import content
from docvault.errors import (
    DocumentNotFound,
    EmptyName,
    InvalidExtension,
    InvalidName,
    WriteError,
)

ALLOWED_EXTENSIONS = frozenset(content.EXTENSION_KINDS)
DUPLICATE_SUFFIX = "(dup)"

# (filename, bytes) -> bytes written to the copy
Renderer = Callable[[str, bytes], bytes]


def _is_plain_name(filename: str) -> bool:
    if filename in (".", ".."):
        return False
    return "/" not in filename and "\\" not in filename and filename == Path(filename).name


def validate_new_filename(filename: str) -> str:
    if not filename or not filename.strip():
        raise EmptyName()
    # dotfiles are never listed
    if not _is_plain_name(filename) or filename.startswith("."):
        raise InvalidName(filename)
    if content.extension_of(filename) not in ALLOWED_EXTENSIONS:
        raise InvalidExtension(filename)
    return filename


def duplicate_name(filename: str) -> str:
    path = Path(filename)
    return f"{path.stem}{DUPLICATE_SUFFIX}{path.suffix}"


def _rendered_payload(filename: str, data: bytes) -> bytes:
    return content.render(filename, data).payload


class DocumentStore(ABC):
    """Flat collection of named documents; the filename is the only key."""

    @abstractmethod
    def list(self) -> list:
        """Names in enumeration order, not sorted."""
        ...

    @abstractmethod
    def exists(self, filename: str) -> bool:
        ...

    @abstractmethod
    def read(self, filename: str) -> bytes:
        """Raises DocumentNotFound if absent."""
        ...

    @abstractmethod
    def write(self, filename: str, data: bytes) -> None:
        """Unconditional overwrite. Raises WriteError on I/O failure."""
        ...

    @abstractmethod
    def delete(self, filename: str) -> None:
        """Raises DocumentNotFound if absent."""
        ...

    def create(self, filename: str) -> None:
        """Write an empty document, replacing any existing one of that name."""
        self.write(validate_new_filename(filename), b"")

    def duplicate(self, filename: str, render: Optional[Renderer] = None) -> str:
        """Copy the rendered form of a document into ``<stem>(dup)<ext>``.

        A second duplicate of the same source replaces the first copy. For
        markdown the copy holds the rendered HTML, not the markdown source.
        """
        if render is None:
            render = _rendered_payload
        data = self.read(filename)
        new_name = duplicate_name(filename)
        self.write(new_name, render(filename, data))
        return new_name


class FileDocumentStore(DocumentStore):

    def __init__(self, root):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, filename: str) -> Optional[Path]:
        if not filename or not _is_plain_name(filename):
            return None
        joined = safe_join(str(self.root), filename)
        if joined is None:
            return None
        return Path(joined)

    def list(self) -> list:
        with os.scandir(self.root) as entries:
            return [e.name for e in entries
                    if e.is_file() and not e.name.startswith(".")]

    def exists(self, filename: str) -> bool:
        path = self._path(filename)
        return path is not None and path.is_file()

    def read(self, filename: str) -> bytes:
        path = self._path(filename)
        if path is None:
            raise DocumentNotFound(filename)
        try:
            return path.read_bytes()
        except (FileNotFoundError, IsADirectoryError):
            raise DocumentNotFound(filename) from None

    def write(self, filename: str, data: bytes) -> None:
        path = self._path(filename)
        if path is None:
            raise InvalidName(filename)
        try:
            path.write_bytes(data)
        except OSError as e:
            raise WriteError(f"could not write {filename}: {e}") from e

    def delete(self, filename: str) -> None:
        path = self._path(filename)
        if path is None or not path.is_file():
            raise DocumentNotFound(filename)
        try:
            path.unlink()
        except FileNotFoundError:
            raise DocumentNotFound(filename) from None


class MemoryDocumentStore(DocumentStore):

    def __init__(self, documents: Optional[dict] = None):
        self._documents = dict(documents or {})

    def list(self) -> list:
        return list(self._documents)

    def exists(self, filename: str) -> bool:
        return filename in self._documents

    def read(self, filename: str) -> bytes:
        try:
            return self._documents[filename]
        except KeyError:
            raise DocumentNotFound(filename) from None

    def write(self, filename: str, data: bytes) -> None:
        if not filename or not _is_plain_name(filename):
            raise InvalidName(filename)
        self._documents[filename] = bytes(data)

    def delete(self, filename: str) -> None:
        try:
            del self._documents[filename]
        except KeyError:
            raise DocumentNotFound(filename) from None
