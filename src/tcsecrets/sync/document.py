"""
Secrets documents -- a .env file plus the headers that bind it to a remote field.

The text is plain ``KEY=value`` lines with up to three metadata lines::

    #do-not-edit--secrets-version 3
    #do-not-edit--secrets-id my-app/production
    #do-not-edit--secrets-field-id backend
    DATABASE_URL=postgres://...

Headers may sit anywhere in the file. They stay in ``content`` so the
exact same text is what gets encrypted into the remote field, which
makes a decrypted remote field a document in its own right.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..errors import InvalidEnvFileError, SecretsIOError

logger = logging.getLogger("tcsecrets.sync.document")

VERSION_HEADER = "#do-not-edit--secrets-version"
SECRET_ID_HEADER = "#do-not-edit--secrets-id"
FIELD_ID_HEADER = "#do-not-edit--secrets-field-id"

# Canonical emission order for headers missing from the text.
HEADERS = (VERSION_HEADER, SECRET_ID_HEADER, FIELD_ID_HEADER)

_HEADER_LABELS = {
    VERSION_HEADER: "version",
    SECRET_ID_HEADER: "secret_id",
    FIELD_ID_HEADER: "field_id",
}


def header_of(line: str) -> Optional[str]:
    """Return the header token a line starts with, if any.

    Args:
        line: One line of document text.

    Returns:
        One of :data:`HEADERS`, or None for ordinary lines.
    """
    token = line.split(" ", 1)[0]
    return token if token in _HEADER_LABELS else None


def split_lines(content: str) -> list[str]:
    """Split document text into lines on ``\\n`` only.

    Other line-break characters (``\\r``, ``\\x85``, ``\\u2028`` and so on)
    belong to the value they appear in. A trailing newline does not
    produce an empty last line.
    """
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line


def _header_value(line: str, header: str) -> str:
    """Extract the value token of a header line."""
    parts = line.split(" ")
    if len(parts) < 2 or not parts[1]:
        raise InvalidEnvFileError(f"Invalid {_HEADER_LABELS[header]} in header")
    return parts[1]


class EnvDocument:
    """A parsed secrets file.

    Attributes:
        path: Where the document lives on disk. None for documents
            built from a decrypted remote field.
        content: Full text, header lines included.
        version: Header version; None means unversioned (0).
        secret_id: Remote secret the document belongs to.
        field_id: Field of that secret holding the document.
    """

    def __init__(
        self,
        content: str = "",
        path: Optional[Path] = None,
        version: Optional[int] = None,
        secret_id: Optional[str] = None,
        field_id: Optional[str] = None,
    ) -> None:
        self.path = path
        self.content = content
        self.version = version
        self.secret_id = secret_id
        self.field_id = field_id

    @classmethod
    def from_path(cls, path: Path) -> "EnvDocument":
        """Load a document from disk, or start an empty one if absent.

        Args:
            path: Location of the secrets file.

        Returns:
            Parsed document bound to ``path``.

        Raises:
            SecretsIOError: If the file exists but cannot be read.
            InvalidEnvFileError: If a header is malformed.
        """
        path = Path(path)
        content = ""
        if path.exists():
            try:
                content = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                raise SecretsIOError(f"cannot read {path}: {exc}") from exc

        doc = cls(content=content, path=path)
        doc.parse()
        return doc

    @classmethod
    def from_text(cls, text: str) -> "EnvDocument":
        """Parse a document from text, e.g. a decrypted remote field.

        Args:
            text: Document text.

        Returns:
            Parsed document with no path.
        """
        doc = cls(content=text)
        doc.parse()
        return doc

    def parse(self) -> None:
        """Read header values out of ``content``.

        Every line is scanned once. When a header repeats, the last one
        wins. Headers absent from the text leave the attribute as is.

        Raises:
            InvalidEnvFileError: On a header with no value or a version
                that is not a non-negative integer.
        """
        for raw in split_lines(self.content):
            line = _strip_cr(raw)
            header = header_of(line)
            if header is None:
                continue

            value = _header_value(line, header)
            if header == VERSION_HEADER:
                if not (value.isascii() and value.isdigit()):
                    raise InvalidEnvFileError("Invalid version in header")
                self.version = int(value)
            elif header == SECRET_ID_HEADER:
                self.secret_id = value
            else:
                self.field_id = value

    def payload_lines(self) -> list[str]:
        """Content lines that are not metadata headers."""
        lines = (_strip_cr(raw) for raw in split_lines(self.content))
        return [line for line in lines if header_of(line) is None]

    def render(self) -> str:
        """Serialize the document with its current header values.

        The first existing header line of each kind is rewritten in
        place and later duplicates are dropped. Headers missing from the
        text are added at the top as version, secret id, field id.

        Returns:
            The serialized text.

        Raises:
            InvalidEnvFileError: If ``secret_id`` or ``version`` is unset.
        """
        if self.secret_id is None:
            raise InvalidEnvFileError("Secret ID is not set")
        if self.version is None:
            raise InvalidEnvFileError("Version is not set")

        values = {
            VERSION_HEADER: str(self.version),
            SECRET_ID_HEADER: self.secret_id,
            FIELD_ID_HEADER: self.field_id,
        }

        lines: list[str] = []
        written: set[str] = set()
        for raw in split_lines(self.content):
            line = _strip_cr(raw)
            header = header_of(line)
            if header is None or values[header] is None:
                lines.append(raw)
                continue
            if header in written:
                logger.debug("Dropping duplicate header line: %s", line)
                continue
            written.add(header)
            eol = raw[len(line):]
            lines.append(f"{header} {values[header]}{eol}")

        missing = [
            f"{header} {values[header]}"
            for header in HEADERS
            if header not in written and values[header] is not None
        ]

        text = "\n".join(missing + lines)
        if not self.content or self.content.endswith("\n"):
            text += "\n"
        return text

    def write(self) -> None:
        """Re-render ``content`` and persist it to ``path`` if set.

        Raises:
            InvalidEnvFileError: If ``secret_id`` or ``version`` is unset.
            SecretsIOError: If the file cannot be written.
        """
        self.content = self.render()

        if self.path is not None:
            try:
                self.path.write_text(self.content, encoding="utf-8")
            except OSError as exc:
                raise SecretsIOError(f"cannot write {self.path}: {exc}") from exc
            logger.debug("Wrote %s (version %s)", self.path, self.version)

    def __repr__(self) -> str:
        return (
            f"EnvDocument(path={self.path!r}, version={self.version!r}, "
            f"secret_id={self.secret_id!r}, field_id={self.field_id!r})"
        )
