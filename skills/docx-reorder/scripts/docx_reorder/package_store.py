#!/usr/bin/env python3
"""
ABOUTME: Reads and writes DOCX packages as a mapping of part name to bytes
ABOUTME: All-or-nothing: either every part is read/written or the call fails
"""

import hashlib
import io
import sys
import zipfile
import zlib
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Union

from .common import (
    CONTENT_TYPES_PART,
    DOCUMENT_PART,
    REQUIRED_PARTS,
    InvalidPackage,
    PackagingFailure,
)

PartContent = Union[bytes, str]


def sha256_digest(data: bytes) -> str:
    """Hash string in format "sha256:hexdigest"."""
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


class PackageStore:
    """Zip container access for WordprocessingML packages"""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose

    def open(self, data: bytes) -> Dict[str, bytes]:
        """
        Read every entry of a DOCX archive.

        Args:
            data: Raw archive bytes

        Returns:
            Dict mapping zip member name (e.g. "word/document.xml") to content

        Raises:
            InvalidPackage: If the bytes are not a readable zip archive, an entry
                is encrypted or corrupt, or the main document part is missing
        """
        if not data:
            raise InvalidPackage("Package is empty")

        try:
            with zipfile.ZipFile(io.BytesIO(data), 'r') as zf:
                encrypted = [info.filename for info in zf.infolist() if info.flag_bits & 0x1]
                if encrypted:
                    raise InvalidPackage(f"Encrypted archive entry: {encrypted[0]}")
                bad_member = zf.testzip()
                if bad_member is not None:
                    raise InvalidPackage(f"Corrupt archive entry: {bad_member}")
                parts = {
                    info.filename: zf.read(info)
                    for info in zf.infolist()
                    if not info.is_dir()
                }
        except zipfile.BadZipFile as e:
            raise InvalidPackage(f"Not a valid DOCX archive: {e}") from e
        except (zipfile.LargeZipFile, zlib.error, NotImplementedError, RuntimeError, EOFError,
                OSError) as e:
            raise InvalidPackage(f"Cannot decompress DOCX archive: {e}") from e

        if DOCUMENT_PART not in parts:
            raise InvalidPackage(f"Invalid Word document: missing {DOCUMENT_PART}")

        if self.verbose:
            print(f"  [Package] Read {len(parts)} parts ({sha256_digest(data)})", file=sys.stderr)
        return parts

    def write(self, parts: Mapping[str, PartContent],
              required: Iterable[str] = REQUIRED_PARTS) -> bytes:
        """
        Write parts into a deflated zip archive.

        [Content_Types].xml is written first (required by some consumers),
        followed by the required parts in their declared order, then any
        remaining parts sorted by name.

        Args:
            parts: Mapping of part name to bytes or str (str is UTF-8 encoded)
            required: Part names that must be present

        Returns:
            Archive bytes

        Raises:
            PackagingFailure: If a required part is missing or writing fails
        """
        required = list(required)
        missing = [name for name in required if name not in parts]
        if missing:
            raise PackagingFailure(f"Missing mandatory parts: {', '.join(missing)}")

        buffer = io.BytesIO()
        try:
            with zipfile.ZipFile(buffer, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
                for name in self._archive_order(parts, required):
                    content = parts[name]
                    if isinstance(content, str):
                        content = content.encode('utf-8')
                    zf.writestr(name, content)
        except (zipfile.LargeZipFile, ValueError, TypeError, OSError) as e:
            raise PackagingFailure(f"Cannot write DOCX archive: {e}") from e

        data = buffer.getvalue()
        if self.verbose:
            print(f"  [Package] Wrote {len(parts)} parts, {len(data)} bytes", file=sys.stderr)
        return data

    @staticmethod
    def _archive_order(parts: Mapping[str, PartContent], required: List[str]) -> List[str]:
        ordered = []
        if CONTENT_TYPES_PART in parts:
            ordered.append(CONTENT_TYPES_PART)
        ordered.extend(name for name in required if name not in ordered)
        ordered.extend(sorted(name for name in parts if name not in ordered))
        return ordered

    def read_file(self, path: Union[str, Path]) -> Dict[str, bytes]:
        """Read a DOCX archive from disk."""
        return self.open(Path(path).read_bytes())

    def write_file(self, path: Union[str, Path], parts: Mapping[str, PartContent]) -> Path:
        """
        Write parts to a DOCX file on disk.

        The archive is fully built in memory before the file is touched,
        so a packaging failure never leaves a partial file behind.
        """
        data = self.write(parts)
        path = Path(path)
        path.write_bytes(data)
        return path
