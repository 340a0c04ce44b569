"""
ABOUTME: Paragraph reordering for DOCX packages
ABOUTME: load_document -> DocumentSession (reorder/move/set_text) -> export_document
"""

import asyncio
import sys
from typing import Optional

from .assembler import PackageAssembler, build_document_markup
from .common import (
    AUXILIARY_PARTS,
    DOCUMENT_PART,
    REQUIRED_PARTS,
    InvalidPackage,
    InvalidPermutation,
    NoParagraphsFound,
    NoSession,
    PackagingFailure,
    Paragraph,
    ParagraphStrategy,
    ReorderError,
    SessionState,
    SplitResult,
    TextEditFailure,
    TextEditMode,
    UnknownId,
)
from .config import ReorderSettings, resolve_settings
from .package_store import PackageStore, sha256_digest
from .session import DocumentSession
from .splitter import MarkupSplitter


def load_document(data: bytes, settings: Optional[ReorderSettings] = None,
                  source_name: str = '') -> DocumentSession:
    """
    Load a DOCX package into a new editing session.

    Nothing is returned unless every step succeeds; the session is built
    locally and handed to the caller only at the end.

    Args:
        data: Raw .docx bytes
        settings: Load/edit/export settings (defaults when None)
        source_name: Original file name, kept for display and output naming

    Returns:
        A loaded DocumentSession owned by the caller

    Raises:
        InvalidPackage: If the archive is unreadable, lacks word/document.xml,
            or the document part is not UTF-8 text
        NoParagraphsFound: If no paragraph with text survives the split
    """
    settings = resolve_settings(settings)
    if settings.verbose:
        label = source_name or 'document'
        print(f"[Load] {label} ({len(data) if data else 0} bytes)", file=sys.stderr)

    parts = PackageStore(verbose=settings.verbose).open(data)
    try:
        markup = parts[DOCUMENT_PART].decode('utf-8')
    except UnicodeDecodeError as e:
        raise InvalidPackage(f"{DOCUMENT_PART} is not UTF-8 encoded: {e}") from e

    split = MarkupSplitter(settings.strategy, verbose=settings.verbose).split(markup)
    auxiliary = {name: parts.get(name, b'') for name in AUXILIARY_PARTS}
    return DocumentSession.from_split(split, auxiliary, settings, source_name=source_name)


def export_document(session: Optional[DocumentSession]) -> bytes:
    """
    Assemble and package a session into .docx bytes.

    The session is marked exported only after the archive exists; on any
    failure it stays loaded and the export can be retried.

    Raises:
        NoSession: If session is None or not loaded
        PackagingFailure: If the archive cannot be produced
    """
    parts = PackageAssembler().assemble(session)
    data = PackageStore(verbose=session.settings.verbose).write(parts)
    session.mark_exported()
    return data


async def load_document_async(data: bytes, settings: Optional[ReorderSettings] = None,
                              source_name: str = '') -> DocumentSession:
    """Run load_document in a worker thread."""
    return await asyncio.to_thread(load_document, data, settings, source_name)


async def export_document_async(session: Optional[DocumentSession]) -> bytes:
    """Run export_document in a worker thread."""
    return await asyncio.to_thread(export_document, session)


__all__ = [
    'AUXILIARY_PARTS',
    'DOCUMENT_PART',
    'REQUIRED_PARTS',
    'DocumentSession',
    'InvalidPackage',
    'InvalidPermutation',
    'MarkupSplitter',
    'NoParagraphsFound',
    'NoSession',
    'PackageAssembler',
    'PackageStore',
    'PackagingFailure',
    'Paragraph',
    'ParagraphStrategy',
    'ReorderError',
    'ReorderSettings',
    'SessionState',
    'SplitResult',
    'TextEditFailure',
    'TextEditMode',
    'UnknownId',
    'build_document_markup',
    'export_document',
    'export_document_async',
    'load_document',
    'load_document_async',
    'sha256_digest',
]
