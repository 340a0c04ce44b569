#!/usr/bin/env python3
"""
ABOUTME: Rebuilds a complete DOCX part set from an editing session
ABOUTME: document.xml from header/paragraphs/footer, propagated styles/rels, fixed templates
"""

import posixpath
import sys
from datetime import datetime
from typing import Dict, Optional

from lxml import etree

from .common import (
    APP_PROPS_PART,
    CONTENT_TYPES_PART,
    CORE_PROPS_PART,
    DOCUMENT_PART,
    DOCUMENT_RELS_PART,
    FONT_TABLE_PART,
    PACKAGE_RELS_PART,
    REL_NS,
    REQUIRED_PARTS,
    SETTINGS_PART,
    STYLES_PART,
    WEB_SETTINGS_PART,
    NoSession,
    PackagingFailure,
    SessionState,
)
from .config import ReorderSettings
from .session import DocumentSession
from . import templates


def build_document_markup(session: DocumentSession) -> str:
    """
    Rebuild document.xml markup in the session's current paragraph order.

    Gaps are positional: the markup found between the i-th and (i+1)-th
    paragraph slot in the source stays between those slots.
    """
    paragraphs = session.current_order()
    gaps = session.gaps or [''] * (len(paragraphs) + 1)
    if len(gaps) != len(paragraphs) + 1:
        raise PackagingFailure(
            f"Session has {len(gaps)} gaps for {len(paragraphs)} paragraphs"
        )

    pieces = [session.header_markup]
    for gap, paragraph in zip(gaps, paragraphs):
        pieces.append(gap)
        pieces.append(paragraph.markup)
    pieces.append(gaps[-1])
    pieces.append(session.footer_markup)
    return ''.join(pieces)


def prune_relationships(rels_xml: bytes, available_parts, base_dir: str = 'word') -> bytes:
    """
    Drop internal relationships whose target part is not in available_parts.

    External relationships (hyperlinks) are always kept.
    """
    root = etree.fromstring(rels_xml, etree.XMLParser(resolve_entities=False, no_network=True))
    removed = 0
    for rel in list(root.iter(f'{{{REL_NS}}}Relationship')):
        if rel.get('TargetMode', '').lower() == 'external':
            continue
        target = rel.get('Target', '')
        if target.startswith('/'):
            part_name = target.lstrip('/')
        else:
            part_name = posixpath.normpath(posixpath.join(base_dir, target))
        if part_name not in available_parts:
            root.remove(rel)
            removed += 1
    if not removed:
        return rels_xml
    return etree.tostring(root, xml_declaration=True, encoding='UTF-8', standalone=True)


class PackageAssembler:
    """Produces the exact part set of an exported package"""

    def __init__(self, settings: Optional[ReorderSettings] = None):
        self.settings = settings

    def assemble(self, session: Optional[DocumentSession],
                 now: Optional[datetime] = None) -> Dict[str, bytes]:
        """
        Build every part of the output package.

        Args:
            session: Loaded session
            now: Timestamp for core properties (defaults to current UTC time)

        Returns:
            Dict mapping part name to content, keys exactly REQUIRED_PARTS

        Raises:
            NoSession: If session is None or not in the loaded state
            PackagingFailure: If the part set cannot be completed
        """
        if session is None:
            raise NoSession("No document structure available for export")
        if session.state != SessionState.LOADED:
            raise NoSession(f"Cannot export: session is {session.state.value}, not loaded")

        settings = self.settings or session.settings
        timestamp = templates.w3cdtf_now(now)

        try:
            document_xml = build_document_markup(session).encode('utf-8')
        except UnicodeEncodeError as e:
            raise PackagingFailure(f"Cannot encode document markup: {e}") from e

        styles = session.auxiliary_parts.get(STYLES_PART) or templates.empty_styles_xml().encode('utf-8')
        rels = (session.auxiliary_parts.get(DOCUMENT_RELS_PART)
                or templates.empty_relationships_xml().encode('utf-8'))

        parts: Dict[str, bytes] = {
            CONTENT_TYPES_PART: templates.content_types_xml().encode('utf-8'),
            PACKAGE_RELS_PART: templates.package_rels_xml().encode('utf-8'),
            DOCUMENT_PART: document_xml,
            STYLES_PART: styles,
            DOCUMENT_RELS_PART: rels,
            FONT_TABLE_PART: templates.font_table_xml().encode('utf-8'),
            SETTINGS_PART: templates.settings_xml().encode('utf-8'),
            WEB_SETTINGS_PART: templates.web_settings_xml().encode('utf-8'),
            APP_PROPS_PART: templates.app_properties_xml(settings.application_name).encode('utf-8'),
            CORE_PROPS_PART: templates.core_properties_xml(settings.creator, timestamp).encode('utf-8'),
        }

        if settings.prune_relationships:
            try:
                parts[DOCUMENT_RELS_PART] = prune_relationships(rels, set(parts))
            except etree.XMLSyntaxError as e:
                raise PackagingFailure(f"Cannot parse {DOCUMENT_RELS_PART}: {e}") from e

        if set(parts) != set(REQUIRED_PARTS):
            raise PackagingFailure("Assembled part set does not match the required package layout")

        if settings.verbose:
            print(f"  [Export] document.xml {len(document_xml)} bytes, "
                  f"{len(session)} paragraphs, stamped {timestamp}", file=sys.stderr)
        return parts
