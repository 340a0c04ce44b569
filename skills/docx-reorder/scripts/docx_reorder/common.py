#!/usr/bin/env python3
"""
ABOUTME: Shared constants, data classes and errors for paragraph reordering
ABOUTME: Part names, WordprocessingML namespaces, Paragraph and SplitResult records
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from docx.oxml.ns import qn


# ============================================================
# Constants
# ============================================================

NS = {
    'w': 'http://schemas.openxmlformats.org/wordprocessingml/2006/main',
    'w14': 'http://schemas.microsoft.com/office/word/2010/wordml',
    'r': 'http://schemas.openxmlformats.org/officeDocument/2006/relationships',
}

XML_NS = 'http://www.w3.org/XML/1998/namespace'
REL_NS = 'http://schemas.openxmlformats.org/package/2006/relationships'

W_BODY = qn('w:body')
W_DOCUMENT = qn('w:document')
W_P = qn('w:p')
W_T = qn('w:t')
W14_PARA_ID = qn('w14:paraId')

# Package part names (zip member names, no leading slash)
CONTENT_TYPES_PART = '[Content_Types].xml'
PACKAGE_RELS_PART = '_rels/.rels'
DOCUMENT_PART = 'word/document.xml'
STYLES_PART = 'word/styles.xml'
DOCUMENT_RELS_PART = 'word/_rels/document.xml.rels'
FONT_TABLE_PART = 'word/fontTable.xml'
SETTINGS_PART = 'word/settings.xml'
WEB_SETTINGS_PART = 'word/webSettings.xml'
APP_PROPS_PART = 'docProps/app.xml'
CORE_PROPS_PART = 'docProps/core.xml'

# Parts propagated from the source package unchanged
AUXILIARY_PARTS = (STYLES_PART, DOCUMENT_RELS_PART)

# Exact part set of an exported package, in archive order
REQUIRED_PARTS = (
    CONTENT_TYPES_PART,
    PACKAGE_RELS_PART,
    DOCUMENT_PART,
    STYLES_PART,
    DOCUMENT_RELS_PART,
    FONT_TABLE_PART,
    SETTINGS_PART,
    WEB_SETTINGS_PART,
    APP_PROPS_PART,
    CORE_PROPS_PART,
)

# Literal markers used by the boundary-search fallback
BODY_OPEN_MARKER = '<w:body>'
BODY_CLOSE_MARKUP = '</w:body></w:document>'

# Matches <w:p ...>, <w:p>, <w:p/> and </w:p> but not <w:pPr> or <w:proofErr>
BOUNDARY_PARAGRAPH_TAG_PATTERN = re.compile(r'<(/?)w:p(?=[\s/>])[^>]*?(/?)>')

# Text run payload: <w:t>...</w:t> or <w:t xml:space="preserve">...</w:t>
BOUNDARY_TEXT_PATTERN = re.compile(r'<w:t(?:\s[^>]*)?(?<!/)>(.*?)</w:t>', re.DOTALL)

BOUNDARY_PARA_ID_PATTERN = re.compile(r'\bw14:paraId="([^"]*)"')


# ============================================================
# Enums
# ============================================================

class ParagraphStrategy(str, Enum):
    """How paragraph fragments are located in document.xml"""
    STRUCTURAL = 'structural'   # namespace-aware tree walk, verbatim spans
    BOUNDARY = 'boundary'       # literal tag search on raw markup


class TextEditMode(str, Enum):
    """What set_text does to a paragraph"""
    DISPLAY_ONLY = 'display_only'   # display text changes, markup is exported as loaded
    SPLICE = 'splice'               # edited text is spliced into the paragraph's runs


class SessionState(str, Enum):
    EMPTY = 'empty'
    LOADED = 'loaded'
    EXPORTED = 'exported'


# ============================================================
# Errors
# ============================================================

class ReorderError(Exception):
    """Base class for all paragraph reordering errors"""


class InvalidPackage(ReorderError):
    """Archive unreadable or missing word/document.xml"""


class NoParagraphsFound(ReorderError):
    """
    Document split yielded no paragraph with visible text.

    header and footer hold the bounds the split arrived at, so callers can
    still inspect the markup around the (empty) body.
    """

    def __init__(self, message: str, header: str = '', footer: str = ''):
        super().__init__(message)
        self.header = header
        self.footer = footer


class InvalidPermutation(ReorderError):
    """Reorder request is not a permutation of the session's paragraph ids"""


class UnknownId(ReorderError):
    """Paragraph id is not part of the session"""


class NoSession(ReorderError):
    """Export or edit attempted without a loaded session"""


class PackagingFailure(ReorderError):
    """Output archive could not be produced"""


class TextEditFailure(ReorderError):
    """Edited text cannot be spliced into the paragraph's runs"""


# ============================================================
# Data Classes
# ============================================================

@dataclass(frozen=True)
class Paragraph:
    """One body-level paragraph of a loaded document"""
    id: str                          # Session-unique, never reassigned
    markup: str                      # Exact <w:p>...</w:p> fragment, authoritative for export
    display_text: str                # Concatenated w:t payloads, trimmed
    original_index: int              # Position among surviving paragraphs in source order
    source_para_id: Optional[str] = None  # w14:paraId when the source carries one


@dataclass
class SplitResult:
    """
    Partition of document.xml into header, paragraphs and footer.

    gaps holds the markup between paragraph fragments that is not itself a
    surviving paragraph, positionally: gaps[0] sits between header and the
    first paragraph, gaps[i] between paragraph i-1 and i, gaps[-1] before the
    footer. len(gaps) == len(paragraphs) + 1.
    """
    header: str
    footer: str
    paragraphs: List[Paragraph]
    gaps: List[str]
    strategy: ParagraphStrategy
    dropped_count: int = 0
    namespaces: Dict[str, str] = field(default_factory=dict)


# ============================================================
# Helper Functions
# ============================================================

def format_text_preview(text: str, max_len: int = 30) -> str:
    """
    Format text for log output: remove newlines and truncate.

    Args:
        text: Text to format
        max_len: Maximum length before truncation

    Returns:
        Clean, truncated text with "..." suffix if truncated
    """
    clean = text.replace('\n', ' ').replace('\r', '').replace('\t', ' ')
    while '  ' in clean:
        clean = clean.replace('  ', ' ')
    clean = clean.strip()
    if len(clean) > max_len:
        return clean[:max_len] + "..."
    return clean
