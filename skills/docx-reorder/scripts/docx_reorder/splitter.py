#!/usr/bin/env python3
"""
ABOUTME: Splits document.xml into header markup, paragraph fragments and footer markup
ABOUTME: Structural (namespace-aware) strategy with literal boundary-search fallback
"""

import re
import sys
import uuid
from dataclasses import dataclass
from html import unescape
from typing import Dict, List, Optional, Tuple

from defusedxml import ElementTree as ET
from defusedxml.common import DefusedXmlException

from .common import (
    BODY_CLOSE_MARKUP,
    BODY_OPEN_MARKER,
    BOUNDARY_PARA_ID_PATTERN,
    BOUNDARY_PARAGRAPH_TAG_PATTERN,
    BOUNDARY_TEXT_PATTERN,
    NS,
    W14_PARA_ID,
    W_BODY,
    W_DOCUMENT,
    W_P,
    W_T,
    XML_NS,
    NoParagraphsFound,
    Paragraph,
    ParagraphStrategy,
    SplitResult,
    format_text_preview,
)

# One markup construct: comment, CDATA, processing instruction, doctype or tag.
# Quoted attribute values may contain '>' so they are matched as units.
MARKUP_TOKEN_PATTERN = re.compile(
    r'<!--.*?-->'
    r'|<!\[CDATA\[.*?\]\]>'
    r'|<\?.*?\?>'
    r'|<!DOCTYPE(?:[^>\[]|\[[^\]]*\])*>'
    r'|<(/?)([^\s/>!?]+)((?:[^>"\']|"[^"]*"|\'[^\']*\')*)>',
    re.DOTALL
)
ATTRIBUTE_PATTERN = re.compile(r'([^\s=/]+)\s*=\s*(?:"([^"]*)"|\'([^\']*)\')')
NAMESPACE_DECL_PATTERN = re.compile(r'\bxmlns(?::([\w.-]+))?\s*=\s*(?:"([^"]*)"|\'([^\']*)\')')


class StructureUnavailable(Exception):
    """Markup cannot be split structurally (malformed or unexpected shape)"""


@dataclass
class _Fragment:
    """Paragraph element located in the raw markup"""
    start: int
    end: int
    display_text: str
    source_para_id: Optional[str] = None


@dataclass
class _Frame:
    """Open element on the scanner stack"""
    uri: Optional[str]
    local: str
    nsmap: Dict[str, str]
    start: Optional[int] = None     # set for body-level paragraphs


def new_paragraph_id(index: int) -> str:
    """Generate a fresh paragraph id, unique within and across sessions."""
    return f"para-{index}-{uuid.uuid4().hex[:12]}"


def _resolve_name(qname: str, nsmap: Dict[str, str]) -> Tuple[Optional[str], str]:
    prefix, _, local = qname.rpartition(':')
    return nsmap.get(prefix), local


def _scope_namespaces(attrs: str, parent: Dict[str, str]) -> Dict[str, str]:
    declared = {}
    for m in ATTRIBUTE_PATTERN.finditer(attrs):
        name = m.group(1)
        value = m.group(2) if m.group(2) is not None else m.group(3)
        if name == 'xmlns':
            declared[''] = unescape(value)
        elif name.startswith('xmlns:'):
            declared[name[6:]] = unescape(value)
    if not declared:
        return parent
    scope = dict(parent)
    scope.update(declared)
    return scope


def scan_body_paragraph_spans(markup: str) -> Tuple[List[Tuple[int, int]], Dict[str, str]]:
    """
    Locate the exact character span of every body-level w:p element.

    Tags are tokenized and resolved against the namespace declarations in
    scope, so any prefix bound to the WordprocessingML namespace matches.
    Paragraphs nested in tables, text boxes or content controls are not
    body-level and are left inside the surrounding markup.

    Args:
        markup: Raw document.xml text

    Returns:
        (spans, namespaces): spans as (start, end) offsets in document order,
        namespaces as the prefix -> URI map in scope at w:body

    Raises:
        StructureUnavailable: If start and end tags do not balance
    """
    w_uri = NS['w']
    stack: List[_Frame] = []
    spans: List[Tuple[int, int]] = []
    body_namespaces: Dict[str, str] = {}
    root_scope = {'xml': XML_NS}

    for m in MARKUP_TOKEN_PATTERN.finditer(markup):
        qname = m.group(2)
        if qname is None:
            continue  # comment, CDATA, PI or doctype

        if m.group(1) == '/':
            if not stack:
                raise StructureUnavailable(f"Unbalanced end tag </{qname}> at offset {m.start()}")
            frame = stack.pop()
            uri, local = _resolve_name(qname, frame.nsmap)
            if (uri, local) != (frame.uri, frame.local):
                raise StructureUnavailable(f"Mismatched end tag </{qname}> at offset {m.start()}")
            if frame.start is not None:
                spans.append((frame.start, m.end()))
            continue

        attrs = m.group(3)
        parent_scope = stack[-1].nsmap if stack else root_scope
        scope = _scope_namespaces(attrs, parent_scope)
        uri, local = _resolve_name(qname, scope)
        self_closing = attrs.rstrip().endswith('/')

        in_body = (
            len(stack) == 2
            and (stack[0].uri, stack[0].local) == (w_uri, 'document')
            and (stack[1].uri, stack[1].local) == (w_uri, 'body')
        )
        is_body_paragraph = in_body and (uri, local) == (w_uri, 'p')
        if uri == w_uri and local == 'body' and len(stack) == 1:
            body_namespaces = {k: v for k, v in scope.items() if k != 'xml'}

        if self_closing:
            if is_body_paragraph:
                spans.append((m.start(), m.end()))
            continue
        stack.append(_Frame(uri, local, scope, m.start() if is_body_paragraph else None))

    if stack:
        raise StructureUnavailable(f"Unclosed element <{stack[-1].local}>")
    return spans, body_namespaces


def _element_text(element) -> str:
    return ''.join(t.text or '' for t in element.iter(W_T)).strip()


def _fragment_text(fragment: str) -> str:
    return ''.join(unescape(t) for t in BOUNDARY_TEXT_PATTERN.findall(fragment)).strip()


def degenerate_bounds(markup: str) -> Tuple[str, str]:
    """Header/footer of a document with no paragraph marker at all."""
    body_open = markup.find(BODY_OPEN_MARKER)
    if body_open == -1:
        return markup, BODY_CLOSE_MARKUP
    return markup[:body_open + len(BODY_OPEN_MARKER)], BODY_CLOSE_MARKUP


class MarkupSplitter:
    """
    Partitions document.xml into header, paragraph fragments and footer.

    The STRUCTURAL strategy parses the markup (defusedxml) to enumerate the
    body-level paragraphs and takes each fragment as a verbatim slice of the
    source text. When the markup is malformed or does not have the expected
    w:document/w:body shape, the split falls back to BOUNDARY: literal
    <w:p>/</w:p> tag search, as a plain substring scan.

    Fragments without any text-run content (an image, a page break, an empty
    line) are dropped: they are not part of the session and are not exported.
    """

    def __init__(self, strategy: ParagraphStrategy = ParagraphStrategy.STRUCTURAL,
                 verbose: bool = False):
        self.strategy = ParagraphStrategy(strategy)
        self.verbose = verbose

    def split(self, markup: str) -> SplitResult:
        """
        Split document markup.

        Args:
            markup: Decoded word/document.xml

        Returns:
            SplitResult with header, surviving paragraphs, gaps and footer

        Raises:
            NoParagraphsFound: If no paragraph with non-empty text survives
        """
        if self.strategy == ParagraphStrategy.STRUCTURAL:
            try:
                fragments, namespaces = self._structural_fragments(markup)
                return self._build_result(markup, fragments, ParagraphStrategy.STRUCTURAL, namespaces)
            except StructureUnavailable as e:
                if self.verbose:
                    print(f"  [Warning] Structural split unavailable ({e}); using boundary search",
                          file=sys.stderr)

        fragments = self._boundary_fragments(markup)
        return self._build_result(markup, fragments, ParagraphStrategy.BOUNDARY,
                                  self._declared_namespaces(markup, fragments))

    # ------------------------------------------------------------
    # Strategies
    # ------------------------------------------------------------

    def _structural_fragments(self, markup: str) -> Tuple[List[_Fragment], Dict[str, str]]:
        try:
            root = ET.fromstring(markup.lstrip('\ufeff'))
        except (ET.ParseError, DefusedXmlException) as e:
            raise StructureUnavailable(f"markup is not well-formed: {e}") from e

        if root.tag != W_DOCUMENT:
            raise StructureUnavailable(f"unexpected root element {root.tag}")
        body = root.find(W_BODY)
        if body is None:
            raise StructureUnavailable("document has no w:body")

        elements = [child for child in body if child.tag == W_P]
        spans, namespaces = scan_body_paragraph_spans(markup)
        if len(spans) != len(elements):
            raise StructureUnavailable(
                f"tag scan found {len(spans)} paragraphs, tree has {len(elements)}"
            )

        fragments = [
            _Fragment(start, end, _element_text(element), element.get(W14_PARA_ID))
            for (start, end), element in zip(spans, elements)
        ]
        return fragments, namespaces

    def _boundary_fragments(self, markup: str) -> List[_Fragment]:
        fragments = []
        depth = 0
        start = 0
        for m in BOUNDARY_PARAGRAPH_TAG_PATTERN.finditer(markup):
            closing = m.group(1) == '/'
            self_closing = m.group(2) == '/'
            if closing:
                if depth == 0:
                    continue  # stray end tag
                depth -= 1
                if depth == 0:
                    fragments.append(self._boundary_fragment(markup, start, m.end()))
            elif self_closing:
                if depth == 0:
                    fragments.append(self._boundary_fragment(markup, m.start(), m.end()))
            else:
                if depth == 0:
                    start = m.start()
                depth += 1
        return fragments

    @staticmethod
    def _boundary_fragment(markup: str, start: int, end: int) -> _Fragment:
        fragment = markup[start:end]
        start_tag = fragment[:fragment.find('>') + 1]
        para_id = BOUNDARY_PARA_ID_PATTERN.search(start_tag)
        return _Fragment(start, end, _fragment_text(fragment), para_id.group(1) if para_id else None)

    @staticmethod
    def _declared_namespaces(markup: str, fragments: List[_Fragment]) -> Dict[str, str]:
        prefix_markup = markup[:fragments[0].start] if fragments else markup
        namespaces = {}
        for m in NAMESPACE_DECL_PATTERN.finditer(prefix_markup):
            value = m.group(2) if m.group(2) is not None else m.group(3)
            namespaces[m.group(1) or ''] = unescape(value)
        return namespaces

    # ------------------------------------------------------------
    # Assembly of the split result
    # ------------------------------------------------------------

    def _build_result(self, markup: str, fragments: List[_Fragment],
                      strategy: ParagraphStrategy, namespaces: Dict[str, str]) -> SplitResult:
        if not fragments:
            header, footer = degenerate_bounds(markup)
            raise NoParagraphsFound(
                f"No paragraph elements found in document body ({strategy.value} split)",
                header=header,
                footer=footer,
            )

        header = markup[:fragments[0].start]
        footer = markup[fragments[-1].end:]

        paragraphs: List[Paragraph] = []
        gaps: List[str] = []
        pending: List[str] = []
        cursor = fragments[0].start
        for fragment in fragments:
            pending.append(markup[cursor:fragment.start])
            cursor = fragment.end
            if not fragment.display_text:
                continue  # dropped: its markup is skipped
            gaps.append(''.join(pending))
            pending = []
            index = len(paragraphs)
            paragraphs.append(Paragraph(
                id=new_paragraph_id(index),
                markup=markup[fragment.start:fragment.end],
                display_text=fragment.display_text,
                original_index=index,
                source_para_id=fragment.source_para_id,
            ))
        gaps.append(''.join(pending))

        dropped = len(fragments) - len(paragraphs)
        if not paragraphs:
            raise NoParagraphsFound(
                f"Document has {len(fragments)} paragraph(s) but none contains text",
                header=header,
                footer=footer,
            )

        if self.verbose:
            print(f"  [Split] {strategy.value}: {len(paragraphs)} paragraphs, "
                  f"{dropped} dropped without text", file=sys.stderr)
            for p in paragraphs:
                print(f"    {p.original_index + 1:>4}. {format_text_preview(p.display_text, 60)}",
                      file=sys.stderr)

        return SplitResult(
            header=header,
            footer=footer,
            paragraphs=paragraphs,
            gaps=gaps,
            strategy=strategy,
            dropped_count=dropped,
            namespaces=namespaces,
        )
