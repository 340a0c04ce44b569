#!/usr/bin/env python3
"""
ABOUTME: In-memory editing session for one loaded document
ABOUTME: Owns paragraph order, header/footer snapshot and auxiliary parts; reorder and text edits
"""

import sys
from dataclasses import dataclass, field, replace
from typing import Dict, Iterator, List, Sequence, Tuple

from xml_utils import sanitize_xml_string

from .common import (
    InvalidPermutation,
    NoSession,
    Paragraph,
    SessionState,
    SplitResult,
    TextEditMode,
    UnknownId,
    format_text_preview,
)
from .config import ReorderSettings
from .text_splice import splice_paragraph_text


@dataclass
class DocumentSession:
    """
    Paragraph session of one loaded document.

    A session is created by a successful load, mutated by reorder/move/
    set_text, and consumed by exactly one export. Paragraph records are
    immutable and keyed by id; reordering only replaces the id sequence.

    header_markup + gaps/paragraphs interleaved + footer_markup rebuilds
    document.xml; with identity order it equals the source markup minus
    the paragraphs dropped for having no text.
    """
    header_markup: str = ''
    footer_markup: str = ''
    auxiliary_parts: Dict[str, bytes] = field(default_factory=dict)
    gaps: List[str] = field(default_factory=list)
    namespaces: Dict[str, str] = field(default_factory=dict)
    settings: ReorderSettings = field(default_factory=ReorderSettings)
    state: SessionState = SessionState.EMPTY
    source_name: str = ''
    _records: Dict[str, Paragraph] = field(default_factory=dict, repr=False)
    _order: List[str] = field(default_factory=list, repr=False)

    @classmethod
    def from_split(cls, split: SplitResult, auxiliary_parts: Dict[str, bytes],
                   settings: ReorderSettings, source_name: str = '') -> 'DocumentSession':
        """Build a loaded session from a split result."""
        return cls(
            header_markup=split.header,
            footer_markup=split.footer,
            auxiliary_parts=dict(auxiliary_parts),
            gaps=list(split.gaps),
            namespaces=dict(split.namespaces),
            settings=settings,
            state=SessionState.LOADED,
            source_name=source_name,
            _records={p.id: p for p in split.paragraphs},
            _order=[p.id for p in split.paragraphs],
        )

    # ------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------

    @property
    def paragraphs(self) -> Tuple[Paragraph, ...]:
        return self.current_order()

    def current_order(self) -> Tuple[Paragraph, ...]:
        """Snapshot of the paragraphs in their current order."""
        return tuple(self._records[pid] for pid in self._order)

    def ids(self) -> List[str]:
        return list(self._order)

    def get(self, paragraph_id: str) -> Paragraph:
        try:
            return self._records[paragraph_id]
        except KeyError:
            raise UnknownId(f"Unknown paragraph id: {paragraph_id}") from None

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Paragraph]:
        return iter(self.current_order())

    @property
    def is_loaded(self) -> bool:
        return self.state == SessionState.LOADED

    # ------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------

    def _require_loaded(self, operation: str):
        if self.state != SessionState.LOADED:
            raise NoSession(f"Cannot {operation}: session is {self.state.value}, not loaded")

    def reorder(self, new_order: Sequence[str]):
        """
        Replace the paragraph order.

        Args:
            new_order: Paragraph ids in the desired order; must be a
                permutation of the current ids

        Raises:
            InvalidPermutation: On missing, duplicate or foreign ids
            NoSession: If the session is not loaded
        """
        self._require_loaded('reorder')
        new_order = list(new_order)

        seen = set()
        duplicates = []
        for pid in new_order:
            if pid in seen and pid not in duplicates:
                duplicates.append(pid)
            seen.add(pid)
        foreign = [pid for pid in new_order if pid not in self._records]
        missing = [pid for pid in self._order if pid not in seen]

        problems = []
        if duplicates:
            problems.append(f"duplicate ids: {', '.join(duplicates)}")
        if foreign:
            problems.append(f"unknown ids: {', '.join(foreign)}")
        if missing:
            problems.append(f"missing ids: {', '.join(missing)}")
        if problems:
            raise InvalidPermutation("New order is not a permutation of the paragraphs (" +
                                     "; ".join(problems) + ")")

        self._order = new_order
        if self.settings.verbose:
            print(f"  [Reorder] {len(new_order)} paragraphs reordered", file=sys.stderr)

    def move(self, paragraph_id: str, target_id: str):
        """
        Move a paragraph to the position currently held by another one.

        Drag-and-drop semantics: paragraphs between the two positions shift
        by one towards the vacated slot.
        """
        self._require_loaded('move')
        self.get(paragraph_id)
        self.get(target_id)
        new_order = list(self._order)
        old_index = new_order.index(paragraph_id)
        new_index = new_order.index(target_id)
        new_order.insert(new_index, new_order.pop(old_index))
        self.reorder(new_order)

    def set_text(self, paragraph_id: str, new_text: str):
        """
        Edit the text of a paragraph.

        With TextEditMode.DISPLAY_ONLY only display_text changes; the
        paragraph markup, and therefore the exported document, is untouched.
        With TextEditMode.SPLICE the markup is regenerated by splicing the
        text into the paragraph's runs. In both modes display_text is the
        new text with XML-illegal characters removed and outer whitespace trimmed.

        Raises:
            UnknownId: If paragraph_id is not in the session
            NoSession: If the session is not loaded
            TextEditFailure: If splicing cannot parse the fragment or find its text runs
        """
        self._require_loaded('edit text')
        paragraph = self.get(paragraph_id)
        display_text = sanitize_xml_string(new_text).strip()

        if self.settings.text_edit_mode == TextEditMode.SPLICE:
            markup = splice_paragraph_text(paragraph.markup, new_text, self.namespaces)
            updated = replace(paragraph, markup=markup, display_text=display_text)
        else:
            updated = replace(paragraph, display_text=display_text)
            if self.settings.verbose:
                print(f"  [Warning] Display-only edit of {paragraph_id} will not be exported: "
                      f"'{format_text_preview(new_text)}'", file=sys.stderr)

        self._records[paragraph_id] = updated

    def mark_exported(self):
        self._require_loaded('export')
        self.state = SessionState.EXPORTED
