#!/usr/bin/env python3
"""
ABOUTME: Regenerates a paragraph fragment after its text was edited
ABOUTME: Splices new text into the existing w:t runs so run formatting survives
"""

from typing import Dict, List, Tuple

from lxml import etree

from xml_utils import needs_space_preserve, sanitize_xml_string

from .common import NS, W_T, XML_NS, TextEditFailure

FRAGMENT_WRAPPER = 'docx-reorder-fragment'

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)


def _wrap(markup: str, namespaces: Dict[str, str]) -> str:
    decls = []
    for prefix, uri in sorted(namespaces.items()):
        uri = uri.replace('&', '&amp;').replace('"', '&quot;')
        decls.append(f'xmlns="{uri}"' if not prefix else f'xmlns:{prefix}="{uri}"')
    if 'w' not in namespaces:
        decls.append(f'xmlns:w="{NS["w"]}"')
    return f'<{FRAGMENT_WRAPPER} {" ".join(decls)}>{markup}</{FRAGMENT_WRAPPER}>'


def _unwrap(wrapper) -> str:
    serialized = etree.tostring(wrapper, encoding='unicode')
    return serialized[serialized.index('>') + 1:serialized.rindex('</')]


def common_affixes(old: str, new: str) -> Tuple[int, int]:
    """
    Length of the common prefix and common suffix of two strings.

    The suffix never overlaps the prefix in either string.
    """
    limit = min(len(old), len(new))
    prefix = 0
    while prefix < limit and old[prefix] == new[prefix]:
        prefix += 1
    suffix = 0
    while (suffix < limit - prefix
           and old[len(old) - 1 - suffix] == new[len(new) - 1 - suffix]):
        suffix += 1
    return prefix, suffix


def distribute_text(segments: List[str], new_text: str) -> List[str]:
    """
    Map an edited string back onto the original run segments.

    Unchanged leading and trailing text keeps its segment; the replaced
    middle is inserted into the segment where the change begins (the last
    segment when text is only appended). Segments whose text was entirely
    replaced become empty.

    Args:
        segments: Text of each w:t element in document order
        new_text: Full replacement for ''.join(segments)

    Returns:
        New text for each segment; ''.join(result) == new_text
    """
    old_text = ''.join(segments)
    prefix, suffix = common_affixes(old_text, new_text)
    change_end = len(old_text) - suffix
    replacement = new_text[prefix:len(new_text) - suffix]

    anchor = len(segments) - 1
    offset = 0
    for i, segment in enumerate(segments):
        if offset + len(segment) > prefix:
            anchor = i
            break
        offset += len(segment)

    result = []
    offset = 0
    for i, segment in enumerate(segments):
        start, end = offset, offset + len(segment)
        offset = end
        kept_head = segment[:max(0, min(end, prefix) - start)]
        kept_tail = segment[max(0, change_end - start):] if end > change_end else ''
        result.append(kept_head + (replacement if i == anchor else '') + kept_tail)
    return result


def splice_paragraph_text(markup: str, new_text: str, namespaces: Dict[str, str]) -> str:
    """
    Replace the visible text of a paragraph fragment.

    Leading and trailing whitespace of the original run text is kept around
    the new text, since the displayed text is the trimmed form. The fragment
    is parsed with the document's namespace declarations in scope, so the
    serialized result carries no extra xmlns attributes.

    Args:
        markup: Paragraph fragment (<w:p>...</w:p>)
        new_text: New display text
        namespaces: prefix -> URI declarations in scope at w:body

    Returns:
        Regenerated paragraph fragment

    Raises:
        TextEditFailure: If the fragment cannot be parsed or holds no w:t element
    """
    new_text = sanitize_xml_string(new_text)
    try:
        wrapper = etree.fromstring(_wrap(markup, namespaces), _PARSER)
    except etree.XMLSyntaxError as e:
        raise TextEditFailure(f"Paragraph markup cannot be parsed for text editing: {e}") from e

    text_elems = list(wrapper.iter(W_T))
    if not text_elems:
        raise TextEditFailure("Paragraph has no text runs to edit")

    segments = [t.text or '' for t in text_elems]
    old_text = ''.join(segments)
    stripped = old_text.strip()
    lead = old_text[:len(old_text) - len(old_text.lstrip())] if stripped else ''
    trail = old_text[len(old_text.rstrip()):] if stripped else ''

    for t, text in zip(text_elems, distribute_text(segments, lead + new_text + trail)):
        if text == (t.text or ''):
            continue
        t.text = text
        if needs_space_preserve(text):
            t.set(f'{{{XML_NS}}}space', 'preserve')

    return _unwrap(wrapper)
