#!/usr/bin/env python3
"""
ABOUTME: Tests for text splicing into paragraph runs
ABOUTME: Affix detection, distribution across w:t segments and fragment regeneration
"""

import pytest

from _docx_reorder_helpers import W14_NS, W_NS  # noqa: E402

from docx_reorder import ReorderError, TextEditFailure  # noqa: E402
from docx_reorder.text_splice import (  # noqa: E402
    common_affixes,
    distribute_text,
    splice_paragraph_text,
)

NAMESPACES = {'w': W_NS, 'w14': W14_NS}


class TestCommonAffixes:
    def test_identical(self):
        assert common_affixes('abc', 'abc') == (3, 0)

    def test_middle_change(self):
        assert common_affixes('Hello world', 'Hello there world') == (6, 5)

    def test_suffix_does_not_overlap_prefix(self):
        """'aa' -> 'aaa': the common part is counted once"""
        prefix, suffix = common_affixes('aa', 'aaa')
        assert prefix + suffix <= 2


class TestDistributeText:
    """Tests for mapping edited text back onto run segments"""

    def test_single_segment(self):
        assert distribute_text(['Alpha'], 'Omega') == ['Omega']

    def test_unchanged(self):
        assert distribute_text(['Hello ', 'world'], 'Hello world') == ['Hello ', 'world']

    def test_change_in_second_segment(self):
        assert distribute_text(['Hello ', 'world'], 'Hello there') == ['Hello ', 'there']

    def test_change_spanning_segments(self):
        result = distribute_text(['Red ', 'green ', 'blue'], 'Red yellow blue')
        assert ''.join(result) == 'Red yellow blue'
        assert result[0] == 'Red '
        assert result[2] == 'blue'

    def test_append(self):
        assert distribute_text(['Hello ', 'world'], 'Hello world!') == ['Hello ', 'world!']

    def test_delete_everything(self):
        assert distribute_text(['Hello ', 'world'], '') == ['', '']

    def test_empty_segments_preserved(self):
        result = distribute_text(['', 'Alpha', ''], 'Alpha Beta')
        assert len(result) == 3
        assert ''.join(result) == 'Alpha Beta'


class TestSpliceParagraphText:
    """Tests for regenerating a paragraph fragment with new text"""

    def test_replaces_single_run(self):
        markup = '<w:p><w:r><w:t>Alpha</w:t></w:r></w:p>'
        assert splice_paragraph_text(markup, 'Omega', NAMESPACES) == \
            '<w:p><w:r><w:t>Omega</w:t></w:r></w:p>'

    def test_keeps_formatting_of_unchanged_run(self):
        markup = ('<w:p><w:r><w:rPr><w:b/></w:rPr><w:t>Hello </w:t></w:r>'
                  '<w:r><w:t>world</w:t></w:r></w:p>')
        result = splice_paragraph_text(markup, 'Hello there', NAMESPACES)
        assert result == ('<w:p><w:r><w:rPr><w:b/></w:rPr><w:t>Hello </w:t></w:r>'
                          '<w:r><w:t>there</w:t></w:r></w:p>')

    def test_sets_space_preserve(self):
        markup = '<w:p><w:r><w:t>a</w:t></w:r><w:r><w:t>b</w:t></w:r></w:p>'
        result = splice_paragraph_text(markup, 'a c b', NAMESPACES)
        assert '<w:t xml:space="preserve"> c b</w:t>' in result

    def test_keeps_outer_whitespace(self):
        """Whitespace trimmed from the display text is restored around the edit"""
        markup = '<w:p><w:r><w:t xml:space="preserve">  Alpha  </w:t></w:r></w:p>'
        result = splice_paragraph_text(markup, 'Beta', NAMESPACES)
        assert '<w:t xml:space="preserve">  Beta  </w:t>' in result

    def test_no_namespace_declarations_added(self):
        markup = '<w:p w14:paraId="1A2B3C4D"><w:r><w:t>Alpha</w:t></w:r></w:p>'
        result = splice_paragraph_text(markup, 'Beta', NAMESPACES)
        assert 'xmlns' not in result
        assert result.startswith('<w:p w14:paraId="1A2B3C4D">')

    def test_escapes_markup_characters(self):
        markup = '<w:p><w:r><w:t>Alpha</w:t></w:r></w:p>'
        result = splice_paragraph_text(markup, 'R&D <v2>', NAMESPACES)
        assert '<w:t>R&amp;D &lt;v2&gt;</w:t>' in result

    def test_sanitizes_control_characters(self):
        markup = '<w:p><w:r><w:t>Alpha</w:t></w:r></w:p>'
        result = splice_paragraph_text(markup, 'Be\x00ta', NAMESPACES)
        assert '<w:t>Beta</w:t>' in result

    def test_w_prefix_declared_when_missing(self):
        """Fragments parse even when the namespace map is empty"""
        markup = '<w:p><w:r><w:t>Alpha</w:t></w:r></w:p>'
        assert splice_paragraph_text(markup, 'Beta', {}) == '<w:p><w:r><w:t>Beta</w:t></w:r></w:p>'

    def test_no_text_runs(self):
        with pytest.raises(TextEditFailure, match="no text runs"):
            splice_paragraph_text('<w:p><w:r><w:br/></w:r></w:p>', 'x', NAMESPACES)

    def test_unparseable_fragment(self):
        with pytest.raises(TextEditFailure, match="cannot be parsed"):
            splice_paragraph_text('<w:p><w:r><w:t>Alpha</w:r></w:p>', 'x', NAMESPACES)

    def test_failure_is_reorder_error(self):
        """Callers catching ReorderError also see splice failures"""
        with pytest.raises(ReorderError):
            splice_paragraph_text('<w:p/>', 'x', NAMESPACES)
