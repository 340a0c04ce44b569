#!/usr/bin/env python3
"""
ABOUTME: Tests for the reorder_document.py command-line interface
ABOUTME: Argument parsing helpers, listing, reorder/move/set-text output and exit codes
"""

import json
import subprocess
import sys

import pytest
from docx import Document

from _docx_reorder_helpers import (  # noqa: E402
    _scripts_dir,
    build_package,
    document_xml,
    mark_encrypted,
    para,
)

from reorder_document import (  # noqa: E402
    default_output_path,
    main,
    parse_move,
    parse_order,
    parse_set_text,
)


def _write_docx(tmp_path, *texts, name='memo.docx'):
    path = tmp_path / name
    path.write_bytes(build_package(document_xml(*(para(t) for t in texts))))
    return path


def _texts(path):
    return [p.text for p in Document(str(path)).paragraphs if p.text]


def _run(monkeypatch, *argv):
    monkeypatch.setattr(sys, 'argv', ['reorder_document.py', *map(str, argv)])
    return main()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ('DOCX_REORDER_TEXT_EDIT_MODE', 'DOCX_REORDER_STRATEGY',
                 'DOCX_REORDER_PRUNE_RELS', 'DOCX_REORDER_VERBOSE'):
        monkeypatch.delenv(name, raising=False)


class TestArgumentHelpers:
    """Tests for the 1-based position parsers"""

    def test_parse_order(self):
        assert parse_order('3, 1,2', 3) == [2, 0, 1]

    def test_parse_order_out_of_range(self):
        with pytest.raises(ValueError, match="out of range"):
            parse_order('1,4', 3)

    def test_parse_order_not_numeric(self):
        with pytest.raises(ValueError, match="Invalid paragraph position"):
            parse_order('1,b', 3)

    def test_parse_move(self):
        assert parse_move('4:1', 4) == (3, 0)

    def test_parse_move_malformed(self):
        with pytest.raises(ValueError, match="FROM:TO"):
            parse_move('4-1', 4)

    def test_parse_set_text_keeps_equals_in_text(self):
        assert parse_set_text('2=a = b', 2) == (1, 'a = b')

    def test_parse_set_text_malformed(self):
        with pytest.raises(ValueError, match="N=TEXT"):
            parse_set_text('Heading', 2)

    def test_default_output_path(self, tmp_path):
        assert default_output_path(tmp_path / 'memo.docx') == tmp_path / 'reordered_memo.docx'


class TestMain:
    """Tests for main() run in-process"""

    def test_reverse_writes_default_output(self, tmp_path, monkeypatch):
        source = _write_docx(tmp_path, 'One', 'Two', 'Three')
        assert _run(monkeypatch, source, '--reverse') == 0
        assert _texts(tmp_path / 'reordered_memo.docx') == ['Three', 'Two', 'One']

    def test_order_with_output(self, tmp_path, monkeypatch):
        source = _write_docx(tmp_path, 'One', 'Two', 'Three')
        output = tmp_path / 'out.docx'
        assert _run(monkeypatch, source, '--order', '2,3,1', '-o', output) == 0
        assert _texts(output) == ['Two', 'Three', 'One']

    def test_move(self, tmp_path, monkeypatch):
        source = _write_docx(tmp_path, 'One', 'Two', 'Three', 'Four')
        output = tmp_path / 'out.docx'
        assert _run(monkeypatch, source, '--move', '4:1', '-o', output) == 0
        assert _texts(output) == ['Four', 'One', 'Two', 'Three']

    def test_set_text_splice(self, tmp_path, monkeypatch):
        source = _write_docx(tmp_path, 'One', 'Two')
        output = tmp_path / 'out.docx'
        code = _run(monkeypatch, source, '--set-text', '2=Second',
                    '--text-edit-mode', 'splice', '-o', output)
        assert code == 0
        assert _texts(output) == ['One', 'Second']

    def test_set_text_display_only_not_exported(self, tmp_path, monkeypatch):
        source = _write_docx(tmp_path, 'One', 'Two')
        output = tmp_path / 'out.docx'
        assert _run(monkeypatch, source, '--set-text', '2=Second', '-o', output) == 0
        assert _texts(output) == ['One', 'Two']

    def test_list_without_edits_writes_nothing(self, tmp_path, monkeypatch, capsys):
        source = _write_docx(tmp_path, 'One', 'Two')
        assert _run(monkeypatch, source, '--list') == 0
        out = capsys.readouterr().out
        assert '1. One' in out
        assert '2. Two' in out
        assert not (tmp_path / 'reordered_memo.docx').exists()

    def test_list_json(self, tmp_path, monkeypatch, capsys):
        source = _write_docx(tmp_path, 'One', 'Two')
        assert _run(monkeypatch, source, '--list', '--json', '--reverse', '--dry-run') == 0
        rows = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        assert [(r['index'], r['original_index'], r['text']) for r in rows] == [
            (1, 2, 'Two'), (2, 1, 'One')
        ]
        assert all(r['id'].startswith('para-') for r in rows)

    def test_dry_run(self, tmp_path, monkeypatch, capsys):
        source = _write_docx(tmp_path, 'One', 'Two')
        assert _run(monkeypatch, source, '--reverse', '--dry-run') == 0
        assert '[DRY RUN]' in capsys.readouterr().err
        assert not (tmp_path / 'reordered_memo.docx').exists()

    def test_verbose_logs_to_stderr(self, tmp_path, monkeypatch, capsys):
        source = _write_docx(tmp_path, 'One', 'Two')
        assert _run(monkeypatch, source, '--reverse', '-v', '--dry-run') == 0
        err = capsys.readouterr().err
        assert '[Load] memo.docx' in err
        assert '[Split] structural: 2 paragraphs' in err

    def test_rejects_non_docx_extension(self, tmp_path, monkeypatch, capsys):
        source = tmp_path / 'memo.txt'
        source.write_bytes(build_package(document_xml(para('One'))))
        assert _run(monkeypatch, source, '--reverse') == 1
        assert 'Error:' in capsys.readouterr().err

    def test_invalid_package(self, tmp_path, monkeypatch, capsys):
        source = tmp_path / 'broken.docx'
        source.write_bytes(b'not a zip')
        assert _run(monkeypatch, source, '--reverse') == 1
        assert 'Not a valid DOCX archive' in capsys.readouterr().err

    def test_encrypted_package(self, tmp_path, monkeypatch, capsys):
        source = tmp_path / 'locked.docx'
        source.write_bytes(mark_encrypted(build_package(document_xml(para('One')))))
        assert _run(monkeypatch, source, '--reverse') == 1
        assert 'Error: Encrypted archive entry' in capsys.readouterr().err

    def test_missing_file(self, tmp_path, monkeypatch):
        assert _run(monkeypatch, tmp_path / 'absent.docx', '--reverse') == 1

    def test_bad_position(self, tmp_path, monkeypatch, capsys):
        source = _write_docx(tmp_path, 'One', 'Two')
        assert _run(monkeypatch, source, '--order', '1,2,3') == 1
        assert 'out of range' in capsys.readouterr().err

    def test_incomplete_order(self, tmp_path, monkeypatch, capsys):
        source = _write_docx(tmp_path, 'One', 'Two', 'Three')
        assert _run(monkeypatch, source, '--order', '1,2') == 1
        assert 'missing ids' in capsys.readouterr().err

    def test_unknown_strategy_is_usage_error(self, tmp_path, monkeypatch):
        source = _write_docx(tmp_path, 'One')
        with pytest.raises(SystemExit) as excinfo:
            _run(monkeypatch, source, '--strategy', 'regex')
        assert excinfo.value.code == 2


def test_script_exit_codes(tmp_path):
    """The script reports success and failure through its exit code"""
    source = _write_docx(tmp_path, 'One', 'Two')
    script = _scripts_dir / 'reorder_document.py'

    ok = subprocess.run([sys.executable, str(script), str(source), '--reverse'],
                        capture_output=True, text=True)
    assert ok.returncode == 0, ok.stderr
    assert _texts(tmp_path / 'reordered_memo.docx') == ['Two', 'One']

    broken = tmp_path / 'broken.docx'
    broken.write_bytes(b"garbage")
    failed = subprocess.run([sys.executable, str(script), str(broken)],
                            capture_output=True, text=True)
    assert failed.returncode == 1
    assert 'Error:' in failed.stderr
