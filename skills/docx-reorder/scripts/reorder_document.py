#!/usr/bin/env python3
"""
ABOUTME: Command-line paragraph reordering for Word documents
ABOUTME: Lists paragraphs, applies order/move/text edits and writes the reordered .docx
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Tuple

from docx_reorder import (
    DocumentSession,
    ReorderError,
    ReorderSettings,
    export_document,
    load_document,
)
from docx_reorder.common import format_text_preview
from docx_reorder.config import parse_strategy, parse_text_edit_mode


def parse_order(value: str, count: int) -> List[int]:
    """
    Parse "3,1,2" (1-based positions) into 0-based indexes.

    Raises:
        ValueError: On non-numeric or out-of-range positions
    """
    positions = []
    for token in value.split(','):
        token = token.strip()
        if not token:
            continue
        if not token.isdigit():
            raise ValueError(f"Invalid paragraph position in --order: '{token}'")
        position = int(token)
        if not 1 <= position <= count:
            raise ValueError(f"Paragraph position {position} out of range (1-{count})")
        positions.append(position - 1)
    return positions


def parse_move(value: str, count: int) -> Tuple[int, int]:
    """Parse "FROM:TO" (1-based positions) into 0-based indexes."""
    source, sep, target = value.partition(':')
    if not sep or not source.strip().isdigit() or not target.strip().isdigit():
        raise ValueError(f"Invalid --move value '{value}' (expected FROM:TO)")
    indexes = (int(source) - 1, int(target) - 1)
    for index in indexes:
        if not 0 <= index < count:
            raise ValueError(f"Paragraph position {index + 1} out of range (1-{count})")
    return indexes


def parse_set_text(value: str, count: int) -> Tuple[int, str]:
    """Parse "N=TEXT" (1-based position) into (0-based index, text)."""
    position, sep, text = value.partition('=')
    if not sep or not position.strip().isdigit():
        raise ValueError(f"Invalid --set-text value '{value}' (expected N=TEXT)")
    index = int(position) - 1
    if not 0 <= index < count:
        raise ValueError(f"Paragraph position {index + 1} out of range (1-{count})")
    return index, text


def default_output_path(input_path: Path) -> Path:
    """reordered_<name>.docx next to the input file."""
    return input_path.with_name(f"reordered_{input_path.name}")


def print_paragraphs(session: DocumentSession, as_json: bool = False):
    for index, paragraph in enumerate(session.current_order(), 1):
        if as_json:
            print(json.dumps({
                'index': index,
                'id': paragraph.id,
                'original_index': paragraph.original_index + 1,
                'para_id': paragraph.source_para_id,
                'text': paragraph.display_text,
            }, ensure_ascii=False))
        else:
            print(f"{index:>4}. {format_text_preview(paragraph.display_text, 70)}")


def apply_edits(session: DocumentSession, args) -> bool:
    """Apply --order, --reverse, --move and --set-text; return True if anything changed."""
    changed = False
    count = len(session)

    if args.order:
        original = session.current_order()
        positions = parse_order(args.order, count)
        session.reorder([original[i].id for i in positions])
        changed = True

    if args.reverse:
        session.reorder(list(reversed(session.ids())))
        changed = True

    for move in args.move or []:
        source, target = parse_move(move, count)
        ids = session.ids()
        session.move(ids[source], ids[target])
        changed = True

    for edit in args.set_text or []:
        index, text = parse_set_text(edit, count)
        session.set_text(session.ids()[index], text)
        changed = True

    return changed


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Reorder the paragraphs of a Word document"
    )
    parser.add_argument('docx_file', help='Input Word document (.docx)')
    parser.add_argument('-o', '--output', help='Output file path (default: reordered_<name>.docx)')
    parser.add_argument('--list', action='store_true',
                        help='List paragraphs (after edits) instead of only writing output')
    parser.add_argument('--json', action='store_true',
                        help='With --list, print one JSON object per paragraph')
    parser.add_argument('--order',
                        help='New order as comma-separated 1-based positions, e.g. 3,1,2')
    parser.add_argument('--reverse', action='store_true', help='Reverse the paragraph order')
    parser.add_argument('--move', action='append', metavar='FROM:TO',
                        help='Move paragraph FROM to position TO (repeatable)')
    parser.add_argument('--set-text', action='append', metavar='N=TEXT',
                        help='Replace the text of paragraph N (repeatable)')
    parser.add_argument('--text-edit-mode', type=parse_text_edit_mode,
                        help='display_only (edits not exported) or splice (edits written into runs)')
    parser.add_argument('--strategy', type=parse_strategy,
                        help='Paragraph strategy: structural (default) or boundary')
    parser.add_argument('--prune-rels', action='store_true', default=None,
                        help='Drop document relationships to parts not written to the output')
    parser.add_argument('--dry-run', action='store_true',
                        help='Apply edits but do not write the output file')
    parser.add_argument('-v', '--verbose', action='store_true', default=None,
                        help='Verbose output')

    args = parser.parse_args()

    try:
        input_path = Path(args.docx_file)
        if input_path.suffix.lower() != '.docx':
            raise ValueError(f"Input must be a .docx file: {input_path}")

        settings = ReorderSettings.from_env(
            text_edit_mode=args.text_edit_mode,
            strategy=args.strategy,
            prune_relationships=args.prune_rels,
            verbose=args.verbose,
        )
        session = load_document(input_path.read_bytes(), settings, source_name=input_path.name)

        changed = apply_edits(session, args)

        if args.list:
            print_paragraphs(session, as_json=args.json)
            if not changed:
                return 0

        output_path = Path(args.output) if args.output else default_output_path(input_path)
        if args.dry_run:
            print(f"[DRY RUN] Would save to: {output_path}", file=sys.stderr)
            return 0

        data = export_document(session)
        output_path.write_bytes(data)
        print(f"Saved to: {output_path}", file=sys.stderr)
        return 0

    except (ReorderError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
