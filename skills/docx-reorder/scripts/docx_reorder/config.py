"""Runtime settings for loading, editing and exporting documents."""

import os
from dataclasses import dataclass, replace
from typing import Optional

from .common import ParagraphStrategy, TextEditMode

DEFAULT_APPLICATION_NAME = 'Document Editor'

_TRUE_VALUES = ('1', 'true', 'yes', 'on')
_FALSE_VALUES = ('', '0', 'false', 'no', 'off')


def _parse_bool(name: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE_VALUES:
        return True
    if lowered in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got '{value}'")


def parse_text_edit_mode(value: str) -> TextEditMode:
    """Parse a text edit mode name such as 'splice' or 'display_only'."""
    normalized = value.strip().lower().replace('-', '_')
    try:
        return TextEditMode(normalized)
    except ValueError:
        choices = ', '.join(m.value for m in TextEditMode)
        raise ValueError(f"Unknown text edit mode '{value}' (expected one of: {choices})") from None


def parse_strategy(value: str) -> ParagraphStrategy:
    """Parse a paragraph strategy name such as 'structural' or 'boundary'."""
    normalized = value.strip().lower()
    try:
        return ParagraphStrategy(normalized)
    except ValueError:
        choices = ', '.join(s.value for s in ParagraphStrategy)
        raise ValueError(f"Unknown paragraph strategy '{value}' (expected one of: {choices})") from None


@dataclass(frozen=True)
class ReorderSettings:
    """
    Settings for one load/export cycle.

    text_edit_mode decides whether set_text only changes the displayed text
    (the markup is exported as loaded) or splices the new text into the
    paragraph's runs. prune_relationships drops document relationships whose
    internal target part is not written to the output package.
    """
    text_edit_mode: TextEditMode = TextEditMode.DISPLAY_ONLY
    strategy: ParagraphStrategy = ParagraphStrategy.STRUCTURAL
    application_name: str = DEFAULT_APPLICATION_NAME
    creator: str = DEFAULT_APPLICATION_NAME
    prune_relationships: bool = False
    verbose: bool = False

    @classmethod
    def from_env(cls, **overrides) -> 'ReorderSettings':
        """
        Build settings from DOCX_REORDER_* environment variables.

        Environment variables:
        - DOCX_REORDER_TEXT_EDIT_MODE: display_only (default) or splice
        - DOCX_REORDER_STRATEGY: structural (default) or boundary
        - DOCX_REORDER_APPLICATION: Application name written to docProps/app.xml
        - DOCX_REORDER_CREATOR: dc:creator written to docProps/core.xml
        - DOCX_REORDER_PRUNE_RELS: drop relationships to parts not exported
        - DOCX_REORDER_VERBOSE: print progress to stderr

        Keyword overrides with a non-None value win over the environment.

        Raises:
            ValueError: If a variable holds an unknown value
        """
        settings = cls()
        mode = os.getenv('DOCX_REORDER_TEXT_EDIT_MODE')
        if mode:
            settings = replace(settings, text_edit_mode=parse_text_edit_mode(mode))
        strategy = os.getenv('DOCX_REORDER_STRATEGY')
        if strategy:
            settings = replace(settings, strategy=parse_strategy(strategy))
        application = os.getenv('DOCX_REORDER_APPLICATION')
        if application:
            settings = replace(settings, application_name=application)
        creator = os.getenv('DOCX_REORDER_CREATOR')
        if creator:
            settings = replace(settings, creator=creator)
        prune = os.getenv('DOCX_REORDER_PRUNE_RELS')
        if prune is not None:
            settings = replace(settings, prune_relationships=_parse_bool('DOCX_REORDER_PRUNE_RELS', prune))
        verbose = os.getenv('DOCX_REORDER_VERBOSE')
        if verbose is not None:
            settings = replace(settings, verbose=_parse_bool('DOCX_REORDER_VERBOSE', verbose))

        explicit = {k: v for k, v in overrides.items() if v is not None}
        return replace(settings, **explicit) if explicit else settings


def resolve_settings(settings: Optional[ReorderSettings]) -> ReorderSettings:
    """Return settings as given, or defaults when None."""
    return settings if settings is not None else ReorderSettings()
