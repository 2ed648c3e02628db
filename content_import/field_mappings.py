"""
Field mappings: which CSV column populates which part of an imported page.

A field mapping is a plain dict of CSV header -> target identifier, e.g.::

    {
        'Address': 'hierarchy.address',
        'Slug': 'entry.slug',
        'Title 1': 'entry.title',
        'H1-1': 'entry.hero_title',
        'Meta Description 1': 'seo.description',
    }

Targets form a closed set (MappingTarget). Each target has one handler that
applies a cell value to an unsaved page. Identifiers outside the set are a
no-op for the duplicator and are reported by validate_field_mappings().
"""

import logging
import re
from enum import Enum
from typing import Callable, Dict, List, Optional

from django.utils.html import escape
from django.utils.text import slugify

logger = logging.getLogger(__name__)


class MappingTarget(str, Enum):
    """Every target a CSV column can be mapped to."""
    HIERARCHY_ADDRESS = 'hierarchy.address'
    SLUG = 'entry.slug'
    TITLE = 'entry.title'
    HERO_TITLE = 'entry.hero_title'
    SEO_TITLE = 'seo.title'
    SEO_DESCRIPTION = 'seo.description'

    @classmethod
    def parse(cls, value) -> Optional['MappingTarget']:
        """Return the target for an identifier, or None if it is unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


# Catalogue offered to whoever builds a mapping (CLI, admin UI).
AVAILABLE_FIELD_MAPPINGS = {
    MappingTarget.SLUG: {'label': 'Entry Slug', 'type': 'text', 'required': True},
    MappingTarget.TITLE: {'label': 'Entry Title', 'type': 'text', 'required': True},
    MappingTarget.HERO_TITLE: {'label': 'Hero Heading', 'type': 'text', 'required': False},
    MappingTarget.SEO_TITLE: {'label': 'SEO Meta Title', 'type': 'text', 'required': False},
    MappingTarget.SEO_DESCRIPTION: {'label': 'SEO Meta Description', 'type': 'text', 'required': False},
    MappingTarget.HIERARCHY_ADDRESS: {'label': 'Address (URL)', 'type': 'url', 'required': False},
}

TEXT_RUN_PATTERN = re.compile(r'>([^<]+)<')


def get_available_field_mappings() -> Dict[str, Dict]:
    """Return the mapping catalogue keyed by target identifier."""
    return {target.value: dict(config) for target, config in AVAILABLE_FIELD_MAPPINGS.items()}


def validate_field_mappings(mappings: Dict[str, str]) -> List[str]:
    """Return a list of problems with a mapping; empty when it is usable."""
    errors = []

    for csv_field, target_field in mappings.items():
        if MappingTarget.parse(target_field) is None:
            errors.append(f"Invalid target field: {target_field}")

    mapped = set(mappings.values())
    for target, config in AVAILABLE_FIELD_MAPPINGS.items():
        if config['required'] and target.value not in mapped:
            errors.append(f"Required field not mapped: {config['label']}")

    return errors


def find_source_field(mappings: Dict[str, str], target: MappingTarget) -> Optional[str]:
    """Return the first CSV header mapped to ``target``."""
    for csv_field, target_field in mappings.items():
        if target_field == target.value:
            return csv_field
    return None


# =============================================================================
# HANDLERS
# =============================================================================

def build_hero_title_html(existing_html: str, value: str) -> str:
    """
    Put ``value`` into the template's hero heading, keeping its markup.

    Every text run between tags is replaced by the escaped value. When the
    template has no heading HTML, or the HTML holds no text, the value is
    wrapped in an <h1>.
    """
    escaped = escape(value)

    if existing_html and existing_html.strip():
        new_html, replaced = TEXT_RUN_PATTERN.subn(lambda match: f'>{escaped}<', existing_html)
        if replaced:
            return new_html

    return f'<h1>{escaped}</h1>'


def _apply_slug(page, value: str):
    page.slug = slugify(value)


def _apply_title(page, value: str):
    page.title = value


def _apply_hero_title(page, value: str):
    existing_html = getattr(page, 'hero_title', '') or ''
    page.hero_title = build_hero_title_html(existing_html, value)
    logger.debug("Set hero_title: %s", page.hero_title)


def _apply_seo_title(page, value: str):
    page.seo_title = value


def _apply_seo_description(page, value: str):
    if value != '':
        page.search_description = value


def _ignore(page, value: str):
    """The address column only drives hierarchy detection."""


FIELD_HANDLERS: Dict[MappingTarget, Callable] = {
    MappingTarget.HIERARCHY_ADDRESS: _ignore,
    MappingTarget.SLUG: _apply_slug,
    MappingTarget.TITLE: _apply_title,
    MappingTarget.HERO_TITLE: _apply_hero_title,
    MappingTarget.SEO_TITLE: _apply_seo_title,
    MappingTarget.SEO_DESCRIPTION: _apply_seo_description,
}


def apply_field_mappings(page, row: Dict[str, str], mappings: Dict[str, str]):
    """Apply every mapped cell of ``row`` to ``page``. Missing cells are skipped."""
    for csv_field, target_field in mappings.items():
        if row.get(csv_field) is None:
            continue

        target = MappingTarget.parse(target_field)
        if target is None:
            logger.debug("Ignoring unknown target field %r for column %r", target_field, csv_field)
            continue

        FIELD_HANDLERS[target](page, row[csv_field])
