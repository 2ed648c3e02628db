"""
Entry duplication: turn a template entry plus one CSV row into a new entry.

The new entry starts as a copy of the template's field values, then the row's
mapped cells override title, slug, hero heading and SEO metadata. Imports
persist it through the entry store; previews only describe it.
"""

import logging
from typing import Dict, Optional

from wagtail.models import Page

from .field_mappings import MappingTarget, apply_field_mappings, find_source_field

logger = logging.getLogger(__name__)


class EntryDuplicator:
    """Builds, saves and previews entries duplicated from a template."""

    def __init__(self, store):
        self.store = store

    def build_entry(self, template: Page, row: Dict[str, str], field_mappings: Dict[str, str]) -> Page:
        """Return an unsaved copy of ``template`` with the row's mappings applied."""
        page = self.store.duplicate_template(template)
        apply_field_mappings(page, row, field_mappings)
        return page

    def duplicate_and_populate(
        self,
        template: Page,
        row: Dict[str, str],
        field_mappings: Dict[str, str],
        parent_id: Optional[int] = None,
        section: Optional[Page] = None
    ) -> Optional[int]:
        """Create and publish a new entry; returns its id."""
        page = self.build_entry(template, row, field_mappings)
        if section is None:
            section = self.store.get_section(template)
        return self.store.save(page, parent_id=parent_id, section=section)

    def create_preview(self, template: Page, row: Dict[str, str], field_mappings: Dict[str, str]) -> Optional[Dict]:
        """Describe the entry a row would create, or None if it cannot be built."""
        try:
            page = self.build_entry(template, row, field_mappings)
        except Exception as e:
            logger.error("Preview entry creation failed: %s", e, exc_info=True)
            return None

        return {
            'title': page.title,
            'slug': page.slug,
            'hero_title': getattr(page, 'hero_title', '') or '',
            'seo_description': self.get_seo_description(page, row, field_mappings),
        }

    def get_seo_description(self, page: Page, row: Dict[str, str], field_mappings: Dict[str, str]) -> str:
        """The mapped description cell, else whatever the built entry carries."""
        csv_field = find_source_field(field_mappings, MappingTarget.SEO_DESCRIPTION)
        if csv_field is not None and row.get(csv_field) is not None:
            return row[csv_field]
        return page.search_description or ''
