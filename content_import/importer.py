"""
Import and preview drivers.

Both drivers build the hierarchy map once, before anything is persisted, and
then walk one of its orderings row by row:

- ImportDriver walks creation order (shallowest first), creating one entry
  per row and caching each new entry's slug so deeper rows can find it as
  their parent. A failing row is recorded and skipped; it never aborts the
  run and entries created before it are kept.
- PreviewDriver walks tree order and describes the first ``limit`` entries
  that would be created, without saving anything.

Rows are processed strictly one at a time: a row's parent may be the entry
created for an earlier row of the same run.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction
from wagtail.models import Page

from .duplicator import EntryDuplicator
from .hierarchy import HierarchyResolver
from .store import WagtailEntryStore

logger = logging.getLogger(__name__)


class ImportTargetError(Exception):
    """Raised when the template or parent entry of an import is unusable."""
    pass


@dataclass
class ImportResult:
    """Outcome of an import run."""
    imported_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.imported_count > 0

    @property
    def message(self) -> str:
        if self.imported_count > 0:
            return f"Successfully imported {self.imported_count} entries"
        return "No entries were imported"

    def record_error(self, row_number: int, message: str):
        self.errors.append(f"Row {row_number}: {message}")

    def to_dict(self) -> Dict:
        return {
            'success': self.success,
            'message': self.message,
            'imported_count': self.imported_count,
            'errors': list(self.errors),
        }


def describe_error(error: Exception) -> str:
    """A one-line, operator-readable description of a row failure."""
    if isinstance(error, ValidationError):
        return '; '.join(error.messages)
    return str(error) or error.__class__.__name__


def resolve_import_targets(template_id, parent_id=None, store=None) -> Tuple[Page, Optional[Page]]:
    """
    Load the template entry and the optional explicit parent entry.

    The parent must be the template's section root or sit beneath it, since
    imported entries are created in the template's section.
    """
    store = store or WagtailEntryStore()

    template = store.get_entry(template_id)
    if template is None:
        raise ImportTargetError("Template entry not found")

    if not parent_id:
        return template, None

    parent = store.get_entry(parent_id)
    if parent is None:
        raise ImportTargetError("Selected Parent Entry not found")

    template_section = store.get_section(template)
    parent_section = store.get_section(parent)
    in_section = template_section is not None and (
        parent.pk == template_section.pk or parent.is_descendant_of(template_section)
    )
    if not in_section:
        raise ImportTargetError(
            f"Parent Entry '{parent.title}' is in section "
            f"'{parent_section.title if parent_section else 'none'}', but Template Entry "
            f"'{template.title}' is in section '{template_section.title if template_section else 'none'}'. "
            f"They must be in the same section."
        )

    return template, parent


class ImportDriver:
    """Creates one entry per CSV row, parents first."""

    def __init__(self, store=None, resolver: Optional[HierarchyResolver] = None,
                 duplicator: Optional[EntryDuplicator] = None):
        self.store = store or WagtailEntryStore()
        self.resolver = resolver or HierarchyResolver(self.store)
        self.duplicator = duplicator or EntryDuplicator(self.store)

    def import_entries(
        self,
        template: Page,
        rows: List[Dict[str, str]],
        field_mappings: Dict[str, str],
        skip_first_row: bool = False,
        explicit_parent_id: Optional[int] = None
    ) -> ImportResult:
        logger.info(
            "Starting import for %s rows, skip_first_row: %s, parent: %s",
            len(rows), skip_first_row, explicit_parent_id or 'none'
        )
        self.resolver.clear_cache()

        hierarchy_map = self.resolver.build_hierarchy_map(rows, field_mappings)
        row_indexes = list(range(len(rows)))
        if skip_first_row:
            logger.info("Skipping first row (homepage)")
            hierarchy_map.pop(0, None)
            row_indexes = row_indexes[1:]

        section = self.store.get_section(template)
        result = ImportResult()

        for row_index in self.resolver.get_creation_order(hierarchy_map, row_indexes):
            row_number = row_index + 1
            entry = hierarchy_map.get(row_index)

            try:
                with transaction.atomic():
                    parent_id = self.resolver.get_parent_entry_id_for_row(hierarchy_map, row_index)
                    if parent_id is None:
                        parent_id = explicit_parent_id
                    if entry is not None:
                        logger.info("Processing entry: %s (depth: %s)", entry.slug, entry.depth)
                        entry.parent_entry_id = parent_id

                    entry_id = self.duplicator.duplicate_and_populate(
                        template, rows[row_index], field_mappings, parent_id, section
                    )
            except Exception as e:
                result.record_error(row_number, describe_error(e))
                logger.error("Import error on row %s: %s", row_number, e, exc_info=True)
                continue

            if not entry_id:
                result.record_error(row_number, "Failed to create entry")
                logger.error("Failed to create entry for row %s", row_number)
                continue

            result.imported_count += 1
            if entry is not None:
                entry.processed = True
                self.resolver.cache_entry_slug(entry.slug, entry_id)
            logger.info("Successfully created entry for row %s (ID: %s)", row_number, entry_id)

        logger.info("Import completed: %s", result.to_dict())
        return result


class PreviewDriver:
    """Describes the entries an import would create, in tree order."""

    def __init__(self, store=None, resolver: Optional[HierarchyResolver] = None,
                 duplicator: Optional[EntryDuplicator] = None):
        self.store = store or WagtailEntryStore()
        self.resolver = resolver or HierarchyResolver(self.store)
        self.duplicator = duplicator or EntryDuplicator(self.store)

    def preview_entries(
        self,
        template: Page,
        rows: List[Dict[str, str]],
        field_mappings: Dict[str, str],
        limit: Optional[int] = None,
        skip_first_row: bool = False,
        explicit_parent_id: Optional[int] = None
    ) -> List[Dict]:
        if limit is None:
            limit = settings.SEO_IMPORT_PREVIEW_LIMIT

        logger.info("Starting preview for template %s with %s rows", template.pk, len(rows))

        hierarchy_map = self.resolver.build_hierarchy_map(rows, field_mappings)
        row_indexes = list(range(len(rows)))
        if skip_first_row:
            logger.info("Skipping first row (homepage)")
            hierarchy_map.pop(0, None)
            row_indexes = row_indexes[1:]

        unmapped = [index for index in row_indexes if index not in hierarchy_map]
        tree_order = self.resolver.get_tree_ordered_hierarchy_map(hierarchy_map, extra_top_level=unmapped)

        previews = []
        for row_index, entry in tree_order.items():
            if len(previews) >= limit:
                break

            preview = self.duplicator.create_preview(template, rows[row_index], field_mappings)
            if preview is None:
                logger.warning("Failed to create preview for row %s", row_index + 1)
                continue

            top_level = entry is None or entry.is_top_level
            preview['depth'] = entry.depth if entry else 0
            preview['parent_slug'] = entry.parent_slug if entry else None
            preview['url'] = entry.url if entry else ''
            preview['parent_id'] = explicit_parent_id if top_level else None
            previews.append(preview)

        logger.info("Created %s previews", len(previews))
        return previews
