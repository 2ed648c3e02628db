"""
Entry store: every read and write the importer makes against the Wagtail
page tree goes through WagtailEntryStore.

The hierarchy resolver and the duplicator only ever talk to this object, so
tests can hand them a Mock instead of a populated page tree.
"""

import copy
import logging
from typing import NamedTuple, Optional

from django.db import models
from wagtail.models import Page

from .models import ContentSectionPage

logger = logging.getLogger(__name__)


class EntryRef(NamedTuple):
    """Lightweight reference to an existing entry."""
    id: int
    section_id: Optional[int]


class WagtailEntryStore:
    """Entry store backed by Wagtail pages."""

    # Tree position, publishing state and identity belong to the new page,
    # never to the template it is copied from.
    EXCLUDED_COPY_FIELDS = {
        'id', 'path', 'depth', 'numchild', 'url_path', 'content_type',
        'draft_title', 'live', 'has_unpublished_changes',
        'first_published_at', 'last_published_at', 'latest_revision_created_at',
        'live_revision', 'latest_revision', 'locked', 'locked_at', 'locked_by',
        'go_live_at', 'expire_at', 'expired', 'translation_key', 'alias_of',
    }

    def find_by_slug(self, slug: str) -> Optional[EntryRef]:
        """Find the first entry with ``slug``, live or not."""
        page = Page.objects.filter(slug=slug).order_by('path').first()
        if page is None:
            return None
        section = self.get_section(page)
        return EntryRef(id=page.id, section_id=section.id if section else None)

    def get_entry(self, entry_id) -> Optional[Page]:
        page = Page.objects.filter(pk=entry_id).first()
        return page.specific if page else None

    def get_section(self, page: Page) -> Optional[Page]:
        """
        The section root of ``page``: its nearest ContentSectionPage ancestor,
        or its parent page when it does not live inside a section.
        """
        section = ContentSectionPage.objects.ancestor_of(page).order_by('-depth').first()
        if section is not None:
            return section
        return page.get_parent()

    def duplicate_template(self, template: Page) -> Page:
        """Return an unsaved page of the template's type carrying its field values."""
        template = template.specific
        page = template.specific_class()
        excluded = self.EXCLUDED_COPY_FIELDS | set(getattr(Page, 'default_exclude_fields_in_copy', []))

        for field in template._meta.concrete_fields:
            if field.primary_key or field.name in excluded:
                continue
            if isinstance(field, models.OneToOneField) and field.remote_field.parent_link:
                continue
            try:
                value = field.value_from_object(template)
                if value is not None:
                    setattr(page, field.attname, copy.deepcopy(value))
            except Exception as e:
                logger.warning("Failed to copy field '%s' from template %s: %s", field.name, template.pk, e)

        page.live = True
        return page

    def save(self, page: Page, parent_id=None, section: Optional[Page] = None) -> int:
        """
        Create ``page`` under ``parent_id`` (or under ``section`` when it has
        no parent) and publish it. Validation errors propagate.
        """
        if parent_id:
            parent = Page.objects.get(pk=parent_id)
            logger.info("Setting parent entry ID: %s", parent_id)
        elif section is not None:
            parent = section
        else:
            raise ValueError("Entry has neither a parent nor a section to be created in")

        parent.add_child(instance=page)
        page.save_revision().publish()
        return page.id
