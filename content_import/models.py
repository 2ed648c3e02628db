"""
SEO Import - Wagtail Models

Page types that CSV imports are built from. Any Wagtail page can serve as a
template entry; these are the types the site ships with:

- ContentSectionPage: a section root. Imported top-level entries are created
  directly beneath the section root of their template.
- ContentPage: a generic content page with a hero heading and body copy. SEO
  title and description use Wagtail's built-in ``seo_title`` and
  ``search_description`` promote fields.
"""

from django.db import models

from wagtail.models import Page
from wagtail.fields import RichTextField
from wagtail.admin.panels import FieldPanel
from wagtail.search import index


class ContentSectionPage(Page):
    """
    Root of a content section (e.g., "Services").
    Contains content pages, nested to any depth.
    """
    introduction = RichTextField(blank=True)

    content_panels = Page.content_panels + [
        FieldPanel('introduction'),
    ]

    subpage_types = ['content_import.ContentPage']

    def get_context(self, request):
        context = super().get_context(request)
        context['entries'] = self.get_children().live().specific()
        return context


class ContentPage(Page):
    """
    A content entry. CSV imports duplicate a template ContentPage and
    override its title, slug, hero heading and SEO metadata per row.
    """
    hero_title = RichTextField(
        blank=True,
        features=['h1', 'h2', 'bold', 'italic'],
        help_text="Heading HTML shown in the page hero"
    )
    introduction = models.TextField(blank=True)
    body = RichTextField(blank=True)

    content_panels = Page.content_panels + [
        FieldPanel('hero_title'),
        FieldPanel('introduction'),
        FieldPanel('body'),
    ]

    search_fields = Page.search_fields + [
        index.SearchField('introduction'),
        index.SearchField('body'),
    ]

    parent_page_types = ['content_import.ContentSectionPage', 'content_import.ContentPage']
    subpage_types = ['content_import.ContentPage']
