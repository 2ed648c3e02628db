"""
Tests for field mapping validation and application.
"""
from types import SimpleNamespace

from django.test import TestCase

from content_import.field_mappings import (
    MappingTarget,
    apply_field_mappings,
    build_hero_title_html,
    find_source_field,
    get_available_field_mappings,
    validate_field_mappings,
)


def make_page(**kwargs):
    defaults = {
        'title': 'Template',
        'slug': 'template',
        'hero_title': '',
        'seo_title': '',
        'search_description': 'Template description',
    }
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class MappingCatalogueTest(TestCase):
    """Tests for the available mapping catalogue."""

    def test_catalogue_lists_every_target(self):
        catalogue = get_available_field_mappings()
        self.assertEqual(set(catalogue), {target.value for target in MappingTarget})

    def test_slug_and_title_are_required(self):
        catalogue = get_available_field_mappings()
        required = {key for key, config in catalogue.items() if config['required']}
        self.assertEqual(required, {'entry.slug', 'entry.title'})

    def test_catalogue_is_a_copy(self):
        get_available_field_mappings()['entry.slug']['required'] = False
        self.assertTrue(get_available_field_mappings()['entry.slug']['required'])

    def test_parse_unknown_target(self):
        self.assertIsNone(MappingTarget.parse('entry.body'))
        self.assertEqual(MappingTarget.parse('seo.title'), MappingTarget.SEO_TITLE)


class ValidateFieldMappingsTest(TestCase):
    """Tests for validate_field_mappings."""

    def test_valid_mapping(self):
        mappings = {'Slug': 'entry.slug', 'Title 1': 'entry.title', 'Address': 'hierarchy.address'}
        self.assertEqual(validate_field_mappings(mappings), [])

    def test_unknown_target(self):
        mappings = {'Slug': 'entry.slug', 'Title': 'entry.title', 'Body': 'entry.body'}
        self.assertEqual(validate_field_mappings(mappings), ['Invalid target field: entry.body'])

    def test_missing_required_targets(self):
        errors = validate_field_mappings({'Address': 'hierarchy.address'})
        self.assertIn('Required field not mapped: Entry Slug', errors)
        self.assertIn('Required field not mapped: Entry Title', errors)

    def test_find_source_field(self):
        mappings = {'Slug': 'entry.slug', 'Title': 'entry.title'}
        self.assertEqual(find_source_field(mappings, MappingTarget.TITLE), 'Title')
        self.assertIsNone(find_source_field(mappings, MappingTarget.HERO_TITLE))


class HeroTitleTest(TestCase):
    """Tests for build_hero_title_html."""

    def test_replaces_text_and_keeps_markup(self):
        html = build_hero_title_html('<h2 class="hero">Old heading</h2>', 'New heading')
        self.assertEqual(html, '<h2 class="hero">New heading</h2>')

    def test_replaces_every_text_run(self):
        html = build_hero_title_html('<h1><b>Old</b> heading</h1>', 'New')
        self.assertEqual(html, '<h1><b>New</b>New</h1>')

    def test_empty_template_wraps_in_h1(self):
        self.assertEqual(build_hero_title_html('', 'Hello'), '<h1>Hello</h1>')
        self.assertEqual(build_hero_title_html('   ', 'Hello'), '<h1>Hello</h1>')

    def test_markup_without_text_wraps_in_h1(self):
        self.assertEqual(build_hero_title_html('<h1></h1>', 'Hello'), '<h1>Hello</h1>')

    def test_value_is_escaped(self):
        html = build_hero_title_html('<h1>Old</h1>', 'Fish & <Chips>')
        self.assertEqual(html, '<h1>Fish &amp; &lt;Chips&gt;</h1>')


class ApplyFieldMappingsTest(TestCase):
    """Tests for apply_field_mappings."""

    MAPPINGS = {
        'Address': 'hierarchy.address',
        'Slug': 'entry.slug',
        'Title 1': 'entry.title',
        'H1-1': 'entry.hero_title',
        'Meta Title': 'seo.title',
        'Meta Description 1': 'seo.description',
    }

    def test_applies_every_target(self):
        page = make_page(hero_title='<h1>Template</h1>')
        row = {
            'Address': 'https://x.com/about',
            'Slug': 'About Us',
            'Title 1': 'About us',
            'H1-1': 'Who we are',
            'Meta Title': 'About | Example',
            'Meta Description 1': 'All about us',
        }
        apply_field_mappings(page, row, self.MAPPINGS)
        self.assertEqual(page.slug, 'about-us')
        self.assertEqual(page.title, 'About us')
        self.assertEqual(page.hero_title, '<h1>Who we are</h1>')
        self.assertEqual(page.seo_title, 'About | Example')
        self.assertEqual(page.search_description, 'All about us')

    def test_missing_cells_keep_template_values(self):
        page = make_page()
        apply_field_mappings(page, {'Title 1': 'About'}, self.MAPPINGS)
        self.assertEqual(page.title, 'About')
        self.assertEqual(page.slug, 'template')
        self.assertEqual(page.search_description, 'Template description')

    def test_empty_description_keeps_template_value(self):
        page = make_page()
        apply_field_mappings(page, {'Meta Description 1': ''}, self.MAPPINGS)
        self.assertEqual(page.search_description, 'Template description')

    def test_unknown_target_is_ignored(self):
        page = make_page()
        apply_field_mappings(page, {'Body': 'text'}, {'Body': 'entry.body'})
        self.assertEqual(page.title, 'Template')
