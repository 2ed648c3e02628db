"""
Django management command to import a site-audit CSV as Wagtail pages.

Each CSV row becomes a copy of a template page, with its title, slug, hero
heading and SEO metadata taken from the mapped columns. The row's Address
URL decides where in the page tree the copy is created: /about/team is
created under the page imported (or already existing) with slug 'about'.

Usage:
    python manage.py import_seo_csv ./crawl.csv --template 12 \\
        --map Address=hierarchy.address --map Slug=entry.slug --map "Title 1"=entry.title
    python manage.py import_seo_csv ./crawl.csv --template 12 --mapping-file mapping.yaml --preview
    python manage.py import_seo_csv ./crawl.csv --template 12 --mapping-file mapping.yaml --dry-run

Mapping files are YAML, either a bare {header: target} dict or wrapped as
{field_mappings: {header: target}}.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from content_import.csv_parser import CsvParseError, parse_csv_file
from content_import.field_mappings import get_available_field_mappings, validate_field_mappings
from content_import.importer import (
    ImportDriver,
    ImportResult,
    ImportTargetError,
    PreviewDriver,
    resolve_import_targets,
)


class Command(BaseCommand):
    help = 'Import rows of a CSV export as Wagtail pages copied from a template page'

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.dry_run = False
        self.verbose = False

    def add_arguments(self, parser):
        parser.add_argument(
            'csv_path',
            nargs='?',
            type=str,
            help='CSV file to import (first line holds the headers)'
        )
        parser.add_argument(
            '--template',
            type=int,
            help='ID of the page every imported page is copied from'
        )
        parser.add_argument(
            '--map',
            action='append',
            default=[],
            metavar='HEADER=TARGET',
            help='Map a CSV header to a target field (repeatable)'
        )
        parser.add_argument(
            '--mapping-file',
            type=str,
            help='YAML file of CSV header -> target field mappings'
        )
        parser.add_argument(
            '--parent',
            type=int,
            help='ID of the page top-level rows are created under'
        )
        parser.add_argument(
            '--skip-first-row',
            action='store_true',
            help='Leave out the first data row (usually the homepage)'
        )
        parser.add_argument(
            '--preview',
            action='store_true',
            help='Show the pages that would be created without saving anything'
        )
        parser.add_argument(
            '--limit',
            type=int,
            default=None,
            help='Number of pages shown by --preview'
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Run the full import and roll it back afterwards'
        )
        parser.add_argument(
            '--verbose',
            action='store_true',
            help='Show detailed progress information'
        )
        parser.add_argument(
            '--list-fields',
            action='store_true',
            help='List the target fields a CSV header can be mapped to and exit'
        )

    def handle(self, *args, **options):
        self.dry_run = options['dry_run']
        self.verbose = options['verbose']

        if options['list_fields']:
            self.print_available_fields()
            return

        if not options['csv_path']:
            raise CommandError("A CSV file path is required")
        if not options['template']:
            raise CommandError("--template is required")

        field_mappings = self.load_field_mappings(options['mapping_file'], options['map'])
        errors = validate_field_mappings(field_mappings)
        if errors:
            raise CommandError("Invalid field mappings:\n  " + "\n  ".join(errors))

        try:
            csv_data = parse_csv_file(Path(options['csv_path']))
        except CsvParseError as e:
            raise CommandError(str(e))

        try:
            template, parent = resolve_import_targets(options['template'], options['parent'])
        except ImportTargetError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(
            f"{'[DRY RUN] ' if self.dry_run else ''}Importing {len(csv_data.rows)} rows "
            f"from {options['csv_path']} using template '{template.title}'"
        ))
        self.log_detail(f"Headers: {', '.join(csv_data.headers)}")
        self.log_detail(f"Field mappings: {field_mappings}")
        if parent is not None:
            self.log_info(f"Top-level rows go under: {parent.title} (ID: {parent.id})")

        parent_id = parent.id if parent is not None else None

        if options['preview']:
            previews = PreviewDriver().preview_entries(
                template, csv_data.rows, field_mappings,
                limit=options['limit'],
                skip_first_row=options['skip_first_row'],
                explicit_parent_id=parent_id,
            )
            self.print_previews(previews, options['limit'] or settings.SEO_IMPORT_PREVIEW_LIMIT)
            return

        driver = ImportDriver()
        try:
            with transaction.atomic():
                result = driver.import_entries(
                    template, csv_data.rows, field_mappings,
                    skip_first_row=options['skip_first_row'],
                    explicit_parent_id=parent_id,
                )
                if self.dry_run:
                    raise DryRunRollback(result)
        except DryRunRollback as rollback:
            result = rollback.result
            self.stdout.write(self.style.WARNING("\n[DRY RUN] Rolling back transaction"))

        self.print_result(result)

    # =========================================================================
    # Mapping loading
    # =========================================================================

    def load_field_mappings(self, mapping_file: Optional[str], map_options: List[str]) -> Dict[str, str]:
        """Merge the mapping file (if any) with --map options; --map wins."""
        field_mappings: Dict[str, str] = {}

        if mapping_file:
            data = self.load_yaml(Path(mapping_file))
            if isinstance(data, dict) and 'field_mappings' in data:
                data = data['field_mappings']
            if not isinstance(data, dict):
                raise CommandError(f"Mapping file must contain a header -> target mapping: {mapping_file}")
            field_mappings.update({str(k): str(v) for k, v in data.items()})

        for option in map_options:
            header, separator, target = option.partition('=')
            if not separator or not header.strip() or not target.strip():
                raise CommandError(f"Invalid --map value '{option}', expected HEADER=TARGET")
            field_mappings[header.strip()] = target.strip()

        if not field_mappings:
            raise CommandError("No field mappings given. Use --map or --mapping-file.")

        return field_mappings

    def load_yaml(self, path: Path) -> Any:
        """Load a YAML file."""
        if not path.exists():
            raise CommandError(f"Mapping file not found: {path}")

        try:
            with open(path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise CommandError(f"Error loading {path}: {e}")

    # =========================================================================
    # Output
    # =========================================================================

    def print_available_fields(self):
        self.stdout.write("Available target fields:")
        for target, config in get_available_field_mappings().items():
            required = ' (required)' if config['required'] else ''
            self.stdout.write(f"  {target:<20} {config['label']}{required}")

    def print_previews(self, previews: List[Dict], limit: int):
        self.stdout.write(f"\n=== Preview ({len(previews)} entries, limit {limit}) ===")
        for preview in previews:
            indent = '  ' * max(preview['depth'] - 1, 0)
            self.stdout.write(f"{indent}- {preview['title']} [{preview['slug']}]")
            self.log_detail(f"{indent}    url: {preview['url']}")
            self.log_detail(f"{indent}    hero: {preview['hero_title']}")
            self.log_detail(f"{indent}    description: {preview['seo_description']}")

    def print_result(self, result: ImportResult):
        self.stdout.write("\n=== Import Summary ===")
        self.stdout.write(f"  Imported: {result.imported_count}")

        if result.errors:
            self.stdout.write(f"\nErrors: {len(result.errors)}")
            for error in result.errors[:10]:
                self.stdout.write(f"  - {error}")
            if len(result.errors) > 10:
                self.stdout.write(f"  ... and {len(result.errors) - 10} more")

        if result.success:
            self.stdout.write(self.style.SUCCESS(f"\n{'[DRY RUN] ' if self.dry_run else ''}{result.message}"))
        else:
            self.stdout.write(self.style.ERROR(f"\n{result.message}"))

    def log_info(self, message: str):
        """Log an informational message."""
        self.stdout.write(f"ℹ️  {message}")

    def log_detail(self, message: str):
        """Log a detailed message (only in verbose mode)."""
        if self.verbose:
            self.stdout.write(f"  {message}")


class DryRunRollback(Exception):
    """Exception to trigger rollback in dry-run mode."""

    def __init__(self, result: ImportResult):
        super().__init__("Dry run rollback")
        self.result = result
