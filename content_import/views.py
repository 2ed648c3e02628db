"""
JSON endpoints for running CSV imports from the admin.

Each request carries the CSV upload together with the import options, so no
state is kept between requests:

    POST csv_file=<file> template_id=12 field_mappings='{"Address": "hierarchy.address", ...}'
         [skip_first_row=true] [parent_id=7] [limit=20]

Responses follow one shape: {'success': bool, ...} with an 'error' message
when the request could not be processed.
"""

import json
import logging

from django.conf import settings
from django.contrib.admin.views.decorators import staff_member_required
from django.http import JsonResponse
from django.views.decorators.http import require_GET, require_POST

from .csv_parser import CsvParseError, parse_csv_file
from .field_mappings import get_available_field_mappings, validate_field_mappings
from .importer import ImportDriver, ImportTargetError, PreviewDriver, resolve_import_targets

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = ('text/csv', 'text/plain', 'application/csv', 'application/vnd.ms-excel')


class ImportRequestError(Exception):
    """Raised when an import request is missing or has invalid parameters."""
    pass


def _error(message, status=400):
    return JsonResponse({'success': False, 'error': message}, status=status)


def _parse_bool(value) -> bool:
    return str(value).lower() in ('1', 'true', 'yes', 'on')


def _parse_id(value, name):
    if value in (None, ''):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ImportRequestError(f'{name} must be a number')


def _parse_import_request(request):
    """Read and validate the parameters shared by preview and import."""
    upload = request.FILES.get('csv_file')
    if upload is None:
        raise ImportRequestError('No file uploaded')

    if upload.content_type not in ALLOWED_CONTENT_TYPES and not upload.name.lower().endswith('.csv'):
        raise ImportRequestError('Invalid file type. Please upload a CSV file.')

    if upload.size > settings.SEO_IMPORT_MAX_UPLOAD_BYTES:
        raise ImportRequestError('CSV file is too large')

    template_id = _parse_id(request.POST.get('template_id'), 'template_id')
    if template_id is None:
        raise ImportRequestError('Missing template_id')
    parent_id = _parse_id(request.POST.get('parent_id'), 'parent_id')

    try:
        field_mappings = json.loads(request.POST.get('field_mappings', ''))
    except ValueError:
        raise ImportRequestError('field_mappings must be a JSON object')
    if not isinstance(field_mappings, dict):
        raise ImportRequestError('field_mappings must be a JSON object')

    errors = validate_field_mappings(field_mappings)
    if errors:
        raise ImportRequestError('; '.join(errors))

    try:
        csv_data = parse_csv_file(upload)
    except CsvParseError as e:
        raise ImportRequestError(f'Unable to parse CSV file: {e}')

    template, parent = resolve_import_targets(template_id, parent_id)

    return {
        'template': template,
        'parent_id': parent.id if parent is not None else None,
        'rows': csv_data.rows,
        'field_mappings': field_mappings,
        'skip_first_row': _parse_bool(request.POST.get('skip_first_row', False)),
    }


@staff_member_required
@require_GET
def field_mappings_view(request):
    """List the target fields a CSV header can be mapped to."""
    return JsonResponse({'success': True, 'fields': get_available_field_mappings()})


@staff_member_required
@require_POST
def preview_view(request):
    """Describe the first entries an import would create, in tree order."""
    try:
        params = _parse_import_request(request)
        limit = int(request.POST.get('limit') or settings.SEO_IMPORT_PREVIEW_LIMIT)
    except (ImportRequestError, ImportTargetError) as e:
        return _error(str(e))
    except ValueError:
        return _error('limit must be a number')

    entries = PreviewDriver().preview_entries(
        params['template'], params['rows'], params['field_mappings'],
        limit=limit,
        skip_first_row=params['skip_first_row'],
        explicit_parent_id=params['parent_id'],
    )
    return JsonResponse({'success': True, 'entries': entries})


@staff_member_required
@require_POST
def import_view(request):
    """Import every row of the uploaded CSV."""
    try:
        params = _parse_import_request(request)
    except (ImportRequestError, ImportTargetError) as e:
        return _error(str(e))

    result = ImportDriver().import_entries(
        params['template'], params['rows'], params['field_mappings'],
        skip_first_row=params['skip_first_row'],
        explicit_parent_id=params['parent_id'],
    )
    logger.info("Import via admin by %s: %s", request.user, result.message)
    return JsonResponse(result.to_dict())
