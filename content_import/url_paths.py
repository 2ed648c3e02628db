"""
URL path parsing for hierarchy detection.

A site-audit export lists every page by its full address. The address path
tells us how deep the page sits and which slug its parent should carry:

    https://example.com/services/seo/audits
        segments    -> ('services', 'seo', 'audits')
        depth       -> 3
        slug        -> 'audits'
        parent_slug -> 'seo'
"""

from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlsplit, unquote


@dataclass(frozen=True)
class PathInfo:
    """Hierarchy information derived from a single URL."""
    segments: Tuple[str, ...] = ()
    depth: int = 0
    slug: Optional[str] = None
    parent_slug: Optional[str] = None
    full_path: str = ''


def parse_url_path(url) -> PathInfo:
    """
    Parse a URL (absolute or a bare path) into PathInfo.

    Scheme, host, query string and fragment are ignored. Empty components
    are discarded, so repeated, leading or trailing slashes never produce
    empty segments. The path is split before percent-escapes are decoded,
    so an encoded slash stays inside its segment. Never raises: anything
    unparsable is depth 0.
    """
    if not isinstance(url, str):
        return PathInfo()

    try:
        path = urlsplit(url.strip()).path
    except ValueError:
        return PathInfo()

    if not path or path == '/':
        return PathInfo(full_path=path)

    segments = tuple(unquote(segment) for segment in path.split('/') if segment)
    depth = len(segments)

    return PathInfo(
        segments=segments,
        depth=depth,
        slug=segments[-1] if segments else None,
        parent_slug=segments[-2] if depth > 1 else None,
        full_path=unquote(path),
    )
