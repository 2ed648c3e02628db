"""
Hierarchy resolution for CSV imports.

Every CSV row carries a URL (the "address" column) and a slug. The URL's path
depth decides the order rows are created in and which already-created entry
becomes each row's parent:

    /                    depth 0   top-level
    /about               depth 1   top-level
    /about/team          depth 2   parent slug 'about'
    /about/team/leads    depth 3   parent slug 'team'

Two orderings are derived from the same hierarchy map:

- Creation order (get_sorted_hierarchy_map / get_creation_order): ascending
  depth, ties broken by row index. Parents are always created before their
  children, so a child's parent can be found in the slug cache.
- Tree order (get_tree_ordered_hierarchy_map): each top-level row followed by
  its descendants, depth-first. Used for previews, which read best as a tree.

Parent ids are resolved through a per-run slug cache first, then through the
entry store. A parent that cannot be found is never an error: the row is
created as a top-level entry instead.

Usage:
    resolver = HierarchyResolver(store)
    hierarchy_map = resolver.build_hierarchy_map(rows, field_mappings)
    for row_index, entry in resolver.get_sorted_hierarchy_map(hierarchy_map).items():
        parent_id = resolver.get_parent_entry_id_for_row(hierarchy_map, row_index)
        ...
        resolver.cache_entry_slug(entry.slug, new_entry_id)
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .field_mappings import MappingTarget, find_source_field
from .url_paths import PathInfo, parse_url_path

logger = logging.getLogger(__name__)


@dataclass
class HierarchyEntry:
    """Hierarchy state of one CSV row."""
    url: str
    slug: str
    path_info: PathInfo
    parent_entry_id: Optional[int] = None
    processed: bool = False

    @property
    def depth(self) -> int:
        return self.path_info.depth

    @property
    def parent_slug(self) -> Optional[str]:
        return self.path_info.parent_slug

    @property
    def is_top_level(self) -> bool:
        return self.depth <= 1 or not self.parent_slug


# Row index -> HierarchyEntry, iterated in the order it was built or sorted in.
HierarchyMap = Dict[int, HierarchyEntry]


def find_address_field(field_mappings: Dict[str, str]) -> Optional[str]:
    """
    The CSV column holding each row's URL: the column mapped to the
    hierarchy address target, or else any column named "address".
    """
    for csv_field, target_field in field_mappings.items():
        if target_field == MappingTarget.HIERARCHY_ADDRESS.value or csv_field.lower() == 'address':
            return csv_field
    return None


class HierarchyResolver:
    """
    Builds hierarchy maps and resolves parent entries for one import or
    preview run. The slug cache lives as long as the resolver; create a new
    resolver (or call clear_cache) for every run.
    """

    def __init__(self, store):
        self.store = store
        self.slug_cache: Dict[str, int] = {}

    # =========================================================================
    # Building and ordering
    # =========================================================================

    def build_hierarchy_map(self, rows: List[Dict[str, str]], field_mappings: Dict[str, str]) -> HierarchyMap:
        """Parse every row's address into a hierarchy map, shallowest first."""
        hierarchy_map: HierarchyMap = {}

        logger.info("Building hierarchy map with %s CSV rows", len(rows))

        address_field = find_address_field(field_mappings)
        if not address_field:
            logger.warning(
                "No 'Address' field found in CSV mappings. Available fields: %s",
                ', '.join(field_mappings.keys())
            )
            return hierarchy_map

        slug_field = find_source_field(field_mappings, MappingTarget.SLUG)
        if not slug_field:
            logger.warning("No slug field mapped. Hierarchy detection disabled.")
            return hierarchy_map

        for index, row in enumerate(rows):
            url = row.get(address_field)
            slug = row.get(slug_field)
            if not url or not slug:
                logger.warning(
                    "Skipping row %s: missing Address or Slug field. Available keys: %s",
                    index, ', '.join(row.keys())
                )
                continue

            path_info = parse_url_path(url)
            logger.debug(
                "Processing URL: %s -> Slug: %s, Depth: %s, Parent Slug: %s",
                url, slug, path_info.depth, path_info.parent_slug
            )
            hierarchy_map[index] = HierarchyEntry(url=url, slug=slug, path_info=path_info)

        hierarchy_map = self.get_sorted_hierarchy_map(hierarchy_map)

        logger.info("Built hierarchy map for %s entries (address field: %s)", len(hierarchy_map), address_field)
        return hierarchy_map

    def get_sorted_hierarchy_map(self, hierarchy_map: HierarchyMap) -> HierarchyMap:
        """Order by ascending depth, ties by row index. Safe to call repeatedly."""
        return {
            index: hierarchy_map[index]
            for index in sorted(hierarchy_map, key=lambda i: (hierarchy_map[i].depth, i))
        }

    def get_creation_order(self, hierarchy_map: HierarchyMap, row_indexes: Iterable[int]) -> List[int]:
        """
        Order every row to be created. Rows missing from the hierarchy map
        have no parent and count as depth 0.
        """
        def depth_of(index):
            entry = hierarchy_map.get(index)
            return entry.depth if entry else 0

        return sorted(row_indexes, key=lambda i: (depth_of(i), i))

    def get_tree_ordered_hierarchy_map(
        self,
        hierarchy_map: HierarchyMap,
        extra_top_level: Iterable[int] = ()
    ) -> Dict[int, Optional[HierarchyEntry]]:
        """
        Order entries as a tree: each top-level entry followed by its children
        (rows whose parent slug equals its slug), recursively.

        Entries whose parent slug never matches a reachable entry are left
        out. ``extra_top_level`` row indexes (rows outside the map) are placed
        among the top-level entries as depth 0, mapped to None.
        """
        top_level = []
        children_by_parent_slug = defaultdict(list)

        for index, entry in hierarchy_map.items():
            if entry.is_top_level:
                top_level.append((entry.depth, index))
            else:
                children_by_parent_slug[entry.parent_slug].append(index)

        top_level.extend((0, index) for index in extra_top_level if index not in hierarchy_map)
        top_level.sort()

        result: Dict[int, Optional[HierarchyEntry]] = {}
        self._build_tree_order(
            hierarchy_map, [index for _, index in top_level], children_by_parent_slug, result
        )
        return result

    def _build_tree_order(self, hierarchy_map, indexes, children_by_parent_slug, result):
        for index in indexes:
            if index in result:
                continue
            entry = hierarchy_map.get(index)
            result[index] = entry
            if entry is not None and entry.slug in children_by_parent_slug:
                self._build_tree_order(
                    hierarchy_map, children_by_parent_slug[entry.slug], children_by_parent_slug, result
                )

    # =========================================================================
    # Parent resolution
    # =========================================================================

    def get_parent_entry_id_for_row(self, hierarchy_map: HierarchyMap, row_index: int) -> Optional[int]:
        """
        Resolve the id of the entry a row should be created under.

        Returns None for rows outside the map, top-level rows, and rows whose
        parent slug cannot be found in the cache or the entry store.
        """
        entry = hierarchy_map.get(row_index)
        if entry is None:
            return None

        if entry.is_top_level:
            logger.info("Entry '%s' is top-level (depth: %s)", entry.slug, entry.depth)
            return None

        parent_slug = entry.parent_slug

        if parent_slug in self.slug_cache:
            parent_id = self.slug_cache[parent_slug]
            logger.info("Found parent '%s' (ID: %s) for entry '%s'", parent_slug, parent_id, entry.slug)
            return parent_id

        logger.info("Searching for parent slug '%s' in entry store", parent_slug)
        parent = self.store.find_by_slug(parent_slug)

        if parent is not None:
            self.slug_cache[parent_slug] = parent.id
            logger.info(
                "Found existing parent '%s' (ID: %s, Section: %s) for entry '%s'",
                parent_slug, parent.id, parent.section_id, entry.slug
            )
            return parent.id

        logger.warning(
            "Parent entry '%s' not found for entry '%s' - treating as top-level",
            parent_slug, entry.slug
        )
        return None

    def cache_entry_slug(self, slug: str, entry_id: int):
        """Make a freshly created entry findable as a parent by its slug."""
        self.slug_cache[slug] = entry_id
        logger.info("Cached entry '%s' with ID: %s", slug, entry_id)

    def clear_cache(self):
        self.slug_cache = {}
        logger.info("Cleared hierarchy cache")
