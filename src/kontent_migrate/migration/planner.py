"""Dependency ordering of import items."""

from typing import Dict, Iterable, List

from ..models.base import EntityKind
from ..models.source import ImportItem, ImportSource
from ..utils.logging import get_logger

# Creation order of kinds. Every kind appears after all kinds its payload can
# reference: types point at taxonomies and snippets, items at types, variants
# at items, languages and assets.
KIND_PRECEDENCE: List[EntityKind] = [
    EntityKind.LANGUAGE,
    EntityKind.TAXONOMY,
    EntityKind.ASSET,
    EntityKind.CONTENT_TYPE_SNIPPET,
    EntityKind.CONTENT_TYPE,
    EntityKind.CONTENT_ITEM,
    EntityKind.LANGUAGE_VARIANT,
]


class ImportPlanner:
    """Computes the processing order of a snapshot."""

    def __init__(self, resolve_intra_kind_references: bool = False):
        """Initialize planner.

        Args:
            resolve_intra_kind_references: Sort content types by the types
                their elements allow instead of keeping source order
        """
        self.resolve_intra_kind_references = resolve_intra_kind_references
        self.logger = get_logger('ImportPlanner')

    def plan(self, source: ImportSource) -> List[ImportItem]:
        """Build the ordered item list for a snapshot.

        Args:
            source: Import source

        Returns:
            Items in creation order
        """
        items = [
            ImportItem.of(entity)
            for kind in KIND_PRECEDENCE
            for entity in source.entities(kind)
        ]
        return self.order(items)

    def order(self, items: Iterable[ImportItem]) -> List[ImportItem]:
        """Order items by kind precedence, keeping source order within a kind.

        Args:
            items: Items in source order

        Returns:
            Ordered items
        """
        rank = {kind: position for position, kind in enumerate(KIND_PRECEDENCE)}
        ordered = sorted(items, key=lambda item: rank[item.kind])

        if self.resolve_intra_kind_references:
            ordered = self._sort_content_types(ordered)

        self.logger.debug(f'Planned {len(ordered)} items')
        return ordered

    def _sort_content_types(self, items: List[ImportItem]) -> List[ImportItem]:
        positions = [
            i for i, item in enumerate(items) if item.kind == EntityKind.CONTENT_TYPE
        ]
        if len(positions) < 2:
            return items

        types = [items[i] for i in positions]
        sorted_types = topological_sort(types)

        result = list(items)
        for position, item in zip(positions, sorted_types):
            result[position] = item
        return result


def topological_sort(items: List[ImportItem]) -> List[ImportItem]:
    """Sort content types so allowed types are created first.

    Kahn's algorithm picking the earliest ready type in source order. When
    only cycles remain, the earliest remaining type is emitted and its
    references to later types are left for deferred patching.

    Args:
        items: Content type items in source order

    Returns:
        Items in dependency order
    """
    ids = {item.entity.source_id for item in items}
    dependencies: Dict[str, set] = {}
    for item in items:
        entity = item.entity
        dependencies[entity.source_id] = {
            type_id
            for type_id in entity.referenced_type_ids()
            if type_id in ids and type_id != entity.source_id
        }

    remaining = list(items)
    emitted: set = set()
    result: List[ImportItem] = []

    while remaining:
        ready = next(
            (
                item
                for item in remaining
                if dependencies[item.entity.source_id] <= emitted
            ),
            None,
        )
        if ready is None:
            ready = remaining[0]
            get_logger('ImportPlanner').info(
                f'Reference cycle at content type {ready.title}, '
                f'deferring its forward references'
            )
        remaining.remove(ready)
        emitted.add(ready.entity.source_id)
        result.append(ready)

    return result
