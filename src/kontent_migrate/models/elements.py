"""Reference discovery inside element definitions and element values.

Content types and snippets describe elements; language variants (and rich
text components) carry element values. Both shapes embed references to other
entities, and both are walked here so that every contract exposes its
reference slots through the same code.
"""

from typing import Any, Dict, Iterator, Optional, Sequence

from .base import EntityKind, PathSegment, ReferenceMode, ReferenceSlot

# Element definition fields holding lists of content type references.
ALLOWED_TYPE_FIELDS = ('allowed_content_types', 'allowed_item_link_types')

_ITEM_VALUE_TYPES = ('modular_content', 'subpages')


def _codename_of(index: Any, kind: EntityKind, ref: Dict[str, Any]) -> Optional[str]:
    if ref.get('codename'):
        return ref['codename']
    if index is None or not ref.get('id'):
        return None
    return index.codename_of(kind, ref['id'])


def definition_slots(
    elements: Sequence[Dict[str, Any]],
    index: Any = None,
    content_groups: Optional[Sequence[Dict[str, Any]]] = None,
) -> Iterator[ReferenceSlot]:
    """Yield reference slots of content type / snippet element definitions.

    Args:
        elements: Element definitions
        index: Source index used to look up codenames
        content_groups: Content groups declared by the owning type

    Returns:
        Iterator over reference slots
    """
    group_codenames = {
        group['id']: group.get('codename')
        for group in content_groups or []
        if group.get('id')
    }

    for i, element in enumerate(elements):
        element_type = element.get('type')

        if element_type == 'taxonomy' and element.get('taxonomy_group'):
            yield ReferenceSlot(
                path=('elements', i, 'taxonomy_group'), kind=EntityKind.TAXONOMY
            )

        if element_type == 'snippet' and element.get('snippet'):
            yield ReferenceSlot(
                path=('elements', i, 'snippet'),
                kind=EntityKind.CONTENT_TYPE_SNIPPET,
            )

        for field in ALLOWED_TYPE_FIELDS:
            for j, ref in enumerate(element.get(field) or []):
                yield ReferenceSlot(
                    path=('elements', i, field, j),
                    kind=EntityKind.CONTENT_TYPE,
                    mode=ReferenceMode.CODENAME,
                    codename=_codename_of(index, EntityKind.CONTENT_TYPE, ref),
                )

        group_ref = element.get('content_group')
        if group_ref:
            yield ReferenceSlot(
                path=('elements', i, 'content_group'),
                mode=ReferenceMode.CODENAME,
                codename=group_ref.get('codename')
                or group_codenames.get(group_ref.get('id')),
            )


def value_slots(
    elements: Sequence[Dict[str, Any]],
    index: Any = None,
    prefix: Sequence[PathSegment] = ('elements',),
) -> Iterator[ReferenceSlot]:
    """Yield reference slots of element values (variants and components).

    Args:
        elements: Element values
        index: Source index used to look up element metadata
        prefix: Path of the element list inside the payload

    Returns:
        Iterator over reference slots
    """
    prefix = tuple(prefix)

    for i, element in enumerate(elements):
        base = prefix + (i,)
        element_ref = element.get('element') or {}
        info = index.resolve_element(element_ref) if index is not None else None

        yield ReferenceSlot(
            path=base + ('element',),
            mode=ReferenceMode.CODENAME,
            codename=element_ref.get('codename') or (info.codename if info else None),
        )

        value = element.get('value')
        element_type = info.type if info else None

        if element_type == 'rich_text':
            if isinstance(value, str):
                yield ReferenceSlot(path=base + ('value',), mode=ReferenceMode.RICH_TEXT)
            for k, component in enumerate(element.get('components') or []):
                component_base = base + ('components', k)
                type_ref = component.get('type') or {}
                yield ReferenceSlot(
                    path=component_base + ('type',),
                    kind=EntityKind.CONTENT_TYPE,
                    mode=ReferenceMode.CODENAME,
                    codename=_codename_of(index, EntityKind.CONTENT_TYPE, type_ref),
                )
                yield from value_slots(
                    component.get('elements') or [],
                    index,
                    prefix=component_base + ('elements',),
                )
            continue

        if not isinstance(value, list):
            continue

        for j, ref in enumerate(value):
            if not isinstance(ref, dict):
                continue
            path = base + ('value', j)

            if element_type == 'asset':
                yield ReferenceSlot(path=path, kind=EntityKind.ASSET)
            elif element_type in _ITEM_VALUE_TYPES:
                yield ReferenceSlot(path=path, kind=EntityKind.CONTENT_ITEM)
            elif element_type == 'taxonomy':
                yield ReferenceSlot(
                    path=path,
                    mode=ReferenceMode.CODENAME,
                    codename=ref.get('codename')
                    or (index.term_codename(ref.get('id')) if index else None),
                )
            elif element_type == 'multiple_choice':
                yield ReferenceSlot(
                    path=path,
                    mode=ReferenceMode.CODENAME,
                    codename=ref.get('codename') or info.options.get(ref.get('id')),
                )
            elif element_type is None and ref.get('id'):
                # Element not described by the snapshot; resolve by id alone.
                yield ReferenceSlot(path=path, kind=None)


def strip_definition_ids(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Drop server-assigned ids from a type or snippet create payload.

    Element, content group and option ids are regenerated by the target;
    references to them are expressed by codename instead.
    """
    result = {
        key: value
        for key, value in payload.items()
        if key not in ('id', 'last_modified')
    }
    result['elements'] = [
        _strip_element_ids(element) for element in payload.get('elements') or []
    ]
    if 'content_groups' in payload:
        result['content_groups'] = [
            {key: value for key, value in group.items() if key != 'id'}
            for group in payload['content_groups'] or []
        ]
    return result


def _strip_element_ids(element: Dict[str, Any]) -> Dict[str, Any]:
    stripped = {key: value for key, value in element.items() if key != 'id'}
    if element.get('options'):
        stripped['options'] = [
            {key: value for key, value in option.items() if key != 'id'}
            for option in element['options']
        ]
    return stripped
