"""Shared fixtures: snapshot builders and an in-memory target client."""

import base64
from typing import Any, Dict, List, Optional, Set

import pytest

from kontent_migrate.api.exceptions import KontentValidationError
from kontent_migrate.config.config import Config
from kontent_migrate.models import ImportSource

WORKFLOW_STEP_ID = 'target-draft-step'


class FakeKontentClient:
    """Records every call and creates entities in memory.

    Entities whose codename (or file name) is listed in ``reject`` are
    refused with a validation error, the way the target refuses duplicates.
    """

    def __init__(self, reject: Optional[Set[str]] = None, connected: bool = True):
        self.reject = set(reject or [])
        self.connected = connected
        self.calls: List[tuple] = []
        self.created: Dict[str, Dict[str, Any]] = {}
        self.items_by_codename: Dict[str, str] = {}
        self.closed = False
        self._counter = 0

    def _new_id(self, prefix: str) -> str:
        self._counter += 1
        return f'{prefix}-target-{self._counter}'

    def _create(self, method: str, prefix: str, data: Dict[str, Any]) -> Dict[str, Any]:
        self.calls.append((method, data))
        if data.get('codename') in self.reject:
            raise KontentValidationError(
                f'The codename {data["codename"]} is already used', status_code=400
            )
        created = {**data, 'id': self._new_id(prefix)}
        self.created[created['id']] = created
        return created

    @property
    def methods(self) -> List[str]:
        return [method for method, _ in self.calls]

    def payloads(self, method: str) -> List[Any]:
        return [payload for name, payload in self.calls if name == method]

    async def add_language(self, data):
        return self._create('add_language', 'language', data)

    async def add_taxonomy(self, data):
        return self._create('add_taxonomy', 'taxonomy', data)

    async def upload_binary_file(self, filename, content_type, data):
        self.calls.append(
            ('upload_binary_file', {'filename': filename, 'content_type': content_type})
        )
        if filename in self.reject:
            raise KontentValidationError(f'File {filename} refused', status_code=400)
        return {'id': self._new_id('file'), 'type': 'internal'}

    async def add_asset(self, data):
        return self._create('add_asset', 'asset', data)

    async def add_content_type_snippet(self, data):
        return self._create('add_content_type_snippet', 'snippet', data)

    async def add_content_type(self, data):
        return self._create('add_content_type', 'type', data)

    async def add_content_item(self, data):
        created = self._create('add_content_item', 'item', data)
        self.items_by_codename[data['codename']] = created['id']
        return created

    async def upsert_language_variant(self, item_codename, language_codename, data):
        self.calls.append(
            (
                'upsert_language_variant',
                {'item': item_codename, 'language': language_codename, **data},
            )
        )
        if item_codename in self.reject:
            raise KontentValidationError(
                f'Variant of {item_codename} refused', status_code=400
            )
        return {
            'item': {'id': self.items_by_codename.get(item_codename)},
            'language': {'codename': language_codename},
            **data,
        }

    async def modify_content_type(self, type_id, operations):
        self.calls.append(('modify_content_type', {'id': type_id, 'ops': operations}))
        return {'id': type_id}

    async def modify_content_type_snippet(self, snippet_id, operations):
        self.calls.append(
            ('modify_content_type_snippet', {'id': snippet_id, 'ops': operations})
        )
        return {'id': snippet_id}

    def test_connection(self) -> bool:
        return self.connected

    def get_project_information(self) -> Dict[str, Any]:
        return {'name': 'Target project'}

    def close(self) -> None:
        self.closed = True


def language_data(**overrides) -> Dict[str, Any]:
    data = {
        'id': 'lang-en',
        'name': 'English',
        'codename': 'en',
        'is_active': True,
        'is_default': True,
        'fallback_language': {'id': 'lang-en'},
    }
    data.update(overrides)
    return data


def taxonomy_data(**overrides) -> Dict[str, Any]:
    data = {
        'id': 'tax-topics',
        'name': 'Topics',
        'codename': 'topics',
        'last_modified': '2024-01-01T00:00:00Z',
        'terms': [
            {
                'id': 'term-news',
                'name': 'News',
                'codename': 'news',
                'terms': [{'id': 'term-local', 'name': 'Local', 'codename': 'local', 'terms': []}],
            }
        ],
    }
    data.update(overrides)
    return data


def content_type_data(**overrides) -> Dict[str, Any]:
    data = {
        'id': 'type-article',
        'name': 'Article',
        'codename': 'article',
        'last_modified': '2024-01-01T00:00:00Z',
        'elements': [
            {'id': 'el-title', 'name': 'Title', 'codename': 'title', 'type': 'text'},
            {
                'id': 'el-topics',
                'name': 'Topics',
                'codename': 'topics',
                'type': 'taxonomy',
                'taxonomy_group': {'id': 'tax-topics'},
            },
            {'id': 'el-image', 'name': 'Image', 'codename': 'image', 'type': 'asset'},
            {'id': 'el-body', 'name': 'Body', 'codename': 'body', 'type': 'rich_text'},
        ],
    }
    data.update(overrides)
    return data


def content_item_data(**overrides) -> Dict[str, Any]:
    data = {
        'id': 'item-hello',
        'name': 'Hello world',
        'codename': 'hello_world',
        'type': {'id': 'type-article'},
        'collection': {'id': 'collection-default'},
    }
    data.update(overrides)
    return data


def language_variant_data(**overrides) -> Dict[str, Any]:
    data = {
        'item': {'id': 'item-hello'},
        'language': {'id': 'lang-en'},
        'workflow_step': {'id': 'source-published-step'},
        'elements': [
            {'element': {'id': 'el-title'}, 'value': 'Hello world'},
            {'element': {'id': 'el-topics'}, 'value': [{'id': 'term-local'}]},
            {'element': {'id': 'el-image'}, 'value': [{'id': 'asset-logo'}]},
            {
                'element': {'id': 'el-body'},
                'value': '<p>See <a data-asset-id="asset-logo" href="">logo</a></p>',
                'components': [],
            },
        ],
    }
    data.update(overrides)
    return data


def asset_data(**overrides) -> Dict[str, Any]:
    data = {
        'id': 'asset-logo',
        'file_name': 'logo.png',
        'title': 'Logo',
        'type': 'image/png',
        'size': 4,
        'folder': {'id': 'folder-1'},
        'descriptions': [{'language': {'id': 'lang-en'}, 'description': 'Our logo'}],
    }
    data.update(overrides)
    return data


def snapshot_data(include_asset: bool = False) -> Dict[str, Any]:
    """Export document with one entity of every kind except assets."""
    data: Dict[str, Any] = {
        'metadata': {'version': '1.0.0', 'projectId': 'source-project'},
        'validation': {},
        'data': {
            'languages': [language_data()],
            'taxonomies': [taxonomy_data()],
            'contentTypeSnippets': [],
            'contentTypes': [content_type_data()],
            'contentItems': [content_item_data()],
            'languageVariants': [language_variant_data()],
            'assets': [],
            'workflows': [{'id': 'ignored'}],
        },
    }
    if include_asset:
        data['data']['assets'] = [asset_data()]
        data['binaryFiles'] = [
            {
                'asset_id': 'asset-logo',
                'filename': 'logo.png',
                'content_type': 'image/png',
                'data': base64.b64encode(b'\x89PNG').decode('ascii'),
            }
        ]
    return data


@pytest.fixture
def fake_client():
    return FakeKontentClient()


@pytest.fixture
def source():
    return ImportSource.from_export(snapshot_data())


@pytest.fixture
def config():
    return Config(
        target={'project_id': 'target-project', 'api_key': 'secret-key'},
        **{
            'import': {
                'workflow_step_id_for_imported_items': WORKFLOW_STEP_ID,
                'skip_languages': True,
            }
        },
    )
