"""Tests for the reference rewriter."""

import json

import pytest

from kontent_migrate.migration.exceptions import (
    ImportValidationError,
    ReferenceResolutionError,
)
from kontent_migrate.migration.rewriter import ReferenceRewriter, get_path, set_path, MISSING
from kontent_migrate.migration.translation import TranslationTable
from kontent_migrate.models import (
    ContentItem,
    ContentType,
    EntityKind,
    ImportSource,
    LanguageVariant,
    SourceIndex,
)

from conftest import (
    WORKFLOW_STEP_ID,
    content_item_data,
    content_type_data,
    language_variant_data,
    snapshot_data,
)


class TestReferenceRewriter:
    """Test reference rewriting."""

    def setup_method(self):
        """Set up test fixtures."""
        self.index = SourceIndex(ImportSource.from_export(snapshot_data()))
        self.table = TranslationTable()
        self.table.register(EntityKind.ASSET, 'asset-logo', 'asset-target')
        self.table.register(EntityKind.CONTENT_ITEM, 'item-other', 'item-target')
        self.table.register(EntityKind.TAXONOMY, 'tax-topics', 'tax-target')
        self.rewriter = ReferenceRewriter(self.table, WORKFLOW_STEP_ID)

    def test_variant_rewrite_replaces_every_reference(self):
        """Test N resolvable references give N substitutions and no source ids."""
        variant = LanguageVariant(
            **language_variant_data(
                elements=[
                    {'element': {'id': 'el-image'}, 'value': [{'id': 'asset-logo'}]},
                    {
                        'element': {'id': 'el-body'},
                        'value': '<p><a data-item-id="item-other">x</a>'
                        '<figure data-asset-id="asset-logo"></figure>'
                        '<object type="application/kontent-ai" data-type="item" '
                        'data-id="item-other"></object></p>',
                    },
                ]
            )
        )

        result = self.rewriter.rewrite(variant, self.index)

        # item, language, workflow step, 2 element refs, 1 asset, 3 in rich text
        assert result.substitutions == 9
        text = json.dumps(result.payload)
        for source_id in ('asset-logo', 'item-other', 'el-image', 'el-body', 'lang-en'):
            assert source_id not in text
        assert result.payload['elements'][0] == {
            'element': {'codename': 'image'},
            'value': [{'id': 'asset-target'}],
        }
        assert 'data-id="item-target"' in result.payload['elements'][1]['value']
        assert result.payload['workflow_step'] == {'id': WORKFLOW_STEP_ID}

    def test_rewrite_leaves_entity_untouched(self):
        """Test the original entity is not modified."""
        variant = LanguageVariant(**language_variant_data())
        before = variant.model_dump()

        self.rewriter.rewrite(variant, self.index)

        assert variant.model_dump() == before
        assert variant.workflow_step.id == 'source-published-step'

    def test_taxonomy_terms_use_codenames(self):
        """Test taxonomy values are addressed by term codename."""
        variant = LanguageVariant(**language_variant_data())

        result = self.rewriter.rewrite(variant, self.index)

        assert result.payload['elements'][1]['value'] == [{'codename': 'local'}]

    def test_unresolved_required_reference(self):
        """Test a missing translation names the field and source id."""
        variant = LanguageVariant(
            **language_variant_data(
                elements=[
                    {'element': {'id': 'el-image'}, 'value': [{'id': 'asset-missing'}]}
                ]
            )
        )

        with pytest.raises(ReferenceResolutionError) as exc_info:
            self.rewriter.rewrite(variant, self.index)

        error = exc_info.value
        assert error.field == 'elements.0.value.0'
        assert error.missing_kind == EntityKind.ASSET
        assert error.missing_id == 'asset-missing'
        assert error.kind == EntityKind.LANGUAGE_VARIANT
        assert error.source_id == 'item-hello'

    def test_unresolved_rich_text_reference(self):
        """Test ids inside rich text must resolve as well."""
        variant = LanguageVariant(
            **language_variant_data(
                elements=[
                    {
                        'element': {'id': 'el-body'},
                        'value': '<a data-item-id="item-missing">x</a>',
                    }
                ]
            )
        )

        with pytest.raises(ReferenceResolutionError) as exc_info:
            self.rewriter.rewrite(variant, self.index)

        assert exc_info.value.missing_kind == EntityKind.CONTENT_ITEM
        assert exc_info.value.field == 'elements.0.value'

    def test_component_objects_are_not_translated(self):
        """Test inline components keep their ids."""
        variant = LanguageVariant(
            **language_variant_data(
                elements=[
                    {
                        'element': {'id': 'el-body'},
                        'value': '<object type="application/kontent-ai" '
                        'data-type="component" data-id="comp-1"></object>',
                        'components': [],
                    }
                ]
            )
        )

        result = self.rewriter.rewrite(variant, self.index)

        assert 'data-id="comp-1"' in result.payload['elements'][0]['value']

    def test_rich_text_attributes_in_any_quoting(self):
        """Test ids are found whatever the attribute quoting or order."""
        variant = LanguageVariant(
            **language_variant_data(
                elements=[
                    {
                        'element': {'id': 'el-body'},
                        'value': "<p><a data-item-id='item-other'>x</a>"
                        '<img DATA-ASSET-ID=asset-logo>'
                        "<object data-id='item-other' type='application/kontent-ai' "
                        "data-type='item'></object></p>",
                    }
                ]
            )
        )

        result = self.rewriter.rewrite(variant, self.index)

        value = result.payload['elements'][0]['value']
        assert 'data-item-id="item-target"' in value
        assert 'data-asset-id="asset-target"' in value
        assert 'data-id="item-target"' in value
        assert 'item-other' not in value
        assert 'asset-logo' not in value

    def test_look_alike_attributes_are_left_alone(self):
        """Test text and other attributes mentioning ids are not rewritten."""
        html = (
            '<p x-data-item-id="item-missing" title=\'data-item-id="item-missing"\'>'
            'data-asset-id="asset-missing"</p>'
        )
        variant = LanguageVariant(
            **language_variant_data(
                elements=[{'element': {'id': 'el-body'}, 'value': html}]
            )
        )

        result = self.rewriter.rewrite(variant, self.index)

        assert result.payload['elements'][0]['value'] == html

    def test_elements_referenced_by_codename(self):
        """Test values are typed through the element codename when no id is given."""
        variant = LanguageVariant(
            **language_variant_data(
                elements=[
                    {'element': {'codename': 'image'}, 'value': [{'id': 'asset-logo'}]},
                    {'element': {'codename': 'topics'}, 'value': [{'id': 'term-local'}]},
                    {
                        'element': {'codename': 'body'},
                        'value': '<a data-item-id="item-other">x</a>',
                    },
                ]
            )
        )

        result = self.rewriter.rewrite(variant, self.index)

        elements = result.payload['elements']
        assert elements[0]['value'] == [{'id': 'asset-target'}]
        assert elements[1]['value'] == [{'codename': 'local'}]
        assert elements[2]['value'] == '<a data-item-id="item-target">x</a>'

    def test_unresolved_rich_text_by_element_codename(self):
        """Test rich text of a codename-referenced element is checked too."""
        variant = LanguageVariant(
            **language_variant_data(
                elements=[
                    {
                        'element': {'codename': 'body'},
                        'value': '<figure data-asset-id="asset-missing"></figure>',
                    }
                ]
            )
        )

        with pytest.raises(ReferenceResolutionError) as exc_info:
            self.rewriter.rewrite(variant, self.index)

        assert exc_info.value.missing_kind == EntityKind.ASSET
        assert exc_info.value.missing_id == 'asset-missing'

    def test_unknown_element_value_is_found_across_kinds(self):
        """Test values of undescribed elements are looked up in every kind."""
        variant = LanguageVariant(
            **language_variant_data(
                elements=[{'element': {'codename': 'x'}, 'value': [{'id': 'item-other'}]}]
            )
        )

        result = self.rewriter.rewrite(variant, self.index)

        assert result.payload['elements'][0]['value'] == [{'id': 'item-target'}]

    def test_missing_codename_is_a_validation_error(self):
        """Test a codename-addressed reference without codename fails."""
        item = ContentItem(**content_item_data(type={'id': 'type-unknown'}))

        with pytest.raises(ImportValidationError) as exc_info:
            self.rewriter.rewrite(item, self.index)

        assert exc_info.value.field == 'type'

    def test_missing_workflow_step(self):
        """Test variants cannot be rewritten without a workflow step."""
        rewriter = ReferenceRewriter(self.table)
        variant = LanguageVariant(**language_variant_data())

        with pytest.raises(ImportValidationError):
            rewriter.rewrite(variant, self.index)

    def test_content_type_taxonomy_group(self):
        """Test taxonomy group pointers are translated to target ids."""
        content_type = ContentType(**content_type_data())

        result = self.rewriter.rewrite(content_type, self.index)

        assert result.substitutions == 1
        assert result.payload['elements'][1]['taxonomy_group'] == {'id': 'tax-target'}

    def test_explicit_slot_subset(self):
        """Test only the given slots are rewritten."""
        content_type = ContentType(**content_type_data())

        result = self.rewriter.rewrite(content_type, self.index, slots=[])

        assert result.substitutions == 0
        assert result.payload['elements'][1]['taxonomy_group'] == {'id': 'tax-topics'}


class TestPathHelpers:
    """Test payload path helpers."""

    def test_get_path(self):
        """Test nested lookups and missing segments."""
        payload = {'elements': [{'value': [1, 2]}]}

        assert get_path(payload, ('elements', 0, 'value', 1)) == 2
        assert get_path(payload, ('elements', 3)) is MISSING
        assert get_path(payload, ('elements', 0, 'other')) is MISSING

    def test_set_path(self):
        """Test replacing a nested value."""
        payload = {'elements': [{'value': [1, 2]}]}

        set_path(payload, ('elements', 0, 'value', 1), 5)

        assert payload == {'elements': [{'value': [1, 5]}]}
