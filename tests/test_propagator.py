"""
Propagator Tests

End-to-end flows run on the in-memory host; failure modes that the host
cannot easily produce are simulated with mocks.
"""

import logging
from unittest.mock import MagicMock

import pytest

from block_search.content.models import (
    AccessLevel,
    Component,
    CompositionArea,
    FieldDef,
    FieldRole,
    FieldType,
    PublishStatus,
    REPUBLISH_INTENT,
    SaveIntent,
    SoftLink,
    LinkKind,
)
from block_search.core.errors import AccessDeniedError, PersistenceError, SkipReason
from block_search.propagation.cycle import CycleState, PropagationCycle
from block_search.propagation.events import DocumentPublishingEvent
from block_search.propagation.propagator import Propagator, SkippedOwner

from builders import article_page, link, text_block


def load_field(store, content_id, name):
    return store.try_load(link(content_id)).fields.get(name)


# ---------------------------------------------------------------------
# Component Published
# ---------------------------------------------------------------------

class TestComponentPublished:
    def test_end_to_end_publish_updates_owner(self, store, module):
        store.add(text_block(11, "draft text"), article_page(1, 11))

        store.save(text_block(11, "<p>hello world</p>"), SaveIntent.PUBLISH)

        assert load_field(store, 1, "SearchText") == "hello world"

        republish = [s for s in store.saves if s.content_link == link(1)]
        assert len(republish) == 1
        assert republish[0].intent == REPUBLISH_INTENT
        assert republish[0].access is AccessLevel.NO_ACCESS

    def test_report_lists_republished_owner(self, store, propagator):
        store.add(text_block(11, "hello world"), article_page(1, 11))

        report = propagator.update_parents(link(11))

        assert report.component == link(11)
        assert report.republished == [link(1)]
        assert report.skipped == []
        assert report.access_denied == []

    def test_unpublished_owner_is_not_saved(self, store, propagator):
        store.add(
            text_block(11, "hello world"),
            article_page(1, 11, status=PublishStatus.DRAFT),
        )

        report = propagator.update_parents(link(11))

        assert store.saves == []
        assert report.skipped == [
            SkippedOwner(content_link=link(1), reason=SkipReason.NOT_PUBLISHED)
        ]
        assert load_field(store, 1, "SearchText") is None

    def test_access_denied_does_not_stop_batch(self, store, propagator):
        store.add(
            text_block(11, "shared block"),
            article_page(1, 11),
            article_page(2, 11),
        )
        store.deny(link(1))

        report = propagator.update_parents(link(11))

        assert report.access_denied == [link(1)]
        assert report.republished == [link(2)]
        assert load_field(store, 1, "SearchText") is None
        assert load_field(store, 2, "SearchText") == "shared block"

    def test_component_owner_is_skipped(self, store, propagator):
        store.add(
            text_block(11, "inner"),
            Component(
                content_link=link(31),
                type_id="ContainerBlock",
                fields={"Title": "Box", "Items": CompositionArea.of(link(11))},
            ),
        )

        report = propagator.update_parents(link(11))

        assert store.saves == []
        assert report.skipped == [
            SkippedOwner(content_link=link(31), reason=SkipReason.NOT_A_DOCUMENT)
        ]

    def test_stale_owner_is_skipped(self, store, soft_links, propagator):
        store.add(text_block(11, "orphan"))
        soft_links.add(SoftLink(owner=link(77), target=link(11)))

        report = propagator.update_parents(link(11))

        assert report.skipped == [
            SkippedOwner(content_link=link(77), reason=SkipReason.NOT_A_DOCUMENT)
        ]

    def test_navigation_links_are_ignored(self, store, propagator):
        store.add(text_block(11, "menu target"), article_page(5, MenuTarget=link(11)))

        report = propagator.update_parents(link(11))

        assert report.republished == []
        assert report.skipped == []
        assert store.saves == []

    def test_duplicate_references_republish_once(self, store, soft_links, propagator):
        store.add(text_block(11, "twice"), article_page(1, 11, 11))
        soft_links.add(SoftLink(owner=link(1), target=link(11), kind=LinkKind.DOCUMENT_EMBEDS_CONTENT))

        report = propagator.update_parents(link(11))

        assert report.republished == [link(1)]
        assert load_field(store, 1, "SearchText") == "twice twice"


class TestComponentPublishedFailures:
    @pytest.fixture
    def published_page(self):
        return article_page(1, 11)

    @pytest.fixture
    def mock_store(self, published_page):
        store = MagicMock()
        store.try_load.return_value = published_page
        return store

    @pytest.fixture
    def mock_index(self):
        index = MagicMock()
        index.inverse_references.return_value = [link(1), link(2)]
        return index

    def make_propagator(self, mock_store, mock_index):
        return Propagator(
            content_store=mock_store,
            reference_index=mock_index,
            aggregator=MagicMock(),
            schema=MagicMock(),
        )

    def test_second_owner_saved_after_access_denied(self, mock_store, mock_index):
        mock_store.try_load.side_effect = [article_page(1, 11), article_page(2, 11)]
        mock_store.save.side_effect = [AccessDeniedError("no rights"), link(2)]
        propagator = self.make_propagator(mock_store, mock_index)

        report = propagator.update_parents(link(11))

        assert mock_store.save.call_count == 2
        assert mock_store.save.call_args_list[1].args[0].content_link == link(2)
        assert report.access_denied == [link(1)]
        assert report.republished == [link(2)]

    def test_persistence_failure_is_surfaced(self, mock_store, mock_index):
        mock_store.save.side_effect = PersistenceError("store offline")
        propagator = self.make_propagator(mock_store, mock_index)

        with pytest.raises(PersistenceError):
            propagator.update_parents(link(11))

        assert mock_store.save.call_count == 1

    def test_cycle_reset_when_save_fails(self, mock_store, mock_index):
        seen = []

        def failing_save(item, intent, access, cycle=None):
            cycle.begin_aggregation()
            seen.append(cycle)
            raise PersistenceError("write failed")

        mock_store.save.side_effect = failing_save
        propagator = self.make_propagator(mock_store, mock_index)

        with pytest.raises(PersistenceError):
            propagator.update_parents(link(11))

        assert seen[0].state is CycleState.IDLE


# ---------------------------------------------------------------------
# Document Publishing
# ---------------------------------------------------------------------

class TestDocumentPublishing:
    def test_aggregate_written_into_in_flight_document(self, store, propagator):
        store.add(text_block(11, "hello world"))
        page = article_page(1, 11, Title="Own title")
        event = DocumentPublishingEvent(document=page)

        propagator.on_document_publishing(event)

        assert event.document.fields["SearchText"] == "hello world"
        assert event.document.fields["Title"] == "Own title"
        assert "SearchText" not in page.fields

    def test_second_pass_in_same_cycle_is_ignored(self, store, propagator):
        store.add(text_block(11, "first pass"))
        cycle = PropagationCycle()
        event = DocumentPublishingEvent(document=article_page(1, 11), cycle=cycle)

        propagator.on_document_publishing(event)
        assert cycle.in_flight

        store.add(text_block(11, "second pass"))
        again = DocumentPublishingEvent(document=event.document, cycle=cycle)
        propagator.on_document_publishing(again)

        assert again.document.fields["SearchText"] == "first pass"

    def test_new_cycle_recomputes(self, store, propagator):
        store.add(text_block(11, "first pass"))
        cycle = PropagationCycle()
        event = DocumentPublishingEvent(document=article_page(1, 11), cycle=cycle)
        propagator.on_document_publishing(event)

        cycle.complete()
        store.add(text_block(11, "second pass"))
        again = DocumentPublishingEvent(document=event.document, cycle=cycle)
        propagator.on_document_publishing(again)

        assert again.document.fields["SearchText"] == "second pass"

    def test_type_without_target_is_untouched(self, store, propagator):
        store.add(text_block(11, "ignored"))
        page = article_page(1, 11, type_id="LandingPage", Title="Landing")
        event = DocumentPublishingEvent(document=page)

        propagator.on_document_publishing(event)

        assert event.document is page
        assert not event.cycle.in_flight

    def test_aggregation_error_leaves_document_untouched(self, store, caplog):
        aggregator = MagicMock()
        aggregator.aggregate_compositions.side_effect = RuntimeError("type repository offline")
        schema = MagicMock()
        schema.aggregated_search_field.return_value = FieldDef(
            name="SearchText",
            declared_type=FieldType.LONG_STRING,
            role=FieldRole.AGGREGATED_SEARCH_TARGET,
        )
        propagator = Propagator(
            content_store=store,
            reference_index=MagicMock(),
            aggregator=aggregator,
            schema=schema,
        )
        page = article_page(1, 11)
        event = DocumentPublishingEvent(document=page)

        with caplog.at_level(logging.ERROR, logger="blocksearch.propagator"):
            propagator.on_document_publishing(event)

        assert event.document is page
        assert event.cycle.state is CycleState.IDLE
        assert "Aggregation failed for page named 'Page 1'" in caplog.text

    def test_non_text_target_is_untouched(self, store, propagator):
        store.add(text_block(11, "ignored"))
        page = article_page(1, 11, type_id="CounterPage")
        event = DocumentPublishingEvent(document=page)

        propagator.on_document_publishing(event)

        assert event.document is page

    def test_author_publish_sets_aggregate(self, store, module):
        store.add(text_block(11, "<em>fresh</em> block"))

        store.save(article_page(1, 11, status=PublishStatus.DRAFT), SaveIntent.PUBLISH)

        stored = store.try_load(link(1))
        assert stored.status is PublishStatus.PUBLISHED
        assert stored.fields["SearchText"] == "fresh block"

    def test_check_out_does_not_aggregate(self, store, module):
        store.add(text_block(11, "block"))

        store.save(article_page(1, 11, status=PublishStatus.DRAFT), SaveIntent.CHECK_OUT)

        assert load_field(store, 1, "SearchText") is None


# ---------------------------------------------------------------------
# Author Publish Never Fails
# ---------------------------------------------------------------------

class TestAuthorPublishSurvivesAggregationErrors:
    def test_load_error_during_publish(self, store, module, monkeypatch, caplog):
        store.add(text_block(11, "block"))

        def broken_load(content_link):
            raise RuntimeError("content repository unavailable")

        monkeypatch.setattr(store, "try_load", broken_load)

        with caplog.at_level(logging.ERROR, logger="blocksearch.propagator"):
            store.save(article_page(1, 11, status=PublishStatus.DRAFT), SaveIntent.PUBLISH)

        monkeypatch.undo()
        stored = store.try_load(link(1))
        assert stored.status is PublishStatus.PUBLISHED
        assert "SearchText" not in stored.fields
        assert "content repository unavailable" in caplog.text

    def test_nesting_deeper_than_the_interpreter_stack(self, store, module, caplog):
        depth = 2000
        for level in range(depth):
            store.add(
                Component(
                    content_link=link(100 + level),
                    name=f"Container {level}",
                    type_id="ContainerBlock",
                    fields={
                        "Title": f"Level {level}",
                        "Items": CompositionArea.of(link(101 + level)),
                    },
                )
            )

        with caplog.at_level(logging.ERROR, logger="blocksearch.propagator"):
            store.save(article_page(1, 100, status=PublishStatus.DRAFT), SaveIntent.PUBLISH)

        stored = store.try_load(link(1))
        assert stored.status is PublishStatus.PUBLISHED
        assert "SearchText" not in stored.fields
        assert "RecursionError" in caplog.text
