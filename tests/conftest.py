import pytest

from block_search.content.memory import (
    InMemoryContentStore,
    InMemoryContentTypeRepository,
    InMemoryEventBus,
    InMemorySoftLinkRepository,
)
from block_search.propagation.module import BlockSearchModule

from builders import CONTENT_TYPES


@pytest.fixture
def events():
    return InMemoryEventBus()


@pytest.fixture
def soft_links():
    return InMemorySoftLinkRepository()


@pytest.fixture
def content_types():
    return InMemoryContentTypeRepository(*CONTENT_TYPES)


@pytest.fixture
def store(events, soft_links):
    return InMemoryContentStore(events=events, soft_links=soft_links)


@pytest.fixture
def module(store, soft_links, content_types, events):
    module = BlockSearchModule(
        content_store=store,
        soft_links=soft_links,
        content_types=content_types,
        events=events,
        aggregate_max_length=0,
    )
    module.initialize()
    yield module
    module.uninitialize()


@pytest.fixture
def aggregator(module):
    return module.aggregator


@pytest.fixture
def propagator(module):
    return module.propagator
