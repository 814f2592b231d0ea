import pytest

from research_graph.adapters.sinks import ListSink
from research_graph.store.graph_store import ResearchGraphStore
from research_graph.tests.factories import FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> ResearchGraphStore:
    return ResearchGraphStore(clock=clock)


@pytest.fixture
def sink(store: ResearchGraphStore) -> ListSink:
    sink = ListSink()
    store.subscribe(sink.append)
    return sink
