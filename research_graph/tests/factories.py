"""Builders shared by the test modules."""

from research_graph.models.research_step import ResearchStep, StepType


class FakeClock:
    """Epoch-ms clock that only moves when told to."""

    def __init__(self, start: int = 1_700_000_000_000) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> int:
        self.now += ms
        return self.now


def make_step(step_id: str, step_type: StepType = StepType.web_research, **kwargs) -> ResearchStep:
    """A step whose title defaults to the upper-cased id."""
    kwargs.setdefault("title", step_id.upper())
    return ResearchStep(id=step_id, type=step_type, **kwargs)
