"""Research step models: the boundary where producer steps enter the graph.

Steps come from collaborators (model calls, search, reflection) and are
validated here once, so the store can trust every field it reads.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, field_validator

# bound on free-form metadata so a chatty producer can't grow nodes without limit
MAX_EXTENSION_KEYS = 32

METADATA_SCHEMA_VERSION = 1

DEFAULT_MODEL = "gemini-2.5-flash"


class StepType(str, Enum):
    """Kinds of research steps."""

    user_query = "USER_QUERY"
    generating_queries = "GENERATING_QUERIES"
    web_research = "WEB_RESEARCH"
    reflection = "REFLECTION"
    searching_final_answer = "SEARCHING_FINAL_ANSWER"
    final_answer = "FINAL_ANSWER"
    error = "ERROR"
    analytics = "ANALYTICS"


class EffortType(str, Enum):
    """Reasoning effort requested from the model."""

    low = "Low"
    medium = "Medium"
    high = "High"


class Citation(BaseModel):
    """A source attached to a step or a report section."""

    url: str = ""
    title: str | None = None
    name: str | None = None
    authors: list[str] | None = None
    year: int | None = None
    snippet: str | None = None
    relevance_score: float | None = None

    def dedupe_key(self) -> str | None:
        """URL when present, else title; None when neither identifies it."""
        return self.url or self.title or None


class ResearchSection(BaseModel):
    """A topic section of a research report with its own sources."""

    topic: str
    description: str = ""
    research: str | None = None
    sources: list[Citation] = Field(default_factory=list)


class ParadigmProbabilities(BaseModel):
    """Host paradigm classification scores."""

    model_config = {"extra": "forbid"}

    dolores: float = Field(default=0.0, ge=0.0, le=1.0)
    teddy: float = Field(default=0.0, ge=0.0, le=1.0)
    bernard: float = Field(default=0.0, ge=0.0, le=1.0)
    maeve: float = Field(default=0.0, ge=0.0, le=1.0)


class NodeMetadata(BaseModel):
    """Closed, versioned metadata carried by every graph node.

    Unknown keys are rejected; anything producer-specific goes into
    `extensions`, which is capped at MAX_EXTENSION_KEYS entries.
    """

    model_config = {"extra": "forbid", "protected_namespaces": ()}

    schema_version: int = METADATA_SCHEMA_VERSION

    model: str = DEFAULT_MODEL
    effort: EffortType = EffortType.medium
    sources_count: int = 0
    processing_time: int | None = None  # ms
    paradigm_probabilities: ParadigmProbabilities | None = None
    context_density: float | None = None
    phase: str | None = None
    confidence_score: float | None = None
    query_type: str | None = None
    host_paradigm: str | None = None
    error_message: str | None = None
    search_queries: list[str] | None = None
    sections: list[ResearchSection] | None = None
    tools_used: list[str] | None = None

    extensions: dict[str, Any] = Field(default_factory=dict)

    @field_validator("extensions")
    @classmethod
    def _bounded_extensions(cls, value: dict[str, Any]) -> dict[str, Any]:
        if len(value) > MAX_EXTENSION_KEYS:
            raise ValueError(
                f"extensions may hold at most {MAX_EXTENSION_KEYS} keys, got {len(value)}"
            )
        return value

    def merged(self, patch: dict[str, Any]) -> "NodeMetadata":
        """Return a new metadata object with `patch` shallow-merged in.

        The merge is re-validated, so a bad patch raises ValidationError
        and leaves this object untouched.
        """
        data = self.model_dump()
        data.update(patch)
        return NodeMetadata.model_validate(data)


class ResearchStep(BaseModel):
    """A single step produced by the research pipeline."""

    id: str = Field(min_length=1)
    type: StepType
    title: str = ""
    content: str | None = None
    sources: list[Citation] = Field(default_factory=list)
    query: str | None = None
    metadata: NodeMetadata | None = None
