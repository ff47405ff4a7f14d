"""Canonical Pydantic models shared across all gremlin-mcp modules.

The models fall into two groups:

**Configuration models** -- resolved by :mod:`gremlin_mcp.config` from CLI
flags, environment variables and an optional JSON file:
    :class:`RequestConfig`, :class:`CacheConfig` and :class:`ServerConfig`.

**Vendor API models** -- typed views of Gremlin API payloads, produced by
:class:`~gremlin_mcp.client.api.GremlinApi` and serialised back to JSON by
the tool and resource handlers:
    :class:`Team`, :class:`Service`, :class:`CurrentUser`,
    :class:`ReliabilityReport`, :class:`ReliabilityTestSuite`,
    :class:`RecentRun`, :class:`ReliabilityTestRun` and the generic
    :class:`Page`.

Vendor models use camelCase aliases on the wire (``serviceId``) and
snake_case attributes in Python (``service_id``).  They all use
``extra="allow"`` so that keys the Gremlin API adds later survive a
validate/dump round trip unchanged.  Dumps keep explicit JSON nulls and omit
only fields the payload never carried.

The status enumerations (:class:`PolicyResult`, :class:`RunStatus`,
:class:`NodeLifeCycle`) list the values known today.  Fields typed with them
fall back to the raw string for any other value.
"""

from __future__ import annotations

import enum
from typing import Any, Generic, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_BASE_URL = "https://api.gremlin.com/v1"
DEFAULT_API_KEY_SOURCE = "env:GREMLIN_API_KEY"


# --- Configuration ---


class RequestConfig(BaseModel):
    """HTTP request settings applied to every Gremlin API call."""

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, ge=1, description="Attempts per request")
    retry_backoff: float = Field(
        default=0.0,
        ge=0,
        description="Base delay between attempts in seconds; 0 retries immediately",
    )


class CacheConfig(BaseModel):
    """In-memory response cache settings."""

    enabled: bool = Field(default=True, description="Enable response caching")
    ttl_seconds: int = Field(default=600, gt=0, description="Cache TTL in seconds")
    max_entries: int = Field(default=1024, gt=0, description="Entries kept before eviction")


class ServerConfig(BaseModel):
    """Effective configuration of one gremlin-mcp process.

    Built by :func:`~gremlin_mcp.config.resolve_config`.  The API key is not
    stored here: ``api_key_source`` names where to read it from, and the
    client reads it afresh for every request.
    """

    base_url: str = Field(default=DEFAULT_BASE_URL, description="Gremlin API root")
    api_key_source: str = Field(
        default=DEFAULT_API_KEY_SOURCE,
        description="Credential source: env:VAR or file:/path",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)


# --- Vendor API payloads ---


class _ApiModel(BaseModel):
    model_config = ConfigDict(
        extra="allow",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_json(self) -> dict[str, Any]:
        """Dump to a JSON-compatible dict using the wire (camelCase) names."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


T = TypeVar("T")


class Page(_ApiModel, Generic[T]):
    """One page of a paged Gremlin listing.

    ``page_token`` is handed back to the agent as-is; following it is the
    caller's business.
    """

    items: list[T] = Field(default_factory=list)
    page_token: Optional[str] = None
    page_size: Optional[int] = None


class Team(_ApiModel):
    identifier: str
    name: str
    company_id: Optional[str] = None
    production: Optional[bool] = None


class Service(_ApiModel):
    """A reliability-management service (RM service) owned by a team."""

    service_id: str
    team_id: str
    name: str
    targeting_strategy: Optional[Any] = None
    application_selector: Optional[Any] = None
    description: Optional[str] = None
    schedulable_tests: Optional[list[Any]] = None

    @property
    def targets(self) -> str:
        """Human-readable targeting summary used in resource listings."""
        target = self.targeting_strategy or self.application_selector or ""
        return target if isinstance(target, str) else str(target)


class CurrentUser(BaseModel):
    """The calling user, as returned by ``users/self`` (snake_case on the wire)."""

    model_config = ConfigDict(extra="allow")

    identifier: Optional[str] = None
    user_id: Optional[str] = None
    company_id: Optional[str] = None
    team_memberships: list[str] = Field(default_factory=list)


class PolicyResult(str, enum.Enum):
    PASSED = "PASSED"
    FAILED = "FAILED"
    EXPIRED = "EXPIRED"
    NEVER_RUN = "NEVER_RUN"


class PolicyEvaluation(_ApiModel):
    policy_id: str
    reliability_test_id: Optional[str] = None
    service_id: Optional[str] = None
    dependency_id: Optional[str] = None
    failure_flag_name: Optional[str] = None
    evaluation_time: Optional[int] = None
    staleness: Optional[float] = None
    result: Union[PolicyResult, str] = Field(union_mode="left_to_right")


class ReliabilityCategorySummary(_ApiModel):
    category: Optional[str] = None
    score: Optional[float] = None
    policy_target: Optional[str] = None
    policy_states: list[PolicyEvaluation] = Field(default_factory=list)


class ReliabilityReport(_ApiModel):
    """Reliability score of a service, broken down by category."""

    reliability_score: Optional[float] = None
    test_suite_id: Optional[str] = None
    reliability: dict[str, ReliabilityCategorySummary] = Field(default_factory=dict)


class ReliabilityTestSuite(_ApiModel):
    identifier: str
    name: str
    description: Optional[str] = None
    target_team_ids: list[str] = Field(default_factory=list)
    test_responses: list[Any] = Field(default_factory=list)
    excluded_risk_ids: Optional[list[str]] = None

    def targets_team(self, team_id: str) -> bool:
        return team_id in self.target_team_ids


class RunStatus(str, enum.Enum):
    PASSED = "Passed"
    FAILED = "Failed"
    UNSURE = "Unsure"


class RecentRun(_ApiModel):
    """A completed reliability test run, as listed by ``reliability-tests/completed/paged``."""

    service_id: str
    dependency_id: Optional[str] = None
    dependency_name: Optional[str] = None
    diagnosis_available: Optional[bool] = None
    create_time: Optional[str] = None
    end_time: Optional[str] = None
    pass_criteria: Optional[str] = None
    reliability_test_id: Optional[str] = None
    reliability_test_name: Optional[str] = None
    run_number: Optional[int] = None
    status: Optional[Union[RunStatus, str]] = Field(default=None, union_mode="left_to_right")
    trigger_source: Optional[str] = None
    triggered_by: Optional[str] = None


class NodeLifeCycle(str, enum.Enum):
    NOT_STARTED = "NotStarted"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"
    HALTED = "Halted"
    HALT_REQUESTED = "HaltRequested"
    ACTIVE = "Active"
    SUCCESSFUL = "Successful"


class ScenarioNodeState(_ApiModel):
    life_cycle: Optional[Union[NodeLifeCycle, str]] = Field(default=None, union_mode="left_to_right")


class ScenarioGraphNode(_ApiModel):
    id: Optional[str] = None
    state: Optional[ScenarioNodeState] = None


class ScenarioGraph(_ApiModel):
    # nodesRecursive repeats the whole graph and dominates the payload size.
    nodes_recursive: list[Any] = Field(default_factory=list)
    expected_length: Optional[int] = None
    graph: dict[str, ScenarioGraphNode] = Field(default_factory=dict)


class ScenarioResults(_ApiModel):
    status: Optional[Union[RunStatus, str]] = Field(default=None, union_mode="left_to_right")


class ScenarioRun(_ApiModel):
    scenario_id: Optional[str] = None
    run_number: Optional[int] = None
    org_id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    end_time: Optional[str] = None
    create_source: Optional[str] = None
    trigger_source: Optional[str] = None
    results: Optional[ScenarioResults] = None
    graph: Optional[ScenarioGraph] = None


class SuggestionEmbedding(_ApiModel):
    service_id: Optional[str] = None
    key: Optional[str] = None


class Suggestion(_ApiModel):
    markdown: Optional[str] = None
    embeddings: list[SuggestionEmbedding] = Field(default_factory=list)


class Diagnosis(_ApiModel):
    summary: Optional[str] = None
    suggestions: list[Suggestion] = Field(default_factory=list)


class ReliabilityTestRun(_ApiModel):
    """One execution of a reliability test against a service (or one of its dependencies)."""

    guid: Optional[str] = None
    service_id: Optional[str] = None
    dependency_id: Optional[str] = None
    dependency_name: Optional[str] = None
    failure_flag_name: Optional[str] = None
    is_dependency_spof: Optional[bool] = None
    run_number: Optional[int] = None
    run: Optional[ScenarioRun] = None
    diagnosis: Optional[Diagnosis] = None

    def drop_recursive_nodes(self) -> None:
        """Empty ``run.graph.nodesRecursive`` in place, if present."""
        if self.run is not None and self.run.graph is not None:
            self.run.graph.nodes_recursive = []
