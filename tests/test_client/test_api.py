"""Tests for the GremlinApi endpoint facade."""

from __future__ import annotations

import httpx
import pytest
from pydantic import ValidationError

from conftest import BASE_URL, Recorder, json_response
from gremlin_mcp.exceptions import InvalidUsageError, RequestFailed
from gremlin_mcp.models import (
    NodeLifeCycle,
    Page,
    PolicyEvaluation,
    PolicyResult,
    RecentRun,
    ReliabilityTestRun,
    RunStatus,
    ScenarioGraphNode,
    Team,
)


def _route(routes: dict[str, object]):
    """Serve JSON bodies keyed by request path (query string ignored)."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v1/")
        if path not in routes:
            return httpx.Response(404, json={"message": f"no route {path}"})
        return json_response(routes[path])

    return handler


RUN = {
    "guid": "run-1",
    "serviceId": "s1",
    "run": {
        "scenarioId": "sc-1",
        "results": {"status": "Passed"},
        "graph": {"nodesRecursive": [{"id": "n1"}, {"id": "n2"}], "expectedLength": 2},
    },
}


class TestUsersAndTeams:
    @pytest.mark.asyncio
    async def test_get_self(self, make_api) -> None:
        recorder = Recorder(json_response({"identifier": "u1", "team_memberships": ["t1", "t2"]}))
        async with make_api(recorder) as api:
            me = await api.get_self()
        assert me.team_memberships == ["t1", "t2"]
        assert recorder.urls == [f"{BASE_URL}/users/self"]

    @pytest.mark.asyncio
    async def test_list_teams(self, make_api) -> None:
        recorder = Recorder(json_response([{"identifier": "t1", "name": "Core", "companyId": "c1"}]))
        async with make_api(recorder) as api:
            teams = await api.list_teams()
        assert teams[0].identifier == "t1"
        assert teams[0].company_id == "c1"

    @pytest.mark.asyncio
    async def test_get_team(self, make_api) -> None:
        recorder = Recorder(json_response({"identifier": "t1", "name": "Core"}))
        async with make_api(recorder) as api:
            team = await api.get_team("t1")
        assert team.name == "Core"
        assert recorder.urls == [f"{BASE_URL}/teams/t1"]

    @pytest.mark.asyncio
    async def test_get_team_escapes_slash(self, make_api) -> None:
        recorder = Recorder(json_response({"identifier": "a/b", "name": "Core"}))
        async with make_api(recorder) as api:
            team = await api.get_team("a/b")
        assert team.identifier == "a/b"
        assert recorder.requests[0].url.raw_path == b"/v1/teams/a%2Fb"

    @pytest.mark.asyncio
    async def test_get_team_requires_id(self, make_api) -> None:
        recorder = Recorder(json_response({}))
        async with make_api(recorder) as api:
            with pytest.raises(InvalidUsageError, match="teamId is required"):
                await api.get_team("")
        assert recorder.calls == 0


class TestServices:
    @pytest.mark.asyncio
    async def test_list_services_for_team(self, make_api) -> None:
        body = {
            "items": [{"serviceId": "s1", "teamId": "t1", "name": "api", "schedulableTests": [{"a": 1}]}],
            "pageToken": "next",
        }
        recorder = Recorder(json_response(body))
        async with make_api(recorder) as api:
            page = await api.list_services_for_team("t1")
        assert page.items[0].service_id == "s1"
        assert page.page_token == "next"
        assert recorder.urls == [f"{BASE_URL}/services?teamId=t1"]

    @pytest.mark.asyncio
    async def test_get_service(self, make_api) -> None:
        recorder = Recorder(json_response({"serviceId": "s1", "teamId": "t1", "name": "api"}))
        async with make_api(recorder) as api:
            service = await api.get_service("s1", "t1")
        assert service.name == "api"
        assert recorder.urls == [f"{BASE_URL}/services/s1?teamId=t1"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("method", "suffix"),
        [
            ("get_service_dependencies", "dependencies"),
            ("get_service_status_checks", "status-checks"),
            ("get_service_risks", "risk-summary"),
        ],
    )
    async def test_opaque_service_endpoints(self, make_api, method: str, suffix: str) -> None:
        recorder = Recorder(json_response({"anything": [1, 2]}))
        async with make_api(recorder) as api:
            data = await getattr(api, method)("s1", "t1")
        assert data == {"anything": [1, 2]}
        assert recorder.urls == [f"{BASE_URL}/services/s1/{suffix}?teamId=t1"]

    @pytest.mark.asyncio
    async def test_service_requires_both_ids(self, make_api) -> None:
        async with make_api(Recorder(json_response({}))) as api:
            with pytest.raises(InvalidUsageError, match="Both serviceId and teamId are required"):
                await api.get_service_dependencies("s1", "")

    @pytest.mark.asyncio
    async def test_get_service_escapes_identifiers(self, make_api) -> None:
        recorder = Recorder(json_response({"serviceId": "s/1", "teamId": "t 1", "name": "api"}))
        async with make_api(recorder) as api:
            await api.get_service("s/1", "t 1")
        request = recorder.requests[0]
        assert request.url.raw_path.startswith(b"/v1/services/s%2F1?")
        assert request.url.params["teamId"] == "t 1"

    @pytest.mark.asyncio
    async def test_extra_fields_preserved(self, make_api) -> None:
        recorder = Recorder(json_response({"serviceId": "s1", "teamId": "t1", "name": "api", "score": 87}))
        async with make_api(recorder) as api:
            service = await api.get_service("s1", "t1")
        assert service.to_json()["score"] == 87


class TestReliability:
    @pytest.mark.asyncio
    async def test_reliability_report_with_date(self, make_api) -> None:
        recorder = Recorder(json_response({"reliabilityScore": 0.9}))
        async with make_api(recorder) as api:
            report = await api.get_reliability_report("s1", "t1", "2024-05-01")
        assert report.reliability_score == 0.9
        assert recorder.urls == [f"{BASE_URL}/policies/s1/reliability-report?teamId=t1&date=2024-05-01"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("date", [None, "", "undefined"])
    async def test_reliability_report_without_date(self, make_api, date) -> None:
        recorder = Recorder(json_response({}))
        async with make_api(recorder) as api:
            await api.get_reliability_report("s1", "t1", date)
        assert recorder.urls == [f"{BASE_URL}/policies/s1/reliability-report?teamId=t1"]

    @pytest.mark.asyncio
    async def test_list_test_suites(self, make_api) -> None:
        recorder = Recorder(json_response([{"identifier": "ts1", "name": "Default", "targetTeamIds": ["t1"]}]))
        async with make_api(recorder) as api:
            suites = await api.list_test_suites()
        assert suites[0].targets_team("t1")
        assert not suites[0].targets_team("t2")

    @pytest.mark.asyncio
    async def test_recent_reliability_tests(self, make_api) -> None:
        recorder = Recorder(json_response({"items": [{"serviceId": "s1", "status": "Failed"}]}))
        async with make_api(recorder) as api:
            page = await api.get_recent_reliability_tests("t1", limit=10, page_token="tok")
        assert page.items[0].status.value == "Failed"
        assert recorder.urls == [
            f"{BASE_URL}/reliability-tests/completed/paged?teamId=t1&pageSize=10&pageToken=tok"
        ]

    @pytest.mark.asyncio
    async def test_experiment_page(self, make_api) -> None:
        recorder = Recorder(json_response({"items": [RUN]}))
        async with make_api(recorder) as api:
            result = await api.get_reliability_experiment("s1", "t1", dependency_id="d1")
        assert isinstance(result, Page)
        assert result.items[0].run.graph.expected_length == 2
        assert recorder.urls == [
            f"{BASE_URL}/reliability-tests/runs?teamId=t1&serviceId=s1&pageSize=100&dependencyId=d1"
        ]

    @pytest.mark.asyncio
    async def test_experiment_single_run_for_test_id(self, make_api) -> None:
        recorder = Recorder(json_response(RUN))
        async with make_api(recorder) as api:
            result = await api.get_reliability_experiment("s1", "t1", test_id="rt1", limit=5)
        assert isinstance(result, ReliabilityTestRun)
        assert recorder.urls == [
            f"{BASE_URL}/reliability-tests/rt1/runs?teamId=t1&serviceId=s1&pageSize=5"
        ]

    @pytest.mark.asyncio
    async def test_experiment_run_id_is_one_path_segment(self, make_api) -> None:
        recorder = Recorder(json_response(RUN))
        async with make_api(recorder) as api:
            await api.get_reliability_experiment("s1", "t1", test_id="rt/1")
        assert recorder.requests[0].url.raw_path.startswith(b"/v1/reliability-tests/rt%2F1/runs?")

    def test_drop_recursive_nodes(self) -> None:
        run = ReliabilityTestRun.model_validate(RUN)
        run.drop_recursive_nodes()
        dumped = run.to_json()
        assert dumped["run"]["graph"]["nodesRecursive"] == []
        assert dumped["run"]["graph"]["expectedLength"] == 2


class TestPayloadDrift:
    def test_unknown_run_status_kept_as_string(self) -> None:
        run = RecentRun.model_validate({"serviceId": "s1", "status": "Halted"})
        assert run.status == "Halted"
        assert run.to_json()["status"] == "Halted"

    def test_known_run_status_is_enum(self) -> None:
        run = RecentRun.model_validate({"serviceId": "s1", "status": "Passed"})
        assert run.status is RunStatus.PASSED

    def test_unknown_node_lifecycle_kept_as_string(self) -> None:
        node = ScenarioGraphNode.model_validate({"id": "n1", "state": {"lifeCycle": "Initializing"}})
        assert node.state.life_cycle == "Initializing"
        assert NodeLifeCycle.RUNNING == "Running"
        known = ScenarioGraphNode.model_validate({"state": {"lifeCycle": "Running"}})
        assert known.state.life_cycle is NodeLifeCycle.RUNNING

    def test_unknown_policy_result_kept_as_string(self) -> None:
        policy = PolicyEvaluation.model_validate({"policyId": "p1", "result": "SKIPPED"})
        assert policy.to_json() == {"policyId": "p1", "result": "SKIPPED"}
        known = PolicyEvaluation.model_validate({"policyId": "p1", "result": "FAILED"})
        assert known.result is PolicyResult.FAILED

    def test_explicit_nulls_survive_round_trip(self) -> None:
        body = {"identifier": "t", "name": "n", "companyId": None, "extraField": None}
        assert Team.model_validate(body).to_json() == body

    def test_unset_defaults_are_omitted(self) -> None:
        assert Team.model_validate({"identifier": "t", "name": "n"}).to_json() == {
            "identifier": "t",
            "name": "n",
        }


class TestFailures:
    @pytest.mark.asyncio
    async def test_upstream_failure_propagates(self, make_api) -> None:
        async with make_api(_route({})) as api:
            with pytest.raises(RequestFailed, match="HTTP error! status: 404"):
                await api.get_team("t1")

    @pytest.mark.asyncio
    async def test_unexpected_shape_raises_validation_error(self, make_api) -> None:
        async with make_api(_route({"teams/t1": {"unexpected": True}})) as api:
            with pytest.raises(ValidationError):
                await api.get_team("t1")
