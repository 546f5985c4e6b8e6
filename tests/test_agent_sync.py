"""Tests for AgentSynchronizer and the assistant runtime."""

import pytest

from app.services.agent_runtime import AssistantRuntime
from app.shared.errors import AgentSyncError


class TestSyncAgentsFor:

    @pytest.mark.asyncio
    async def test_agent_gets_union_of_all_its_sources(self, agent_sync, repo, openai_client):
        repo.add_source("S1", vector_store_id="V1")
        repo.add_source("S2", vector_store_id="V2")
        repo.add_agent("A1", ["S1", "S2"])

        report = await agent_sync.sync_agents_for("S1")

        assert report.updated == ["A1"]
        assert sorted(openai_client.assistants.configs["asst_A1"]) == ["V1", "V2"]
        assert openai_client.assistants.tools["asst_A1"] == [{"type": "file_search"}]

    @pytest.mark.asyncio
    async def test_sources_without_store_are_left_out(self, agent_sync, repo, openai_client):
        repo.add_source("S1", vector_store_id="V1")
        repo.add_source("S2")
        repo.add_agent("A1", ["S1", "S2"])

        await agent_sync.sync_agents_for("S1")

        assert openai_client.assistants.configs["asst_A1"] == ["V1"]

    @pytest.mark.asyncio
    async def test_agent_without_assistant_is_skipped(self, agent_sync, repo, openai_client):
        repo.add_source("S1", vector_store_id="V1")
        repo.add_agent("A1", ["S1"], assistant_id=None)

        report = await agent_sync.sync_agents_for("S1")

        assert report.skipped == ["A1"]
        assert openai_client.assistants.configs == {}

    @pytest.mark.asyncio
    async def test_one_failing_agent_does_not_stop_the_rest(self, agent_sync, repo, openai_client):
        repo.add_source("S1", vector_store_id="V1")
        repo.add_agent("A1", ["S1"])
        repo.add_agent("A2", ["S1"])
        openai_client.assistants.failing.add("asst_A1")

        report = await agent_sync.sync_agents_for("S1")

        assert not report.ok
        assert "A1" in report.failed
        assert report.updated == ["A2"]
        assert openai_client.assistants.configs["asst_A2"] == ["V1"]

    @pytest.mark.asyncio
    async def test_converges_after_failure(self, agent_sync, repo, openai_client):
        repo.add_source("S1", vector_store_id="V1")
        repo.add_source("S2", vector_store_id="V2")
        repo.add_agent("A1", ["S1", "S2"])
        openai_client.assistants.failing.add("asst_A1")
        await agent_sync.sync_agents_for("S1")
        assert "asst_A1" not in openai_client.assistants.configs

        openai_client.assistants.failing.clear()
        report = await agent_sync.sync_agents_for("S2")

        assert report.ok
        assert sorted(openai_client.assistants.configs["asst_A1"]) == ["V1", "V2"]

    @pytest.mark.asyncio
    async def test_source_without_agents(self, agent_sync, repo):
        repo.add_source("S1", vector_store_id="V1")

        report = await agent_sync.sync_agents_for("S1")

        assert report.updated == [] and report.ok


class TestSyncAgent:

    @pytest.mark.asyncio
    async def test_recomputes_single_agent(self, agent_sync, repo, openai_client):
        repo.add_source("S1", vector_store_id="V1")
        repo.add_agent("A1", ["S1"])

        assert await agent_sync.sync_agent("A1") is True
        assert openai_client.assistants.configs["asst_A1"] == ["V1"]

    @pytest.mark.asyncio
    async def test_unknown_or_unbound_agent(self, agent_sync, repo):
        repo.add_agent("A1", [], assistant_id=None)

        assert await agent_sync.sync_agent("A1") is False
        assert await agent_sync.sync_agent("missing") is False

    @pytest.mark.asyncio
    async def test_failure_raises(self, agent_sync, repo, openai_client):
        repo.add_source("S1", vector_store_id="V1")
        repo.add_agent("A1", ["S1"])
        openai_client.assistants.failing.add("asst_A1")

        with pytest.raises(AgentSyncError):
            await agent_sync.sync_agent("A1")


@pytest.mark.asyncio
async def test_runtime_replaces_whole_set(openai_client):
    runtime = AssistantRuntime(client=openai_client)

    await runtime.set_tool_index_set("asst_1", ["V1", "V2"])
    await runtime.set_tool_index_set("asst_1", ["V2"])

    assert openai_client.assistants.configs["asst_1"] == ["V2"]
