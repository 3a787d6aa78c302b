"""Tests for the MCP tool and resource functions.

The decorated functions are called directly against a fixture engine.
"""

from __future__ import annotations

import json

import pytest

from conftest import YESTERDAY


@pytest.fixture
def server(engine, monkeypatch):
    from allocation_engine import mcp_server

    monkeypatch.setattr(mcp_server, "_engine", engine)
    return mcp_server


class TestWriteTools:

    def test_allocate_engineer(self, server):
        response = server.allocate_engineer("eng-001", "proj-001", 60,
                                            "2024-01-01", "2024-12-31")
        assert response["success"] is True
        assert response["allocation"]["engineerId"] == "eng-001"
        assert response["allocation"]["allocationPercentage"] == 60

    def test_allocate_rejected(self, server):
        response = server.allocate_engineer("eng-002", "proj-002", 50,
                                            "2024-01-01", "2024-12-31")
        assert response == {
            "success": False,
            "message": "Cannot allocate. Engineer 'Bob Smith' would be over-allocated (150%).",
            "allocation": None,
        }

    def test_update_only_passed_fields(self, server, engine):
        response = server.update_allocation("alloc-ca001a01", new_end_date="2024-09-30")
        assert response["success"] is True
        record = engine.get_allocation("alloc-ca001a01")
        assert record.end_date == "2024-09-30"
        assert record.percentage == 60
        assert record.start_date == "2024-02-01"

    def test_update_percentage(self, server, engine):
        response = server.update_allocation("alloc-ca001a01", new_percentage=30)
        assert response["success"] is True
        assert engine.active_capacity("eng-003") == 30

    def test_move_to_bench(self, server, engine):
        response = server.move_to_bench("eng-002")
        assert response["success"] is True
        assert response["removedCount"] == 1
        assert response["removedAllocationIds"] == ["alloc-b0b00001"]
        assert engine.get_allocation("alloc-b0b00001").end_date == YESTERDAY.isoformat()

    def test_move_to_bench_unknown(self, server):
        response = server.move_to_bench("eng-999")
        assert response["success"] is False
        assert response["removedCount"] == 0
        assert response["removedAllocationIds"] == []


class TestReadTools:

    def test_engineer_allocations(self, server):
        response = server.get_engineer_allocations("eng-003")
        assert response["engineerId"] == "eng-003"
        assert "Total Allocation: 60%" in response["details"]

    def test_engineer_allocations_unknown(self, server):
        response = server.get_engineer_allocations("eng-999")
        assert response["details"] == "Engineer with ID 'eng-999' not found."

    def test_bench(self, server):
        assert "Engineers on Bench (2)" in server.get_bench_engineers()["details"]

    def test_find_available(self, server):
        details = server.find_available_engineers(skill="Spark")["details"]
        assert "Eva Martinez" in details

    def test_all_allocations(self, server):
        assert "alloc-da7e0001" not in server.get_all_allocations()["details"]
        assert "alloc-da7e0001" in server.get_all_allocations(include_past=True)["details"]

    def test_history_by_project(self, server):
        details = server.get_allocation_history(project_id="proj-001")["details"]
        assert "PAST" in details and "CURRENT" in details

    def test_history_needs_exactly_one_key(self, server):
        assert server.get_allocation_history()["details"].startswith("Error")
        both = server.get_allocation_history(engineer_id="eng-001", project_id="proj-001")
        assert both["details"].startswith("Error")

    def test_history_unknown(self, server):
        details = server.get_allocation_history(engineer_id="eng-999")["details"]
        assert details == "Engineer with ID 'eng-999' not found."

    def test_list_engineers_and_projects(self, server):
        assert server.list_engineers()["count"] == 5
        assert server.list_projects()["projects"][0]["id"] == "proj-001"


class TestResources:

    def test_engineer_details(self, server):
        assert server.engineer_details("eng-001").startswith("# Alice Johnson")

    def test_engineer_not_found(self, server):
        assert server.engineer_details("eng-999").startswith("# Engineer Not Found")

    def test_project_not_found(self, server):
        assert server.project_details("proj-999").startswith("# Project Not Found")

    def test_json_resources(self, server):
        allocations = json.loads(server.allocations_json())
        assert len(allocations) == 5
        assert json.loads(server.engineers_json())[0]["id"] == "eng-001"
        assert len(json.loads(server.projects_json())) == 3

    def test_markdown_lists(self, server):
        assert server.projects_list().startswith("# All Projects")
        assert server.engineers_list().startswith("# All Engineers")
        assert server.allocations_list().startswith("# Current Allocations")


class TestStorageFailure:
    """A corrupt allocations file is reported as text, not raised."""

    @pytest.fixture
    def broken_server(self, data_dir, clock, monkeypatch):
        from allocation_engine import mcp_server
        from allocation_engine.engine import AllocationEngine
        from allocation_engine.store import JsonFileStore

        (data_dir / "allocations.json").write_text("[{not json")
        engine = AllocationEngine(JsonFileStore(data_dir), clock=clock)
        monkeypatch.setattr(mcp_server, "_engine", engine)
        return mcp_server

    def test_read_tools(self, broken_server):
        responses = [
            broken_server.get_engineer_allocations("eng-001"),
            broken_server.get_bench_engineers(),
            broken_server.find_available_engineers(),
            broken_server.get_all_allocations(),
            broken_server.get_allocation_history(engineer_id="eng-001"),
            broken_server.get_allocation_history(project_id="proj-001"),
        ]
        for response in responses:
            assert "malformed JSON" in response["details"]

    def test_detail_resources(self, broken_server):
        for text in (broken_server.engineer_details("eng-001"),
                     broken_server.project_details("proj-001")):
            assert text.startswith("# Error")
            assert "malformed JSON" in text

    def test_not_found_still_specific(self, broken_server):
        assert broken_server.engineer_details("eng-999").startswith(
            "# Engineer Not Found"
        )


class TestEngineFactory:

    def test_uses_configured_data_dir(self, data_dir, monkeypatch):
        from allocation_engine import config, mcp_server
        from allocation_engine.store import JsonFileStore

        monkeypatch.setenv(config.ENV_DATA_DIR, str(data_dir))
        monkeypatch.setattr(mcp_server, "_engine", None)
        engine = mcp_server._get_engine()
        assert isinstance(engine.store, JsonFileStore)
        assert engine.store.data_dir == data_dir.resolve()
        assert mcp_server._get_engine() is engine
