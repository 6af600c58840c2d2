"""
Traversal tests: reachability, readiness and connectivity queries.
"""

import pytest

from taskgraph.exceptions import NotFoundError
from taskgraph.models import DependencyType, Task
from taskgraph.services import dependencies as service

from conftest import add_tasks


def complete(graph, task_id):
    task = graph.get_task(task_id)
    graph.update_task(task.model_copy(update={"completed": True, "progress": 100}))


class TestReachability:
    def test_direct_neighbors(self, diamond):
        assert service.get_direct_prerequisites(diamond, "D") == ["B", "C"]
        assert service.get_direct_dependents(diamond, "A") == ["B", "C"]
        assert service.get_direct_prerequisites(diamond, "A") == []

    def test_transitive_closure(self, diamond):
        assert service.get_all_prerequisites(diamond, "D") == {"A", "B", "C"}
        assert service.get_all_dependents(diamond, "A") == {"B", "C", "D"}
        assert service.get_all_dependents(diamond, "D") == set()

    def test_inactive_edges_are_not_followed(self, diamond):
        service.deactivate_dependency(diamond, diamond.find_edge("B", "D").id)
        assert service.get_all_prerequisites(diamond, "D") == {"A", "C"}

    def test_unknown_task(self, diamond):
        with pytest.raises(NotFoundError):
            service.get_all_dependents(diamond, "Z")

    def test_shortest_path(self, diamond):
        path = service.find_shortest_dependency_path(diamond, "A", "D")
        assert len(path) == 3
        assert path[0] == "A" and path[-1] == "D"

    def test_shortest_path_same_task_and_unreachable(self, diamond):
        assert service.find_shortest_dependency_path(diamond, "B", "B") == ["B"]
        assert service.find_shortest_dependency_path(diamond, "D", "A") == []
        assert service.find_shortest_dependency_path(diamond, "B", "C") == []


class TestReadiness:
    def test_root_task_can_start(self, diamond):
        assert service.can_start(diamond, "A")
        assert not service.can_start(diamond, "B")

    def test_completion_unblocks_finish_to_start(self, diamond):
        complete(diamond, "A")
        assert service.can_start(diamond, "B")
        assert service.can_start(diamond, "C")
        assert not service.can_start(diamond, "D")

    def test_start_to_start_waits_only_for_start(self, graph):
        add_tasks(graph, A=4, B=2)
        service.create_dependency(graph, "B", "A", DependencyType.START_TO_START)
        assert not service.can_start(graph, "B")

        graph.update_task(Task(id="A", duration_hours=4, progress=10))
        assert service.can_start(graph, "B")

    def test_finish_to_finish_waits_for_completion(self, graph):
        add_tasks(graph, A=4, B=2)
        service.create_dependency(graph, "B", "A", DependencyType.FINISH_TO_FINISH)
        graph.update_task(Task(id="A", duration_hours=4, progress=90))
        assert not service.can_start(graph, "B")

    def test_deactivated_dependency_no_longer_blocks(self, diamond):
        complete(diamond, "A")
        complete(diamond, "B")
        service.deactivate_dependency(diamond, diamond.find_edge("C", "D").id)
        assert service.can_start(diamond, "D")

    def test_blocking_dependencies(self, diamond):
        complete(diamond, "A")
        complete(diamond, "B")
        [edge] = service.get_blocking_dependencies(diamond, "D")
        assert edge.pair == ("C", "D")

    def test_ready_tasks_skip_completed(self, diamond):
        assert [t.id for t in service.get_tasks_ready_to_start(diamond)] == ["A"]
        complete(diamond, "A")
        assert [t.id for t in service.get_tasks_ready_to_start(diamond)] == ["B", "C"]

    def test_blocked_tasks(self, diamond):
        blocked = service.get_blocked_tasks(diamond)

        assert sorted(blocked) == ["B", "C", "D"]
        assert [e.pair for e in blocked["D"]] == [("B", "D"), ("C", "D")]


class TestConnectivity:
    def test_most_connected(self, diamond):
        add_tasks(diamond, E=1)
        service.create_dependency(diamond, "E", "D")
        service.create_dependency(diamond, "E", "B")

        ranked = service.get_most_connected_tasks(diamond, limit=2)
        assert ranked == [("B", 3), ("D", 3)]

    def test_default_limit_from_settings(self, diamond):
        add_tasks(diamond, E=0, F=0)
        assert len(service.get_most_connected_tasks(diamond)) == 5

    def test_statistics_cover_every_type(self, diamond):
        service.create_dependency(diamond, "D", "A", DependencyType.START_TO_START)
        stats = service.get_dependency_statistics(diamond)

        assert stats == {
            DependencyType.FINISH_TO_START: 4,
            DependencyType.START_TO_START: 1,
            DependencyType.FINISH_TO_FINISH: 0,
            DependencyType.START_TO_FINISH: 0,
        }
