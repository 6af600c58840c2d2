"""
HTTP API tests against the ASGI app with an in-memory registry.
"""

import pytest


async def seed_diamond(client, project_id="p1"):
    """Create a project holding the A/B/C/D diamond (4h, 6h, 3h, 2h)."""
    resp = await client.post("/projects/", json={"id": project_id, "name": "Diamond"})
    assert resp.status_code == 201

    for task_id, hours in {"A": 4, "B": 6, "C": 3, "D": 2}.items():
        resp = await client.put(
            f"/projects/{project_id}/tasks/{task_id}",
            json={"title": f"Task {task_id}", "duration_hours": hours},
        )
        assert resp.status_code == 200

    for prerequisite, dependent in [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")]:
        resp = await client.post(
            f"/projects/{project_id}/dependencies/",
            json={"dependent_id": dependent, "prerequisite_id": prerequisite},
        )
        assert resp.status_code == 201


class TestProjectsAPI:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.json() == {"status": "healthy"}

    @pytest.mark.asyncio
    async def test_create_and_list_projects(self, client):
        resp = await client.post("/projects/", json={"id": "p1", "name": "One"})
        assert resp.status_code == 201
        assert resp.json()["name"] == "One"

        resp = await client.get("/projects/")
        assert [p["id"] for p in resp.json()] == ["p1"]

    @pytest.mark.asyncio
    async def test_duplicate_project(self, client):
        await client.post("/projects/", json={"id": "p1"})
        resp = await client.post("/projects/", json={"id": "p1"})

        assert resp.status_code == 409
        assert resp.json()["error"] == "duplicate_project"

    @pytest.mark.asyncio
    async def test_unknown_project(self, client):
        resp = await client.get("/projects/nope/critical-path")

        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_delete_project(self, client):
        await client.post("/projects/", json={"id": "p1"})
        resp = await client.delete("/projects/p1")
        assert resp.status_code == 204

        resp = await client.get("/projects/p1")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_task_upsert(self, client):
        await client.post("/projects/", json={"id": "p1"})
        await client.put("/projects/p1/tasks/A", json={"duration_hours": 4})
        resp = await client.put("/projects/p1/tasks/A", json={"duration_hours": 5, "progress": 40})

        assert resp.json()["has_started"] is True
        resp = await client.get("/projects/p1/tasks")
        assert [(t["id"], t["duration_hours"]) for t in resp.json()] == [("A", 5)]

    @pytest.mark.asyncio
    async def test_negative_duration_rejected(self, client):
        await client.post("/projects/", json={"id": "p1"})
        resp = await client.put("/projects/p1/tasks/A", json={"duration_hours": -1})
        assert resp.status_code == 422


class TestDependenciesAPI:
    @pytest.mark.asyncio
    async def test_create_returns_description(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/dependencies/")

        body = resp.json()
        assert len(body) == 4
        assert body[0]["description"] == "A → B (FS)"
        assert body[0]["dependency_type"] == "FINISH_TO_START"

    @pytest.mark.asyncio
    async def test_cycle_rejected(self, client):
        await seed_diamond(client)
        resp = await client.post(
            "/projects/p1/dependencies/",
            json={"dependent_id": "A", "prerequisite_id": "D"},
        )

        assert resp.status_code == 400
        body = resp.json()
        assert body["error"] == "cycle_detected"
        assert body["details"][0]["msg"].startswith("Cycle: D -> A")

    @pytest.mark.asyncio
    async def test_self_dependency_rejected(self, client):
        await seed_diamond(client)
        resp = await client.post(
            "/projects/p1/dependencies/",
            json={"dependent_id": "A", "prerequisite_id": "A"},
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid_argument"

    @pytest.mark.asyncio
    async def test_update_and_soft_delete(self, client):
        await seed_diamond(client)
        dep_id = (await client.get("/projects/p1/dependencies/")).json()[0]["id"]

        resp = await client.patch(
            f"/projects/p1/dependencies/{dep_id}",
            json={"dependency_type": "START_TO_START", "lag_hours": 2},
        )
        assert resp.json()["description"] == "A → B (SS) (+2h lag)"

        resp = await client.post(f"/projects/p1/dependencies/{dep_id}/deactivate")
        assert resp.json()["active"] is False
        resp = await client.get("/projects/p1/dependencies/")
        assert len(resp.json()) == 3
        resp = await client.get("/projects/p1/dependencies/", params={"active_only": False})
        assert len(resp.json()) == 4

        resp = await client.post(f"/projects/p1/dependencies/{dep_id}/activate")
        assert resp.json()["active"] is True

    @pytest.mark.asyncio
    async def test_delete_dependency(self, client):
        await seed_diamond(client)
        dep_id = (await client.get("/projects/p1/dependencies/")).json()[0]["id"]

        resp = await client.delete(f"/projects/p1/dependencies/{dep_id}")
        assert resp.status_code == 204
        resp = await client.get(f"/projects/p1/dependencies/{dep_id}")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_task_dependencies(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/dependencies/tasks/B")

        body = resp.json()
        assert [d["prerequisite_id"] for d in body["dependencies"]] == ["A"]
        assert [d["dependent_id"] for d in body["dependents"]] == ["D"]

    @pytest.mark.asyncio
    async def test_bulk_create_is_atomic(self, client):
        await seed_diamond(client)
        await client.put("/projects/p1/tasks/E", json={"duration_hours": 1})

        resp = await client.post("/projects/p1/dependencies/bulk", json={"dependencies": [
            {"dependent_id": "E", "prerequisite_id": "D"},
            {"dependent_id": "A", "prerequisite_id": "E"},
        ]})
        assert resp.status_code == 400
        resp = await client.get("/projects/p1/dependencies/")
        assert len(resp.json()) == 4

    @pytest.mark.asyncio
    async def test_bulk_type_update_and_delete(self, client):
        await seed_diamond(client)
        ids = [d["id"] for d in (await client.get("/projects/p1/dependencies/")).json()]

        resp = await client.patch("/projects/p1/dependencies/bulk", json={
            "dependency_ids": ids[:2],
            "dependency_type": "START_TO_START",
        })
        assert resp.json() == {"count": 2}

        resp = await client.request("DELETE", "/projects/p1/dependencies/bulk", json={"dependency_ids": ids})
        assert resp.json() == {"count": 4}

    @pytest.mark.asyncio
    async def test_delete_task_cascades(self, client):
        await seed_diamond(client)
        resp = await client.delete("/projects/p1/tasks/B")
        assert resp.status_code == 204

        resp = await client.get("/projects/p1/critical-path")
        body = resp.json()
        assert body["ordered_critical_tasks"] == ["A", "C", "D"]
        assert body["total_project_duration"] == 9


class TestAnalysisAPI:
    @pytest.mark.asyncio
    async def test_critical_path(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/critical-path")

        assert resp.status_code == 200
        body = resp.json()
        assert body["ordered_critical_tasks"] == ["A", "B", "D"]
        assert body["total_project_duration"] == 12
        assert body["float_by_task"]["C"] == 3
        assert body["schedule"]["C"]["latest_start"] == 7
        assert all(e["is_critical"] for e in body["critical_edges"])

    @pytest.mark.asyncio
    async def test_critical_path_tasks_and_float(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/critical-path/tasks")
        assert [t["id"] for t in resp.json()] == ["A", "B", "D"]

        resp = await client.get("/projects/p1/tasks/C/float")
        assert resp.json() == {"task_id": "C", "total_float": 3}

    @pytest.mark.asyncio
    async def test_readiness(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/tasks/B/readiness")
        body = resp.json()
        assert body["can_start"] is False
        assert body["blocking_dependencies"][0]["prerequisite_id"] == "A"

        await client.put("/projects/p1/tasks/A", json={"duration_hours": 4, "completed": True})
        resp = await client.get("/projects/p1/ready-tasks")
        assert [t["id"] for t in resp.json()] == ["B", "C"]

    @pytest.mark.asyncio
    async def test_blocked_tasks(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/blocked-tasks")
        assert [b["task_id"] for b in resp.json()] == ["B", "C", "D"]

    @pytest.mark.asyncio
    async def test_prerequisites_and_dependents(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/tasks/D/prerequisites")
        assert resp.json() == ["B", "C"]
        resp = await client.get("/projects/p1/tasks/D/prerequisites", params={"transitive": True})
        assert resp.json() == ["A", "B", "C"]
        resp = await client.get("/projects/p1/tasks/A/dependents", params={"transitive": True})
        assert resp.json() == ["B", "C", "D"]

    @pytest.mark.asyncio
    async def test_path_and_cycle_check(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/path", params={"from_task": "D", "to_task": "A"})
        assert resp.json()["path"] == []

        resp = await client.get(
            "/projects/p1/would-create-cycle",
            params={"dependent_id": "A", "prerequisite_id": "D"},
        )
        assert resp.json()["would_create_cycle"] is True

        resp = await client.get(
            "/projects/p1/would-create-cycle",
            params={"dependent_id": "A", "prerequisite_id": "ghost"},
        )
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_statistics_and_most_connected(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/statistics")
        assert resp.json() == {
            "counts": {
                "FINISH_TO_START": 4,
                "START_TO_START": 0,
                "FINISH_TO_FINISH": 0,
                "START_TO_FINISH": 0,
            },
            "total": 4,
        }

        resp = await client.get("/projects/p1/most-connected", params={"limit": 1})
        assert resp.json() == [{"task_id": "A", "degree": 2}]

    @pytest.mark.asyncio
    async def test_risk_and_optimization(self, client):
        await seed_diamond(client)
        resp = await client.get("/projects/p1/risk")
        assert resp.json()["overall_risk"] == "MEDIUM"

        resp = await client.get("/projects/p1/optimize-schedule")
        assert resp.json()["suggested_adjustments"] == {"C": 3}

        resp = await client.get("/projects/p1/external-constraints", params={"min_lag_hours": 0})
        assert len(resp.json()) == 4

    @pytest.mark.asyncio
    async def test_import_with_cycle(self, client):
        await client.post("/projects/", json={"id": "p1"})
        resp = await client.post("/projects/p1/import", json={
            "tasks": [{"id": "A", "duration_hours": 1}, {"id": "B", "duration_hours": 1}],
            "dependencies": [
                {"prerequisite_id": "A", "dependent_id": "B"},
                {"prerequisite_id": "B", "dependent_id": "A"},
            ],
        })
        body = resp.json()
        assert body["valid"] is False
        assert body["cycles"] == [["A", "B"]]

        resp = await client.get("/projects/p1/validate")
        assert resp.json()["valid"] is False

        resp = await client.get("/projects/p1/critical-path")
        assert resp.status_code == 409
        assert resp.json()["error"] == "graph_integrity"

        resp = await client.get("/projects/p1/risk")
        assert resp.json()["overall_risk"] == "CRITICAL"
