def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_list_variants(client):
    response = client.get("/variants")

    assert response.status_code == 200
    names = [v["name"] for v in response.json()]
    assert names == ["lotofacil", "megasena", "lotofacil_dual"]


def test_get_variant(client):
    response = client.get("/variants/lotofacil_dual")

    assert response.status_code == 200
    data = response.json()
    assert data["ticket_size"] == 17
    assert data["allocation"]["repeat_targets"] == {"P1": 6, "P2": 8}


def test_get_unknown_variant(client):
    assert client.get("/variants/keno").status_code == 404


def test_generate_tickets(client):
    response = client.post("/tickets/generate", json={
        "variant": "lotofacil",
        "count": 10,
        "mandatory": [1, 3, 7, 20, 22],
        "constrained": True,
        "seed": 42,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["mandatory"] == [1, 3, 7, 20, 22]
    assert len(data["tickets"]) == 10
    assert len(data["attempts"]) == 10
    assert len({tuple(t["numbers"]) for t in data["tickets"]}) == 10


def test_generate_is_reproducible_with_seed(client):
    payload = {"variant": "megasena", "count": 5, "seed": 3}

    first = client.post("/tickets/generate", json=payload).json()
    second = client.post("/tickets/generate", json=payload).json()

    assert first["tickets"] == second["tickets"]


def test_generate_drops_forbidden_mandatory(client):
    response = client.post("/tickets/generate", json={
        "variant": "lotofacil",
        "count": 3,
        "mandatory": [1, 4, 7],
        "seed": 1,
    })

    assert response.status_code == 200
    assert response.json()["mandatory"] == [1, 7]


def test_generate_unknown_variant(client):
    response = client.post("/tickets/generate", json={"variant": "keno", "count": 3})

    assert response.status_code == 404


def test_generate_exhausted_conflict(client):
    response = client.post("/tickets/generate", json={
        "variant": "lotofacil",
        "count": 2,
        "mandatory": [1, 2, 3, 5, 7, 9, 10, 11, 12, 13, 14, 15, 16, 19, 20],
        "seed": 1,
    })

    assert response.status_code == 409


def test_allocate_and_optimize(client):
    allocated = client.post("/tickets/allocate", json={"variant": "lotofacil_dual", "seed": 5})
    assert allocated.status_code == 200
    tickets = allocated.json()["tickets"]
    assert len(tickets) == 10
    assert all(len(t["numbers"]) == 17 for t in tickets)

    response = client.post("/tickets/optimize", json={
        "variant": "lotofacil_dual",
        "tickets": tickets,
        "target": "02 03 04 06 07 09 13 14 15 16 17 19 20 23 24",
        "max_passes": 300,
        "seed": 5,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["passes_used"] <= 300
    assert all(len(t["numbers"]) == 17 for t in data["tickets"])


def test_allocate_without_plan(client):
    response = client.post("/tickets/allocate", json={"variant": "lotofacil"})

    assert response.status_code == 400


def test_compare(client):
    response = client.post("/tickets/compare", json={
        "variant": "lotofacil",
        "tickets": [{"id": 1, "numbers": list(range(1, 16))}],
        "result": "02 03 04 05 06 07 08 10 11 12 14 15 17 23 25",
    })

    assert response.status_code == 200
    data = response.json()
    assert data["hits"] == [12]
    assert data["prize_buckets"]["12"] == 1
    assert data["total_prizes"] == 14.0
    assert data["cost"] == 3.5


def test_compare_invalid_result(client):
    response = client.post("/tickets/compare", json={
        "variant": "lotofacil",
        "tickets": [{"id": 1, "numbers": list(range(1, 16))}],
        "result": "1 1 2 3 4 5 6 7 8 9 10 11 12 13 14",
    })

    assert response.status_code == 400
    assert "duplicate" in response.json()["detail"]


def test_random_result(client):
    response = client.post("/tickets/random-result", json={"variant": "megasena", "seed": 11})

    assert response.status_code == 200
    numbers = response.json()["numbers"]
    assert len(numbers) == 6
    assert numbers == sorted(numbers)


DUAL_TARGET = "02 03 04 06 07 09 13 14 15 16 17 19 20 23 24"


def _dual_ticket(ticket_id, numbers):
    return {"id": ticket_id, "numbers": numbers}


def test_optimize_rejects_repeated_numbers(client):
    numbers = [1, 1, 2, 3, 4, 5, 6, 7, 8, 16, 17, 18, 19, 20, 21, 22, 23]
    response = client.post("/tickets/optimize", json={
        "variant": "lotofacil_dual",
        "tickets": [_dual_ticket(1, numbers)],
        "target": DUAL_TARGET,
    })

    assert response.status_code == 400
    assert "repeats numbers: [1]" in response.json()["detail"]


def test_optimize_rejects_wrong_ticket_size(client):
    response = client.post("/tickets/optimize", json={
        "variant": "lotofacil_dual",
        "tickets": [_dual_ticket(1, [1, 2, 16]), _dual_ticket(2, [3, 17])],
        "target": DUAL_TARGET,
    })

    assert response.status_code == 400
    assert "expected 17" in response.json()["detail"]


def test_optimize_rejects_repeated_ticket_ids(client):
    first = list(range(1, 10)) + list(range(16, 24))
    second = list(range(7, 16)) + list(range(18, 26))
    response = client.post("/tickets/optimize", json={
        "variant": "lotofacil_dual",
        "tickets": [_dual_ticket(1, first), _dual_ticket(1, second)],
        "target": DUAL_TARGET,
    })

    assert response.status_code == 400
    assert "used more than once" in response.json()["detail"]


def test_compare_rejects_wrong_ticket_size(client):
    response = client.post("/tickets/compare", json={
        "variant": "lotofacil",
        "tickets": [{"id": 1, "numbers": list(range(1, 15))}],
        "result": "02 03 04 05 06 07 08 10 11 12 14 15 17 23 25",
        "seed": 3,
    })

    assert response.status_code == 400
    assert "expected 15" in response.json()["detail"]


def test_generate_mandatory_beyond_quota_still_balanced(client):
    response = client.post("/tickets/generate", json={
        "variant": "lotofacil",
        "count": 3,
        "mandatory": [1, 2, 3, 5, 7, 9],
        "seed": 2,
    })

    assert response.status_code == 200
    for ticket in response.json()["tickets"]:
        low = [n for n in ticket["numbers"] if n <= 9]
        assert len(low) == 6
        assert len(ticket["numbers"]) == 15
