import pytest
import numpy as np
from fastapi.testclient import TestClient

from ticket_engine.engine.variants import LOTOFACIL, LOTOFACIL_DUAL, MEGASENA
from ticket_engine.main import app


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def lotofacil():
    return LOTOFACIL


@pytest.fixture
def megasena():
    return MEGASENA


@pytest.fixture
def dual_pool():
    return LOTOFACIL_DUAL


@pytest.fixture
def lotofacil_history():
    np.random.seed(42)
    return [
        sorted(np.random.choice(range(1, 26), 15, replace=False).tolist())
        for _ in range(60)
    ]


@pytest.fixture
def megasena_history():
    np.random.seed(7)
    return [
        sorted(np.random.choice(range(1, 61), 6, replace=False).tolist())
        for _ in range(80)
    ]
