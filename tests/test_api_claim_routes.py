from __future__ import annotations

from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from claimdrop.runtime import metrics
from claimdrop.runtime.claim_controller import VariableRateDrop
from claimdrop.runtime.drop_config import default_drop_config

T0 = 1_700_000_000


class _Clock:
    def __init__(self, now: int) -> None:
        self.now = now

    def __call__(self) -> float:
        return float(self.now)


@pytest.fixture()
def clock() -> _Clock:
    return _Clock(T0)


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch, clock: _Clock) -> TestClient:
    from claimdrop.api import app as api_app

    cfg = replace(default_drop_config(), start_time=T0)
    monkeypatch.setattr(api_app, "build_runtime_drop", lambda: VariableRateDrop(cfg, clock=clock))
    metrics.reset()
    return TestClient(api_app.create_app(boot_runtime=True))


def _claim(c: TestClient, account: str, origin: str | None = None):
    headers = {"X-Claim-Account": account}
    if origin is not None:
        headers["X-Claim-Origin"] = origin
    return c.post("/v1/claim", headers=headers)


def test_health_and_drop_info(client: TestClient) -> None:
    r = client.get("/v1/health")
    assert r.status_code == 200
    assert r.json()["ready"] is True

    info = client.get("/v1/drop").json()
    cfg = default_drop_config()
    assert info["mode"] == "variable"
    assert info["start_time"] == T0
    assert info["target_end_time"] == T0 + cfg.target_duration
    assert int(info["target_units_per_step"]) == cfg.max_supply * cfg.network_step_interval // cfg.target_duration
    assert info["total_supply"] == "0"
    assert "claim_amount" not in info


def test_claim_flow(client: TestClient, clock: _Clock) -> None:
    clock.now = T0 - 5
    r = _claim(client, "alice")
    assert r.status_code == 425
    assert r.json()["error"]["code"] == "claim_not_started"

    clock.now = T0
    r = _claim(client, "alice")
    assert r.status_code == 200
    body = r.json()
    assert body["ok"] is True
    assert body["claimed"] is True
    assert int(body["amount"]) > 0

    acct = client.get("/v1/accounts/alice").json()
    assert acct["claimed"] is True
    assert acct["balance"] == body["amount"]

    r = _claim(client, "alice")
    assert r.status_code == 409
    j = r.json()
    assert j["ok"] is False
    assert j["error"]["code"] == "already_claimed"


def test_claim_requires_caller_header(client: TestClient) -> None:
    r = client.post("/v1/claim")
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "caller_required"


def test_relayed_claim_is_forbidden(client: TestClient) -> None:
    r = _claim(client, "relay", origin="alice")
    assert r.status_code == 403
    assert r.json()["error"]["code"] == "restricted_caller"


def test_quote_matches_claim(client: TestClient, clock: _Clock) -> None:
    clock.now = T0 + 600
    q = client.get("/v1/claim/quote", headers={"X-Claim-Account": "bob"}).json()
    assert q["already_claimed"] is False

    r = _claim(client, "bob").json()
    assert r["amount"] == q["amount"]
    assert client.get("/v1/accounts/bob").json()["claimed"] is True


def test_metrics_endpoint_is_gated(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CLAIMDROP_METRICS_ENABLED", raising=False)
    assert client.get("/v1/metrics").status_code == 404

    monkeypatch.setenv("CLAIMDROP_METRICS_ENABLED", "1")
    _claim(client, "carol")
    _claim(client, "carol")
    r = client.get("/v1/metrics")
    assert r.status_code == 200
    assert "claimdrop_claims_settled 1" in r.text
    assert "claimdrop_claims_rejected_already_claimed 1" in r.text


def test_create_app_without_runtime_reports_not_ready() -> None:
    from claimdrop.api.app import create_app

    with TestClient(create_app(boot_runtime=False)) as c:
        assert c.get("/v1/health").json()["ready"] is False
        r = c.get("/v1/drop")
        assert r.status_code == 500
        assert r.json()["error"]["code"] == "not_ready"
