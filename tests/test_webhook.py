"""
Tests for apps/webhook.py – alert ingestion over HTTP.
"""
import json

import pytest
from fastapi.testclient import TestClient

from apps.webhook import MalformedAlert, create_app, parse_alert_body
from signals.classifier import Signal

_PATH = "/webhook/alert"


@pytest.fixture
def client(engine):
    return TestClient(create_app(engine, alert_path=_PATH, has_recipient=lambda: True))


class TestParseAlertBody:

    def test_json_object(self):
        assert parse_alert_body(b'{"symbol": "EURUSD", "signal": "BUY"}')["symbol"] == "EURUSD"

    def test_double_encoded(self):
        raw = json.dumps(json.dumps({"symbol": "EURUSD", "signal": "SELL"})).encode()
        assert parse_alert_body(raw)["signal"] == "SELL"

    @pytest.mark.parametrize("raw", [b"", b"BUY EURUSD", b"[1, 2]", b'"just text"', b"\xff\xfe"])
    def test_rejects(self, raw):
        with pytest.raises(MalformedAlert):
            parse_alert_body(raw)


class TestAlertEndpoint:

    def test_json_alert_is_pending(self, client, engine):
        resp = client.post(_PATH, json={"symbol": "OANDA:EURUSD", "signal": "BUY_RETEST", "price": 1.0712})
        assert resp.status_code == 202
        body = resp.json()
        assert body["symbol"] == "EURUSD"
        assert body["direction"] == "BUY"

        (item,) = list(engine.pending)
        assert item.id == body["id"]
        assert item.direction is Signal.BUY
        assert item.payload["price"] == 1.0712
        assert item.payload["symbol"] == "OANDA:EURUSD"

    def test_text_plain_json_accepted(self, client, engine):
        resp = client.post(
            _PATH,
            content='{"symbol": "FX:gbpusd", "signal": "sell"}',
            headers={"Content-Type": "text/plain"},
        )
        assert resp.status_code == 202
        assert resp.json()["symbol"] == "GBPUSD"
        assert resp.json()["direction"] == "SELL"
        assert len(engine.pending) == 1

    def test_symbol_without_exchange(self, client):
        resp = client.post(_PATH, json={"symbol": "xauusd", "signal": "Buy"})
        assert resp.json()["symbol"] == "XAUUSD"

    @pytest.mark.parametrize("body", [
        {"signal": "BUY"},
        {"symbol": "EURUSD"},
        {"symbol": "EURUSD", "signal": "HOLD"},
        {"symbol": "EURUSD", "signal": ""},
        {"symbol": "OANDA:", "signal": "BUY"},
        {"symbol": 123, "signal": "BUY"},
        {"symbol": "EURUSD", "signal": ["BUY"]},
    ])
    def test_malformed_rejected(self, client, engine, body):
        resp = client.post(_PATH, json=body)
        assert resp.status_code == 400
        assert "detail" in resp.json()
        assert len(engine.pending) == 0

    def test_not_json_rejected(self, client, engine):
        resp = client.post(_PATH, content="BUY EURUSD now", headers={"Content-Type": "text/plain"})
        assert resp.status_code == 400
        assert len(engine.pending) == 0

    def test_duplicates_coexist(self, client, engine):
        for _ in range(3):
            client.post(_PATH, json={"symbol": "EURUSD", "signal": "SELL"})
        assert len(engine.pending) == 3


def test_health(client, engine):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "primed": False, "pending": 0, "recipient": True}

    engine.run_cycle({"EURUSD": 50.0})
    assert client.get("/health").json()["primed"] is True
