"""Tests for the client façade: gating, sampling, size-triggered flush, shutdown."""

import logging
import threading
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from tracefuse import create_client
from tracefuse.client import ClientState, Core
from tracefuse.config import ClientConfig
from tracefuse.telemetry.bodies import TraceBody
from tracefuse.telemetry.events import EventType

from conftest import RecordingTransport


class FixedRandom:
    """Stand-in RNG that always draws the same value."""

    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


class TestEnqueue:
    def test_adds_an_event_to_the_queue(self, client):
        assert client.enqueue("trace-create", {"id": "test-id", "name": "Test"}) is True

        assert client.queue.size() == 1
        event = client.queue[0]
        assert event.type == EventType.TRACE_CREATE
        assert event.body == {"id": "test-id", "name": "Test"}

    def test_each_call_grows_queue_by_one(self, client):
        for n in range(1, 10):
            assert client.enqueue("span-create", {"id": f"s{n}", "traceId": "t"}) is True
            assert client.queue.size() == n

    def test_accepts_typed_bodies(self, client):
        client.enqueue(EventType.TRACE_CREATE, TraceBody(id="t1", user_id="u1"))

        assert client.queue[0].body == {"id": "t1", "userId": "u1"}

    def test_mapping_bodies_made_json_safe(self, client):
        moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
        client.enqueue("trace-create", {"id": "t1", "metadata": {"at": moment, "tags": ("a", "b")}})

        body = client.queue[0].body
        assert isinstance(body["metadata"]["at"], str)
        assert body["metadata"]["tags"] == ["a", "b"]

    def test_unknown_event_type_dropped(self, client, caplog):
        client.enqueue("trace-create", {"id": "t1"})

        with caplog.at_level(logging.ERROR, logger="tracefuse.client"):
            assert client.enqueue("score-create", {"id": "s1"}) is False

        assert client.queue.size() == 1
        assert "score-create" in caplog.text

    def test_unserializable_body_dropped(self, client, caplog):
        class Opaque:
            pass

        with caplog.at_level(logging.ERROR, logger="tracefuse.client"):
            assert client.enqueue("trace-create", {"id": "t1", "metadata": Opaque()}) is False

        assert client.queue.size() == 0
        assert any(record.levelno == logging.ERROR for record in caplog.records)

    def test_disabled_client_drops_everything(self, make_client, transport):
        client = make_client(enabled=False, flush_at=1)

        for _ in range(20):
            assert client.enqueue("trace-create", {"id": "t1"}) is False

        assert client.queue.size() == 0
        assert transport.calls == 0


class TestSampling:
    def test_rate_zero_drops_everything(self, make_client):
        client = make_client(sample_rate=0.0)

        for _ in range(100):
            assert client.enqueue("trace-create", {"id": "t1"}) is False
        assert client.queue.size() == 0

    def test_rate_zero_drops_even_a_zero_draw(self, config, transport):
        client = Core(config, transport=transport, rng=FixedRandom(0.0), sample_rate=0.0)

        assert client.enqueue("trace-create", {"id": "t1"}) is False
        assert client.queue.size() == 0

    def test_rate_one_keeps_everything(self, config, transport):
        client = Core(config, transport=transport, rng=FixedRandom(0.999999), sample_rate=1.0)

        assert client.enqueue("trace-create", {"id": "t1"}) is True
        assert client.queue.size() == 1

    @pytest.mark.parametrize(
        "draw,kept",
        [(0.0, True), (0.2499, True), (0.25, False), (0.9, False)],
    )
    def test_partial_rate_boundary(self, config, transport, draw, kept):
        client = Core(config, transport=transport, rng=FixedRandom(draw), sample_rate=0.25)

        assert client.enqueue("trace-create", {"id": "t1"}) is kept
        assert client.queue.size() == (1 if kept else 0)

    def test_partial_rate_keeps_roughly_that_fraction(self, make_client):
        client = make_client(sample_rate=0.5, flush_at=10_000)

        kept = sum(client.enqueue("trace-create", {"id": "t"}) for _ in range(2000))
        assert 800 < kept < 1200


class TestAutomaticFlush:
    def test_reaching_flush_at_flushes_once(self, make_client, monkeypatch):
        client = make_client(flush_at=2)
        spy = MagicMock(return_value=True)
        monkeypatch.setattr(client.dispatcher, "flush", spy)

        client.enqueue("trace-create", {"id": "test-id-1"})
        spy.assert_not_called()
        client.enqueue("trace-create", {"id": "test-id-2"})

        spy.assert_called_once()

    def test_flush_at_two_sends_one_batch(self, make_client, transport):
        client = make_client(flush_at=2)

        client.enqueue("trace-create", {"id": "t1"})
        client.enqueue("trace-create", {"id": "t2"})

        assert transport.calls == 1
        assert [e["body"]["id"] for e in transport.payloads[0]["batch"]] == ["t1", "t2"]
        assert client.queue.size() == 0

    def test_flush_at_threshold_repeats(self, make_client, transport):
        client = make_client(flush_at=3)

        for n in range(9):
            client.enqueue("trace-create", {"id": f"t{n}"})

        assert transport.calls == 3
        assert client.queue.size() == 0

    def test_no_automatic_flush_after_shutdown(self, make_client, transport):
        client = make_client(flush_at=1)
        client.shutdown()

        assert client.enqueue("trace-create", {"id": "t1"}) is True
        assert transport.calls == 0
        assert client.queue.size() == 1

        assert client.flush() is True
        assert transport.calls == 1

    def test_backoff_holds_automatic_flushes(self, config):
        transport = RecordingTransport(statuses=[500])
        client = Core(config, transport=transport, flush_at=1, retry_delay=60.0)

        client.enqueue("trace-create", {"id": "t1"})
        client.enqueue("trace-create", {"id": "t2"})

        assert transport.calls == 1
        assert client.queue.size() == 2

        assert client.flush() is True
        assert client.queue.size() == 0

    def test_concurrent_producers(self, make_client, transport):
        client = make_client(flush_at=10)

        def produce(worker: int):
            for n in range(50):
                client.enqueue("trace-create", {"id": f"{worker}-{n}"})

        threads = [threading.Thread(target=produce, args=(w,)) for w in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        client.flush()

        ids = [e["body"]["id"] for p in transport.payloads for e in p["batch"]]
        assert len(ids) == 400
        assert len(set(ids)) == 400


class TestFlushAndShutdown:
    def test_flush_empty_makes_no_request(self, client, transport):
        assert client.flush() is True
        assert transport.calls == 0

    def test_flush_async_flushes(self, client, transport):
        client.enqueue("trace-create", {"id": "t1"})

        assert client.flush_async() is True
        assert transport.calls == 1

    def test_flush_reports_failure(self, config):
        client = Core(config, transport=RecordingTransport(statuses=[500]))
        client.enqueue("trace-create", {"id": "t1"})

        assert client.flush() is False
        assert client.queue.size() == 1

    def test_shutdown_flushes_and_becomes_terminal(self, config, transport):
        client = Core(config, transport=transport, disable_background_flush=False)
        assert client.state is ClientState.ACTIVE
        assert client.scheduler.running

        client.enqueue("trace-create", {"id": "t1"})
        assert client.shutdown() is True

        assert client.state is ClientState.TERMINAL
        assert not client.scheduler.running
        assert transport.calls == 1
        assert client.queue.size() == 0

    def test_shutdown_returns_final_flush_result(self, config):
        client = Core(config, transport=RecordingTransport(statuses=[503]))
        client.enqueue("trace-create", {"id": "t1"})

        assert client.shutdown() is False
        assert client.state is ClientState.TERMINAL

    def test_shutdown_twice(self, client):
        assert client.shutdown() is True
        assert client.shutdown() is True
        assert client.state is ClientState.TERMINAL

    def test_shutdown_during_flush_passes_through_shutting_down(self, config):
        states = []

        class Watching(RecordingTransport):
            def send(self, payload):
                states.append(client.state)
                return super().send(payload)

        client = Core(config, transport=Watching())
        client.enqueue("trace-create", {"id": "t1"})
        client.shutdown()

        assert states == [ClientState.SHUTTING_DOWN]

    def test_context_manager_shuts_down(self, config, transport):
        with Core(config, transport=transport) as client:
            client.enqueue("trace-create", {"id": "t1"})

        assert client.state is ClientState.TERMINAL
        assert transport.calls == 1

    def test_background_flush_delivers(self, config, transport):
        client = Core(config, transport=transport, disable_background_flush=False, flush_interval=0.01)
        try:
            client.enqueue("trace-create", {"id": "t1"})
            done = threading.Event()
            for _ in range(200):
                if transport.calls:
                    done.set()
                    break
                done.wait(0.01)
            assert transport.calls >= 1
        finally:
            client.shutdown()


class TestConstruction:
    def test_options_override_config(self, config, transport):
        client = Core(config, transport=transport, flush_at=5, sample_rate=0.5)

        assert client.config.flush_at == 5
        assert client.config.sample_rate == 0.5
        assert client.config.public_key == "pk-test"

    def test_create_client(self, transport):
        client = create_client(
            public_key="pk",
            secret_key="sk",
            host="https://tracing.test/",
            disable_background_flush=True,
            transport=transport,
        )

        assert client.config.host == "https://tracing.test"
        assert client.config.public_key == "pk"
        assert not client.scheduler.running

    def test_default_transport_uses_config(self, config):
        client = Core(config, additional_headers={"X-Env": "ci"})
        transport = client.dispatcher.transport

        assert transport.host == "https://tracing.test"
        assert transport.public_key == "pk-test"
        assert transport.secret_key == "sk-test"
        assert transport.headers == {"X-Env": "ci"}
        assert transport.timeout == 10.0
