# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for DataDogClient and its DogStatsd transport."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, call, patch

import pytest
from datadog.dogstatsd import DogStatsd

import unimetrics
from unimetrics import (
    DataDogClient,
    DogStatsdTransport,
    Event,
    EventAlertType,
    EventPriority,
)
from unimetrics._datadog import connection_options
from unimetrics.errors import ClientConfigurationError, InvalidSampleRateError


class FakeTransport:
    """Transport that records what it was asked to send."""

    def __init__(self) -> None:
        super().__init__()
        self.metrics: list[tuple[str, str, float, list[str], float]] = []
        self.events: list[Event] = []
        self.flushes = 0
        self.closes = 0

    def send_metric(
        self, kind: str, name: str, value: float, tags: Sequence[str], rate: float
    ) -> None:
        self.metrics.append((kind, name, value, list(tags), rate))

    def send_event(self, event: Event) -> None:
        self.events.append(event)

    def flush(self) -> None:
        self.flushes += 1

    def close(self) -> None:
        self.closes += 1


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(transport: FakeTransport) -> DataDogClient:
    return DataDogClient(transport=transport)


@pytest.fixture
def statsd_class() -> Iterator[MagicMock]:
    """Patch the DogStatsd class used to build the default transport."""
    with patch("unimetrics._datadog.DogStatsd") as statsd_class:
        statsd_class.return_value = MagicMock(spec=DogStatsd)
        yield statsd_class


class TestDataDogClient:
    """Tests for DataDogClient forwarding to its transport."""

    def test_forwards_every_kind(
        self, client: DataDogClient, transport: FakeTransport
    ) -> None:
        client.count("count", 5)
        client.incr("incr")
        client.decr("decr")
        client.gauge("gauge", 4.3)
        client.histogram("histogram", 7)
        client.distribution("distribution", 8)
        client.timing("timing", timedelta(milliseconds=1500))
        client.timing("raw", 12)

        assert transport.metrics == [
            ("count", "count", 5.0, [], 1.0),
            ("count", "incr", 1.0, [], 1.0),
            ("count", "decr", -1.0, [], 1.0),
            ("gauge", "gauge", 4.3, [], 1.0),
            ("histogram", "histogram", 7.0, [], 1.0),
            ("distribution", "distribution", 8.0, [], 1.0),
            ("timing", "timing", 1500.0, [], 1.0),
            ("timing", "raw", 12.0, [], 1.0),
        ]

    def test_tags_and_rate(
        self, client: DataDogClient, transport: FakeTransport
    ) -> None:
        client.with_tags({"b": "2", "a": "1"}).with_rate(0.5).incr("hits")
        assert transport.metrics == [("count", "hits", 1.0, ["a:1", "b:2"], 0.5)]

    def test_tags_override(self, client: DataDogClient) -> None:
        derived = client.with_tags({"a": "1", "b": "1"}).with_tags({"a": "2"})
        assert derived.tags == ["a:2", "b:1"]
        assert client.tags == []

    def test_constant_tags(self, transport: FakeTransport) -> None:
        client = DataDogClient(transport=transport, constant_tags={"env": "prod"})
        client.with_tags({"env": "dev", "route": "home"}).incr("hits")
        assert client.tags == ["env:prod"]
        assert transport.metrics[0][3] == ["env:dev", "route:home"]

    def test_event_gets_copy_with_client_tags(
        self, client: DataDogClient, transport: FakeTransport
    ) -> None:
        event = Event(title="deploy", text="done", tags=("own:1",))
        client.with_tags({"c": "2", "b": "3"}).event(event)

        assert transport.events[0].tags == ("own:1", "b:3", "c:2")
        assert transport.events[0].title == "deploy"
        assert event.tags == ("own:1",)

    def test_event_without_client_tags(
        self, client: DataDogClient, transport: FakeTransport
    ) -> None:
        event = Event(title="deploy", text="done")
        client.event(event)
        assert transport.events == [event]

    def test_flush_and_close(
        self, client: DataDogClient, transport: FakeTransport
    ) -> None:
        client.flush()
        client.with_tags({"a": "1"}).close()
        assert transport.flushes == 1
        assert transport.closes == 1

    @pytest.mark.parametrize("rate", [0, 1.1, -1])
    def test_invalid_rate(self, client: DataDogClient, rate: float) -> None:
        with pytest.raises(InvalidSampleRateError):
            _ = client.with_rate(rate)

    def test_satisfies_protocols(
        self, client: DataDogClient, transport: FakeTransport
    ) -> None:
        assert isinstance(client, unimetrics.MetricsClient)
        assert isinstance(transport, unimetrics.StatsdTransport)
        assert client.transport is transport


class TestDefaultTransport:
    """Tests for the DogStatsd client built when no transport is given."""

    def test_udp_options(self, statsd_class: MagicMock) -> None:
        client = DataDogClient("statsd.local:9125", namespace="myapp.")

        statsd_class.assert_called_once_with(
            namespace="myapp",
            disable_telemetry=False,
            host="statsd.local",
            port=9125,
        )
        assert isinstance(client.transport, DogStatsdTransport)
        assert client.transport.statsd is statsd_class.return_value

    def test_unix_socket_without_telemetry(self, statsd_class: MagicMock) -> None:
        _ = DataDogClient("unix:///var/run/dsd.sock", telemetry=False)
        statsd_class.assert_called_once_with(
            namespace=None,
            disable_telemetry=True,
            socket_path="/var/run/dsd.sock",
        )

    def test_creation_is_logged(
        self, statsd_class: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        del statsd_class
        with caplog.at_level(logging.DEBUG, logger="unimetrics._datadog"):
            _ = DataDogClient("localhost:8125", namespace="app")

        record = caplog.records[-1]
        assert getattr(record, "event") == "datadog.client_created"
        assert getattr(record, "context") == {
            "address": "localhost:8125",
            "namespace": "app",
            "telemetry": True,
        }

    def test_external_transport_skips_statsd(
        self, statsd_class: MagicMock, transport: FakeTransport
    ) -> None:
        _ = DataDogClient("not an address", transport=transport)
        statsd_class.assert_not_called()

    def test_bad_address_raises(self, statsd_class: MagicMock) -> None:
        with pytest.raises(ClientConfigurationError):
            _ = DataDogClient("not an address")
        statsd_class.assert_not_called()


class TestConnectionOptions:
    """Tests for translating addresses into DogStatsd options."""

    @pytest.mark.parametrize(
        ("address", "expected"),
        [
            ("localhost:8125", {"host": "localhost", "port": 8125}),
            ("10.0.0.7:9125", {"host": "10.0.0.7", "port": 9125}),
            ("[::1]:8125", {"host": "::1", "port": 8125}),
            ("unix:///var/run/dsd.sock", {"socket_path": "/var/run/dsd.sock"}),
        ],
    )
    def test_valid(self, address: str, expected: dict[str, object]) -> None:
        assert connection_options(address) == expected

    @pytest.mark.parametrize(
        "address",
        ["localhost", ":8125", "host:", "host:port", "a:b:1", "host:0", "host:70000"],
    )
    def test_invalid(self, address: str) -> None:
        with pytest.raises(ClientConfigurationError):
            _ = connection_options(address)

    def test_unix_without_path(self) -> None:
        with pytest.raises(ClientConfigurationError, match="no path"):
            _ = connection_options("unix://")


class TestDogStatsdTransport:
    """Tests for forwarding from DogStatsdTransport to DogStatsd."""

    @pytest.fixture
    def statsd(self) -> MagicMock:
        return MagicMock(spec=DogStatsd)

    @pytest.mark.parametrize(
        ("kind", "method"),
        [
            ("count", "increment"),
            ("gauge", "gauge"),
            ("histogram", "histogram"),
            ("distribution", "distribution"),
            ("timing", "timing"),
        ],
    )
    def test_metric_kinds(self, statsd: MagicMock, kind: str, method: str) -> None:
        DogStatsdTransport(statsd).send_metric(kind, "m", 2.5, ("a:1",), 0.5)
        getattr(statsd, method).assert_called_once_with(
            "m", 2.5, tags=["a:1"], sample_rate=0.5
        )

    def test_unknown_kind(self, statsd: MagicMock) -> None:
        with pytest.raises(ValueError, match="Unknown metric kind"):
            DogStatsdTransport(statsd).send_metric("set", "m", 1.0, (), 1.0)

    def test_client_calls_reach_statsd(self, statsd_class: MagicMock) -> None:
        statsd = statsd_class.return_value
        client = DataDogClient("localhost:8125", namespace="test")
        client.with_tags({"env": "prod"}).count("requests", 5)
        client.with_rate(0.5).decr("hits")
        client.timing("latency", timedelta(milliseconds=20))

        assert statsd.increment.call_args_list == [
            call("requests", 5.0, tags=["env:prod"], sample_rate=1.0),
            call("hits", -1.0, tags=[], sample_rate=0.5),
        ]
        statsd.timing.assert_called_once_with(
            "latency", 20.0, tags=[], sample_rate=1.0
        )

    def test_minimal_event(self, statsd: MagicMock) -> None:
        DogStatsdTransport(statsd).send_event(Event(title="deploy", text="done"))
        statsd.event.assert_called_once_with(
            "deploy",
            "done",
            alert_type=None,
            aggregation_key=None,
            source_type_name=None,
            date_happened=None,
            priority=None,
            tags=[],
            hostname=None,
        )

    def test_full_event(self, statsd: MagicMock) -> None:
        event = Event(
            title="deploy",
            text="line1\nline2",
            timestamp=datetime(2024, 1, 1, tzinfo=UTC),
            hostname="web-1",
            aggregation_key="deploys",
            priority=EventPriority.LOW,
            source_type_name="ci",
            alert_type=EventAlertType.SUCCESS,
            tags=("env:prod", "team:core"),
        )
        DogStatsdTransport(statsd).send_event(event)
        statsd.event.assert_called_once_with(
            "deploy",
            "line1\nline2",
            alert_type="success",
            aggregation_key="deploys",
            source_type_name="ci",
            date_happened=1704067200,
            priority="low",
            tags=["env:prod", "team:core"],
            hostname="web-1",
        )

    def test_flush(self, statsd: MagicMock) -> None:
        DogStatsdTransport(statsd).flush()
        statsd.flush.assert_called_once_with()
        statsd.close_socket.assert_not_called()

    def test_close_flushes_then_closes_socket(self, statsd: MagicMock) -> None:
        DogStatsdTransport(statsd).close()
        assert [name for name, _, _ in statsd.method_calls] == [
            "flush",
            "close_socket",
        ]

    def test_satisfies_protocol(self, statsd: MagicMock) -> None:
        assert isinstance(DogStatsdTransport(statsd), unimetrics.StatsdTransport)


class TestFromEnv:
    """Tests for DataDogClient.from_env."""

    def test_defaults(self, statsd_class: MagicMock) -> None:
        client = DataDogClient.from_env(env={})
        statsd_class.assert_called_once_with(
            namespace=None, disable_telemetry=False, host="localhost", port=8125
        )
        assert client.tags == []

    def test_reads_agent_and_unified_tags(self, statsd_class: MagicMock) -> None:
        client = DataDogClient.from_env(
            "app",
            env={
                "DD_AGENT_HOST": "statsd.local",
                "DD_DOGSTATSD_PORT": "9125",
                "DD_ENV": "prod",
                "DD_SERVICE": "api",
                "DD_VERSION": "1.2.3",
            },
            telemetry=False,
        )
        client.incr("hits")

        statsd_class.assert_called_once_with(
            namespace="app", disable_telemetry=True, host="statsd.local", port=9125
        )
        statsd_class.return_value.increment.assert_called_once_with(
            "hits",
            1.0,
            tags=["env:prod", "service:api", "version:1.2.3"],
            sample_rate=1.0,
        )

    def test_ipv6_agent_host(self, statsd_class: MagicMock) -> None:
        _ = DataDogClient.from_env(env={"DD_AGENT_HOST": "::1"})
        assert statsd_class.call_args.kwargs["host"] == "::1"
        assert statsd_class.call_args.kwargs["port"] == 8125

    def test_explicit_constant_tags_win(self, transport: FakeTransport) -> None:
        client = DataDogClient.from_env(
            env={"DD_ENV": "prod", "DD_SERVICE": "api"},
            transport=transport,
            constant_tags={"env": "staging"},
        )
        assert client.tags == ["env:staging", "service:api"]
        assert client.transport is transport
