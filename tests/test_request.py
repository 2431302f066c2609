"""Tests for request module."""
import logging
import threading
from datetime import timedelta

import pytest

from telemetry_contracts.extension import DictExtension, TelemetryExtension
from telemetry_contracts.request import HTTP_METHOD_PROPERTY, RequestTelemetry
from telemetry_contracts.serialization import DictSerializationWriter
from telemetry_contracts.telemetry import PROCESSED_BY_EXTRACTORS_KEY


class _RecordingWriter:
    def __init__(self):
        self.calls = []

    def write_property(self, name, value):
        self.calls.append((name, value))


class _CountingExtension(TelemetryExtension):
    def __init__(self, payload):
        self.payload = payload

    def deep_clone(self):
        return _CountingExtension(list(self.payload))


class TestConstruction:
    """Tests for RequestTelemetry constructors."""

    def test_default_constructor(self):
        """Should generate an id and leave other fields at defaults."""
        item = RequestTelemetry()
        assert item.id
        assert item.name is None
        assert item.timestamp is None
        assert item.sequence is None
        assert item.duration == timedelta(0)
        assert item.response_code is None
        assert item.success is None
        assert item.source is None
        assert item.url is None
        assert item.extension is None
        assert item.sampling_percentage is None
        assert item.context.properties == {}

    def test_each_item_gets_its_own_id(self):
        assert RequestTelemetry().id != RequestTelemetry().id

    def test_convenience_constructor(self, start_time):
        item = RequestTelemetry("GET /", start_time, timedelta(seconds=2), "404", False)
        assert item.name == "GET /"
        assert item.timestamp == start_time
        assert item.duration == timedelta(seconds=2)
        assert item.response_code == "404"
        assert item.success is False

    @pytest.mark.parametrize("name", [None, ""])
    def test_convenience_constructor_accepts_missing_name(self, start_time, name):
        """Should not raise for a missing or empty name."""
        item = RequestTelemetry(name, start_time, timedelta(seconds=1), "200", True)
        assert item.name == name

    def test_duration_must_be_timedelta(self):
        item = RequestTelemetry()
        with pytest.raises(TypeError):
            item.duration = 1.5

    @pytest.mark.parametrize("value", [-0.1, 100.5])
    def test_sampling_percentage_range(self, value):
        item = RequestTelemetry()
        with pytest.raises(ValueError):
            item.sampling_percentage = value

    def test_repr(self):
        item = RequestTelemetry(name="GET /")
        assert repr(item) == f"RequestTelemetry(id={item.id!r}, name='GET /')"


class TestSuccessTriState:
    """Tests for the tri-state success flag."""

    def test_unset_by_default(self):
        assert RequestTelemetry().success is None

    def test_set_then_reset(self):
        item = RequestTelemetry()
        item.success = True
        assert item.success is True
        item.success = None
        assert item.success is None

    def test_false_is_distinguishable_from_unset(self):
        item = RequestTelemetry()
        item.success = False
        assert item.success is False
        assert item.success is not None


class TestMetrics:
    """Tests for the lazily created metrics map."""

    def test_same_instance_on_every_read(self):
        item = RequestTelemetry()
        assert item.metrics is item.metrics

    def test_not_created_until_read(self):
        item = RequestTelemetry()
        assert item._measurements is None
        item.metrics["x"] = 1.0
        assert item._measurements == {"x": 1.0}

    def test_concurrent_first_access_publishes_one_map(self):
        """Racing first reads should all observe the same dictionary."""
        for _ in range(20):
            item = RequestTelemetry()
            workers = 8
            barrier = threading.Barrier(workers)
            seen = []
            lock = threading.Lock()

            def read_metrics():
                barrier.wait()
                metrics = item.metrics
                with lock:
                    seen.append(metrics)

            threads = [threading.Thread(target=read_metrics) for _ in range(workers)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

            assert len(seen) == workers
            assert len({id(metrics) for metrics in seen}) == 1
            assert seen[0] is item.metrics


class TestProperties:
    """Tests for the properties accessor."""

    def test_backed_by_context(self):
        item = RequestTelemetry()
        item.properties["a"] = "1"
        assert item.context.properties == {"a": "1"}

    def test_extractor_marker_injected_once(self):
        """First read injects the marker; second read changes nothing."""
        item = RequestTelemetry()
        item.properties["a"] = "1"
        item.metric_extractor_info = "(Name:'Requests', Ver:'1.1')"

        first = item.properties
        assert first[PROCESSED_BY_EXTRACTORS_KEY] == "(Name:'Requests', Ver:'1.1')"
        size = len(first)

        second = item.properties
        assert len(second) == size

    def test_existing_marker_not_overwritten(self):
        item = RequestTelemetry()
        item.context.properties[PROCESSED_BY_EXTRACTORS_KEY] = "existing"
        item.metric_extractor_info = "new"
        assert item.properties[PROCESSED_BY_EXTRACTORS_KEY] == "existing"

    def test_no_marker_without_extractor_info(self):
        item = RequestTelemetry()
        assert PROCESSED_BY_EXTRACTORS_KEY not in item.properties

    def test_http_method(self):
        item = RequestTelemetry()
        assert item.http_method is None
        item.http_method = "POST"
        assert item.http_method == "POST"
        assert item.properties[HTTP_METHOD_PROPERTY] == "POST"


class TestDeepClone:
    """Tests for RequestTelemetry.deep_clone."""

    def test_scalar_fields_equal(self, request_item):
        request_item.sequence = "12"
        request_item.sampling_percentage = 50
        clone = request_item.deep_clone()

        assert isinstance(clone, RequestTelemetry)
        assert clone is not request_item
        for attribute in (
            "id",
            "name",
            "timestamp",
            "sequence",
            "duration",
            "response_code",
            "success",
            "source",
            "url",
            "sampling_percentage",
        ):
            assert getattr(clone, attribute) == getattr(request_item, attribute)

    def test_maps_are_independent(self, request_item):
        clone = request_item.deep_clone()
        assert clone.properties == request_item.properties
        assert clone.metrics == request_item.metrics

        clone.properties["clone-only"] = "1"
        clone.metrics["clone-only"] = 1.0
        request_item.properties["original-only"] = "2"
        request_item.metrics["original-only"] = 2.0

        assert "clone-only" not in request_item.properties
        assert "clone-only" not in request_item.metrics
        assert "original-only" not in clone.properties
        assert "original-only" not in clone.metrics

    def test_context_is_independent(self, request_item):
        clone = request_item.deep_clone()
        clone.context.operation.id = "other"
        assert request_item.context.operation.id == "4bf92f3577b34da6a3ce929d0e0e4736"
        assert clone.context.cloud.role_name == "orders-api"

    @pytest.mark.parametrize("value", [None, True, False])
    def test_success_tri_state_preserved(self, value):
        item = RequestTelemetry()
        item.success = value
        assert item.deep_clone().success is value

    def test_extension_cloned_polymorphically(self):
        item = RequestTelemetry()
        item.extension = _CountingExtension([1, 2])
        clone = item.deep_clone()

        assert isinstance(clone.extension, _CountingExtension)
        assert clone.extension is not item.extension
        clone.extension.payload.append(3)
        assert item.extension.payload == [1, 2]

    def test_dict_extension_cloned(self):
        item = RequestTelemetry()
        item.extension = DictExtension({"k": ["v"]})
        clone = item.deep_clone()
        clone.extension["k"].append("w")
        assert item.extension["k"] == ["v"]

    def test_clone_of_item_without_metrics(self):
        item = RequestTelemetry()
        clone = item.deep_clone()
        assert item._measurements is None
        assert clone.metrics == {}

    def test_extractor_marker_carried_over(self):
        item = RequestTelemetry()
        item.metric_extractor_info = "info"
        clone = item.deep_clone()
        assert clone.properties[PROCESSED_BY_EXTRACTORS_KEY] == "info"
        assert clone.metric_extractor_info == "info"


class TestSanitize:
    """Tests for RequestTelemetry.sanitize."""

    def test_unset_success_and_empty_code(self):
        """Unset success defaults to True and the response code to 200."""
        item = RequestTelemetry()
        item.response_code = ""
        item.sanitize()
        assert item.success is True
        assert item.response_code == "200"

    def test_failed_request_without_code(self, start_time):
        """A failed request without a code gets an empty code."""
        item = RequestTelemetry("GET /", start_time, timedelta(seconds=1), None, False)
        item.sanitize()
        assert item.success is False
        assert item.response_code == ""

    def test_explicit_code_kept(self):
        item = RequestTelemetry(response_code="503", success=True)
        item.sanitize()
        assert item.response_code == "503"

    def test_empty_id_is_populated(self, caplog):
        item = RequestTelemetry()
        item.id = ""
        with caplog.at_level(logging.WARNING):
            item.sanitize()
        assert item.id == "id is a required field for telemetry_contracts.request.RequestTelemetry"
        assert caplog.records

    def test_whitespace_id_is_populated(self):
        item = RequestTelemetry()
        item.id = "   "
        item.sanitize()
        assert item.id

    def test_trims_name_id_and_url(self):
        item = RequestTelemetry(name="  GET /  ")
        item.id = " abc "
        item.url = "https://example.com/" + "q" * 3000
        item.sanitize()
        assert item.name == "GET /"
        assert item.id == "abc"
        assert len(item.url) == 2048

    def test_sanitizes_maps_in_place(self):
        item = RequestTelemetry()
        properties = item.properties
        metrics = item.metrics
        properties[" key "] = " value "
        metrics["nan"] = float("nan")
        item.sanitize()
        assert item.properties is properties
        assert item.metrics is metrics
        assert properties == {"key": "value"}
        assert metrics == {"nan": 0.0}

    def test_negative_duration_clamped(self):
        item = RequestTelemetry(duration=timedelta(seconds=-1))
        item.sanitize()
        assert item.duration == timedelta(0)

    def test_idempotent(self, request_item):
        request_item.name = "  GET /orders  "
        request_item.id = ""
        request_item.response_code = None
        request_item.success = None
        request_item.properties["dup "] = "a"
        request_item.properties["dup"] = "b"

        request_item.sanitize()
        once = (
            request_item.name,
            request_item.id,
            request_item.response_code,
            request_item.success,
            request_item.url,
            dict(request_item.properties),
            dict(request_item.metrics),
        )
        request_item.sanitize()
        twice = (
            request_item.name,
            request_item.id,
            request_item.response_code,
            request_item.success,
            request_item.url,
            dict(request_item.properties),
            dict(request_item.metrics),
        )
        assert once == twice

    def test_idempotent_when_truncation_cuts_at_whitespace(self):
        item = RequestTelemetry(name="a" * 1023 + " " + "b" * 10)
        item.properties["k"] = "v" * 8191 + " tail"

        item.sanitize()
        once = (item.name, dict(item.properties))
        item.sanitize()

        assert (item.name, dict(item.properties)) == once
        assert item.name == "a" * 1023
        assert item.properties["k"] == "v" * 8191

    def test_oversized_integer_metric_does_not_raise(self):
        item = RequestTelemetry()
        item.metrics["big"] = 10**400
        item.sanitize()
        assert item.metrics == {"big": 0.0}


class TestSerializeData:
    """Tests for RequestTelemetry.serialize_data."""

    def test_single_write(self, request_item):
        writer = _RecordingWriter()
        request_item.serialize_data(writer)
        assert len(writer.calls) == 1
        name, snapshot = writer.calls[0]
        assert name == "baseData"
        assert snapshot.id == request_item.id
        assert snapshot.url == "https://shop.example.com/orders/42"

    def test_snapshot_cached_and_not_live(self, request_item):
        """Mutations after the first serialization are not reflected."""
        first = DictSerializationWriter()
        request_item.serialize_data(first)

        request_item.name = "changed"
        request_item.properties["late"] = "x"
        request_item.metrics["late"] = 1.0

        second = DictSerializationWriter()
        request_item.serialize_data(second)

        assert second.values == first.values
        assert second.values["baseData"]["name"] == "GET /orders/{id}"
        assert "late" not in second.values["baseData"]["properties"]
        assert request_item.snapshot is request_item.snapshot

    def test_unset_success_omitted(self):
        writer = DictSerializationWriter()
        RequestTelemetry(name="op").serialize_data(writer)
        assert "success" not in writer.values["baseData"]

    def test_unsanitized_item_serializes(self):
        """Serialization does not require a prior sanitize()."""
        item = RequestTelemetry(name="  padded  ")
        item.id = ""
        writer = DictSerializationWriter()
        item.serialize_data(writer)
        assert writer.values["baseData"]["name"] == "  padded  "
        assert writer.values["baseData"]["id"] == ""
        assert writer.values["baseData"]["responseCode"] is None

    def test_clone_builds_its_own_snapshot(self, request_item):
        request_item.serialize_data(DictSerializationWriter())
        clone = request_item.deep_clone()
        clone.name = "clone"
        writer = DictSerializationWriter()
        clone.serialize_data(writer)
        assert writer.values["baseData"]["name"] == "clone"
