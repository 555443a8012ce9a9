"""Tests for the configuration module."""

import os
import tempfile

import pytest
import yaml

from attr_stats.config import (
    MINIMUM_INTERVAL_MS,
    AttrStatsConfig,
    SampleRequest,
    SamplerConfig,
    TimestampMode,
    build_request,
    clamp_interval,
    load_config,
    split_attribute_names,
)
from attr_stats.errors import ConfigurationError


def _write_yaml(data):
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        yaml.dump(data, fh)
        return fh.name


def _config(**sampler):
    return AttrStatsConfig(sampler=SamplerConfig(**sampler))


def test_load_config_defaults():
    """Loading from a non-existent file returns defaults."""
    cfg = load_config("/tmp/nonexistent_attr_stats.yaml")
    assert isinstance(cfg, AttrStatsConfig)
    assert cfg.source.endpoint == "local"
    assert cfg.sampler.interval_ms == MINIMUM_INTERVAL_MS
    assert cfg.sampler.lines_heading == 0
    assert cfg.sampler.timestamp is False
    assert cfg.sampler.unix_time is False
    assert cfg.converter.key_value_separator == "="
    assert cfg.converter.entry_separator == ","
    assert cfg.output.path == "-"


def test_load_config_from_yaml():
    """Loading from a YAML file populates values."""
    path = _write_yaml({
        "source": {"endpoint": "http://jvm:8778/jolokia", "username": "admin"},
        "sampler": {
            "resource": "java.lang:type=Memory",
            "attributes": ["HeapMemoryUsage", "ObjectPendingFinalizationCount"],
            "interval_ms": 1000,
            "lines_heading": 20,
            "timestamp": True,
        },
        "converter": {"entry_separator": ";"},
    })
    try:
        cfg = load_config(path)
        assert cfg.source.endpoint == "http://jvm:8778/jolokia"
        assert cfg.source.username == "admin"
        assert cfg.sampler.resource == "java.lang:type=Memory"
        assert cfg.sampler.interval_ms == 1000
        assert cfg.sampler.lines_heading == 20
        assert cfg.converter.entry_separator == ";"
        assert cfg.converter.key_value_separator == "="
    finally:
        os.unlink(path)


def test_env_override():
    """Environment variables override YAML values."""
    path = _write_yaml({"sampler": {"resource": "system", "interval_ms": 500}})
    try:
        os.environ["ATTR_STATS_INTERVAL_MS"] = "2000"
        os.environ["ATTR_STATS_ENDPOINT"] = "http://env:8778/jolokia"
        cfg = load_config(path)
        assert cfg.sampler.interval_ms == 2000
        assert cfg.sampler.resource == "system"
        assert cfg.source.endpoint == "http://env:8778/jolokia"
    finally:
        os.environ.pop("ATTR_STATS_INTERVAL_MS", None)
        os.environ.pop("ATTR_STATS_ENDPOINT", None)
        os.unlink(path)


def test_env_override_rejects_non_integer(monkeypatch):
    monkeypatch.setenv("ATTR_STATS_LINES_HEADING", "many")
    with pytest.raises(ConfigurationError):
        load_config("/tmp/nonexistent_attr_stats.yaml")


def test_overrides_beat_env_and_file(monkeypatch):
    path = _write_yaml({"sampler": {"resource": "system", "attributes": "cpu_count"}})
    monkeypatch.setenv("ATTR_STATS_ATTRIBUTES", "boot_time")
    try:
        cfg = load_config(path, overrides={"sampler": {"attributes": "pids"}})
        assert cfg.sampler.attributes == "pids"
        assert cfg.sampler.resource == "system"
    finally:
        os.unlink(path)


def test_malformed_yaml_is_a_configuration_error():
    with tempfile.NamedTemporaryFile("w", suffix=".yaml", delete=False) as fh:
        fh.write("sampler: [unclosed\n")
        path = fh.name
    try:
        with pytest.raises(ConfigurationError):
            load_config(path)
    finally:
        os.unlink(path)


def test_non_mapping_section_is_rejected():
    path = _write_yaml({"sampler": ["resource"]})
    try:
        with pytest.raises(ConfigurationError):
            load_config(path)
    finally:
        os.unlink(path)


# ---------------------------------------------------------------------------
# build_request
# ---------------------------------------------------------------------------

def test_split_attribute_names():
    assert split_attribute_names("a,b, c") == ("a", "b", "c")
    assert split_attribute_names("a,,b,") == ("a", "b")
    assert split_attribute_names(["a", " b "]) == ("a", "b")
    assert split_attribute_names("a,a") == ("a", "a")


def test_clamp_interval():
    assert clamp_interval(0) == 0
    assert clamp_interval(1) == MINIMUM_INTERVAL_MS
    assert clamp_interval(249) == MINIMUM_INTERVAL_MS
    assert clamp_interval(-5) == MINIMUM_INTERVAL_MS
    assert clamp_interval(250) == 250
    assert clamp_interval(1000) == 1000


def test_build_request():
    request = build_request(_config(
        resource="java.lang:type=Threading",
        attributes="ThreadCount,PeakThreadCount",
        interval_ms=100,
        lines_heading=10,
    ))
    assert request == SampleRequest(
        resource="java.lang:type=Threading",
        attribute_names=("ThreadCount", "PeakThreadCount"),
        interval_ms=MINIMUM_INTERVAL_MS,
        header_repeat=10,
        timestamp_mode=TimestampMode.NONE,
    )
    assert not request.one_shot


def test_build_request_one_shot():
    request = build_request(_config(resource="system", attributes="cpu_count", interval_ms=0))
    assert request.interval_ms == 0
    assert request.one_shot


def test_build_request_negative_lines_clamped_to_zero():
    request = build_request(_config(
        resource="system", attributes="cpu_count", interval_ms=1000, lines_heading=-3
    ))
    assert request.header_repeat == 0
    assert request.interval_ms == 1000


def test_build_request_timestamp_modes():
    base = {"resource": "system", "attributes": "cpu_count"}
    assert build_request(_config(**base)).timestamp_mode is TimestampMode.NONE
    assert build_request(_config(**base, unix_time=True)).timestamp_mode is TimestampMode.NONE
    assert build_request(_config(**base, timestamp=True)).timestamp_mode is TimestampMode.ELAPSED
    assert (
        build_request(_config(**base, timestamp=True, unix_time=True)).timestamp_mode
        is TimestampMode.EPOCH
    )


def test_build_request_requires_resource_and_attributes():
    with pytest.raises(ConfigurationError):
        build_request(_config(resource="", attributes="a"))
    with pytest.raises(ConfigurationError):
        build_request(_config(resource="system", attributes=" , "))


def test_build_request_rejects_non_numeric_interval():
    with pytest.raises(ConfigurationError):
        build_request(_config(resource="system", attributes="a", interval_ms="soon"))


def test_sample_request_is_immutable():
    request = build_request(_config(resource="system", attributes="cpu_count"))
    with pytest.raises(AttributeError):
        request.interval_ms = 0


@pytest.mark.parametrize("attributes", [[1, 2], ["HeapMemoryUsage", 3], 5, {"a": 1}])
def test_build_request_rejects_non_text_attributes(attributes):
    with pytest.raises(ConfigurationError):
        build_request(_config(resource="system", attributes=attributes))


def test_build_request_empty_attribute_list_from_yaml():
    with pytest.raises(ConfigurationError, match="No attribute names"):
        build_request(_config(resource="system", attributes=None))


def test_build_request_rejects_non_text_resource():
    with pytest.raises(ConfigurationError):
        build_request(_config(resource=5, attributes="cpu_count"))


def test_yaml_with_numeric_attributes_is_a_configuration_error():
    path = _write_yaml({"sampler": {"resource": "system", "attributes": [1, 2]}})
    try:
        with pytest.raises(ConfigurationError):
            build_request(load_config(path))
    finally:
        os.unlink(path)
