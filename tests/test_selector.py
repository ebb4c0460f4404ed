"""Tests for VersionSelector: strategies, caching, fallback and compatibility reports."""

from datetime import datetime, timezone

import httpx
import pytest

from dingtalk_sdk.core.generation import ApiGeneration, DetectionStrategy
from dingtalk_sdk.core.selector import (
    CURRENT_RELEASE_TIMESTAMP,
    ResolveOptions,
    VersionSelector,
    parse_timestamp,
)
from dingtalk_sdk.exceptions import ConfigurationError, InvalidArgument, TransportFailure
from tests.conftest import FakeTransport, make_config


def _selector(version="auto", transport=None, **kwargs):
    return VersionSelector(make_config(version), transport=transport, **kwargs)


class CountingStrategy:
    def __init__(self, answer):
        self.answer = answer
        self.calls = 0

    def __call__(self, opts):
        self.calls += 1
        return self.answer


# ---------------------------------------------------------------------------
# Pinned generation
# ---------------------------------------------------------------------------

class TestPinned:
    def test_pinned_generation_bypasses_strategies_and_cache(self):
        selector = _selector("v2")
        spy = CountingStrategy(ApiGeneration.CURRENT)
        selector.register_strategy(DetectionStrategy.EXPLICIT_CONFIG, spy)

        for _ in range(3):
            assert selector.resolve({"generation": "legacy"}) is ApiGeneration.LEGACY

        stats = selector.stats()
        assert spy.calls == 0
        assert stats.pinned == 3
        assert stats.cache_hits == 0
        assert stats.cache_size == 0

    def test_pinned_auto_means_detect(self):
        selector = _selector("v2")
        assert selector.resolve({"generation": "auto"}) is ApiGeneration.CURRENT
        assert selector.stats().pinned == 0

    def test_unknown_pinned_generation(self):
        with pytest.raises(InvalidArgument):
            _selector().resolve({"generation": "v5"})


# ---------------------------------------------------------------------------
# Cache
# ---------------------------------------------------------------------------

class TestCache:
    def test_second_resolve_is_cache_hit(self):
        selector = _selector("v1")
        spy = CountingStrategy(ApiGeneration.LEGACY)
        selector.register_strategy(DetectionStrategy.EXPLICIT_CONFIG, spy)

        first = selector.resolve({"required_features": ["robot"]})
        second = selector.resolve({"requiredFeatures": ["robot"]})

        assert first is second is ApiGeneration.LEGACY
        assert spy.calls == 1
        assert selector.stats().cache_hits == 1

    def test_clear_cache_forces_recompute_with_same_answer(self):
        selector = _selector("v2")
        spy = CountingStrategy(ApiGeneration.CURRENT)
        selector.register_strategy(DetectionStrategy.EXPLICIT_CONFIG, spy)

        assert selector.resolve() is ApiGeneration.CURRENT
        selector.clear_cache()
        assert selector.stats().cache_size == 0
        assert selector.resolve() is ApiGeneration.CURRENT
        assert spy.calls == 2

    def test_different_options_do_not_share_cache_entry(self):
        selector = _selector()
        selector.resolve({"strategies": ["feature"], "required_features": ["robot"]})
        selector.resolve({"strategies": ["feature"], "required_features": ["approval"]})
        assert selector.stats().cache_size == 2

    def test_fingerprint_ignores_feature_order_and_generation(self):
        a = ResolveOptions.from_mapping({"required_features": ["robot", "calendar"]})
        b = ResolveOptions.from_mapping({"required_features": ["calendar", "robot"], "generation": "auto"})
        assert a.fingerprint() == b.fingerprint()

    def test_register_strategy_clears_cache(self):
        selector = _selector("v1")
        selector.resolve()
        selector.register_strategy("config", lambda opts: ApiGeneration.CURRENT)
        assert selector.resolve() is ApiGeneration.CURRENT


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class TestStrategies:
    def test_explicit_config(self):
        assert _selector("v2").resolve({"strategies": ["config"]}) is ApiGeneration.CURRENT

    def test_feature_requirement_current_only(self):
        selector = _selector(fallback=None)
        result = selector.resolve({
            "strategies": ["feature"],
            "required_features": ["advancedSearch", "batchOperations"],
        })
        assert result is ApiGeneration.CURRENT

    def test_feature_requirement_shared_features(self):
        selector = _selector(fallback=None)
        result = selector.resolve({
            "strategies": ["feature"],
            "required_features": ["userManagement", "messageSend"],
        })
        assert result in (ApiGeneration.LEGACY, ApiGeneration.CURRENT)
        assert selector.catalog.supports_all(result, ["user_management", "message_send"])

    def test_feature_requirement_without_features_is_indeterminate(self):
        selector = _selector(fallback=None)
        with pytest.raises(ConfigurationError):
            selector.resolve({"strategies": ["feature"]})

    @pytest.mark.parametrize("created_at, expected", [
        (CURRENT_RELEASE_TIMESTAMP, ApiGeneration.CURRENT),
        (CURRENT_RELEASE_TIMESTAMP - 1, ApiGeneration.LEGACY),
        ("2024-05-01T00:00:00+00:00", ApiGeneration.CURRENT),
        ("2021-01-01", ApiGeneration.LEGACY),
        (1600000000000, ApiGeneration.LEGACY),
        (CURRENT_RELEASE_TIMESTAMP * 1000, ApiGeneration.CURRENT),
        ("1700000000000", ApiGeneration.CURRENT),
    ])
    def test_creation_time(self, created_at, expected):
        selector = _selector(fallback=None)
        assert selector.resolve({"strategies": ["app_time"], "created_at": created_at}) is expected

    def test_creation_time_from_source_and_config(self):
        from_source = _selector(fallback=None, creation_time_source=lambda: CURRENT_RELEASE_TIMESTAMP + 10)
        assert from_source.resolve({"strategies": ["app_time"]}) is ApiGeneration.CURRENT

        from_config = VersionSelector(make_config(app={"created_at": "2020-06-01"}), fallback=None)
        assert from_config.resolve({"strategies": ["app_time"]}) is ApiGeneration.LEGACY

    def test_creation_time_unavailable_is_indeterminate(self):
        with pytest.raises(ConfigurationError):
            _selector(fallback=None).resolve({"strategies": ["app_time"]})

    def test_connectivity_success(self):
        transport = FakeTransport().queue({"status": "ok"})
        selector = _selector(transport=transport)
        assert selector.resolve({"strategies": ["connectivity"], "connectivity_timeout": 2}) is ApiGeneration.CURRENT
        assert transport.last["url"] == "https://api.dingtalk.com/health"
        assert transport.last["verb"] == "GET"
        assert transport.last["timeout"] == 2

    def test_connectivity_non_json_body_still_counts(self):
        failure = TransportFailure("not json", context={"status_code": 200})
        transport = FakeTransport().fail(failure)
        assert _selector(transport=transport).resolve({"strategies": ["connectivity"]}) is ApiGeneration.CURRENT

        transport = FakeTransport().fail(TransportFailure("not json", context={"status_code": 502}))
        assert _selector(transport=transport).resolve({"strategies": ["connectivity"]}) is ApiGeneration.LEGACY

    def test_connectivity_error_status_degrades_to_legacy(self):
        transport = FakeTransport().queue({}, status_code=503)
        assert _selector(transport=transport).resolve({"strategies": ["connectivity"]}) is ApiGeneration.LEGACY

    def test_connectivity_exception_degrades_to_legacy(self):
        transport = FakeTransport().fail(httpx.ConnectError("unreachable"))
        selector = _selector(transport=transport)
        assert selector.resolve({"strategies": ["connectivity"]}) is ApiGeneration.LEGACY
        assert transport.last["timeout"] == 5

    def test_connectivity_without_transport(self):
        assert _selector().resolve({"strategies": ["connectivity"]}) is ApiGeneration.LEGACY

    def test_environment_ok(self):
        selector = _selector(runtime_version=(3, 11, 0), capability_checker=lambda name: True)
        assert selector.resolve({"strategies": ["compatibility"]}) is ApiGeneration.CURRENT

    def test_environment_old_runtime(self):
        selector = _selector(runtime_version=(3, 6, 9), capability_checker=lambda name: True)
        assert selector.resolve({"strategies": ["compatibility"]}) is ApiGeneration.LEGACY

    def test_environment_missing_capability(self):
        selector = _selector(runtime_version=(3, 11), capability_checker=lambda name: name != "ssl")
        assert selector.resolve({"strategies": ["compatibility"]}) is ApiGeneration.LEGACY

    def test_first_decisive_strategy_wins(self):
        selector = _selector("auto")
        result = selector.resolve({
            "strategies": ["config", "feature", "app_time"],
            "required_features": ["approval"],
            "created_at": 0,
        })
        assert result is ApiGeneration.CURRENT
        assert selector.stats().per_strategy == {"feature": 1}

    def test_failing_strategy_is_indeterminate(self):
        selector = _selector(fallback="v2")

        def broken(opts):
            raise RuntimeError("boom")

        selector.register_strategy("config", broken)
        assert selector.resolve({"strategies": ["config"]}) is ApiGeneration.CURRENT
        assert selector.stats().fallback_used == 1

    def test_unknown_strategy_in_options(self):
        with pytest.raises(InvalidArgument):
            _selector().resolve({"strategies": ["tarot"]})


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------

class TestFallback:
    def test_default_fallback_from_config(self):
        selector = _selector()
        assert selector.resolve({"strategies": ["config"]}) is ApiGeneration.LEGACY
        assert selector.stats().fallback_used == 1

    def test_no_fallback_raises_configuration_error(self):
        selector = _selector(fallback=None)
        with pytest.raises(ConfigurationError):
            selector.resolve({"strategies": ["config", "app_time", "feature"]})
        assert selector.stats().failed == 1

    def test_fallback_disabled_in_config(self):
        selector = VersionSelector(make_config(api={"version": "auto", "fallback_version": None}))
        assert selector.fallback is None


# ---------------------------------------------------------------------------
# Introspection
# ---------------------------------------------------------------------------

class TestIntrospection:
    def test_supported_generations(self):
        assert _selector().list_supported_generations() == [ApiGeneration.LEGACY, ApiGeneration.CURRENT]

    def test_compatibility_report_legacy(self):
        report = _selector().describe_compatibility("v1")
        assert report.compatible
        assert report.issues == []
        assert any("approval" in tip for tip in report.recommendations)

    def test_compatibility_report_missing_feature(self):
        report = _selector().describe_compatibility("legacy", ["calendar"])
        assert not report.compatible
        assert "calendar" in report.issues[0]

    def test_compatibility_report_current_environment(self):
        selector = _selector(runtime_version=(3, 7, 0), capability_checker=lambda name: True)
        report = selector.describe_compatibility(ApiGeneration.CURRENT)
        assert not report.compatible
        assert "3.8" in report.issues[0]
        assert report.to_dict()["generation"] == "v2"

    def test_compatibility_report_rejects_auto(self):
        with pytest.raises(InvalidArgument):
            _selector().describe_compatibility("auto")


class TestParseTimestamp:
    def test_accepted_forms(self):
        assert parse_timestamp(None) is None
        assert parse_timestamp(10) == 10.0
        assert parse_timestamp("1672531200") == 1672531200.0
        assert parse_timestamp(1672531200000) == 1672531200.0
        assert parse_timestamp("1672531200500") == 1672531200.5
        assert parse_timestamp(datetime(2023, 1, 1)) == 1672531200.0
        assert parse_timestamp(datetime(2023, 1, 1, tzinfo=timezone.utc)) == 1672531200.0
        assert parse_timestamp("2023-01-01T00:00:00") == 1672531200.0

    def test_invalid(self):
        with pytest.raises(InvalidArgument):
            parse_timestamp("yesterday")
