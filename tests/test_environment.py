"""Tests for ptybridge.provider.environment (facts and classification)."""

from __future__ import annotations

import pytest

from ptybridge.provider.environment import EnvironmentFacts, classify, current_facts
from ptybridge.provider.registry import (
    DEFAULT_PROVIDERS,
    POSIX,
    TERMUX,
    ProviderDescriptor,
    get_descriptor,
)


# ---------------------------------------------------------------------------
# EnvironmentFacts
# ---------------------------------------------------------------------------


class TestEnvironmentFacts:
    def test_termux_by_platform(self) -> None:
        assert EnvironmentFacts(platform="android").is_termux

    def test_termux_by_prefix(self) -> None:
        facts = EnvironmentFacts(platform="linux", prefix="/data/data/com.termux/files/usr")
        assert facts.is_termux

    def test_plain_linux_not_termux(self) -> None:
        assert not EnvironmentFacts(platform="linux", prefix="/usr").is_termux

    @pytest.mark.parametrize("plat", ["linux", "darwin", "freebsd14", "android", "cygwin"])
    def test_posix_platforms(self, plat: str) -> None:
        assert EnvironmentFacts(platform=plat).is_posix

    @pytest.mark.parametrize("plat", ["win32", "emscripten", "wasi"])
    def test_non_posix_platforms(self, plat: str) -> None:
        assert not EnvironmentFacts(platform=plat).is_posix

    def test_current_facts_captured_once(self) -> None:
        assert current_facts() is current_facts()


# ---------------------------------------------------------------------------
# classify
# ---------------------------------------------------------------------------


class TestClassify:
    def test_linux_default_providers(self) -> None:
        assert classify(facts=EnvironmentFacts(platform="linux")) == (POSIX,)

    def test_termux_tries_termux_first(self) -> None:
        facts = EnvironmentFacts(platform="android")
        assert classify(facts=facts) == (TERMUX, POSIX)

    def test_windows_has_no_candidates(self) -> None:
        assert classify(facts=EnvironmentFacts(platform="win32")) == ()

    def test_force_fallback(self) -> None:
        facts = EnvironmentFacts(platform="linux", force_fallback=True)
        assert classify(facts=facts) == ()

    def test_priority_order_not_declaration_order(self) -> None:
        providers = [
            ProviderDescriptor("low", "mod.low", 5, lambda f: True),
            ProviderDescriptor("high", "mod.high", 1, lambda f: True),
        ]
        assert classify(providers, EnvironmentFacts(platform="linux")) == ("high", "low")

    def test_failing_predicate_is_not_applicable(self, caplog) -> None:
        def broken(facts: EnvironmentFacts) -> bool:
            raise RuntimeError("predicate bug")

        providers = [
            ProviderDescriptor("broken", "mod.broken", 1, broken),
            ProviderDescriptor("ok", "mod.ok", 2, lambda f: True),
        ]
        assert classify(providers, EnvironmentFacts(platform="linux")) == ("ok",)
        assert "predicate bug" in caplog.text

    def test_deterministic(self) -> None:
        facts = EnvironmentFacts(platform="android")
        assert classify(facts=facts) == classify(facts=facts)


class TestRegistry:
    def test_default_priorities_are_distinct(self) -> None:
        priorities = [d.priority for d in DEFAULT_PROVIDERS]
        assert len(set(priorities)) == len(priorities)

    def test_get_descriptor(self) -> None:
        descriptor = get_descriptor(POSIX)
        assert descriptor is not None
        assert descriptor.target == "ptybridge.native.posix"
        assert get_descriptor("nope") is None
