"""Tests for candidate ordering and the selection policy."""

import pytest

from verbkit.backends.policy import CandidateGroup, SelectionTask, ToolCandidate, select, with_availability
from verbkit.config import FAST_COMPRESSOR_MAX_BYTES
from verbkit.errors import NoCandidateAvailable
from verbkit.verbs import archive


def _noop_argv(executable, invocation):
    return [executable]


def _compressors(settings):
    groups = {group.name: group for group in archive.candidate_groups(settings)}
    return groups[archive.GROUP_COMPRESSOR].ordered()


ALL_AVAILABLE = {"zopfli": True, "pigz": True, "gzip": True}


class TestSizeThreshold:
    """The fast compressor is only used strictly below its size limit."""

    def test_threshold_constant(self, settings):
        assert FAST_COMPRESSOR_MAX_BYTES == 52_428_800
        assert settings.policy.fast_compressor_max_bytes == FAST_COMPRESSOR_MAX_BYTES

    def test_small_input_selects_fast_candidate(self, settings):
        task = SelectionTask(size_bytes=10_000_000, preferred_order=_compressors(settings))
        assert select(task, ALL_AVAILABLE).name == "zopfli"

    def test_large_input_skips_fast_candidate(self, settings):
        task = SelectionTask(size_bytes=60_000_000, preferred_order=_compressors(settings))
        assert select(task, ALL_AVAILABLE).name == "pigz"

    @pytest.mark.parametrize("size", [0, 1, 1_000_000, FAST_COMPRESSOR_MAX_BYTES - 1])
    def test_every_size_below_threshold_is_fast(self, settings, size):
        task = SelectionTask(size_bytes=size, preferred_order=_compressors(settings))
        assert select(task, ALL_AVAILABLE).name == "zopfli"

    @pytest.mark.parametrize("size", [FAST_COMPRESSOR_MAX_BYTES, FAST_COMPRESSOR_MAX_BYTES + 1, 10**12])
    def test_every_size_at_or_above_threshold_falls_through(self, settings, size):
        task = SelectionTask(size_bytes=size, preferred_order=_compressors(settings))
        assert select(task, ALL_AVAILABLE).name == "pigz"

    def test_falls_back_to_universal_candidate(self, settings):
        task = SelectionTask(size_bytes=60_000_000, preferred_order=_compressors(settings))
        assert select(task, {"zopfli": True, "pigz": False, "gzip": True}).name == "gzip"

    def test_threshold_follows_configuration(self, settings):
        policy = settings.policy.model_copy(update={"fast_compressor_max_bytes": 1000})
        custom = settings.model_copy(update={"policy": policy})
        task = SelectionTask(size_bytes=1000, preferred_order=_compressors(custom))
        assert select(task, ALL_AVAILABLE).name == "pigz"


class TestNoCandidate:
    def test_lists_every_candidate_tried(self, settings):
        task = SelectionTask(size_bytes=10, preferred_order=_compressors(settings))
        with pytest.raises(NoCandidateAvailable) as excinfo:
            select(task, {})

        assert excinfo.value.tried == ("zopfli", "pigz", "gzip")
        for name in ("zopfli", "pigz", "gzip"):
            assert name in excinfo.value.message
        assert excinfo.value.reasons["gzip"] == "not installed"

    def test_size_rejection_is_reported(self, settings):
        task = SelectionTask(size_bytes=60_000_000, preferred_order=_compressors(settings))
        with pytest.raises(NoCandidateAvailable) as excinfo:
            select(task, {"zopfli": True})
        assert "limit" in excinfo.value.reasons["zopfli"]

    def test_empty_preference_list(self):
        with pytest.raises(NoCandidateAvailable):
            select(SelectionTask(size_bytes=0, preferred_order=()), {"gzip": True})


class TestOrdering:
    def _group(self):
        return CandidateGroup(
            "demo",
            (
                ToolCandidate("c", _noop_argv, priority=2),
                ToolCandidate("a", _noop_argv, priority=0),
                ToolCandidate("b", _noop_argv, priority=1),
            ),
        )

    def test_default_order_is_priority(self):
        assert self._group().names() == ["a", "b", "c"]

    def test_select_respects_priority_not_position(self):
        task = SelectionTask(size_bytes=0, preferred_order=self._group().candidates)
        assert select(task, {"a": True, "b": True, "c": True}).name == "a"

    def test_override_restricts_and_reorders(self):
        ordered = self._group().ordered(["c", "a"])
        assert [candidate.name for candidate in ordered] == ["c", "a"]
        assert [candidate.priority for candidate in ordered] == [0, 1]

    def test_override_with_unknown_name_is_rejected(self):
        with pytest.raises(ValueError, match="nope"):
            self._group().ordered(["a", "nope"])

    def test_with_availability_copies_probe_results(self):
        candidates = self._group().ordered()
        probed = with_availability(candidates, {"a": True})
        assert [candidate.available for candidate in probed] == [True, False, False]
        assert all(candidate.available is False for candidate in candidates)

    def test_select_reads_filled_availability(self):
        filled = with_availability(self._group().ordered(), {"b": True})
        task = SelectionTask(size_bytes=0, preferred_order=filled)

        assert select(task, {}).name == "b"
        assert select(task, {"a": True}).name == "a"

    def test_mapping_overrides_filled_availability(self):
        filled = with_availability(self._group().ordered(), {"a": True, "b": True})
        task = SelectionTask(size_bytes=0, preferred_order=filled)

        assert select(task, {"a": False}).name == "b"

    def test_selection_is_deterministic(self, settings):
        task = SelectionTask(size_bytes=123, preferred_order=_compressors(settings))
        picks = {select(task, ALL_AVAILABLE).name for _ in range(5)}
        assert picks == {"zopfli"}
