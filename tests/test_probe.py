"""Tests for the executable availability probe."""

from verbkit.backends.probe import ToolProbe, default_probe


class TestToolProbe:
    def test_reports_present_and_missing(self, fake_probe):
        probe, _ = fake_probe({"gzip": "/usr/bin/gzip"})

        assert probe.probe(["gzip", "zopfli"]) == {"gzip": True, "zopfli": False}
        assert probe.resolve("gzip") == "/usr/bin/gzip"
        assert probe.resolve("zopfli") is None

    def test_lookups_are_cached_per_name(self, fake_probe):
        probe, which = fake_probe({"gzip": "/usr/bin/gzip"})

        for _ in range(3):
            probe.probe(["gzip", "pigz"])
        probe.resolve("gzip")

        assert sorted(which.calls) == ["gzip", "pigz"]
        assert probe.cached() == {"gzip": True, "pigz": False}

    def test_default_probe_is_shared(self):
        assert default_probe() is default_probe()
        assert isinstance(default_probe(), ToolProbe)
