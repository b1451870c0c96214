"""
Tests for the probe cache and the read-through contract in validate_streams.
"""

import asyncio
import json

from functions import cache
from functions.config import ProbeSettings
from functions.models import ProbeError, ProbeResult
from src.validate_streams import validate_streams

NOW = 1_700_000_000_000


def write_cache(path, records):
    path.write_text(json.dumps(records), encoding="utf-8")


class TestLoad:
    def test_missing_file_is_empty(self, tmp_path):
        assert cache.load(tmp_path / "nope.json") == {}

    def test_corrupt_file_is_empty(self, tmp_path):
        p = tmp_path / "c.json"
        p.write_text("{not json", encoding="utf-8")
        assert cache.load(p) == {}
        p.write_text("[1, 2]", encoding="utf-8")
        assert cache.load(p) == {}

    def test_expiry(self, tmp_path):
        p = tmp_path / "c.json"
        write_cache(
            p,
            {
                "http://old.test/1": {"working": True, "statusCode": 200, "bytes": 10,
                                      "timestamp": NOW - 8 * cache.DAY_MS},
                "http://new.test/1": {"working": True, "statusCode": 200, "bytes": 10,
                                      "timestamp": NOW - 1 * cache.DAY_MS},
            },
        )
        loaded = cache.load(p, now=NOW)
        assert list(loaded) == ["http://new.test/1"]

    def test_malformed_records_skipped(self, tmp_path):
        p = tmp_path / "c.json"
        write_cache(
            p,
            {
                "http://a.test/1": {"working": False, "error": "Bogus", "timestamp": NOW},
                "http://b.test/1": {"working": False},
                "http://c.test/1": {"working": False, "error": "LowResolution", "height": 480, "timestamp": NOW},
            },
        )
        loaded = cache.load(p, now=NOW)
        assert list(loaded) == ["http://c.test/1"]
        assert loaded["http://c.test/1"].error is ProbeError.LOW_RESOLUTION
        assert loaded["http://c.test/1"].height == 480

    def test_non_object_records_skipped(self, tmp_path):
        p = tmp_path / "c.json"
        write_cache(
            p,
            {
                "http://a.test/1": [1, 2],
                "http://b.test/1": None,
                "http://c.test/1": "ok",
                "http://d.test/1": 7,
                "http://e.test/1": {"working": True, "statusCode": 200, "bytes": 9, "timestamp": NOW},
            },
        )
        assert list(cache.load(p, now=NOW)) == ["http://e.test/1"]

    def test_missing_file_logs_warning(self, tmp_path, caplog):
        with caplog.at_level("WARNING", logger="functions.cache"):
            cache.load(tmp_path / "nope.json")
        assert any(r.levelname == "WARNING" and "not found" in r.getMessage() for r in caplog.records)


class TestSave:
    def test_save_then_load(self, tmp_path):
        p = tmp_path / "sub" / "c.json"
        data = {
            "http://ok.test/1": ProbeResult("http://ok.test/1", True, status_code=200, bytes=4096, timestamp=NOW),
            "http://ko.test/1": ProbeResult("http://ko.test/1", False, status_code=404,
                                            error=ProbeError.BAD_STATUS, timestamp=NOW),
        }
        assert cache.save(p, data) is True
        raw = json.loads(p.read_text(encoding="utf-8"))
        assert raw["http://ko.test/1"] == {"working": False, "statusCode": 404, "error": "BadStatus",
                                           "timestamp": NOW}
        assert cache.load(p, now=NOW) == data

    def test_save_failure_is_not_fatal(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("x", encoding="utf-8")
        assert cache.save(blocker / "c.json", {}) is False


class TestReadThrough:
    def _probe_counter(self):
        calls = []

        async def fake_probe(session, url, **kwargs):
            calls.append(url)
            return ProbeResult(url=url, working=True, status_code=200, bytes=100)

        return fake_probe, calls

    def test_fresh_entry_reused_stale_entry_reprobed(self, tmp_path, entry):
        p = tmp_path / "c.json"
        now = cache.now_ms()
        write_cache(
            p,
            {
                "http://stale.test/x": {"working": False, "error": "Timeout", "timestamp": now - 8 * cache.DAY_MS},
                "http://fresh.test/x": {"working": True, "statusCode": 200, "bytes": 5,
                                        "timestamp": now - 1 * cache.DAY_MS},
            },
        )
        loaded = cache.load(p)
        fake_probe, calls = self._probe_counter()
        items = [entry("Stale", url="http://stale.test/x"), entry("Fresh", url="http://fresh.test/x")]

        working, stats = validate_streams(items, loaded, ProbeSettings(), probe_fn=fake_probe)

        assert calls == ["http://stale.test/x"]
        assert [e.url for e in working] == ["http://stale.test/x", "http://fresh.test/x"]
        assert stats["cached"] == 1
        assert stats["probed"] == 1
        assert loaded["http://stale.test/x"].timestamp >= now

    def test_one_probe_per_distinct_url(self, entry):
        fake_probe, calls = self._probe_counter()
        items = [entry("A", url="http://same.test/1"), entry("B", url="http://same.test/1")]
        working, stats = validate_streams(items, {}, ProbeSettings(), probe_fn=fake_probe)
        assert calls == ["http://same.test/1"]
        assert len(working) == 2
        assert stats["unique"] == 1


class TestBatching:
    def test_batches_run_one_after_another(self, entry):
        events = []
        in_flight = 0
        peak = 0

        async def slow_probe(session, url, **kwargs):
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            events.append("start")
            await asyncio.sleep(0.01)
            in_flight -= 1
            events.append("end")
            return ProbeResult(url=url, working=True, status_code=200, bytes=1)

        items = [entry(f"ch{i}", url=f"http://batch.test/{i}") for i in range(17)]
        working, stats = validate_streams(items, {}, ProbeSettings(batch_size=5), probe_fn=slow_probe)

        assert peak == 5
        assert stats["probed"] == 17
        assert len(working) == 17
        # each batch starts only after every url of the previous one finished
        expected = []
        for size in (5, 5, 5, 2):
            expected += ["start"] * size + ["end"] * size
        assert events == expected
