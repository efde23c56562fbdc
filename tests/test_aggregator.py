# tests/test_aggregator.py

"""Tests for the concurrent Aggregator and leaderboard construction."""

import re
import threading
import time
import unittest

from spot_deals.models.offer import Offer
from spot_deals.scrapers.price_fetcher import PriceFetchError
from spot_deals.services.aggregator import (
    Aggregator,
    build_leaderboard,
    utc_timestamp,
)


def _offer(name: str, price: str, vcpus: int = 4, saving: str = "60%") -> Offer:
    return Offer(
        instance_type=name,
        vcpus=vcpus,
        memory="16 GiB",
        spot_saving_rate=saving,
        spot_price=price,
    )


def _make_fetcher_cls(
    canned: dict[str, list[Offer]],
    failing: frozenset[str] = frozenset(),
) -> type[object]:
    """Build a stub fetcher class returning canned offers per region."""

    class FakeFetcher:
        """Stub fetcher keyed by region id."""

        closed = 0

        def fetch_region(self, region_id: str) -> list[Offer]:
            if region_id in failing:
                msg = f"[ec2shop] HTTP 500 for {region_id}"
                raise PriceFetchError(msg)
            return list(canned.get(region_id, []))

        def close(self) -> None:
            FakeFetcher.closed += 1

    return FakeFetcher


class TestAggregator(unittest.IsolatedAsyncioTestCase):
    """Aggregator.aggregate integration tests."""

    async def test_scenario_two_regions(self) -> None:
        """eu-west-1 (0.005/vCPU) ranks ahead of us-east-1 (0.0125/vCPU)."""
        fetcher_cls = _make_fetcher_cls({
            "us-east-1": [_offer("m5.xlarge", "0.05", saving="60%")],
            "eu-west-1": [_offer("t3.xlarge", "0.02", saving="70%")],
        })
        agg = Aggregator(fetcher_factory=fetcher_cls)

        dataset = await agg.aggregate(["us-east-1", "eu-west-1"])

        top = dataset.global_top_5
        self.assertEqual([d.region for d in top], ["eu-west-1", "us-east-1"])
        self.assertAlmostEqual(top[0].price_per_vcpu, 0.005)
        self.assertAlmostEqual(top[1].price_per_vcpu, 0.0125)

    async def test_failed_region_absent(self) -> None:
        """A failed fetch leaves the region out of the mapping."""
        fetcher_cls = _make_fetcher_cls(
            {"us-east-1": [_offer("m5.xlarge", "0.05")]},
            failing=frozenset({"eu-west-1"}),
        )
        agg = Aggregator(fetcher_factory=fetcher_cls)

        dataset = await agg.aggregate(["us-east-1", "eu-west-1"])

        self.assertIn("us-east-1", dataset.regions)
        self.assertNotIn("eu-west-1", dataset.regions)
        self.assertEqual(agg.failed_regions, ["eu-west-1"])

    async def test_empty_region_recorded(self) -> None:
        """A successful fetch with no offers is kept as an empty list."""
        fetcher_cls = _make_fetcher_cls({"sa-east-1": []})
        agg = Aggregator(fetcher_factory=fetcher_cls)

        dataset = await agg.aggregate(["sa-east-1"])

        self.assertEqual(dataset.regions, {"sa-east-1": []})
        self.assertEqual(dataset.global_top_5, [])
        self.assertEqual(agg.failed_regions, [])

    async def test_leaderboard_capped_at_five(self) -> None:
        """Seven non-empty regions still yield five deals, ascending."""
        canned = {
            f"r-{i}": [_offer(f"i{i}", f"0.{i + 1}0")] for i in range(7)
        }
        agg = Aggregator(fetcher_factory=_make_fetcher_cls(canned))

        dataset = await agg.aggregate(list(canned))

        top = dataset.global_top_5
        self.assertEqual(len(top), 5)
        values = [d.price_per_vcpu for d in top]
        self.assertEqual(values, sorted(values))
        self.assertEqual(top[0].region, "r-0")

    async def test_leaderboard_length_matches_non_empty_regions(self) -> None:
        canned = {
            "a": [_offer("x", "0.1")],
            "b": [],
            "c": [_offer("y", "0.2")],
        }
        agg = Aggregator(fetcher_factory=_make_fetcher_cls(canned))
        dataset = await agg.aggregate(["a", "b", "c"])
        self.assertEqual(len(dataset.global_top_5), 2)

    async def test_timestamp_format(self) -> None:
        agg = Aggregator(fetcher_factory=_make_fetcher_cls({}))
        dataset = await agg.aggregate([])
        self.assertRegex(
            dataset.last_updated, r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$"
        )

    async def test_duplicate_region_ids_fetched_once(self) -> None:
        fetcher_cls = _make_fetcher_cls({"a": [_offer("x", "0.1")]})
        agg = Aggregator(fetcher_factory=fetcher_cls)
        await agg.aggregate(["a", "a"])
        self.assertEqual(fetcher_cls.closed, 1)  # type: ignore[attr-defined]

    async def test_fetchers_are_closed(self) -> None:
        """Every per-region fetcher is closed, failed or not."""
        fetcher_cls = _make_fetcher_cls(
            {"a": []}, failing=frozenset({"b"})
        )
        agg = Aggregator(fetcher_factory=fetcher_cls)
        await agg.aggregate(["a", "b"])
        self.assertEqual(fetcher_cls.closed, 2)  # type: ignore[attr-defined]

    async def test_concurrency_is_bounded(self) -> None:
        """No more than max_concurrency fetches run at once."""
        lock = threading.Lock()
        state = {"active": 0, "peak": 0}

        class SlowFetcher:
            def fetch_region(self, region_id: str) -> list[Offer]:
                with lock:
                    state["active"] += 1
                    state["peak"] = max(state["peak"], state["active"])
                time.sleep(0.02)
                with lock:
                    state["active"] -= 1
                return []

        agg = Aggregator(fetcher_factory=SlowFetcher, max_concurrency=2)
        dataset = await agg.aggregate([f"r{i}" for i in range(6)])

        self.assertEqual(len(dataset.regions), 6)
        self.assertLessEqual(state["peak"], 2)


class TestBuildLeaderboard(unittest.TestCase):
    """build_leaderboard unit tests."""

    def test_uses_first_offer_of_each_region(self) -> None:
        regions = {
            "a": [_offer("best", "0.04"), _offer("worse", "0.08")],
        }
        top = build_leaderboard(regions, 5)
        self.assertEqual(len(top), 1)
        self.assertEqual(top[0].instance_type, "best")

    def test_price_ties_resolve_by_region_name(self) -> None:
        regions = {
            "z-region": [_offer("x", "0.04")],
            "a-region": [_offer("y", "0.04")],
        }
        top = build_leaderboard(regions, 5)
        self.assertEqual(
            [d.region for d in top], ["a-region", "z-region"]
        )

    def test_empty(self) -> None:
        self.assertEqual(build_leaderboard({}, 5), [])


class TestUtcTimestamp(unittest.TestCase):

    def test_format(self) -> None:
        self.assertTrue(
            re.fullmatch(
                r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", utc_timestamp()
            )
        )


if __name__ == "__main__":
    unittest.main()
