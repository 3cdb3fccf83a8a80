"""Tests for result aggregation."""

import random
import threading

import pytest

from prism_runner.models import TestEvent, TestStatus
from prism_runner.results import ResultAggregator, aggregate_events


def _ev(action, test="TestA", scope="pkg", output="", elapsed=0.0):
    return TestEvent(
        action=action, scope=scope, test_id=test, output_text=output, elapsed_seconds=elapsed
    )


class TestResultAggregator:
    """Tests for ResultAggregator.apply and summary."""

    def test_single_pass(self):
        summary = aggregate_events([_ev("pass", "A", elapsed=0.01)])
        assert (summary.total, summary.passed, summary.failed, summary.skipped) == (1, 1, 0, 0)
        assert summary.results[0].status == TestStatus.PASSED
        assert summary.results[0].duration == pytest.approx(0.01)

    def test_run_output_fail(self):
        summary = aggregate_events(
            [
                _ev("run", "B"),
                _ev("output", "B", output="boom"),
                _ev("fail", "B", elapsed=0.2),
            ]
        )
        result = summary.results[0]
        assert result.name == "B"
        assert result.status == TestStatus.FAILED
        assert result.duration == pytest.approx(0.2)
        assert result.output_lines == ["boom"]
        assert summary.failed == 1

    def test_first_event_creates_running(self):
        aggregator = ResultAggregator()
        aggregator.apply(_ev("run"))
        result = aggregator.get("pkg", "TestA")
        assert result.status == TestStatus.RUNNING
        assert aggregator.summary().total == 1

    def test_scope_level_events_ignored(self):
        summary = aggregate_events([_ev("pass", test=""), _ev("output", test="", output="ok")])
        assert summary.total == 0
        assert summary.results == []

    def test_output_stripped_and_blank_lines_dropped(self):
        summary = aggregate_events(
            [
                _ev("output", output="    first\n"),
                _ev("output", output="\n"),
                _ev("output", output="   \t "),
                _ev("output", output="second\n"),
            ]
        )
        assert summary.results[0].output_lines == ["first", "second"]

    def test_output_preserves_arrival_order(self):
        lines = [f"line {i}" for i in range(50)]
        summary = aggregate_events([_ev("output", output=line) for line in lines])
        assert summary.results[0].output_lines == lines

    def test_same_name_different_scopes_are_distinct(self):
        summary = aggregate_events([_ev("pass", "A", scope="p1"), _ev("fail", "A", scope="p2")])
        assert summary.total == 2
        assert {r.key for r in summary.results} == {("p1", "A"), ("p2", "A")}

    def test_repeated_terminal_event_overwrites(self):
        summary = aggregate_events(
            [_ev("pass", elapsed=0.1), _ev("fail", elapsed=0.3)]
        )
        assert summary.total == 1
        assert summary.passed == 0
        assert summary.failed == 1
        assert summary.results[0].status == TestStatus.FAILED
        assert summary.results[0].duration == pytest.approx(0.3)

    def test_duplicate_identical_terminal_not_double_counted(self):
        summary = aggregate_events([_ev("pass"), _ev("pass")])
        assert summary.passed == 1
        assert summary.passed + summary.failed + summary.skipped <= summary.total

    def test_unknown_action_registers_key_only(self):
        summary = aggregate_events([_ev("pause"), _ev("cont")])
        assert summary.total == 1
        assert summary.results[0].status == TestStatus.RUNNING
        assert summary.running == 1

    def test_missing_terminal_event_stays_running(self):
        summary = aggregate_events([_ev("run", "A"), _ev("pass", "B")])
        statuses = {r.name: r.status for r in summary.results}
        assert statuses == {"A": TestStatus.RUNNING, "B": TestStatus.PASSED}
        assert summary.incomplete

    def test_results_in_first_seen_order(self):
        summary = aggregate_events([_ev("run", "Z"), _ev("run", "A"), _ev("pass", "Z")])
        assert [r.name for r in summary.results] == ["Z", "A"]

    def test_summary_is_a_snapshot(self):
        aggregator = ResultAggregator()
        aggregator.apply(_ev("output", output="one"))
        summary = aggregator.summary()
        summary.results[0].output_lines.append("tampered")
        aggregator.apply(_ev("output", output="two"))
        assert aggregator.summary().results[0].output_lines == ["one", "two"]
        assert summary.results[0].output_lines == ["one", "tampered"]

    def test_get_unknown_key(self):
        assert ResultAggregator().get("pkg", "Nope") is None

    def test_mixed_scope(self):
        events = [_ev("pass", f"P{i}") for i in range(3)]
        events += [_ev("skip", "S"), _ev("fail", "F")]
        summary = aggregate_events(events)
        assert summary.total == 5
        assert (summary.passed, summary.failed, summary.skipped) == (3, 1, 1)


class TestAggregatorInvariants:
    """Invariants that must hold for any event sequence."""

    ACTIONS = ["run", "output", "pass", "fail", "skip", "pause"]

    def _random_events(self, seed, count=400):
        rng = random.Random(seed)
        return [
            _ev(
                rng.choice(self.ACTIONS),
                test=f"Test{rng.randrange(20)}",
                scope=f"pkg{rng.randrange(3)}",
                output=f"out {i}",
                elapsed=rng.random(),
            )
            for i in range(count)
        ]

    @pytest.mark.parametrize("seed", range(5))
    def test_total_equals_distinct_keys(self, seed):
        events = self._random_events(seed)
        summary = aggregate_events(events)
        assert summary.total == len({e.key for e in events})
        assert len(summary.results) == summary.total

    @pytest.mark.parametrize("seed", range(5))
    def test_counters_bounded_and_consistent(self, seed):
        summary = aggregate_events(self._random_events(seed))
        assert summary.passed + summary.failed + summary.skipped <= summary.total
        assert summary.passed == sum(r.status == TestStatus.PASSED for r in summary.results)
        assert summary.failed == sum(r.status == TestStatus.FAILED for r in summary.results)
        assert summary.skipped == sum(r.status == TestStatus.SKIPPED for r in summary.results)

    @pytest.mark.parametrize("seed", range(3))
    def test_output_matches_output_events(self, seed):
        events = self._random_events(seed)
        summary = aggregate_events(events)
        for result in summary.results:
            expected = [
                e.output_text for e in events if e.key == result.key and e.action == "output"
            ]
            assert result.output_lines == expected


class TestAggregatorConcurrency:
    """The lock must keep the model consistent with several writers."""

    def test_parallel_writers(self):
        aggregator = ResultAggregator()
        barrier = threading.Barrier(4)

        def writer(shard):
            barrier.wait()
            for i in range(200):
                name = f"Test{i % 50}"
                aggregator.apply(_ev("output", name, scope="shared", output=f"{shard}:{i}"))
                if i >= 150:
                    aggregator.apply(_ev("pass", name, scope="shared"))

        threads = [threading.Thread(target=writer, args=(shard,)) for shard in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        summary = aggregator.summary()
        assert summary.total == 50
        assert summary.passed == 50
        for result in summary.results:
            assert len(result.output_lines) == 4 * 4
            for shard in range(4):
                own = [line for line in result.output_lines if line.startswith(f"{shard}:")]
                assert own == sorted(own, key=lambda s: int(s.split(":")[1]))
