from typing import Optional, Sequence
from unittest import TestCase

from pum.server.aggregator import aggregate, counts, priority_bonus
from pum.server.comparators import order, score
from pum.server.sources import ListSource
from pum.shared.settings import SourceConfig
from pum.shared.types import Context, Entry

_CONTEXT = Context(cursor=(0, 5), line_before="hello")


def _source(
    name: str,
    words: Sequence[str],
    group_index: int = 0,
    priority: Optional[float] = None,
    max_item_count: Optional[int] = None,
    triggered_by_symbol: bool = False,
    offset: int = 0,
) -> ListSource:
    config = SourceConfig(
        name=name,
        group_index=group_index,
        priority=priority,
        max_item_count=max_item_count,
    )
    source = ListSource(config)
    source.complete(
        _CONTEXT,
        entries=tuple(Entry(word, offset=offset) for word in words),
        triggered_by_symbol=triggered_by_symbol,
    )
    return source


class _Faulty(ListSource):
    def get_entries(self, context: Context) -> Sequence[Entry]:
        raise ValueError(self.name)


class Aggregate(TestCase):
    def test_1(self) -> None:
        sources = (
            _source("empty", words=(), group_index=0),
            _source("fallback", words=("a", "b"), group_index=1),
            _source("later", words=("c",), group_index=2),
        )
        agg = aggregate(_CONTEXT, sources, comparators=(order,), priority_weight=2)
        assert agg
        self.assertEqual(agg.group_index, 1)
        self.assertEqual(tuple(e.word for e in agg.entries), ("a", "b"))

    def test_2(self) -> None:
        sources = (_source("empty", words=()),)
        agg = aggregate(_CONTEXT, sources, comparators=(order,), priority_weight=2)
        self.assertIsNone(agg)
        self.assertEqual(counts(agg), {})

    def test_3(self) -> None:
        sources = (
            _source("words", words=("a", "b")),
            _source("member", words=("c",), triggered_by_symbol=True),
        )
        agg = aggregate(_CONTEXT, sources, comparators=(order,), priority_weight=2)
        assert agg
        self.assertEqual(counts(agg), {"member": 1})

    def test_4(self) -> None:
        sources = (
            _source("words", words=("a", "b")),
            _source("member", words=(), triggered_by_symbol=True),
        )
        agg = aggregate(_CONTEXT, sources, comparators=(order,), priority_weight=2)
        assert agg
        self.assertEqual(counts(agg), {"words": 2})

    def test_5(self) -> None:
        for weight in (2, 3):
            sources = (_source("s1", words=("a",)), _source("s2", words=("b",)))
            agg = aggregate(
                _CONTEXT, sources, comparators=(order,), priority_weight=weight
            )
            assert agg
            scores = {e.source: e.score for e in agg.entries}
            self.assertEqual(scores, {"s1": 2 * weight, "s2": weight})

    def test_6(self) -> None:
        def run() -> Sequence[str]:
            sources = (
                _source("s1", words=("b", "a")),
                _source("s2", words=("c", "d")),
            )
            agg = aggregate(_CONTEXT, sources, comparators=(score,), priority_weight=2)
            assert agg
            return tuple(e.word for e in agg.entries)

        self.assertEqual(run(), run())
        self.assertEqual(run(), ("b", "a", "c", "d"))

    def test_7(self) -> None:
        faulty = _Faulty(SourceConfig(name="faulty"))
        sources = (faulty, _source("ok", words=("a",)))
        with self.assertLogs("pum", level="ERROR"):
            agg = aggregate(
                _CONTEXT, sources, comparators=(order,), priority_weight=2
            )
        assert agg
        self.assertEqual(counts(agg), {"ok": 1})

    def test_8(self) -> None:
        sources = (_source("s", words=("a", "b", "c"), max_item_count=2),)
        agg = aggregate(_CONTEXT, sources, comparators=(order,), priority_weight=2)
        assert agg
        self.assertEqual(tuple(e.word for e in agg.entries), ("a", "b"))

    def test_9(self) -> None:
        sources = (
            _source("s1", words=("a",), offset=3),
            _source("s2", words=("b",), offset=1),
        )
        agg = aggregate(_CONTEXT, sources, comparators=(order,), priority_weight=2)
        assert agg
        self.assertEqual(agg.offset, 1)

    def test_10(self) -> None:
        sources = (_source("ahead", words=("a",), offset=9),)
        agg = aggregate(_CONTEXT, sources, comparators=(order,), priority_weight=2)
        self.assertIsNone(agg)

    def test_11(self) -> None:
        s1 = _source("s1", words=("e1", "e2"), priority=10)
        s2 = _source("s2", words=("e3",), priority=5)
        agg = aggregate(
            _CONTEXT, (s2, s1), comparators=(score, order), priority_weight=2
        )
        assert agg
        self.assertEqual(len(agg.entries), 3)
        self.assertEqual(tuple(e.word for e in agg.entries), ("e1", "e2", "e3"))
        self.assertEqual(tuple(e.score for e in agg.entries), (10, 10, 5))


class Bonus(TestCase):
    def test_1(self) -> None:
        source = _source("s", words=())
        self.assertEqual(
            priority_bonus(source, group_size=3, idx=0, priority_weight=2), 6
        )
        self.assertEqual(
            priority_bonus(source, group_size=3, idx=2, priority_weight=2), 2
        )

    def test_2(self) -> None:
        source = _source("s", words=(), priority=7)
        self.assertEqual(
            priority_bonus(source, group_size=3, idx=0, priority_weight=2), 7
        )


class Sources(TestCase):
    def test_1(self) -> None:
        source = _source("s", words=("a", "b"), offset=2, triggered_by_symbol=True)
        entries = source.get_entries(_CONTEXT)
        self.assertEqual(tuple(e.source for e in entries), ("s", "s"))
        self.assertEqual(source.offset, 2)
        self.assertTrue(source.is_triggered_by_symbol)

        source.reset()
        self.assertEqual(source.get_entries(_CONTEXT), ())
        self.assertFalse(source.is_triggered_by_symbol)

    def test_2(self) -> None:
        source = _source("s", words=())
        self.assertEqual(source.offset, _CONTEXT.col)

        source.complete(_CONTEXT, entries=(Entry("a", source="other"),), offset=1)
        (entry,) = source.get_entries(_CONTEXT)
        self.assertEqual(entry.source, "other")
        self.assertEqual(source.offset, 1)
