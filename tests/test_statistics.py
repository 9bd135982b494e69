from imgevolve.genome import MutationType
from imgevolve.session import MutationStatistics


def test_fresh_table_has_every_kind_at_zero():
    stats = MutationStatistics()
    assert set(stats.counts) == set(MutationType)
    assert set(stats.improvements) == set(MutationType)
    for kind in MutationType:
        assert stats.count(kind) == 0
        assert stats.improvement(kind) == 0.0
    assert len(stats) == len(MutationType)


def test_record_and_reset():
    stats = MutationStatistics()
    stats.record_attempt(MutationType.SCALE)
    stats.record_attempt(MutationType.SCALE)
    stats.record_improvement(MutationType.SCALE, 0.75)
    assert stats.count(MutationType.SCALE) == 2
    assert stats.improvement(MutationType.SCALE) == 0.75

    stats.reset()
    assert stats.count(MutationType.SCALE) == 0
    assert set(stats.counts) == set(MutationType)


def test_items_follow_enumeration_order():
    stats = MutationStatistics()
    assert [kind for kind, _, _ in stats.items()] == list(MutationType)


def test_as_dict_uses_persisted_names():
    stats = MutationStatistics()
    stats.set_entry(MutationType.TRANSLATE, 3, 1.5)
    assert stats.as_dict()["Translate"] == {"count": 3, "improvement": 1.5}
