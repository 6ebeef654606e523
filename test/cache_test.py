import unittest
from cache import Cache, CacheConfig, CacheSet, RankLRUHandler
from errors import CacheConsistencyError, ConfigError
from resolver import AccessOutcome, AccessResolver


def ranks(cache_set):
    return [line.rank for line in cache_set.lines]

def make_set(tags_and_ranks):
    # tags_and_ranks: one (tag, rank) per slot, None for an invalid slot
    cache_set = CacheSet(len(tags_and_ranks), 0)
    for line, entry in zip(cache_set.lines, tags_and_ranks):
        if entry is not None:
            line.valid = True
            line.tag, line.rank = entry
    return cache_set


class TestCacheConfig(unittest.TestCase):

    def test_derived_geometry(self):
        config = CacheConfig(set_index_bits=4, block_offset_bits=5, lines_per_set=2)
        self.assertEqual(config.num_sets, 16)
        self.assertEqual(config.block_size, 32)

    def test_invalid_geometry(self):
        for args in [(-1, 4, 1), (4, -1, 1), (4, 4, 0), (4, 4, -2), (33, 32, 1), (65, 0, 1)]:
            with self.subTest(args=args):
                with self.assertRaises(ConfigError):
                    CacheConfig(*args)

    def test_non_integer_geometry(self):
        with self.assertRaises(ConfigError):
            CacheConfig(1.5, 4, 1)
        with self.assertRaises(ConfigError):
            CacheConfig(1, 4, "2")

    def test_full_address_width_allowed(self):
        config = CacheConfig(set_index_bits=0, block_offset_bits=64, lines_per_set=1)
        self.assertEqual(config.num_sets, 1)

    def test_cache_allocates_every_line(self):
        cache = Cache(CacheConfig(set_index_bits=2, block_offset_bits=0, lines_per_set=3))
        self.assertEqual(len(cache.sets), 4)
        for i, cache_set in enumerate(cache.sets):
            self.assertEqual(cache_set.index, i)
            self.assertEqual(len(cache_set.lines), 3)
            for slot, line in enumerate(cache_set.lines):
                self.assertFalse(line.valid)
                self.assertEqual(line.tag, 0)
                self.assertEqual(line.rank, slot)


class TestRankLRUHandler(unittest.TestCase):

    def setUp(self):
        self.handler = RankLRUHandler()

    def test_touch_moves_line_to_front(self):
        cache_set = make_set([(10, 2), (11, 0), (12, 1), (13, 3)])
        self.handler.touch(cache_set, 0)
        # lines that were more recent than slot 0 shift back by one
        self.assertEqual(ranks(cache_set), [0, 1, 2, 3])

    def test_touch_leaves_older_lines_alone(self):
        cache_set = make_set([(10, 0), (11, 1), (12, 2), (13, 3)])
        self.handler.touch(cache_set, 1)
        self.assertEqual(ranks(cache_set), [1, 0, 2, 3])

    def test_touch_most_recent_is_noop(self):
        cache_set = make_set([(10, 1), (11, 0), (12, 2)])
        self.handler.touch(cache_set, 1)
        self.assertEqual(ranks(cache_set), [1, 0, 2])

    def test_touch_ignores_invalid_lines(self):
        cache_set = make_set([(10, 1), (11, 0), None, None])
        cache_set.lines[2].valid = True
        cache_set.lines[2].tag = 12
        self.handler.touch(cache_set, 2)
        self.assertEqual(ranks(cache_set), [2, 1, 0, 3])

    def test_lru_slot(self):
        cache_set = make_set([(10, 1), (11, 3), (12, 0), (13, 2)])
        self.assertEqual(self.handler.lru_slot(cache_set), 1)

    def test_lru_slot_missing(self):
        cache_set = make_set([(10, 0), (11, 0)])
        self.assertIsNone(self.handler.lru_slot(cache_set))


class TestCacheSet(unittest.TestCase):

    def test_find_hit_requires_valid(self):
        cache_set = CacheSet(2, 0)
        # invalid lines start with tag 0
        self.assertIsNone(cache_set.find_hit(0))
        cache_set.fill(1, 0)
        self.assertEqual(cache_set.find_hit(0), 1)

    def test_find_empty_lowest_slot(self):
        cache_set = make_set([(1, 0), None, None])
        self.assertEqual(cache_set.find_empty(), 1)
        self.assertFalse(cache_set.is_cache_set_full())

    def test_check_invariants_duplicate_tag(self):
        cache_set = make_set([(7, 0), (7, 1)])
        with self.assertRaises(CacheConsistencyError):
            cache_set.check_invariants()

    def test_check_invariants_duplicate_rank(self):
        cache_set = make_set([(7, 0), (8, 0)])
        with self.assertRaises(CacheConsistencyError):
            cache_set.check_invariants()

    def test_check_invariants_partial_set(self):
        make_set([(7, 1), (8, 0), None]).check_invariants()


class TestAccessResolver(unittest.TestCase):

    def setUp(self):
        self.resolver = AccessResolver()
        self.cache_set = CacheSet(4, 0)

    def resolve(self, tag):
        return self.resolver.resolve(self.cache_set, tag)

    def test_fill_then_hit(self):
        result = self.resolve(5)
        self.assertEqual(result.outcome, AccessOutcome.MISS)
        self.assertEqual(result.slot, 0)
        result = self.resolve(5)
        self.assertEqual(result.outcome, AccessOutcome.HIT)
        self.assertEqual(result.slot, 0)
        self.assertEqual(len(self.cache_set.valid_lines()), 1)

    def test_fills_slots_in_order(self):
        slots = [self.resolve(tag).slot for tag in (1, 2, 3)]
        self.assertEqual(slots, [0, 1, 2])
        self.assertEqual(ranks(self.cache_set), [2, 1, 0, 3])

    def test_lru_eviction_order(self):
        for tag in (1, 2, 3):
            self.resolve(tag)
        self.assertTrue(self.resolve(1).is_hit)
        self.assertEqual(ranks(self.cache_set), [0, 2, 1, 3])

        self.assertEqual(self.resolve(4).outcome, AccessOutcome.MISS)
        self.assertEqual(ranks(self.cache_set), [1, 3, 2, 0])

        # tag 2 is the least recently used
        result = self.resolve(5)
        self.assertEqual(result.outcome, AccessOutcome.MISS_EVICTION)
        self.assertEqual(result.slot, 1)
        self.assertEqual([line.tag for line in self.cache_set.lines], [1, 5, 3, 4])
        self.assertEqual(ranks(self.cache_set), [2, 0, 3, 1])

        # then tag 3
        result = self.resolve(2)
        self.assertTrue(result.is_eviction)
        self.assertEqual(result.slot, 2)
        self.cache_set.check_invariants()

    def test_direct_mapped_always_evicts(self):
        cache_set = CacheSet(1, 0)
        self.assertEqual(self.resolver.resolve(cache_set, 0).outcome, AccessOutcome.MISS)
        self.assertEqual(self.resolver.resolve(cache_set, 1).outcome, AccessOutcome.MISS_EVICTION)
        self.assertEqual(self.resolver.resolve(cache_set, 0).outcome, AccessOutcome.MISS_EVICTION)
        self.assertEqual(cache_set.lines[0].rank, 0)

    def test_hit_does_not_change_tags(self):
        for tag in (1, 2):
            self.resolve(tag)
        before = [(line.valid, line.tag) for line in self.cache_set.lines]
        self.resolve(1)
        self.assertEqual([(line.valid, line.tag) for line in self.cache_set.lines], before)

    def test_full_set_without_lru_line_is_an_error(self):
        cache_set = make_set([(1, 0), (2, 0)])
        with self.assertRaises(CacheConsistencyError):
            self.resolver.resolve(cache_set, 3)

if __name__ == "__main__":
    unittest.main()
