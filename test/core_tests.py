import unittest
from cache import CacheConfig, AccessOutcome, build_cache
from core import Core, PerformanceCounters
from instruction import Instruction, InstructionType


def load(addr):
    return Instruction(InstructionType.LOAD, addr, 1)

def store(addr):
    return Instruction(InstructionType.STORE, addr, 1)

def modify(addr):
    return Instruction(InstructionType.MODIFY, addr, 1)

class TestCore(unittest.TestCase):

    def setUp(self):
        # one set, two lines
        self.core = Core(build_cache(CacheConfig(set_index_bits=0, lines_per_set=2, block_offset_bits=0)))

    def test_counters_exclude_cold_misses(self):
        for addr in [1, 2, 1, 3]:
            self.core.execute(load(addr))
        counters = self.core.counters
        self.assertEqual((counters.hits, counters.misses, counters.evictions), (1, 1, 1))
        self.assertEqual(counters.cold_misses, 2)

    def test_evicted_lines_miss_again(self):
        outcomes = [self.core.execute(load(addr)) for addr in [1, 2, 3, 1]]
        self.assertEqual(outcomes[-1], AccessOutcome.miss(2))
        self.assertEqual(self.core.counters.misses, 2)
        self.assertEqual(self.core.counters.evictions, 2)
        self.assertEqual(self.core.counters.hits, 0)

    def test_store_counts_like_load(self):
        self.assertEqual(self.core.execute(store(1)), AccessOutcome.cold_miss())
        self.assertEqual(self.core.execute(load(1)), AccessOutcome.hit())
        self.assertEqual(self.core.execute(store(1)), AccessOutcome.hit())
        self.assertEqual(self.core.counters.hits, 2)
        self.assertEqual(self.core.store_instrs, 2)
        self.assertEqual(self.core.load_instrs, 1)

    def test_modify_hit_counts_twice(self):
        self.core.execute(load(1))
        self.assertEqual(self.core.execute(modify(1)), AccessOutcome.hit())
        self.assertEqual(self.core.counters.hits, 2)

    def test_modify_cold_miss_still_counts_a_hit(self):
        self.assertEqual(self.core.execute(modify(1)), AccessOutcome.cold_miss())
        self.assertEqual(self.core.counters, PerformanceCounters(hits=1, misses=0, evictions=0, cold_misses=1))

    def test_modify_miss_counts_eviction_and_hit(self):
        self.core.execute(load(1))
        self.core.execute(load(2))
        self.assertEqual(self.core.execute(modify(3)), AccessOutcome.miss(1))
        self.assertEqual(self.core.counters, PerformanceCounters(hits=1, misses=1, evictions=1, cold_misses=2))

    def test_modify_is_a_single_access(self):
        self.core.execute(load(1))
        self.core.execute(load(2))
        self.core.execute(modify(1))
        # the modify touched 1 once, so 2 is now the least recently used line
        self.assertEqual(self.core.execute(load(3)), AccessOutcome.miss(2))

    def test_instruction_fetch_is_skipped(self):
        outcome = self.core.execute(Instruction(InstructionType.INSTRUCTION, 1, 8))
        self.assertIsNone(outcome)
        self.assertFalse(self.core.cache.is_in_cache(1))
        self.assertEqual(self.core.counters, PerformanceCounters())
        self.assertEqual(self.core.skipped_instrs, 1)

    def test_verbose_lines(self):
        with self.assertLogs("csim", level="INFO") as logs:
            self.core.execute(load(0x10))
            self.core.execute(modify(0x10))
            self.core.execute(store(0x20))
            self.core.execute(modify(0x30))
        self.assertEqual([record.getMessage() for record in logs.records], [
            "L 10,1 miss",
            "M 10,1 hit hit",
            "S 20,1 miss",
            "M 30,1 miss eviction hit",
        ])

    def test_counters_str(self):
        counters = PerformanceCounters(hits=4, misses=3, evictions=3, cold_misses=2)
        self.assertEqual(str(counters), "hits:4 misses:3 evictions:3")

if __name__ == '__main__':
    unittest.main()
