from cache import Cache, AccessOutcome, AccessResult
from dataclasses import dataclass, field
from instruction import (
    Instruction,
    InstructionType
)
from constants import LOGGER_NAME
import logging

LOGGER = logging.getLogger(LOGGER_NAME)

@dataclass
class PerformanceCounters:
    hits: int = 0
    misses: int = 0 # capacity misses only, cold misses are counted separately
    evictions: int = 0
    cold_misses: int = 0

    def record(self, outcome: AccessOutcome):
        match outcome.result:
            case AccessResult.HIT:
                self.hits+=1
            case AccessResult.COLD_MISS:
                self.cold_misses+=1
            case AccessResult.MISS:
                self.misses+=1
                self.evictions+=1

    def __str__(self):
        return f"hits:{self.hits} misses:{self.misses} evictions:{self.evictions}"

@dataclass
class Core:
    """
    Feeds trace records into the cache and keeps the counters.

    Loads and stores are one access each. A modify (load followed by store) is
    also a single access, but its write half is always counted as an extra hit,
    even when the read half missed.
    """
    cache: Cache
    counters: PerformanceCounters = field(default_factory=PerformanceCounters)
    load_instrs: int = 0
    store_instrs: int = 0
    modify_instrs: int = 0
    skipped_instrs: int = 0

    def execute(self, instr: Instruction) -> AccessOutcome | None:
        match instr.type:
            case InstructionType.INSTRUCTION:
                # instruction fetches never reach the data cache
                self.skipped_instrs+=1
                return None
            case InstructionType.LOAD:
                self.load_instrs+=1
                outcome = self.cache.access(instr.address)
                self.counters.record(outcome)
                self.log(f"{instr} {outcome}")
            case InstructionType.STORE:
                self.store_instrs+=1
                outcome = self.cache.access(instr.address)
                self.counters.record(outcome)
                self.log(f"{instr} {outcome}")
            case InstructionType.MODIFY:
                self.modify_instrs+=1
                self.counters.hits+=1
                outcome = self.cache.access(instr.address)
                self.counters.record(outcome)
                self.log(f"{instr} {outcome} hit")
        return outcome

    def log(self, msg):
        LOGGER.info(msg)
