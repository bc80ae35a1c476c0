from dataclasses import dataclass, field
from typing import Iterable
from cache import CacheConfig, Cache, build_cache
from core import Core, PerformanceCounters
from instruction import (
    Instruction,
    parse_instruction
)
from constants import LOGGER_NAME
import logging

LOGGER = logging.getLogger(LOGGER_NAME)

@dataclass
class Simulation:
    config: CacheConfig
    input_file: str = None
    cache: Cache = field(init=False)
    core: Core = field(init=False)

    def __post_init__(self):
        self.cache = build_cache(self.config)
        self.core = Core(self.cache)

    @property
    def counters(self) -> PerformanceCounters:
        return self.core.counters

    def run_instructions(self, instrs: Iterable[Instruction]) -> PerformanceCounters:
        for instr in instrs:
            self.core.execute(instr)
        return self.counters

    def read_trace(self):
        with open(self.input_file) as f:
            for line_number, line in enumerate(f, start=1):
                instr = parse_instruction(line, line_number)
                if instr is not None:
                    yield instr

    def simulate(self) -> PerformanceCounters:
        """
        Replay every record of the trace file, in order, against the cache.
        Parse errors abort the run; nothing is retried or skipped.
        """
        LOGGER.info(f"Replaying trace {self.input_file}")
        self.run_instructions(self.read_trace())
        LOGGER.info(
            f"Trace done: {self.core.load_instrs} loads, {self.core.store_instrs} stores, "
            f"{self.core.modify_instrs} modifies, {self.core.skipped_instrs} instruction fetches skipped, "
            f"{self.counters.cold_misses} cold misses"
        )
        return self.counters

    def print_final_outputs(self):
        print(self.counters)

    def write_results(self, path: str):
        with open(path, "w") as f:
            f.write(f"{self.counters.hits} {self.counters.misses} {self.counters.evictions}\n")
