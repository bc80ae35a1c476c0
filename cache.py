from dataclasses import dataclass, field
from enum import Enum
from constants import ADDRESS_BITS, ADDRESS_MASK, LOGGER_NAME
import logging
LOGGER = logging.getLogger(LOGGER_NAME)


class ConfigurationError(ValueError):
    pass

class CacheInvariantError(RuntimeError):
    pass


@dataclass(frozen=True)
class CacheConfig:
    """
    Cache geometry: 2^s sets of E lines, 2^b bytes per block.
    Validated on construction, so a Cache is never built from a bad config.
    """
    set_index_bits: int # s
    lines_per_set: int # E
    block_offset_bits: int # b

    def __post_init__(self):
        for name in ("set_index_bits", "lines_per_set", "block_offset_bits"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigurationError(f"{name} must be an integer, got {value!r}")
        if self.set_index_bits < 0:
            raise ConfigurationError(f"set_index_bits must not be negative, got {self.set_index_bits}")
        if self.block_offset_bits < 0:
            raise ConfigurationError(f"block_offset_bits must not be negative, got {self.block_offset_bits}")
        if self.lines_per_set < 1:
            raise ConfigurationError(f"lines_per_set must be at least 1, got {self.lines_per_set}")
        if self.set_index_bits + self.block_offset_bits > ADDRESS_BITS:
            raise ConfigurationError(
                f"set_index_bits + block_offset_bits = {self.set_index_bits + self.block_offset_bits} "
                f"exceeds the {ADDRESS_BITS}-bit address width"
            )

    @property
    def tag_bits(self) -> int:
        return ADDRESS_BITS - self.set_index_bits - self.block_offset_bits

    @property
    def set_count(self) -> int:
        return 1 << self.set_index_bits

    @property
    def block_size_bytes(self) -> int:
        return 1 << self.block_offset_bits


@dataclass(frozen=True)
class MemAddressCacheInfo:
    tag: int
    set_index: int

def decode(mem_addr: int, config: CacheConfig) -> MemAddressCacheInfo:
    # block offset bits are dropped, they never affect hit/miss
    mem_addr &= ADDRESS_MASK
    set_index = (mem_addr >> config.block_offset_bits) & ((1 << config.set_index_bits) - 1)
    tag = mem_addr >> (config.block_offset_bits + config.set_index_bits)
    return MemAddressCacheInfo(tag, set_index)


class AccessResult(Enum):
    HIT = 1
    COLD_MISS = 2
    MISS = 3

@dataclass(frozen=True)
class AccessOutcome:
    result: AccessResult
    evicted_tag: int = None # only set for MISS

    def __post_init__(self):
        if (self.result == AccessResult.MISS) != (self.evicted_tag is not None):
            raise ValueError(f"evicted_tag must be given exactly for MISS outcomes, got {self.result} / {self.evicted_tag}")

    @classmethod
    def hit(cls) -> "AccessOutcome":
        return cls(AccessResult.HIT)

    @classmethod
    def cold_miss(cls) -> "AccessOutcome":
        return cls(AccessResult.COLD_MISS)

    @classmethod
    def miss(cls, evicted_tag: int) -> "AccessOutcome":
        return cls(AccessResult.MISS, evicted_tag)

    @property
    def is_hit(self) -> bool:
        return self.result == AccessResult.HIT

    def __str__(self):
        match self.result:
            case AccessResult.HIT:
                return "hit"
            case AccessResult.COLD_MISS:
                return "miss"
            case AccessResult.MISS:
                return "miss eviction"


@dataclass
class CacheLine:
    valid: bool = False
    tag: int = 0

@dataclass
class DLLNode:
    index: int
    prev: int = -1
    next: int = -1

@dataclass
class LRUTracker:
    """
    Recency order over the line slots of one set, most recently used first.

    Nodes live in a fixed list and link to each other by index. The last two
    entries are the head and tail sentinels, so moving a slot to the front and
    reading the tail are both O(1) regardless of associativity.
    """
    size: int
    nodes: list[DLLNode] = field(init=False, repr=False)

    def __post_init__(self):
        self.head = self.size
        self.tail = self.size + 1
        self.nodes = [DLLNode(i) for i in range(self.size + 2)]
        self.nodes[self.head].next = self.tail
        self.nodes[self.tail].prev = self.head
        # slot 0 ends up at the tail, so cold misses fill the lowest free slot first
        for i in range(self.size):
            self.push_front(i)

    def remove(self, index: int):
        node = self.nodes[index]
        self.nodes[node.prev].next = node.next
        self.nodes[node.next].prev = node.prev
        node.prev = -1
        node.next = -1

    def push_front(self, index: int):
        node = self.nodes[index]
        first = self.nodes[self.head].next
        node.prev = self.head
        node.next = first
        self.nodes[first].prev = index
        self.nodes[self.head].next = index

    def touch(self, index: int):
        if not 0 <= index < self.size:
            raise IndexError(f"slot {index} out of range for a set of {self.size} lines")
        if self.nodes[self.head].next == index:
            return
        self.remove(index)
        self.push_front(index)

    def victim(self) -> int:
        return self.nodes[self.tail].prev

    def order(self) -> list[int]:
        order = []
        itr = self.nodes[self.head].next
        while itr != self.tail:
            order.append(itr)
            itr = self.nodes[itr].next
        return order

    def check_invariants(self):
        seen = []
        prev = self.head
        itr = self.nodes[self.head].next
        while itr != self.tail:
            if self.nodes[itr].prev != prev:
                raise CacheInvariantError(f"Broken back link at slot {itr}: {self.nodes[itr].prev} != {prev}")
            if len(seen) > self.size:
                raise CacheInvariantError("Recency order has a cycle")
            seen.append(itr)
            prev = itr
            itr = self.nodes[itr].next
        if self.nodes[self.tail].prev != prev:
            raise CacheInvariantError("Tail sentinel does not point at the last slot")
        if sorted(seen) != list(range(self.size)):
            raise CacheInvariantError(f"Recency order {seen} is not a permutation of {self.size} slots")

    def __str__(self):
        return ",".join(str(i) for i in self.order())


@dataclass
class CacheSet:
    index: int
    associativity: int
    lines: list[CacheLine] = field(init=False)
    tag_to_slot: dict[int, int] = field(init=False)
    lru: LRUTracker = field(init=False)

    def __post_init__(self):
        self.lines = [CacheLine() for _ in range(self.associativity)]
        self.tag_to_slot = dict()
        self.lru = LRUTracker(self.associativity)

    def find(self, tag: int) -> int | None:
        slot = self.tag_to_slot.get(tag)
        if slot is not None and not (self.lines[slot].valid and self.lines[slot].tag == tag):
            raise CacheInvariantError(f"Set {self.index}: tag index points at slot {slot} which holds {self.lines[slot]}")
        return slot

    def is_full(self) -> bool:
        return len(self.tag_to_slot) == self.associativity

    def occupy(self, slot: int, tag: int):
        line = self.lines[slot]
        if line.valid and line.tag == tag:
            return # no op
        if tag in self.tag_to_slot:
            raise CacheInvariantError(
                f"Set {self.index}: tag {tag:#x} already resident in slot {self.tag_to_slot[tag]}, cannot also place it in slot {slot}"
            )
        if line.valid:
            self.tag_to_slot.pop(line.tag)
        line.valid = True
        line.tag = tag
        self.tag_to_slot[tag] = slot

    def touch(self, slot: int):
        self.lru.touch(slot)

    def victim(self) -> int:
        return self.lru.victim()

    def resident_tags(self) -> list[int]:
        return [self.lines[i].tag for i in self.lru.order() if self.lines[i].valid]

    def check_invariants(self):
        self.lru.check_invariants()
        resident = {line.tag: slot for slot, line in enumerate(self.lines) if line.valid}
        if len(resident) != sum(line.valid for line in self.lines):
            raise CacheInvariantError(f"Set {self.index}: duplicate valid tags in {self.lines}")
        if resident != self.tag_to_slot:
            raise CacheInvariantError(f"Set {self.index}: tag index {self.tag_to_slot} disagrees with lines {resident}")


@dataclass
class Cache:
    """
    Set-associative cache with LRU replacement. Only tags are modelled, no data
    and no dirty bits, so loads and stores change the cache state the same way.
    """
    config: CacheConfig
    sets: list[CacheSet] = field(init=False, repr=False)

    def __post_init__(self):
        self.sets = [CacheSet(i, self.config.lines_per_set) for i in range(self.config.set_count)]
        LOGGER.debug(
            f"Built cache: {self.config.set_count} sets x {self.config.lines_per_set} lines, "
            f"{self.config.block_size_bytes} byte blocks, {self.config.tag_bits} tag bits"
        )

    def get_info_from_addr(self, mem_addr: int) -> MemAddressCacheInfo:
        return decode(mem_addr, self.config)

    def access(self, mem_addr: int) -> AccessOutcome:
        addr_info = self.get_info_from_addr(mem_addr)
        cache_set = self.sets[addr_info.set_index]
        tag = addr_info.tag

        slot = cache_set.find(tag)
        if slot is not None:
            cache_set.touch(slot)
            return AccessOutcome.hit()

        # unused slots always sit at the tail of the recency order
        slot = cache_set.victim()
        if not cache_set.is_full():
            if cache_set.lines[slot].valid:
                raise CacheInvariantError(f"Set {cache_set.index} is not full but its LRU slot {slot} is in use")
            cache_set.occupy(slot, tag)
            cache_set.touch(slot)
            return AccessOutcome.cold_miss()

        evicted_tag = cache_set.lines[slot].tag
        cache_set.occupy(slot, tag)
        cache_set.touch(slot)
        return AccessOutcome.miss(evicted_tag)

    def is_in_cache(self, mem_addr: int) -> bool:
        addr_info = self.get_info_from_addr(mem_addr)
        return self.sets[addr_info.set_index].find(addr_info.tag) is not None

    def check_invariants(self):
        for cache_set in self.sets:
            cache_set.check_invariants()


def build_cache(config: CacheConfig) -> Cache:
    return Cache(config)

def access(cache: Cache, mem_addr: int) -> AccessOutcome:
    return cache.access(mem_addr)
