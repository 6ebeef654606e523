from dataclasses import dataclass
from typing import Optional
from constants import ADDRESS_WIDTH_BITS
from errors import ConfigError, CacheConsistencyError
import logging

LOGGER = logging.getLogger("csim")

@dataclass(frozen=True)
class CacheConfig:
    """
    Cache geometry for one simulation run.
    Number of sets = 2^set_index_bits, block size = 2^block_offset_bits bytes.
    """
    set_index_bits: int
    block_offset_bits: int
    lines_per_set: int

    def __post_init__(self):
        for name in ("set_index_bits", "block_offset_bits", "lines_per_set"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        if self.set_index_bits < 0:
            raise ConfigError(f"set index bits must not be negative, got {self.set_index_bits}")
        if self.block_offset_bits < 0:
            raise ConfigError(f"block offset bits must not be negative, got {self.block_offset_bits}")
        if self.lines_per_set < 1:
            raise ConfigError(f"lines per set must be at least 1, got {self.lines_per_set}")
        if self.set_index_bits + self.block_offset_bits > ADDRESS_WIDTH_BITS:
            raise ConfigError(
                f"set index bits ({self.set_index_bits}) + block offset bits "
                f"({self.block_offset_bits}) exceed the {ADDRESS_WIDTH_BITS}-bit address width"
            )

    @property
    def num_sets(self) -> int:
        return 1 << self.set_index_bits

    @property
    def block_size(self) -> int:
        return 1 << self.block_offset_bits

@dataclass
class AddressInfo:
    tag: int
    set_index: int
    offset: int

def decode_address(address: int, set_index_bits: int, block_offset_bits: int) -> AddressInfo:
    offset = address & ((1 << block_offset_bits) - 1)
    set_index = (address >> block_offset_bits) & ((1 << set_index_bits) - 1)
    tag_shift = set_index_bits + block_offset_bits
    # no tag bits left when index and offset cover the whole address
    tag = 0 if tag_shift >= ADDRESS_WIDTH_BITS else address >> tag_shift
    return AddressInfo(tag, set_index, offset)

@dataclass
class CacheLine:
    slot: int
    valid: bool = False
    tag: int = 0
    rank: int = 0 # 0 = most recently used

class RankLRUHandler:
    """
    Stack based LRU kept as one rank per line instead of timestamps.
    Valid lines of a set always hold the ranks 0..k-1, rank 0 being the most
    recently used line and rank associativity-1 the eviction candidate of a full set.
    """

    def touch(self, cache_set: "CacheSet", slot: int):
        prev_rank = cache_set.lines[slot].rank
        for line in cache_set.lines:
            if not line.valid or line.rank > prev_rank:
                continue
            if line.rank == prev_rank:
                line.rank = 0
            else:
                line.rank += 1

    def lru_slot(self, cache_set: "CacheSet") -> Optional[int]:
        for line in cache_set.lines:
            if line.rank == cache_set.associativity - 1:
                return line.slot
        return None

@dataclass
class CacheSet:
    associativity: int
    index: int
    lines: list[CacheLine]
    eviction_handler: RankLRUHandler

    def __init__(self, associativity, index):
        self.associativity = associativity
        self.index = index
        # unused slots start ranked by position
        self.lines = [CacheLine(slot, rank=slot) for slot in range(associativity)]
        self.eviction_handler = RankLRUHandler()

    def find_hit(self, tag) -> Optional[int]:
        for line in self.lines:
            if line.valid and line.tag == tag:
                return line.slot
        return None

    def find_empty(self) -> Optional[int]:
        for line in self.lines:
            if not line.valid:
                return line.slot
        return None

    def lru_slot(self) -> Optional[int]:
        return self.eviction_handler.lru_slot(self)

    def touch(self, slot):
        self.eviction_handler.touch(self, slot)

    def fill(self, slot, tag):
        line = self.lines[slot]
        line.valid = True
        line.tag = tag

    def valid_lines(self) -> list[CacheLine]:
        return [line for line in self.lines if line.valid]

    def is_cache_set_full(self):
        return all(line.valid for line in self.lines)

    def check_invariants(self):
        valid = self.valid_lines()
        tags = [line.tag for line in valid]
        if len(set(tags)) != len(tags):
            raise CacheConsistencyError(f"Set {self.index} holds duplicate valid tags: {tags}")
        ranks = sorted(line.rank for line in valid)
        if ranks != list(range(len(valid))):
            raise CacheConsistencyError(f"Set {self.index} ranks are not a permutation: {ranks}")

    def __str__(self):
        return ",".join(
            f"{line.tag:x}@{line.rank}" if line.valid else "-" for line in self.lines
        )

@dataclass
class Cache:
    """
    All sets of the simulated cache. Only metadata is kept, no data bytes.
    """
    config: CacheConfig
    sets: list[CacheSet]

    def __init__(self, config: CacheConfig):
        self.config = config
        self.sets = [CacheSet(config.lines_per_set, i) for i in range(config.num_sets)]
        self.log(f"{config.num_sets} sets x {config.lines_per_set} lines, {config.block_size} byte blocks")

    def get_info_from_addr(self, mem_addr: int) -> AddressInfo:
        return decode_address(mem_addr, self.config.set_index_bits, self.config.block_offset_bits)

    def get_set(self, set_index: int) -> CacheSet:
        return self.sets[set_index]

    def get_set_for_addr(self, mem_addr: int) -> CacheSet:
        return self.sets[self.get_info_from_addr(mem_addr).set_index]

    def is_in_cache(self, mem_addr: int) -> bool:
        addr_info = self.get_info_from_addr(mem_addr)
        return self.sets[addr_info.set_index].find_hit(addr_info.tag) is not None

    def check_invariants(self):
        for cache_set in self.sets:
            cache_set.check_invariants()

    def log(self, message: str):
        LOGGER.info("Cache: " + message)
