from dataclasses import dataclass
from enum import Enum
from cache import CacheSet
from errors import CacheConsistencyError
import logging

LOGGER = logging.getLogger("csim")

class AccessOutcome(Enum):
    HIT = "hit"
    MISS = "miss"
    MISS_EVICTION = "miss eviction"

@dataclass(frozen=True)
class ResolveResult:
    outcome: AccessOutcome
    slot: int

    @property
    def is_hit(self) -> bool:
        return self.outcome == AccessOutcome.HIT

    @property
    def is_eviction(self) -> bool:
        return self.outcome == AccessOutcome.MISS_EVICTION

class AccessResolver:
    """
    Looks a tag up in one set and updates the set for the access.
    Phases are tried in order and the first slot (ascending) that qualifies wins:
    1. hit: a valid line already holds the tag
    2. fill: an invalid line takes the tag
    3. evict: the least recently used line is overwritten with the tag
    """

    def resolve(self, cache_set: CacheSet, tag: int) -> ResolveResult:
        slot = cache_set.find_hit(tag)
        if slot is not None:
            cache_set.touch(slot)
            return ResolveResult(AccessOutcome.HIT, slot)

        slot = cache_set.find_empty()
        if slot is not None:
            cache_set.fill(slot, tag)
            cache_set.touch(slot)
            return ResolveResult(AccessOutcome.MISS, slot)

        slot = cache_set.lru_slot()
        if slot is not None:
            LOGGER.debug(f"Set {cache_set.index}: evicting tag {cache_set.lines[slot].tag:x} from slot {slot}")
            cache_set.fill(slot, tag)
            cache_set.touch(slot)
            return ResolveResult(AccessOutcome.MISS_EVICTION, slot)

        raise CacheConsistencyError(
            f"Set {cache_set.index} is full but no line has rank {cache_set.associativity - 1}: {cache_set}"
        )
