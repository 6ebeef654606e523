from dataclasses import dataclass, field
from cache import Cache
from errors import CacheConsistencyError
from instruction import AccessKind, AccessRecord
from resolver import AccessOutcome, AccessResolver, ResolveResult
import logging

LOGGER = logging.getLogger("csim")

# Number of cache accesses each kind of trace record performs.
# A modify is a load followed by a store to the same address.
ACCESS_POLICY = {
    AccessKind.LOAD: 1,
    AccessKind.STORE: 1,
    AccessKind.MODIFY: 2,
    AccessKind.IGNORE: 0,
}

@dataclass
class Counters:
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    def count(self, result: ResolveResult):
        match result.outcome:
            case AccessOutcome.HIT:
                self.hits += 1
            case AccessOutcome.MISS:
                self.misses += 1
            case AccessOutcome.MISS_EVICTION:
                self.misses += 1
                self.evictions += 1

    def as_tuple(self) -> tuple[int, int, int]:
        return self.hits, self.misses, self.evictions

@dataclass
class AccessEvent:
    record: AccessRecord
    results: list[ResolveResult] = field(default_factory=list)

    @property
    def outcomes(self) -> list[AccessOutcome]:
        return [result.outcome for result in self.results]

    def describe(self) -> str:
        """Trace line followed by the outcome of each access, e.g. "M 20,1 miss eviction hit"."""
        labels = " ".join(outcome.value for outcome in self.outcomes)
        return f"{self.record} {labels}".rstrip()

@dataclass
class AccessProcessor:
    cache: Cache
    counters: Counters = field(default_factory=Counters)
    resolver: AccessResolver = field(default_factory=AccessResolver)

    def execute(self, record: AccessRecord) -> AccessEvent:
        event = AccessEvent(record)
        n_accesses = ACCESS_POLICY[record.kind]
        if n_accesses == 0:
            return event

        addr_info = self.cache.get_info_from_addr(record.address)
        cache_set = self.cache.get_set(addr_info.set_index)
        for i in range(n_accesses):
            result = self.resolver.resolve(cache_set, addr_info.tag)
            if i > 0 and not result.is_hit:
                # the first access just installed this tag
                raise CacheConsistencyError(f"Repeated access to {record} did not hit: {result}")
            self.counters.count(result)
            event.results.append(result)

        self.log(f"{event.describe()} (set {addr_info.set_index}, tag {addr_info.tag:x})")
        return event

    def log(self, msg):
        LOGGER.debug(f"Processor: {msg}")
