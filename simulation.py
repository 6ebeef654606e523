from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional
from cache import Cache, CacheConfig
from constants import MAX_ADDRESS
from errors import CacheSimError, MalformedRecordError
from instruction import AccessKind, AccessRecord
from processor import AccessEvent, AccessProcessor, Counters
import logging

LOGGER = logging.getLogger("csim")

@dataclass
class Simulation:
    """
    State of one simulation run: the cache store and its hit/miss/eviction counters.
    Records are processed one at a time, in trace order.
    """
    config: CacheConfig
    check_invariants: bool = False
    counters: Counters = field(default_factory=Counters)
    cache: Optional[Cache] = field(init=False, default=None)
    processor: Optional[AccessProcessor] = field(init=False, default=None)

    def __post_init__(self):
        self.cache = Cache(self.config)
        self.processor = AccessProcessor(self.cache, self.counters)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.teardown()
        return False

    @property
    def is_torn_down(self) -> bool:
        return self.cache is None

    def process(self, record: AccessRecord) -> AccessEvent:
        if self.is_torn_down:
            raise CacheSimError("simulation has been torn down")
        self._validate(record)
        event = self.processor.execute(record)
        if self.check_invariants and event.results:
            self.cache.get_set_for_addr(record.address).check_invariants()
        return event

    def run_trace(self, records: Iterable[AccessRecord],
                  on_event: Callable[[AccessEvent], None] = None) -> tuple[int, int, int]:
        for record in records:
            event = self.process(record)
            if on_event is not None:
                on_event(event)
        return self.summary()

    def summary(self) -> tuple[int, int, int]:
        return self.counters.as_tuple()

    def teardown(self):
        if self.is_torn_down:
            return
        LOGGER.info(f"Tearing down simulation, final counts {self.summary()}")
        self.cache.sets.clear()
        self.cache = None
        self.processor = None

    def _validate(self, record: AccessRecord):
        if not isinstance(record.kind, AccessKind):
            raise MalformedRecordError(f"unknown access kind {record.kind!r}")
        if isinstance(record.address, bool) or not isinstance(record.address, int) \
                or not 0 <= record.address <= MAX_ADDRESS:
            raise MalformedRecordError(f"address {record.address!r} is not a 64-bit unsigned integer")
        if isinstance(record.size, bool) or not isinstance(record.size, int) or record.size <= 0:
            raise MalformedRecordError(f"size must be a positive integer, got {record.size!r}")

def new_simulation(set_index_bits: int, block_offset_bits: int, lines_per_set: int,
                   check_invariants: bool = False) -> Simulation:
    config = CacheConfig(set_index_bits, block_offset_bits, lines_per_set)
    return Simulation(config, check_invariants=check_invariants)

def process(simulation: Simulation, record: AccessRecord) -> AccessEvent:
    return simulation.process(record)

def summary(simulation: Simulation) -> tuple[int, int, int]:
    return simulation.summary()

def teardown(simulation: Simulation):
    simulation.teardown()
