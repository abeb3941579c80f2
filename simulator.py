# simulator.py
import logging
from dataclasses import asdict, dataclass

from cache import SetAssociativeCache
from errors import TraceFormatError
from tracefile import AccessKind, open_trace, parse_record

logger = logging.getLogger(__name__)


@dataclass
class SimulationCounters:
    hits: int = 0
    misses: int = 0
    evictions: int = 0

    @property
    def accesses(self):
        return self.hits + self.misses

    @property
    def hit_rate(self):
        return self.hits / self.accesses if self.accesses else 0.0

    def as_dict(self):
        return asdict(self)


class Simulator:
    """
    Drives a SetAssociativeCache with a memory trace and counts
    hits, misses and evictions. One Simulator is one run: it owns its
    cache, its counters and its verbose flag.
    """

    def __init__(self, associativity, block_offset_bits, set_index_bits, verbose=False):
        self.cache = SetAssociativeCache(associativity, block_offset_bits, set_index_bits)
        self.counters = SimulationCounters()
        self.verbose = verbose
        self.records = 0
        self.skipped = 0

    @classmethod
    def from_config(cls, cfg):
        cache_cfg = cfg["cache"]
        return cls(
            associativity=cache_cfg.get("associativity", 1),
            block_offset_bits=cache_cfg.get("block_offset_bits", 0),
            set_index_bits=cache_cfg.get("set_index_bits", 0),
            verbose=cfg.get("simulation", {}).get("verbose", False),
        )

    def access(self, set_index, tag):
        """
        One cache access. Returns the outcome tokens: ["hit"], ["miss"]
        or ["miss", "eviction"].
        """
        cache = self.cache
        if cache.contains(set_index, tag):
            self.counters.hits += 1
            cache.record_hit(set_index, tag)
            return ["hit"]

        self.counters.misses += 1
        outcome = ["miss"]
        # must be checked before the insert shifts the set
        if cache.is_full(set_index):
            self.counters.evictions += 1
            outcome.append("eviction")
        cache.record_miss_insert(set_index, tag)
        return outcome

    def process(self, record):
        """
        Apply one MemoryAccess. Instruction fetches are ignored and return None;
        data accesses return the outcome tokens of every sub-access in order.
        """
        if record.kind is AccessKind.INSTRUCTION:
            return None
        set_index = self.cache.set_of(record.address)
        tag = self.cache.tag_of(record.address)
        outcome = []
        # sub-accesses of a modify run one after the other; the second sees the first
        for _ in range(record.kind.sub_accesses):
            outcome.extend(self.access(set_index, tag))
        self.records += 1
        if self.verbose:
            print(record.echo(), " ".join(outcome))
        return outcome

    def run(self, lines):
        for line_number, line in enumerate(lines, 1):
            try:
                record = parse_record(line, line_number)
            except TraceFormatError as e:
                self.skipped += 1
                logger.warning("line %d: %s (skipped): %s", line_number, e, line.rstrip("\r\n"))
                continue
            if record is None:
                continue
            self.process(record)
        logger.debug("trace done: %d data records, %d skipped, %s", self.records, self.skipped, self.counters)
        return self.counters

    def run_file(self, path):
        """Run a trace file. Raises TraceOpenError if it cannot be opened."""
        logger.info("Simulating trace %s", path)
        with open_trace(path) as f:
            return self.run(f)
