# workload.py
import numpy as np

from errors import ConfigurationError

PATTERNS = ("sequential", "random", "mixed")


class WorkloadGenerator:
    """
    Synthesizes lackey-format trace records over a working set of cache
    blocks, so the simulator can be exercised without valgrind.
    """

    def __init__(self, cfg):
        self.rng = np.random.default_rng(cfg.get("random_seed", None))
        self.line_size = cfg.get("line_size_bytes", 64)
        self.working_set_kb = cfg.get("working_set_kb", 64)
        self.num_blocks = max(1, (self.working_set_kb * 1024) // self.line_size)
        self.base_address = cfg.get("base_address", 0x10000000)
        self.num_requests = cfg.get("num_requests", 10000)
        self.access_pattern = cfg.get("access_pattern", "mixed")
        self.instruction_ratio = cfg.get("instruction_ratio", 0.0)
        self.modify_ratio = cfg.get("modify_ratio", 0.1)
        self.read_ratio = cfg.get("read_ratio", 0.6)
        self.access_size = cfg.get("access_size", 8)
        if self.access_pattern not in PATTERNS:
            raise ConfigurationError(f"unknown access pattern {self.access_pattern!r}, expected one of {PATTERNS}")
        self._seq_ptr = 0

    def _next_sequential(self):
        block = self._seq_ptr
        self._seq_ptr = (block + 1) % self.num_blocks
        return block

    def _generate_block(self):
        if self.access_pattern == "sequential":
            return self._next_sequential()
        elif self.access_pattern == "random":
            return int(self.rng.integers(0, self.num_blocks))
        else:  # mixed: mostly sequential with some random
            if self.rng.random() < 0.8:
                return self._next_sequential()
            return int(self.rng.integers(0, self.num_blocks))

    def _generate_operation(self):
        r = self.rng.random()
        if r < self.instruction_ratio:
            return "I"
        r -= self.instruction_ratio
        if r < self.modify_ratio:
            return "M"
        r -= self.modify_ratio
        if r < self.read_ratio:
            return "L"
        return "S"

    def generate(self):
        records = []
        for _ in range(self.num_requests):
            op = self._generate_operation()
            offset = int(self.rng.integers(0, self.line_size))
            address = self.base_address + self._generate_block() * self.line_size + offset
            if op == "I":
                records.append(f"I  {address:08x},{self.access_size}")
            else:
                records.append(f" {op} {address:08x},{self.access_size}")
        return records


def write_trace(path, records):
    with open(path, "w") as f:
        for record in records:
            f.write(record + "\n")
    return path
