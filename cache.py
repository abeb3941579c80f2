# cache.py
import numpy as np

from errors import ConfigurationError, IllegalRange

ADDRESS_BITS = 64
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1


def extract_bits(value, low, high):
    """
    Return bits [low, high] (inclusive) of a 64-bit unsigned value.
    e.g. extract_bits(0b110001011, 0, 5) == 0b001011 == 11
    """
    if not (0 <= low <= high <= ADDRESS_BITS - 1):
        raise IllegalRange(low, high)
    width = high - low + 1
    return ((value & ADDRESS_MASK) >> low) & ((1 << width) - 1)


def validate_geometry(associativity, block_offset_bits, set_index_bits):
    for name, value in (
        ("associativity", associativity),
        ("block_offset_bits", block_offset_bits),
        ("set_index_bits", set_index_bits),
    ):
        if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
            raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if associativity < 1:
        raise ConfigurationError(f"associativity must be positive, got {associativity}")
    if block_offset_bits < 0 or set_index_bits < 0:
        raise ConfigurationError("block_offset_bits and set_index_bits must be >= 0")
    if block_offset_bits + set_index_bits > ADDRESS_BITS:
        raise ConfigurationError(
            f"block_offset_bits + set_index_bits must be <= {ADDRESS_BITS}, "
            f"got {block_offset_bits} + {set_index_bits}"
        )


class AddressDecoder:
    """
    Splits an address into tag | set index | block offset.
    """

    def __init__(self, block_offset_bits, set_index_bits):
        self.block_offset_bits = block_offset_bits
        self.set_index_bits = set_index_bits

    @property
    def tag_bits(self):
        return ADDRESS_BITS - self.set_index_bits - self.block_offset_bits

    def tag_of(self, address):
        low = self.set_index_bits + self.block_offset_bits
        if low == ADDRESS_BITS:
            # no bits left above the set index
            return 0
        return extract_bits(address, low, ADDRESS_BITS - 1)

    def set_of(self, address):
        if self.set_index_bits == 0:
            return 0
        low = self.block_offset_bits
        return extract_bits(address, low, low + self.set_index_bits - 1)

    def decode(self, address):
        return self.set_of(address), self.tag_of(address)


class SetAssociativeCache:
    """
    Set-associative cache model with LRU replacement.
    Only tags are tracked, no data. Each set is a row of `associativity` slots:
    slot 0 holds the most recently used line, the last slot the least recently
    used one. Slot order is the only record of recency.
    """

    def __init__(self, associativity=1, block_offset_bits=0, set_index_bits=0):
        validate_geometry(associativity, block_offset_bits, set_index_bits)
        self.associativity = int(associativity)
        self.block_offset_bits = int(block_offset_bits)
        self.set_index_bits = int(set_index_bits)
        self.decoder = AddressDecoder(self.block_offset_bits, self.set_index_bits)
        self.num_sets = 1 << self.set_index_bits
        # One row per set; every line starts invalid with tag 0.
        shape = (self.num_sets, self.associativity)
        try:
            self.tags = np.zeros(shape, dtype=np.uint64)
            self.valid = np.zeros(shape, dtype=bool)
        except (ValueError, MemoryError) as e:
            raise ConfigurationError(
                f"cannot allocate {self.num_sets} x {self.associativity} lines: {e}"
            ) from e

    def tag_of(self, address):
        return self.decoder.tag_of(address)

    def set_of(self, address):
        return self.decoder.set_of(address)

    def _find(self, set_index, tag):
        matches = np.flatnonzero(self.valid[set_index] & (self.tags[set_index] == np.uint64(tag)))
        if matches.size == 0:
            return None
        return int(matches[0])

    def contains(self, set_index, tag):
        return self._find(set_index, tag) is not None

    def is_full(self, set_index):
        # Sets fill from slot 0 backwards, so a valid last slot means no free slot.
        return bool(self.valid[set_index, -1])

    def record_hit(self, set_index, tag):
        """
        Promote `tag` to slot 0. Lines in front of it move back one slot;
        lines behind it keep their slots.
        """
        slot = self._find(set_index, tag)
        if slot is None:
            raise KeyError(f"tag {tag:#x} not resident in set {set_index}")
        if slot > 0:
            self.tags[set_index, 1:slot + 1] = self.tags[set_index, :slot]
            self.valid[set_index, 1:slot + 1] = self.valid[set_index, :slot]
            self.tags[set_index, 0] = np.uint64(tag)
            self.valid[set_index, 0] = True

    def record_miss_insert(self, set_index, tag):
        """
        Shift the whole set back one slot and place `tag` in slot 0.
        Returns the tag pushed out of the last slot, or None if that slot was empty.
        """
        evicted = None
        if self.valid[set_index, -1]:
            evicted = int(self.tags[set_index, -1])
        self.tags[set_index, 1:] = self.tags[set_index, :-1]
        self.valid[set_index, 1:] = self.valid[set_index, :-1]
        self.tags[set_index, 0] = np.uint64(tag)
        self.valid[set_index, 0] = True
        return evicted

    def lines(self, set_index):
        return [(int(t), bool(v)) for t, v in zip(self.tags[set_index], self.valid[set_index])]

    def resident_tags(self, set_index):
        """Valid tags of a set, most recently used first."""
        return [int(t) for t in self.tags[set_index][self.valid[set_index]]]

    def occupancy(self):
        return self.valid.sum(axis=1)

    def stats(self):
        return {
            "associativity": self.associativity,
            "block_offset_bits": self.block_offset_bits,
            "set_index_bits": self.set_index_bits,
            "tag_bits": self.decoder.tag_bits,
            "num_sets": self.num_sets,
            "num_lines": self.num_sets * self.associativity,
            "used_lines": int(self.valid.sum()),
        }
