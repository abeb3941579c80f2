import pytest

from cache import AddressDecoder, SetAssociativeCache, extract_bits
from errors import ConfigurationError, IllegalRange


def test_extract_bits():
    assert extract_bits(0b110001011, 0, 5) == 11
    assert extract_bits(0xFFFF_FFFF_FFFF_FFFF, 63, 63) == 1
    assert extract_bits(0x1234, 4, 7) == 0x3
    # values are truncated to 64 bits first
    assert extract_bits((1 << 64) | 5, 0, 63) == 5


@pytest.mark.parametrize("low,high", [(-1, 3), (5, 4), (0, 64), (64, 64)])
def test_extract_bits_illegal_range(low, high):
    with pytest.raises(IllegalRange):
        extract_bits(0x1234, low, high)


def test_decoder_splits_tag_and_set():
    decoder = AddressDecoder(block_offset_bits=4, set_index_bits=4)
    assert decoder.set_of(0x1234) == 0x3
    assert decoder.tag_of(0x1234) == 0x12
    assert decoder.decode(0x1234) == (0x3, 0x12)
    assert decoder.tag_bits == 56


def test_decoder_single_set():
    decoder = AddressDecoder(block_offset_bits=4, set_index_bits=0)
    assert decoder.set_of(0xFFFF_FFFF_FFFF_FFFF) == 0
    assert decoder.tag_of(0x18) == 1


def test_decoder_without_tag_bits():
    decoder = AddressDecoder(block_offset_bits=32, set_index_bits=32)
    assert decoder.tag_of(0xFFFF_FFFF_FFFF_FFFF) == 0
    assert decoder.set_of(0xDEAD_BEEF_0000_0000) == 0xDEAD_BEEF


def test_set_index_within_bounds():
    cache = SetAssociativeCache(associativity=1, block_offset_bits=2, set_index_bits=3)
    for address in (0, 0x7, 0x1F, 0xFFFF_FFFF_FFFF_FFFF, 0x1234_5678):
        assert 0 <= cache.set_of(address) < cache.num_sets


@pytest.mark.parametrize("associativity,set_index_bits", [(1, 0), (2, 1), (4, 4), (8, 6)])
def test_geometry(associativity, set_index_bits):
    cache = SetAssociativeCache(associativity, 4, set_index_bits)
    assert cache.num_sets == 2 ** set_index_bits
    assert cache.tags.shape == (2 ** set_index_bits, associativity)
    for s in range(cache.num_sets):
        assert len(cache.lines(s)) == associativity
        assert cache.lines(s) == [(0, False)] * associativity


@pytest.mark.parametrize(
    "associativity,block_offset_bits,set_index_bits",
    [(0, 4, 4), (-1, 4, 4), (1, 40, 25), (1, -1, 4), (1, 4, -2), (True, 4, 4), (2.0, 4, 4)],
)
def test_bad_geometry_rejected(associativity, block_offset_bits, set_index_bits):
    with pytest.raises(ConfigurationError):
        SetAssociativeCache(associativity, block_offset_bits, set_index_bits)


def test_contains_ignores_invalid_lines():
    cache = SetAssociativeCache(associativity=2)
    assert not cache.contains(0, 0)
    cache.record_miss_insert(0, 0)
    assert cache.contains(0, 0)


def test_set_fills_front_to_back():
    cache = SetAssociativeCache(associativity=3)
    for tag in (1, 2):
        cache.record_miss_insert(0, tag)
        assert not cache.is_full(0)
    cache.record_miss_insert(0, 3)
    assert cache.is_full(0)
    assert cache.resident_tags(0) == [3, 2, 1]


def test_miss_insert_returns_evicted_tag():
    cache = SetAssociativeCache(associativity=2)
    assert cache.record_miss_insert(0, 0xA) is None
    assert cache.record_miss_insert(0, 0xB) is None
    assert cache.record_miss_insert(0, 0xC) == 0xA
    assert cache.resident_tags(0) == [0xC, 0xB]


def test_lru_sequence():
    cache = SetAssociativeCache(associativity=2)
    outcomes = []
    evicted = []
    for tag in (0xA, 0xB, 0xA, 0xC):
        if cache.contains(0, tag):
            outcomes.append("hit")
            cache.record_hit(0, tag)
        else:
            outcomes.append("miss")
            evicted.append(cache.record_miss_insert(0, tag))
    assert outcomes == ["miss", "miss", "hit", "miss"]
    assert [t for t in evicted if t is not None] == [0xB]
    assert cache.resident_tags(0) == [0xC, 0xA]


def test_hit_promotion_moves_only_lines_in_front():
    cache = SetAssociativeCache(associativity=5)
    for tag in (1, 2, 3, 4, 5):
        cache.record_miss_insert(0, tag)
    assert cache.resident_tags(0) == [5, 4, 3, 2, 1]

    cache.record_hit(0, 3)
    assert cache.resident_tags(0) == [3, 5, 4, 2, 1]

    cache.record_hit(0, 3)
    assert cache.resident_tags(0) == [3, 5, 4, 2, 1]

    cache.record_hit(0, 1)
    assert cache.resident_tags(0) == [1, 3, 5, 4, 2]


def test_hit_promotion_in_partly_filled_set():
    cache = SetAssociativeCache(associativity=4)
    for tag in (7, 8, 9):
        cache.record_miss_insert(0, tag)
    cache.record_hit(0, 7)
    assert cache.lines(0) == [(7, True), (9, True), (8, True), (0, False)]


def test_record_hit_requires_resident_tag():
    cache = SetAssociativeCache(associativity=2)
    cache.record_miss_insert(0, 1)
    with pytest.raises(KeyError):
        cache.record_hit(0, 2)


def test_sets_are_independent():
    cache = SetAssociativeCache(associativity=1, block_offset_bits=0, set_index_bits=1)
    cache.record_miss_insert(0, 5)
    cache.record_miss_insert(1, 6)
    assert cache.contains(0, 5) and not cache.contains(1, 5)
    assert cache.contains(1, 6) and not cache.contains(0, 6)


def test_full_width_tag():
    cache = SetAssociativeCache(associativity=1)
    tag = cache.tag_of(0xFFFF_FFFF_FFFF_FFFF)
    assert tag == 0xFFFF_FFFF_FFFF_FFFF
    cache.record_miss_insert(0, tag)
    assert cache.contains(0, tag)
    assert cache.resident_tags(0) == [tag]


def test_stats_and_occupancy():
    cache = SetAssociativeCache(associativity=2, block_offset_bits=4, set_index_bits=2)
    cache.record_miss_insert(1, 3)
    cache.record_miss_insert(1, 4)
    cache.record_miss_insert(2, 3)
    assert list(cache.occupancy()) == [0, 2, 1, 0]
    stats = cache.stats()
    assert stats["num_sets"] == 4
    assert stats["num_lines"] == 8
    assert stats["used_lines"] == 3
    assert stats["tag_bits"] == 58


def test_unallocatable_geometry_rejected():
    # passes the bit-width check but 2^60 sets cannot be stored
    with pytest.raises(ConfigurationError, match="cannot allocate"):
        SetAssociativeCache(associativity=1, block_offset_bits=4, set_index_bits=60)
