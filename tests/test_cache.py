import time

import pytest

from rdapkit.cache import CacheMissError, DiskCache, FileState, MemoryCache


def test_file_state_labels(tmp_path):
    memory = MemoryCache()
    assert str(memory.state("asn.json")) == "not cached"

    memory.save("asn.json", b"x")
    assert str(memory.state("asn.json")) == "good"

    memory.set_timeout(0)
    time.sleep(0.05)
    assert str(memory.state("asn.json")) == "expired"

    writer = DiskCache(tmp_path / "cache")
    reader = DiskCache(tmp_path / "cache")
    writer.save("dns.json", b"y")
    state = reader.state("dns.json")
    assert state is FileState.SHOULD_RELOAD
    assert str(state) == "good"


def test_memory_cache():
    m = MemoryCache()
    assert m.state("not-in-cache.json") is FileState.ABSENT

    with pytest.raises(CacheMissError):
        m.load("not-in-cache.json")

    test_data = bytearray(b"test")
    m.save("file.json", test_data)

    data = m.load("file.json")
    assert data == b"test"

    test_data[0] = ord("x")
    assert data[0:1] == b"t"
    assert m.load("file.json") == b"test"

    assert m.state("file.json") is FileState.GOOD

    m.timeout = 0
    time.sleep(0.05)
    assert m.state("file.json") is FileState.EXPIRED


def test_memory_cache_set_timeout():
    m = MemoryCache()
    m.save("a.json", b"x")
    m.set_timeout(0)
    time.sleep(0.05)
    assert m.timeout == 0
    assert m.state("a.json") is FileState.EXPIRED


def test_disk_cache(tmp_path):
    rdap_dir = tmp_path / ".openrdap"

    m1 = DiskCache(rdap_dir)
    m2 = DiskCache(rdap_dir)

    asn1 = b"file 1"
    asn2 = b"file 2"

    assert m1.state("asn.json") is FileState.ABSENT
    assert m2.state("asn.json") is FileState.ABSENT

    m1.save("asn.json", asn1)

    assert m1.state("asn.json") is FileState.GOOD
    assert m2.state("asn.json") is FileState.SHOULD_RELOAD

    loaded1 = m1.load("asn.json")
    loaded2 = m2.load("asn.json")

    assert m1.state("asn.json") is FileState.GOOD
    assert m2.state("asn.json") is FileState.GOOD
    assert loaded1 == asn1
    assert loaded2 == asn1

    time.sleep(1.1)

    m2.save("asn.json", asn2)

    assert m1.state("asn.json") is FileState.SHOULD_RELOAD
    assert m2.state("asn.json") is FileState.GOOD

    m1.timeout = 0
    m2.timeout = 0

    assert m1.state("asn.json") is FileState.EXPIRED
    assert m2.state("asn.json") is FileState.EXPIRED

    m1.timeout = 3600
    m2.timeout = 3600

    loaded1 = m1.load("asn.json")
    loaded2 = m2.load("asn.json")

    assert m1.state("asn.json") is FileState.GOOD
    assert m2.state("asn.json") is FileState.GOOD
    assert loaded1 == asn2
    assert loaded2 == asn2


def test_disk_cache_load_missing(tmp_path):
    cache = DiskCache(tmp_path / "cache")
    with pytest.raises(CacheMissError):
        cache.load("dns.json")


def test_disk_cache_init_dir(tmp_path):
    cache = DiskCache(tmp_path / "cache")
    assert cache.init_dir() is True
    assert (tmp_path / "cache").is_dir()
    assert cache.init_dir() is False


def test_disk_cache_init_dir_not_a_dir(tmp_path):
    target = tmp_path / "occupied"
    target.write_text("x")
    cache = DiskCache(target)
    with pytest.raises(NotADirectoryError):
        cache.init_dir()


def test_disk_cache_save_creates_dir(tmp_path):
    cache = DiskCache(tmp_path / "new")
    cache.save("ipv4.json", b"data")
    assert (tmp_path / "new" / "ipv4.json").read_bytes() == b"data"


def test_disk_cache_default_dir():
    cache = DiskCache()
    assert cache.dir.name == ".openrdap"


def test_disk_cache_set_timeout(tmp_path):
    cache = DiskCache(tmp_path)
    cache.save("asn.json", b"x")
    cache.set_timeout(0)
    assert cache.timeout == 0
    assert cache.state("asn.json") is FileState.EXPIRED