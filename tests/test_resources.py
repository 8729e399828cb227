import datetime
from dataclasses import dataclass
from typing import List

import pytest

from gapiclients.resources import (ApiResource, wire, Record, ListOf, MapOf,
                                   INT64, BASE64, TIMESTAMP, DATE, DURATION, FIELD_MASK)


@dataclass
class Inner(ApiResource):
    raw: bytes|None = wire(BASE64)
    count: int|None = wire(INT64)


@dataclass
class Outer(ApiResource):
    name: str|None = wire()
    inner: Inner|None = wire(Record("Inner"))
    inners: List[Inner]|None = wire(ListOf(Record("Inner")))
    sizes: dict|None = wire(MapOf(INT64))
    created: datetime.datetime|None = wire(TIMESTAMP)
    day: datetime.date|None = wire(DATE)
    ttl: str|None = wire(DURATION)
    mask: str|None = wire(FIELD_MASK)
    from_: str|None = wire(name="from")
    extra: dict|None = wire()


@dataclass
class Broken(ApiResource):
    other: str|None = wire(Record("DoesNotExist"))


NOW = datetime.datetime(2024, 5, 1, 12, 0, 0, tzinfo=datetime.timezone.utc)


def test_to_wire_omits_absent():
    assert(Outer().to_wire() == {})
    assert(Outer(name="x").to_wire() == {"name": "x"})


def test_to_wire_encodes():
    o = Outer(name="n",
              inner=Inner(raw=b"abc", count=2**40),
              inners=[Inner(count=1), Inner(raw=b"a")],
              sizes={"a": 1, "b": 2**63 - 1},
              created=NOW,
              day=datetime.date(2024, 5, 1),
              ttl="3.5s",
              mask="name,ttl",
              from_="en")
    assert(o.to_wire() == {
        "name": "n",
        "inner": {"raw": "YWJj", "count": "1099511627776"},
        "inners": [{"count": "1"}, {"raw": "YQ=="}],
        "sizes": {"a": "1", "b": "9223372036854775807"},
        "created": "2024-05-01T12:00:00Z",
        "day": "2024-05-01",
        "ttl": "3.5s",
        "mask": "name,ttl",
        "from": "en",
    })


def test_from_wire_decodes():
    o = Outer.from_wire({
        "inner": {"raw": "YWI=", "count": "7"},
        "inners": [{"count": "3"}],
        "created": "2024-05-01T12:00:00Z",
        "from": "es",
        "extra": {"nested": [1, 2]},
    })
    assert(isinstance(o.inner, Inner))
    assert(o.inner.raw == b"ab")
    assert(o.inner.count == 7)
    assert(o.inners == [Inner(count=3)])
    assert(o.created == NOW)
    assert(o.from_ == "es")
    assert(o.extra == {"nested": [1, 2]})
    assert(o.name is None)
    assert(o.sizes is None)


@pytest.mark.parametrize("record", [
    Outer(),
    Outer(name="only"),
    Outer(inner=Inner(), inners=[]),
    Outer(inner=Inner(raw=b"\x00\xff"), sizes={}, day=datetime.date(2000, 2, 29)),
    Outer(inners=[Inner(count=-1), Inner(raw=b"")], created=NOW, from_="de", mask="a"),
    Outer(name="all", inner=Inner(raw=b"xyz", count=0), inners=[Inner()], sizes={"k": 5},
          created=NOW, day=datetime.date(1999, 1, 1), ttl="1s", mask="m", from_="fr",
          extra={"k": "v"}),
])
def test_round_trip(record):
    assert(Outer.from_wire(record.to_wire()) == record)


def test_from_wire_ignores_unknown():
    o = Outer.from_wire({"name": "x", "somethingNew": 1})
    assert(o == Outer(name="x"))


def test_from_wire_none():
    assert(Outer.from_wire(None) is None)


def test_plain_dict_in_record_field():
    o = Outer(inner={"raw": "already-encoded"})
    assert(o.to_wire() == {"inner": {"raw": "already-encoded"}})


def test_wire_fields_table():
    table = Outer.wire_fields()
    names = [(attr, key) for attr, key, _ in table]
    assert(("from_", "from") in names)
    assert(("name", "name") in names)
    # resolved to the class, not the name
    inner = [codec for attr, _, codec in table if attr == "inner"][0]
    assert(inner.target is Inner)


def test_unknown_record_name():
    with pytest.raises(NameError):
        Broken.wire_fields()


def test_unbound_record_decode():
    with pytest.raises(RuntimeError):
        Record("Inner").decode({})
