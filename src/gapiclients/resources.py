"""
Base for the generated resource records.

Every schema in a discovery document becomes a dataclass deriving from
ApiResource.  Fields keep their wire (camelCase) names where Python allows
it and default to None, which is also how an absent field is represented.
Fields that need something other than plain JSON declare a codec through
wire() and one generic engine walks that table in both directions, so there
is no per-type serialize/deserialize code anywhere.
"""
from dataclasses import field, fields
from typing import Any, Callable, Self, Tuple
import logging
import sys

from . import encoding

logger = logging.getLogger(__name__)


class Codec():
    """
    A pair of pure functions between the in-memory value and the wire value.
    Both only ever see non-None values.
    """
    def __init__(self, name: str,
                 encode: Callable[[Any], Any],
                 decode: Callable[[Any], Any]) -> None:
        self.name = name
        self._encode = encode
        self._decode = decode

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name})"

    def encode(self, value: Any) -> Any:
        return None if value is None else self._encode(value)

    def decode(self, value: Any) -> Any:
        return None if value is None else self._decode(value)

    def bind(self, namespace: dict) -> Self:
        """
        Resolve any by-name references against the module that declared the field.
        Scalars have nothing to resolve.
        """
        return self


INT64 = Codec("int64", encoding.encode_int64, encoding.decode_int64)
BASE64 = Codec("byte", encoding.encode_base64, encoding.decode_base64)
TIMESTAMP = Codec("google-datetime", encoding.encode_timestamp, encoding.decode_timestamp)
DATE = Codec("date", encoding.encode_date, encoding.decode_date)
DURATION = Codec("google-duration", encoding.passthrough, encoding.passthrough)
FIELD_MASK = Codec("google-fieldmask", encoding.passthrough, encoding.passthrough)


class Record(Codec):
    """
    A nested record.  Generated modules refer to the target by name because
    the class may be defined further down the module.
    """
    def __init__(self, target: "str|type[ApiResource]") -> None:
        self.target = target
        name = target if isinstance(target, str) else target.__name__
        super().__init__(name, self._to_wire, self._from_wire)

    def bind(self, namespace: dict) -> Self:
        if isinstance(self.target, str):
            try:
                return Record(namespace[self.target])
            except KeyError:
                raise NameError(f"Unknown record type: {self.target}") from None
        return self

    def _to_wire(self, value: Any) -> Any:
        # plain dicts are accepted in request bodies and go out untouched
        if isinstance(value, ApiResource):
            return value.to_wire()
        return value

    def _from_wire(self, value: Any) -> Any:
        if isinstance(self.target, str):
            raise RuntimeError(f"Record({self.target}) used before being bound")
        return self.target.from_wire(value)


class ListOf(Codec):
    """Repeated field, each item through the inner codec."""
    def __init__(self, item: Codec) -> None:
        self.item = item
        super().__init__(f"list[{item.name}]",
                         lambda v: [item.encode(i) for i in v],
                         lambda v: [item.decode(i) for i in v])

    def bind(self, namespace: dict) -> Self:
        item = self.item.bind(namespace)
        return self if item is self.item else ListOf(item)


class MapOf(Codec):
    """String keyed map (additionalProperties), each value through the inner codec."""
    def __init__(self, value: Codec) -> None:
        self.value = value
        super().__init__(f"dict[{value.name}]",
                         lambda v: {k: value.encode(i) for k, i in v.items()},
                         lambda v: {k: value.decode(i) for k, i in v.items()})

    def bind(self, namespace: dict) -> Self:
        value = self.value.bind(namespace)
        return self if value is self.value else MapOf(value)


def wire(codec: Codec|None = None, name: str|None = None):
    """
    Declare a resource field.
    codec: how the value is carried on the wire, None for plain JSON
    name: the JSON key when it isn't a valid Python attribute name
    """
    return field(default=None, metadata={"codec": codec, "wire": name})


# (attribute, wire name, bound codec or None) per resource class
_FIELD_TABLES: dict[type, Tuple[Tuple[str, str, Codec|None], ...]] = {}


class ApiResource():
    """
    Intended to be subclassed by a dataclass but isn't actually a dataclass.
    to_wire/from_wire translate to and from the dicts that go over HTTP.
    """
    @classmethod
    def wire_fields(cls) -> Tuple[Tuple[str, str, Codec|None], ...]:
        """
        The field table for this class, built on first use.  This has to be
        lazy as Record references are only resolvable once the whole
        module has been executed.
        """
        table = _FIELD_TABLES.get(cls)
        if table is None:
            module = sys.modules.get(cls.__module__)
            namespace = vars(module) if module is not None else {}
            rows = []
            for f in fields(cls):
                codec = f.metadata.get("codec")
                if codec is not None:
                    codec = codec.bind(namespace)
                rows.append((f.name, f.metadata.get("wire") or f.name, codec))
            table = tuple(rows)
            _FIELD_TABLES[cls] = table
        return table

    def to_wire(self) -> dict:
        """
        The dict to send as JSON.  Absent (None) fields are left out.
        """
        out = {}
        for attr, key, codec in self.wire_fields():
            v = getattr(self, attr)
            if v is None:
                continue
            out[key] = codec.encode(v) if codec is not None else v
        return out

    @classmethod
    def from_wire(cls, data: dict|None) -> Self|None:
        """
        Build an instance from a decoded JSON response.
        Keys the schema doesn't know about are dropped.
        """
        if data is None:
            return None
        kwargs = {}
        known = set()
        for attr, key, codec in cls.wire_fields():
            known.add(key)
            if key in data:
                v = data[key]
                kwargs[attr] = codec.decode(v) if codec is not None else v
        unknown = [k for k in data if k not in known]
        if unknown:
            logger.debug("%s: ignoring unknown fields %s", cls.__name__, unknown)
        return cls(**kwargs)
