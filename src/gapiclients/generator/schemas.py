"""
Mapping discovery JSON schema types onto Python annotations and wire codecs,
and emitting the resource dataclasses.
"""
from typing import List, Tuple
import json
import textwrap

from .naming import to_identifier, unique

# names the generated module imports; a field or class using one of these
# would shadow it
RUNTIME_NAMES = frozenset([
    "dataclass", "datetime", "json", "Any", "Literal",
    "auth", "CredentialsClient", "GoogleAuth", "ApiClient", "request",
    "ApiResource", "wire", "Record", "ListOf", "MapOf",
    "INT64", "BASE64", "TIMESTAMP", "DATE", "DURATION", "FIELD_MASK",
])

# ApiResource methods, a field of the same name would hide them
RECORD_METHODS = frozenset(["to_wire", "from_wire", "wire_fields"])

_SCALARS = {
    "string": "str",
    "integer": "int",
    "number": "float",
    "boolean": "bool",
    "any": "Any",
}

# string formats carried as something other than plain JSON
_FORMATS = {
    "int64": ("int", "INT64"),
    "uint64": ("int", "INT64"),
    "byte": ("bytes", "BASE64"),
    "google-datetime": ("datetime.datetime", "TIMESTAMP"),
    "date-time": ("datetime.datetime", "TIMESTAMP"),
    "date": ("datetime.date", "DATE"),
    "google-duration": ("str", "DURATION"),
    "google-fieldmask": ("str", "FIELD_MASK"),
}

# guards against a $ref cycle through non-object schemas
_MAX_ALIAS_DEPTH = 16


def is_record(schema: dict) -> bool:
    """
    Objects become dataclasses, except pure maps (no properties, just
    additionalProperties) which are better left as dicts.
    """
    t = schema.get("type", "object" if "properties" in schema else None)
    if t != "object":
        return False
    return "properties" in schema or "additionalProperties" not in schema


def docstring(text: str|None, indent: str) -> List[str]:
    """
    Lines of a triple quoted docstring, wrapped.  Empty list for no text.
    """
    if not text:
        return []
    text = str(text).replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    lines = [f'{indent}"""']
    for para in text.strip().split("\n"):
        para = para.strip()
        if not para:
            lines.append("")
            continue
        for w in textwrap.wrap(para, width=76, break_long_words=False, break_on_hyphens=False):
            lines.append(f"{indent}{w}")
    lines.append(f'{indent}"""')
    return lines


class TypeMapper():
    """
    Resolves discovery property schemas against the document's schema table.
    """
    def __init__(self, schemas: dict) -> None:
        self.schemas = schemas or {}
        self.records = {}
        taken = set(RUNTIME_NAMES)
        for sid in sorted(self.schemas):
            if is_record(self.schemas[sid]):
                self.records[sid] = unique(to_identifier(sid), taken)

    @property
    def class_names(self) -> set[str]:
        return set(self.records.values())

    def resolve(self, prop: dict, depth: int = 0) -> Tuple[str, str|None]:
        """
        (annotation, codec expression) for a property, codec None when the
        value is plain JSON.
        """
        prop = prop or {}
        if "$ref" in prop:
            ref = prop["$ref"]
            if ref in self.records:
                name = self.records[ref]
                return name, f'Record("{name}")'
            target = self.schemas.get(ref)
            if target is None or depth >= _MAX_ALIAS_DEPTH:
                return "Any", None
            return self.resolve(target, depth + 1)

        t = prop.get("type", "any")
        if prop.get("repeated"):
            ann, codec = self.resolve({k: v for k, v in prop.items() if k != "repeated"}, depth)
            return f"list[{ann}]", f"ListOf({codec})" if codec else None
        if t == "array":
            ann, codec = self.resolve(prop.get("items", {}), depth)
            return f"list[{ann}]", f"ListOf({codec})" if codec else None
        if t == "object":
            ap = prop.get("additionalProperties")
            if isinstance(ap, dict):
                ann, codec = self.resolve(ap, depth)
                return f"dict[str, {ann}]", f"MapOf({codec})" if codec else None
            return "dict[str, Any]", None
        fmt = prop.get("format")
        if fmt in _FORMATS and t in ("string", "integer"):
            return _FORMATS[fmt]
        if t == "string" and prop.get("enum"):
            values = ", ".join(json.dumps(v) for v in prop["enum"])
            return f"Literal[{values}]", None
        return _SCALARS.get(t, "Any"), None


def field_lines(mapper: TypeMapper, properties: dict, indent: str = "    ") -> List[str]:
    """
    Dataclass field declarations, in wire name order.
    """
    lines = []
    reserved = RUNTIME_NAMES | RECORD_METHODS
    taken = set(reserved)
    for key in sorted(properties):
        attr = unique(to_identifier(key, reserved), taken)
        ann, codec = mapper.resolve(properties[key])
        args = []
        if codec:
            args.append(codec)
        if attr != key:
            args.append(f"name={json.dumps(key)}")
        lines.append(f"{indent}{attr}: {ann}|None = wire({', '.join(args)})")
    return lines


def record_source(name: str, description: str|None, lines: List[str]) -> List[str]:
    out = ["@dataclass", f"class {name}(ApiResource):"]
    body = docstring(description, "    ") + lines
    out.extend(body if body else ["    pass"])
    return out


def schema_classes(mapper: TypeMapper) -> dict[str, List[str]]:
    """
    Source lines of every record, keyed by class name.
    """
    classes = {}
    for sid, name in mapper.records.items():
        schema = mapper.schemas[sid]
        classes[name] = record_source(name, schema.get("description"),
                                      field_lines(mapper, schema.get("properties", {})))
    return classes
