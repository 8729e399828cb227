"""
Whole-module generation from a discovery REST description.
"""
from typing import List, Tuple

from .client import client_source, collect_methods, options_classes
from .naming import primary_name
from .schemas import TypeMapper, schema_classes

_IMPORTS = """from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal
import datetime
import json

from gapiclients.access import auth, CredentialsClient, GoogleAuth
from gapiclients.base import ApiClient, request
from gapiclients.resources import (ApiResource, wire, Record, ListOf, MapOf,
                                   INT64, BASE64, TIMESTAMP, DATE, DURATION, FIELD_MASK)
"""


def client_name(description: dict, taken: set[str]) -> str:
    """
    Client class name, with a 'Client' suffix if a schema already has the name.
    """
    title = description.get("title") or ""
    name = primary_name(description["name"], title.split())
    if name in taken:
        name += "Client"
    return name


def _header(description: dict, origin: str) -> List[str]:
    title = f"{description.get('title') or description['name']} Client"
    lines = ['"""', title, "=" * len(title), ""]
    desc = (description.get("description") or "").strip()
    if desc:
        lines += [desc.replace("\\", "\\\\").replace('"""', '\\"\\"\\"'), ""]
    if description.get("documentationLink"):
        lines.append(f"Docs: {description['documentationLink']}")
    lines.append(f"Source: {origin}")
    lines.append('"""')
    return lines


def module_source(description: dict, origin: str) -> Tuple[str, str]:
    """
    (client class name, Python source) of the client module for one API.
    description: the discovery REST description (apis.getRest)
    origin: where the generated code is published, noted in the module header
    Raises ValueError if the description is missing what's needed to name or address the API.
    """
    for k in ("name", "version", "rootUrl"):
        if not description.get(k):
            raise ValueError(f"Discovery description has no {k}")

    mapper = TypeMapper(description.get("schemas", {}))
    methods = collect_methods(description)
    taken = mapper.class_names
    classes = schema_classes(mapper)
    classes.update(options_classes(mapper, methods, taken))
    name = client_name(description, taken)

    out = _header(description, origin)
    out.append(_IMPORTS)
    out.extend(client_source(name, description, mapper, methods))
    for cname in sorted(classes):
        out.extend(["", ""])
        out.extend(classes[cname])
    out.append("")
    return name, "\n".join(out)


def generate(description: dict, origin: str) -> str:
    """Python source of the client module for one API."""
    return module_source(description, origin)[1]
