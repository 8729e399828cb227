"""
Turning discovery names into Python names.
"""
from typing import Iterable, List
import keyword
import re

_INVALID = re.compile(r"[^0-9A-Za-z_]")
_CAMEL_1 = re.compile(r"(.)([A-Z][a-z]+)")
_CAMEL_2 = re.compile(r"([a-z0-9])([A-Z])")


def to_identifier(name: str, reserved: Iterable[str] = ()) -> str:
    """
    Make a valid, non-keyword Python identifier out of a wire name.
    'aggregation.alignmentPeriod' -> 'aggregation_alignmentPeriod', 'from' -> 'from_'
    """
    s = _INVALID.sub("_", str(name))
    if not s:
        s = "_"
    if s[0].isdigit():
        s = "_" + s
    if keyword.iskeyword(s) or s in reserved:
        s += "_"
    return s


def snake_case(name: str) -> str:
    """camelCase -> camel_case, 'timeSeries' -> 'time_series', 'getIamPolicy' -> 'get_iam_policy'"""
    s = _CAMEL_1.sub(r"\1_\2", str(name))
    s = _CAMEL_2.sub(r"\1_\2", s)
    return _INVALID.sub("_", s).lower()


def pascal_case(name: str) -> str:
    """Upper case the first letter and drop separators, leaving the rest alone."""
    parts = [p for p in re.split(r"[^0-9A-Za-z]+", str(name)) if p]
    return "".join(p[:1].upper() + p[1:] for p in parts)


def method_name(chain: List[str]) -> str:
    """
    Python method name for a discovery method from its resource chain,
    ['projects', 'locations', 'datasets', 'create'] -> 'projects_locations_datasets_create'
    """
    return to_identifier("_".join(snake_case(c) for c in chain))


def options_name(chain: List[str]) -> str:
    """['projects', 'timeSeries', 'list'] -> 'ProjectsTimeSeriesListOptions'"""
    return to_identifier("".join(pascal_case(c) for c in chain) + "Options")


def primary_name(name: str, title_words: Iterable[str]|None = None) -> str:
    """
    Class name of an API client.  The API name is one lower case word
    ('cloudresourcemanager') so use the title ('Cloud Resource Manager API')
    to find where the word breaks are.  Title words that aren't a prefix of what's
    left of the name are skipped.
    """
    rest = str(name).lower()
    parts = []
    for w in title_words or []:
        w = _INVALID.sub("", str(w).lower())
        if w and rest.startswith(w):
            parts.append(w)
            rest = rest[len(w):]
    if rest:
        parts.append(rest)
    return to_identifier("".join(p[:1].upper() + p[1:] for p in parts))


def unique(name: str, taken: set[str]) -> str:
    """Append underscores until the name is free, then claim it."""
    while name in taken:
        name += "_"
    taken.add(name)
    return name
