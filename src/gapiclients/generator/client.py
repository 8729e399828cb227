"""
Emitting the client class: one coroutine per discovery method, plus the
options dataclasses carrying each method's query parameters.
"""
from dataclasses import dataclass, field
from typing import List
import json

from .naming import method_name, options_name, to_identifier, unique
from .schemas import TypeMapper, docstring, field_lines, record_source

# method arguments besides the path parameters
_ARG_NAMES = frozenset(["self", "req", "opts", "url", "body", "data", "request", "json"])


@dataclass
class MethodSpec():
    """
    The bits of a discovery method the emitter needs.
    """
    chain: List[str]
    http_method: str
    path: str
    description: str|None = field(default=None)
    path_params: List[tuple] = field(default_factory=list)
    query_params: dict = field(default_factory=dict)
    request_ref: str|None = field(default=None)
    response_ref: str|None = field(default=None)
    options_class: str|None = field(default=None)

    @property
    def name(self) -> str:
        return method_name(self.chain)

    @classmethod
    def from_discovery(cls, chain: List[str], method: dict):
        """
        chain: resource names down to and including the method name
        method: the discovery method description
        """
        for k in ("path", "httpMethod"):
            if k not in method:
                raise ValueError(f"Discovery method {'.'.join(chain)} has no {k}")
        params = method.get("parameters", {})
        order = [p for p in method.get("parameterOrder", []) if p in params]
        order += sorted(p for p in params if p not in order)
        path_params = []
        query_params = {}
        for p in order:
            d = params[p]
            if d.get("location") == "path":
                path_params.append((p, d.get("description")))
            else:
                query_params[p] = d
        return cls(chain=list(chain),
                   http_method=str(method["httpMethod"]).upper(),
                   path=str(method["path"]),
                   description=method.get("description"),
                   path_params=path_params,
                   query_params=query_params,
                   request_ref=(method.get("request") or {}).get("$ref"),
                   response_ref=(method.get("response") or {}).get("$ref"))


def collect_methods(description: dict) -> List[MethodSpec]:
    """
    Walk the (possibly nested) resources and gather every method, sorted
    by generated name.
    """
    methods = []

    def _walk(node: dict, chain: List[str]) -> None:
        for mname, m in (node.get("methods") or {}).items():
            methods.append(MethodSpec.from_discovery(chain + [mname], m))
        for rname, r in (node.get("resources") or {}).items():
            _walk(r, chain + [rname])

    _walk(description, [])
    return sorted(methods, key=lambda m: m.name)


def options_classes(mapper: TypeMapper, methods: List[MethodSpec],
                    taken: set[str]) -> dict[str, List[str]]:
    """
    One dataclass per method with query parameters.  Records the chosen
    class name on the MethodSpec.
    """
    classes = {}
    for m in methods:
        if not m.query_params:
            m.options_class = None
            continue
        name = unique(options_name(m.chain), taken)
        m.options_class = name
        classes[name] = record_source(name, f"Additional options for {'.'.join(m.chain)}.",
                                      field_lines(mapper, m.query_params))
    return classes


def _method_lines(mapper: TypeMapper, m: MethodSpec, name: str) -> List[str]:
    args = ["self"]
    params = {}
    taken = set(_ARG_NAMES)
    doc_params = []
    for wire_name, desc in m.path_params:
        arg = unique(to_identifier(wire_name), taken)
        args.append(f"{arg}: str")
        params[wire_name] = arg
        doc_params.append((arg, desc))

    req_record = None
    if m.request_ref:
        req_ann, codec = mapper.resolve({"$ref": m.request_ref})
        req_record = req_ann if codec and codec.startswith("Record(") else None
        args.append(f"req: {req_ann}")
    if m.options_class:
        args.append(f"opts: {m.options_class}|None = None")

    resp_record = None
    resp_ann = "Any"
    if m.response_ref:
        resp_ann, codec = mapper.resolve({"$ref": m.response_ref})
        resp_record = resp_ann if codec and codec.startswith("Record(") else None

    lines = [f"    async def {name}({', '.join(args)}) -> {resp_ann}|None:"]
    doc = (m.description or "").strip()
    for arg, desc in doc_params:
        doc += f"\n\nparam: {arg}: {(desc or '').strip()}"
    lines.extend(docstring(doc.strip() or None, "        "))

    path_args = ", ".join(f"{json.dumps(k)}: {v}" for k, v in params.items())
    url_args = [json.dumps(m.path), "{" + path_args + "}"]
    if m.options_class:
        url_args.append("opts")
    lines.append(f"        url = self._url({', '.join(url_args)})")
    call = f'        data = await request(url, client=self.client, method="{m.http_method}"'
    if m.request_ref:
        to_json = "req.to_wire()" if req_record else "req"
        lines.append(f"        body = json.dumps({to_json})")
        call += ", body=body"
    lines.append(call + ")")
    if resp_record:
        lines.append(f"        return {resp_record}.from_wire(data)")
    else:
        lines.append("        return data")
    return lines


def client_source(name: str, description: dict, mapper: TypeMapper,
                  methods: List[MethodSpec]) -> List[str]:
    """
    The client class itself.  The default base URL is rootUrl + servicePath.
    """
    base_url = str(description.get("rootUrl", "")) + str(description.get("servicePath", ""))
    lines = [f"class {name}(ApiClient):"]
    lines.extend(docstring(description.get("description"), "    "))
    lines.append("")
    lines.append("    def __init__(self, client: CredentialsClient|GoogleAuth|None = None,")
    lines.append(f"                 base_url: str = {json.dumps(base_url)}) -> None:")
    lines.append("        super().__init__(client, base_url)")
    taken = {"client", "base_url"}
    for m in methods:
        lines.append("")
        lines.extend(_method_lines(mapper, m, unique(m.name, taken)))
    return lines
