"""
Building every API module from the discovery catalog, and the index page
listing them.
"""
from dataclasses import dataclass
from html import escape
from typing import List, Optional
import asyncio
import logging

from ..discovery import DirectoryItem, fetch_rest
from .emit import module_source
from .naming import primary_name

logger = logging.getLogger(__name__)


@dataclass
class CodeModule():
    """
    A generated module and where it goes, <dir>/<filename> under the output root.
    client is the name of the client class in it.
    """
    dir: str
    filename: str
    source: str
    client: str|None = None

    @property
    def path(self) -> str:
        return f"{self.dir}/{self.filename}"


def module_url(origin: str, item: DirectoryItem) -> str:
    return f"{origin}/raw/latest/build/{item.version}/{item.name}.py"


def index_html(origin: str, items: List[DirectoryItem],
               modules: Optional[List[CodeModule]] = None) -> str:
    """
    Catalog page: a usage example followed by one row per API with the
    import line for its client.
    The class names come from the generated modules where they are given,
    a client renamed to dodge a schema name has to be imported as such.
    """
    clients = {m.path: m.client for m in modules or [] if m.client}
    rows = []
    for item in items:
        if not item.name or not item.title:
            raise ValueError(f"Directory item without name or title: {item.id}")
        name = clients.get(f"{item.version}/{item.name}.py") or primary_name(item.name, item.title.split())
        url = escape(module_url(origin, item))
        docs = escape(item.documentationLink or "")
        rows.append(f"""
                <tr>
                <td><a href="{url}">{escape(item.title)}</a></td>
                <td><pre>from {escape(item.name)} import {escape(name)}</pre></td>
                <td><a href="{docs}">Docs</a></td>
                </tr>""")
    return f"""<!DOCTYPE html>
<html>
    <head>
        <meta charset="utf-8">
        <title>Google APIs for Python</title>
    </head>
    <body>
        <h1>Google APIs for Python</h1>
        <p>
        This service provides auto-generated Google API clients for Python.
        </p>
        <h2>Example</h2>
        <pre><code># Import the client, downloaded from {escape(origin)}/raw/latest/build/v1/spanner.py
import asyncio
from spanner import GoogleAuth, Spanner

# Service account key file.
auth = GoogleAuth.from_service_account_file("service-account.json")

# Instantiate the client.
spanner = Spanner(auth)

# List Spanner instances.
instances = asyncio.run(spanner.projects_instances_list("projects/my-project"))
print(instances)
        </code></pre>
        <h2>Services</h2>
        <table>
        <thead>
            <tr>
            <th>Service</th>
            <th>Usage</th>
            <th>Docs</th>
            </tr>
        </thead>
        <tbody>
{"".join(rows)}
        </tbody>
        </table>
    </body>
</html>
"""


async def api_modules(origin: str, items: List[DirectoryItem]) -> List[CodeModule]:
    """
    Fetch every REST description concurrently and generate its module.
    An API whose description can't be fetched or generated is logged and
    left out, the rest carry on.
    """
    results = await asyncio.gather(*(fetch_rest(i) for i in items), return_exceptions=True)
    modules = []
    for item, description in zip(items, results):
        if isinstance(description, BaseException):
            if not isinstance(description, Exception):
                raise description
            logger.error("Failed to fetch %s: %s", item, description)
            continue
        if not description:
            logger.error("Empty description for %s", item)
            continue
        try:
            client, source = module_source(description, origin)
        except Exception as e:
            logger.error("Failed to generate %s: %s", item, e)
            continue
        # module_source() has already checked name and version are there
        modules.append(CodeModule(dir=str(description["version"]),
                                  filename=f"{description['name']}.py",
                                  source=source,
                                  client=client))
        logger.info("Generated %s", modules[-1].path)
    return modules
