import importlib.util
import json
import sys
from pathlib import Path

import pytest

from gapiclients.generator import generate

FIXTURES = Path(__file__).parent / "fixtures"
ORIGIN = "https://example.com/gapiclients"


@pytest.fixture(scope="session")
def translate_description() -> dict:
    with open(FIXTURES / "translate_v3.json", "r", encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture(scope="session")
def translate_source(translate_description) -> str:
    return generate(translate_description, ORIGIN)


@pytest.fixture(scope="session")
def translate(translate_source, tmp_path_factory):
    """The generated translate module, imported for real."""
    path = tmp_path_factory.mktemp("build") / "generated_translate_v3.py"
    path.write_text(translate_source, encoding="utf-8")
    spec = importlib.util.spec_from_file_location("generated_translate_v3", path)
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    yield module
    sys.modules.pop(spec.name, None)


class FakeRequest():
    """
    Stand-in for base.request: records the call and hands back a canned reply.
    """
    def __init__(self, reply=None) -> None:
        self.reply = reply
        self.calls = []

    async def __call__(self, url, client=None, method="GET", body=None):
        self.calls.append({"url": url, "client": client, "method": method,
                           "body": None if body is None else json.loads(body)})
        return self.reply


@pytest.fixture
def fake_request():
    return FakeRequest
