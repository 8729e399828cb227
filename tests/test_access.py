import json
from pathlib import Path

import gapiclients.access as access
from gapiclients.access import GoogleAuth

CLOUD = "https://www.googleapis.com/auth/cloud-platform"
MONITORING = "https://www.googleapis.com/auth/monitoring"


class FakeCreds():
    def __init__(self, valid=True, scopes=None) -> None:
        self.valid = valid
        self.scopes = scopes or []
        self.refreshed = 0

    def refresh(self, request) -> None:
        self.refreshed += 1
        self.valid = True


def test_get_scope():
    assert(GoogleAuth.get_scope("monitoring") == MONITORING)
    assert(GoogleAuth.get_scope(CLOUD) == CLOUD)
    assert(GoogleAuth.get_scope("nonsense") == "")


def test_default_scopes():
    a = GoogleAuth()
    assert(a.scopes == [CLOUD])
    assert(not a)
    assert(str(a).startswith("Disconnected"))


def test_scopes_setter_filters():
    a = GoogleAuth()
    a.scopes = ["monitoring", "bogus", MONITORING, "translation"]
    assert(a.scopes == [MONITORING, "https://www.googleapis.com/auth/cloud-translation"])
    a.scopes = "appengine"
    assert(a.scopes == ["https://www.googleapis.com/auth/appengine.admin"])
    a.scopes = None
    assert(a.scopes == [])


def test_config_round_trip(tmp_path):
    a = GoogleAuth()
    a.config = {"port": "8080", "server": "127.0.0.1", "scopes": ["monitoring"],
                "cache": str(tmp_path / "tokens.json"), "secrets": str(tmp_path / "secrets.json"),
                "developer_key": "k"}
    c = a.config
    assert(c["port"] == 8080)
    assert(c["server"] == "127.0.0.1")
    assert(c["scopes"] == [MONITORING])
    assert(c["cache"] == str(tmp_path / "tokens.json"))
    assert(c["secrets"] == str(tmp_path / "secrets.json"))
    assert(c["service_account"] is None)
    assert(a.developer_key == "k")
    b = GoogleAuth()
    b.config = json.loads(json.dumps(c))
    assert(b.config == c)


def test_explicit_credentials():
    creds = FakeCreds(scopes=[CLOUD])
    a = GoogleAuth(creds)
    assert(a.connected)
    assert(a.credentials() is creds)
    assert(a.session_scopes == [CLOUD])
    assert(str(a) == f"Connected:{[CLOUD]}")


def test_expired_credentials_are_refreshed(monkeypatch):
    monkeypatch.setattr(access, "Request", lambda: None)
    creds = FakeCreds(valid=False)
    a = GoogleAuth(creds)
    assert(a.credentials() is creds)
    assert(creds.refreshed == 1)


def test_from_service_account_file(monkeypatch, tmp_path):
    seen = {}

    def fake_from_file(path, scopes=None):
        seen.update(path=path, scopes=scopes)
        return FakeCreds(valid=False, scopes=scopes)

    monkeypatch.setattr(access.service_account.Credentials, "from_service_account_file", fake_from_file)
    monkeypatch.setattr(access, "Request", lambda: None)
    key = tmp_path / "sa.json"
    a = GoogleAuth.from_service_account_file(key, scopes=["monitoring"])
    assert(a.service_account == Path(key))
    assert(a.connect())
    assert(seen == {"path": str(key), "scopes": [MONITORING]})


def test_falls_back_to_default_credentials(monkeypatch, tmp_path):
    creds = FakeCreds()
    monkeypatch.setattr(access.google.auth, "default", lambda scopes=None: (creds, "proj"))
    a = GoogleAuth()
    a.cred_cache = tmp_path / "missing-tokens.json"
    a.client_secrets = tmp_path / "missing-secrets.json"
    assert(a.connect())
    assert(a.credentials() is creds)


def test_no_credentials_anywhere(monkeypatch, tmp_path):
    def no_default(scopes=None):
        raise access.google.auth.exceptions.DefaultCredentialsError("none")

    monkeypatch.setattr(access.google.auth, "default", no_default)
    a = GoogleAuth()
    a.cred_cache = tmp_path / "missing-tokens.json"
    a.client_secrets = tmp_path / "missing-secrets.json"
    assert(not a.connect())
    assert(a.credentials() is None)
    assert(a.get_service("translate", "v3") is None)


def test_service_decorator(monkeypatch):
    calls = []

    def fake_get_service(name, version, anonymous=False):
        calls.append((name, version, anonymous))
        return "svc"

    monkeypatch.setattr(access.auth, "get_service", fake_get_service)

    @access.service("discovery", "v1", anonymous=True)
    def needs_service(x, service=None):
        return x, service

    assert(needs_service(1) == (1, "svc"))
    assert(calls == [("discovery", "v1", True)])
    # a service handed in is used as is
    assert(needs_service(2, service="mine") == (2, "mine"))
    assert(len(calls) == 1)
