
from collections.abc import Iterable
from pathlib import Path
import json
import copy
import logging
import threading
from functools import wraps

import google.auth
import google.auth.credentials
import google.auth.exceptions
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google.oauth2 import service_account
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build, Resource
import googleapiclient.discovery_cache as discovery_cache

logger = logging.getLogger(__name__)

# what the generated clients accept as their 'client' argument
CredentialsClient = google.auth.credentials.Credentials


class GoogleAuth():
    """
    Credentials provider for the generated API clients.
    Sources are tried in order: explicitly supplied credentials, a service account
    key file, the local token cache, an OAuth installed app flow driven by a client
    secrets file and finally application default credentials (the
    GOOGLE_APPLICATION_CREDENTIALS envvar, gcloud, the metadata server).
    Tokens from the OAuth flow are cached so the consent screen is only shown once.

    There is a module singleton, 'auth', for the usual case of one identity per
    application but nothing stops a client creating its own.
    """

    __SCOPES = {
        "cloud-platform": "https://www.googleapis.com/auth/cloud-platform",
        "cloud-platform-ro": "https://www.googleapis.com/auth/cloud-platform.read-only",
        "appengine": "https://www.googleapis.com/auth/appengine.admin",
        "monitoring": "https://www.googleapis.com/auth/monitoring",
        "monitoring-ro": "https://www.googleapis.com/auth/monitoring.read",
        "monitoring-write": "https://www.googleapis.com/auth/monitoring.write",
        "translation": "https://www.googleapis.com/auth/cloud-translation",
        "openid": "openid",
        "email": "email",
        "profile": "profile",
        "userinfo-email": "https://www.googleapis.com/auth/userinfo.email",
        "userinfo-profile": "https://www.googleapis.com/auth/userinfo.profile"
    }
    __SCOPE_URL_PREFIX = "https://www.googleapis.com/"

    __DEFAULT_SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]
    __DEFAULT_AUTH_PROMPT_MSG = "Please visit this URL to authorize this application: {url}"
    __DEFAULT_AUTH_FLOW_SUCCESS_MSG = "The authentication flow has completed. You may close this window."
    __DEFAULT_SECRETS = Path.home() / "gapiclients_client_secrets.json"
    __DEFAULT_CACHE = Path.home() / "gapiclients_tokens.json"

    def __init__(self, credentials: CredentialsClient|None = None) -> None:
        """
        Credentials can be handed over directly, otherwise they are resolved on
        first use.
        """
        # requests resolve credentials from worker threads
        self.__lock = threading.RLock()
        self.reset()
        self.__creds = credentials

    def __bool__(self) -> bool:
        """True is we are connected and authenticated"""
        return self.connected

    def __str__(self) -> str:
        if self.connected:
            return f"Connected:{str(self.session_scopes)}"
        return f"Disconnected:{str(self.__scopes)}"

    def __repr__(self) -> str:
        return f"{str(self.__class__)}:{str(self)}"

    @classmethod
    def from_service_account_file(cls, path: Path|str, scopes: list[str]|str|None = None):
        """
        Provider pinned to a service account key file.
        """
        a = cls()
        if scopes is not None:
            a.scopes = scopes
        a.service_account = path
        return a

    @classmethod
    def get_scope(cls, scope: str) -> str:
        """
        Get a scope based on simplified label.
        A raw URL will also be expected.
        """
        s = str(scope)
        sc = cls.__SCOPES.get(s, "")
        if not sc and s.startswith(cls.__SCOPE_URL_PREFIX):
            sc = s
        return sc

    @property
    def client_secrets(self) -> Path:
        """
        Path to client secrets file as provided by Google when generating OAuth credentials.
        """
        return self.__secrets

    @client_secrets.setter
    def client_secrets(self, value: Path|str) -> None:
        val = value if isinstance(value, Path) else Path(str(value))
        if val != self.__secrets:
            self.__secrets = val
            if self.connected:
                self.connect()

    @property
    def cred_cache(self) -> Path:
        """
        Path to local token cache to not have to do the full OAuth flow each time.
        """
        return self.__cache

    @cred_cache.setter
    def cred_cache(self, value: Path|str) -> None:
        val = value if isinstance(value, Path) else Path(str(value))
        if val != self.__cache:
            self.__cache = val
            if self.connected:
                self.connect()

    @property
    def service_account(self) -> Path|None:
        """
        Path to a service account key file, takes precedence over the OAuth flow.
        """
        return self.__service_account

    @service_account.setter
    def service_account(self, value: Path|str|None) -> None:
        val = value if value is None or isinstance(value, Path) else Path(str(value))
        if val != self.__service_account:
            self.__service_account = val
            self.__creds = None
            self.__services = {}

    @property
    def connected(self) -> bool:
        """
        Do we hold valid credentials?
        """
        return bool(self.__creds) and bool(self.__creds.valid)

    @property
    def session_scopes(self) -> list[str]:
        """
        Scopes granted for this session.
        This differs to self.scopes as that is what is requested or to be requested.
        """
        if self.connected:
            return list(getattr(self.__creds, "scopes", None) or [])
        return []

    @property
    def scopes(self) -> list[str]:
        """
        The scopes requested or to be requested on next authentication sequence.
        """
        return self.__scopes

    @scopes.setter
    def scopes(self, value: None|list[str]|str) -> None:
        """
        Override the list of session scopes.
        Unknown labels are dropped.  A reconnect happens if the new list
        has scopes the current session wasn't granted.
        """
        slist = []
        if value is not None:
            items = [value] if isinstance(value, str) or not isinstance(value, Iterable) else value
            for v in items:
                s = self.get_scope(str(v))
                if s and s not in slist:
                    slist.append(s)
        self.__scopes = slist
        if self.__scopes and self.connected:
            self.refresh()
        else:
            self.__creds = None
            self.__services = {}

    def append_scopes(self, *args) -> bool:
        """
        Adding to the current scope list.
        """
        for a in args:
            b = [a] if isinstance(a, str) or not isinstance(a, Iterable) else a
            for i in b:
                s = self.get_scope(str(i))
                if s and s not in self.__scopes:
                    self.__scopes.append(s)
        return self.refresh()

    @property
    def config(self) -> dict:
        """
        Get all configuration state as a dict.
        Convenience for getting it all at once for pushing into a json, toml, ini, etc, file.
        """
        config = {
            'secrets': str(self.__secrets),
            'cache': str(self.__cache),
            'service_account': str(self.__service_account) if self.__service_account else None,
            'scopes': list(self.__scopes),
            'server': self.auth_server,
            'port': self.auth_port
        }
        return config

    @config.setter
    def config(self, config: dict) -> None:
        """
        Set configuration state from a dict.
        Convenience method for inserting state pulled from a config file or equivalent.
        """
        reconnect = False
        v = config.get('port', None)
        if v is not None:
            self.auth_port = int(v)
        v = config.get('server', None)
        if v is not None:
            self.auth_server = str(v)
        v = config.get('scopes', [])
        if v:
            self.scopes = v
            reconnect = True
        v = config.get('cache', None)
        if v is not None:
            self.__cache = Path(v)
            reconnect = True
        v = config.get('secrets', None)
        if v is not None:
            self.__secrets = Path(v)
            reconnect = True
        v = config.get('service_account', None)
        if v is not None:
            self.service_account = v
            reconnect = True
        v = config.get('developer_key', None)
        if v is not None:
            self.developer_key = v
        v = config.get('auth_prompt_msg', None)
        if v is not None:
            self.auth_prompt_msg = str(v)
        v = config.get('flow_success_msg', None)
        if v is not None:
            self.auth_flow_success_msg = str(v)
        if reconnect and self.connected:
            self.connect()

    @property
    def developer_key(self) -> str|None:
        return self.__developer_key

    @developer_key.setter
    def developer_key(self, value: str|None) -> None:
        v = value if value is None else str(value)
        if v != self.__developer_key:
            self.__services = {}
            self.__developer_key = v

    def reset(self) -> None:
        """
        Reset all connection state to defaults.
        """
        self.__secrets = self.__DEFAULT_SECRETS
        self.__cache = self.__DEFAULT_CACHE
        self.__service_account = None
        self.__discovery_cache = discovery_cache.autodetect()
        self.__creds = None
        self.__scopes = list(self.__DEFAULT_SCOPES)
        self.__services = {}
        self.__developer_key = None
        self.auth_server = 'localhost'
        self.auth_port = 0
        self.auth_prompt_msg = self.__DEFAULT_AUTH_PROMPT_MSG
        self.auth_flow_success_msg = self.__DEFAULT_AUTH_FLOW_SUCCESS_MSG

    def refresh(self) -> bool:
        """
        If the requested scopes aren't all in the current session, reconnect.
        """
        scopes_accounted = all(s in self.session_scopes for s in self.__scopes)
        if self.connected and not scopes_accounted:
            return self.connect()
        return True

    def _from_cache(self, requested_scopes: list[str]) -> None:
        if not (self.__cache.exists() and self.__cache.is_file()):
            return
        cf = self.__cache.resolve()
        with open(cf, 'r', encoding='utf-8') as f:
            scopes = json.load(f).get('scopes', [])
        # the cache doesn't get re-scoped on refresh so a cache missing
        # anything we now want is useless
        if not all(s in scopes for s in requested_scopes):
            self.__cache.unlink()
            return
        self.__creds = Credentials.from_authorized_user_file(str(cf), requested_scopes)
        if not self.connected and self.__creds.refresh_token:
            try:
                self.__creds.refresh(Request())
            except google.auth.exceptions.RefreshError as e:
                logger.warning("failed to refresh stored creds: %s...deleting cred cache and re-authorizing", e)
            if not self.connected:
                self.__cache.unlink()
                self.__creds = None

    def _save_cache(self, requested_scopes: list[str]) -> None:
        user_info = {'refresh_token': self.__creds.refresh_token, 'client_id': self.__creds.client_id,
                     'client_secret': self.__creds.client_secret, 'scopes': requested_scopes}
        with open(self.__cache.resolve(), 'w', encoding='utf-8') as f:
            json.dump(user_info, f, ensure_ascii=False, indent=2)

    def connect(self) -> bool:
        """
        Establish a new authentication session from the first source that works.
        """
        with self.__lock:
            return self._connect()

    def _connect(self) -> bool:
        self.__creds = None
        self.__services = {}
        requested_scopes = copy.copy(self.__scopes)
        if self.__service_account is not None:
            self.__creds = service_account.Credentials.from_service_account_file(
                str(self.__service_account), scopes=requested_scopes)
            # service account tokens are minted lazily
            self.__creds.refresh(Request())
            return self.connected

        self._from_cache(requested_scopes)
        if self.connected:
            return True

        if self.__secrets.exists() and self.__secrets.is_file():
            flow = InstalledAppFlow.from_client_secrets_file(str(self.__secrets), requested_scopes)
            self.__creds = flow.run_local_server(host=self.auth_server, port=self.auth_port,
                                                 authorization_prompt_message=self.auth_prompt_msg,
                                                 success_message=self.auth_flow_success_msg)
            if self.connected:
                self._save_cache(requested_scopes)
            return self.connected

        try:
            self.__creds, _ = google.auth.default(scopes=requested_scopes)
            if not self.__creds.valid:
                self.__creds.refresh(Request())
        except google.auth.exceptions.DefaultCredentialsError as e:
            logger.warning("no credentials available: %s", e)
            self.__creds = None
        return self.connected

    def credentials(self) -> CredentialsClient|None:
        """
        Credentials to attach to a request, connecting if required.
        Only one caller at a time gets to refresh or connect, the rest wait
        and pick up the result.
        """
        if self.connected:
            return self.__creds
        with self.__lock:
            if not self.connected:
                if self.__creds is not None:
                    try:
                        self.__creds.refresh(Request())
                    except google.auth.exceptions.RefreshError as e:
                        logger.warning("failed to refresh creds: %s...reconnecting", e)
                        self.connect()
                else:
                    self.connect()
            return self.__creds if self.connected else None

    def get_service(self, name: str, version: str, anonymous: bool = False) -> Resource|None:
        """
        Build the requested googleapiclient service if not already available.
        Anonymous services (the discovery service for one) never trigger a connect.
        Can return None if an authenticated service is asked for and there are
        no credentials.
        """
        if anonymous:
            creds = google.auth.credentials.AnonymousCredentials()
        else:
            creds = self.credentials()
            if creds is None:
                return None
        id = f'{name}:{version}:{"anon" if anonymous else "auth"}'
        s = self.__services.get(id, None)
        if s is None:
            s = build(name, version, credentials=creds,
                      developerKey=self.__developer_key, cache=self.__discovery_cache)
            if s:
                self.__services[id] = s
        return s


auth = GoogleAuth()


def service(name: str, version: str, anonymous: bool = False):
    """
    Simple decorator to deliver the required googleapiclient service to a
    function as the 'service' keyword argument.
    param: name: service name
    param: version: service version
    param: anonymous: don't attach credentials
    """
    def _inner_decorator(f):
        @wraps(f)
        def wrapped(*args, **kwargs):
            if kwargs.get('service') is None:
                kwargs['service'] = auth.get_service(name, version, anonymous)
            return f(*args, **kwargs)
        return wrapped
    return _inner_decorator
