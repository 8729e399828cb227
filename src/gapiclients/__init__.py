"""
Auto-generated REST clients for the Google Cloud APIs, and the generator that
produces them from the API discovery documents.

The generated modules are thin: each method builds a URL, serializes the
request record, makes one call through base.request() and deserializes the
response.  Everything they share lives here.  Python dataclasses are used for
the resource records and the one piece of real logic is translating between
those and the raw JSON dicts (resources, encoding).

Credentials come from google-auth through access.GoogleAuth.
"""
from .access import auth, CredentialsClient, GoogleAuth
from .base import ApiClient, request
from .resources import ApiResource
