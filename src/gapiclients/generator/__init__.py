"""
Generates Python client modules from Google API discovery documents.
"""
from .emit import generate, client_name, module_source
from .naming import primary_name
