"""HTTP collaborators: the httpx transport and the JSON body converter."""

from .converter import BodyConverter, JsonBodyConverter
from .transport import API_KEY_HEADER, HttpxTransport, LogHook, Transport, default_headers


__all__ = [
    "API_KEY_HEADER",
    "BodyConverter",
    "HttpxTransport",
    "JsonBodyConverter",
    "LogHook",
    "Transport",
    "default_headers",
]
