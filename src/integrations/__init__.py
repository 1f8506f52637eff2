"""Integrations with external services."""

from integrations.ossindex import OSSIndexClient
from integrations.iq_server import IQServerClient

__all__ = [
    "OSSIndexClient",
    "IQServerClient",
]
