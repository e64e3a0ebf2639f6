"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Foreman Client - typed client core for the Foreman management REST API.

Provides request construction, transport, response decoding, query
normalization, payload envelopes, bounded retries and task polling shared by
every Foreman resource type.
"""

from foreman_client._version import __version__

__all__ = ["__version__"]
