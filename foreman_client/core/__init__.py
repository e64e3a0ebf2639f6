"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Transport-independent building blocks shared by the API layer.
"""

from foreman_client.core.retry import retry_operation

__all__ = ["retry_operation"]
