"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Foreman REST API client core and resource operations.
"""

from foreman_client.api.client import ForemanClient, RawResponse
from foreman_client.api.core import (
    ForemanKVParameter,
    ForemanObject,
    QueryResponse,
    QueryResponseSort,
    foreman_object_array_to_id_array,
    from_kv,
    int_id_to_json_string,
    to_kv,
)
from foreman_client.api.domain import DomainAPI, ForemanDomain
from foreman_client.api.foreman_task import ForemanTask, wait_for_task
from foreman_client.api.host import BMCBoot, ForemanHost, HostAPI, Power
from foreman_client.api.puppetclass import ForemanPuppetClass, PuppetClassAPI
from foreman_client.api.query import normalize_results, select_nested_results
from foreman_client.api.resource import ReadOnlyResourceAPI, ResourceAPI
from foreman_client.api.server import ClientConfig, ClientCredentials, Server

__all__ = [
    "BMCBoot",
    "ClientConfig",
    "ClientCredentials",
    "DomainAPI",
    "ForemanClient",
    "ForemanDomain",
    "ForemanHost",
    "ForemanKVParameter",
    "ForemanObject",
    "ForemanPuppetClass",
    "ForemanTask",
    "HostAPI",
    "Power",
    "PuppetClassAPI",
    "QueryResponse",
    "QueryResponseSort",
    "RawResponse",
    "ReadOnlyResourceAPI",
    "ResourceAPI",
    "Server",
    "foreman_object_array_to_id_array",
    "from_kv",
    "int_id_to_json_string",
    "normalize_results",
    "select_nested_results",
    "to_kv",
    "wait_for_task",
]
