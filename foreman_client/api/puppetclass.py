"""
Puppet classes (foreman_puppet plugin).

The class search endpoint answers with a map keyed by Puppet module name
instead of an array, so the matching module entry is selected before the
results are normalized.
"""

from dataclasses import dataclass

from foreman_client.api.core import ForemanObject, QueryResponse
from foreman_client.api.query import select_nested_results
from foreman_client.api.resource import ReadOnlyResourceAPI

PUPPET_CLASS_ENDPOINT_PREFIX = "puppet/puppetclasses"


@dataclass
class ForemanPuppetClass(ForemanObject):
    """A Puppet class known to Foreman."""


def puppet_module_name(class_name: str) -> str:
    """Module part of a class name: "apache::mod::ssl" -> "apache"."""
    index = class_name.find(":")
    if index > 0:
        return class_name[:index]
    return class_name


class PuppetClassAPI(ReadOnlyResourceAPI[ForemanPuppetClass]):
    record_type = ForemanPuppetClass
    endpoint = PUPPET_CLASS_ENDPOINT_PREFIX

    def _select_results(self, query_response: QueryResponse, name: str) -> QueryResponse:
        return select_nested_results(query_response, puppet_module_name(name))
