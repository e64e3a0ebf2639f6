"""
Foreman domains.

A domain is the DNS suffix that hosts and subnets are placed in.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from foreman_client.api.core import (
    ForemanKVParameter,
    ForemanObject,
    decode_kv_list,
    decode_str,
    require_mapping,
)
from foreman_client.api.resource import ResourceAPI

DOMAIN_ENDPOINT_PREFIX = "domains"


@dataclass
class ForemanDomain(ForemanObject):
    """A Foreman domain."""

    # Free-form description shown alongside the DNS name
    fullname: str = ""
    domain_parameters: List[ForemanKVParameter] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ForemanDomain":
        data = require_mapping(data, cls.__name__)
        # "parameters" on show, the write key on create/update echoes
        parameters = data.get("parameters")
        if parameters is None:
            parameters = data.get("domain_parameters_attributes")
        if parameters is None:
            parameters = data.get("domain_parameters")
        return cls(
            **cls._base_fields(data),
            fullname=decode_str(data.get("fullname"), "fullname"),
            domain_parameters=decode_kv_list(parameters, "parameters"),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["fullname"] = self.fullname
        if self.domain_parameters:
            payload["domain_parameters_attributes"] = [
                parameter.to_dict() for parameter in self.domain_parameters
            ]
        return payload


class DomainAPI(ResourceAPI[ForemanDomain]):
    record_type = ForemanDomain
    endpoint = DOMAIN_ENDPOINT_PREFIX
    envelope_key = "domain"
