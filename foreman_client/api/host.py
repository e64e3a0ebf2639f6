"""
Copyright (C) 2026 Garudex Labs.  All Rights Reserved.
Foreman Client, a product of Garudex Labs

Foreman hosts, including power and BMC boot commands.

Host creation, update and power commands are known to fail intermittently
on the server side; they run through the bounded retry controller.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from foreman_client.api.core import (
    ForemanKVParameter,
    ForemanObject,
    decode_int,
    decode_kv_list,
    decode_str,
    foreman_object_array_to_id_array,
    int_id_to_json_string,
    require_mapping,
)
from foreman_client.api.resource import ResourceAPI
from foreman_client.core.retry import retry_operation
from foreman_client.exceptions import (
    DecodeError,
    ForemanClientError,
    InvalidRequestError,
    PowerOperationError,
)

HOST_ENDPOINT_PREFIX = "hosts"
POWER_SUFFIX = "power"
BOOT_SUFFIX = "boot"
COMPUTE_ATTRIBUTES_SUFFIX = "vm_compute_attributes"

# Power actions
POWER_ON = "on"
POWER_OFF = "off"
POWER_SOFT = "soft"
POWER_CYCLE = "cycle"
POWER_STATE = "state"

# BMC boot devices
BOOT_DISK = "disk"
BOOT_CDROM = "cdrom"
BOOT_PXE = "pxe"
BOOT_BIOS = "bios"

# Foreign keys written through int_id_to_json_string
HOST_FOREIGN_KEYS = (
    "domain_id",
    "environment_id",
    "hostgroup_id",
    "operatingsystem_id",
    "medium_id",
    "image_id",
    "model_id",
    "owner_id",
    "compute_resource_id",
    "compute_profile_id",
)


def _decode_id_list(data: Dict[str, Any], nested_key: str, ids_key: str) -> List[int]:
    nested = data.get(nested_key)
    if nested is not None:
        if not isinstance(nested, list):
            raise DecodeError(f"Field '{nested_key}' must be a list")
        return foreman_object_array_to_id_array(nested)
    ids = data.get(ids_key) or []
    if not isinstance(ids, list):
        raise DecodeError(f"Field '{ids_key}' must be a list")
    return [decode_int(value, ids_key) for value in ids]


@dataclass
class ForemanHost(ForemanObject):
    """
    A host managed by Foreman.

    interfaces_attributes entries are passed through as-is; an entry with
    "_destroy": true removes that interface on update.
    """

    build: bool = False
    provision_method: str = ""
    domain_id: int = 0
    domain_name: str = ""
    environment_id: int = 0
    hostgroup_id: int = 0
    operatingsystem_id: int = 0
    medium_id: int = 0
    image_id: int = 0
    model_id: int = 0
    owner_id: int = 0
    owner_type: str = ""
    compute_resource_id: int = 0
    compute_profile_id: int = 0
    managed: bool = False
    comment: str = ""
    interfaces_attributes: List[Dict[str, Any]] = field(default_factory=list)
    host_parameters: List[ForemanKVParameter] = field(default_factory=list)
    compute_attributes: Dict[str, Any] = field(default_factory=dict)
    puppet_class_ids: List[int] = field(default_factory=list)
    config_group_ids: List[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> "ForemanHost":
        data = require_mapping(data, cls.__name__)

        interfaces = data.get("interfaces")
        if interfaces is None:
            interfaces = data.get("interfaces_attributes") or []
        if not isinstance(interfaces, list) or not all(isinstance(i, dict) for i in interfaces):
            raise DecodeError("Field 'interfaces' must be a list of objects")

        parameters = data.get("parameters")
        if parameters is None:
            parameters = data.get("host_parameters")

        compute_attributes = data.get("compute_attributes") or {}
        if not isinstance(compute_attributes, dict):
            raise DecodeError("Field 'compute_attributes' must be an object")

        fields = {key: decode_int(data.get(key), key) for key in HOST_FOREIGN_KEYS}
        return cls(
            **cls._base_fields(data),
            **fields,
            build=bool(data.get("build", False)),
            provision_method=decode_str(data.get("provision_method"), "provision_method"),
            domain_name=decode_str(data.get("domain_name"), "domain_name"),
            owner_type=decode_str(data.get("owner_type"), "owner_type"),
            managed=bool(data.get("managed", False)),
            comment=decode_str(data.get("comment"), "comment"),
            interfaces_attributes=[dict(i) for i in interfaces],
            host_parameters=decode_kv_list(parameters, "parameters"),
            compute_attributes=dict(compute_attributes),
            puppet_class_ids=_decode_id_list(data, "puppetclasses", "puppet_class_ids"),
            config_group_ids=_decode_id_list(data, "config_groups", "config_group_ids"),
        )

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        for key in HOST_FOREIGN_KEYS:
            payload[key] = int_id_to_json_string(getattr(self, key))
        payload.update({
            "build": self.build,
            "managed": self.managed,
            "comment": self.comment,
            "puppet_attributes": {
                "puppetclass_ids": list(self.puppet_class_ids),
                "config_group_ids": list(self.config_group_ids),
            },
        })
        if self.provision_method:
            payload["provision_method"] = self.provision_method
        if self.owner_type:
            payload["owner_type"] = self.owner_type
        if self.interfaces_attributes:
            payload["interfaces_attributes"] = [dict(i) for i in self.interfaces_attributes]
        if self.host_parameters:
            payload["host_parameters_attributes"] = [p.to_dict() for p in self.host_parameters]
        if self.compute_attributes:
            payload["compute_attributes"] = dict(self.compute_attributes)
        return payload


@dataclass
class Power:
    """Power command: one of on, off, soft, cycle, state."""

    power_action: str

    def to_payload(self) -> Dict[str, Any]:
        return {"power_action": self.power_action}


@dataclass
class BMCBoot:
    """BMC boot device command: one of disk, cdrom, pxe, bios."""

    device: str

    def to_payload(self) -> Dict[str, Any]:
        return {"device": self.device}


class HostAPI(ResourceAPI[ForemanHost]):
    record_type = ForemanHost
    endpoint = HOST_ENDPOINT_PREFIX
    envelope_key = "host"

    def create(
        self,
        record: ForemanHost,
        retry_count: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ForemanHost:
        if retry_count is None:
            retry_count = self.client.config.host_retry_attempts
        created = super().create(record, retry_count=retry_count, cancel_event=cancel_event)
        self._attach_compute_attributes(created)
        return created

    def read(self, id: int) -> ForemanHost:
        host = super().read(id)
        self._attach_compute_attributes(host)
        return host

    def update(
        self,
        record: ForemanHost,
        id: Optional[int] = None,
        retry_count: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> ForemanHost:
        if retry_count is None:
            retry_count = self.client.config.host_retry_attempts
        updated = super().update(record, id=id, retry_count=retry_count, cancel_event=cancel_event)
        self._attach_compute_attributes(updated)
        return updated

    def read_compute_attributes(self, id: int) -> Dict[str, Any]:
        """Read the hypervisor attributes of a virtual machine host."""
        endpoint = f"{self._item_endpoint(id)}/{COMPUTE_ATTRIBUTES_SUFFIX}"
        request = self.client.new_request("GET", endpoint)
        return self.client.send_and_parse(request, dict)

    def _attach_compute_attributes(self, host: ForemanHost) -> None:
        # bare metal hosts have none; any failure leaves the host without them
        try:
            attributes = self.read_compute_attributes(host.id)
        except ForemanClientError as e:
            self.log.debug(
                "no compute attributes",
                id=host.id,
                error=type(e).__name__,
                status_code=getattr(e, "status_code", None),
            )
            return
        if attributes:
            host.compute_attributes = attributes

    def send_power_command(
        self,
        host: ForemanHost,
        command: Union[Power, BMCBoot],
        retry_count: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Dict[str, Any]:
        """
        Send a power or BMC boot command to the host.

        Example: PUT https://<foreman>/api/hosts/<id>/boot

        Returns:
            The decoded server response

        Raises:
            InvalidRequestError: If command is neither Power nor BMCBoot
            PowerOperationError: If the server reports the operation failed
        """
        if isinstance(command, Power):
            suffix = POWER_SUFFIX
        elif isinstance(command, BMCBoot):
            suffix = BOOT_SUFFIX
        else:
            raise InvalidRequestError(f"Invalid Operation: [{command!r}]")

        if retry_count is None:
            retry_count = self.client.config.power_retry_attempts

        endpoint = f"{self._item_endpoint(host.id)}/{suffix}"
        body = self.client.wrap_json(None, command)

        def attempt() -> Dict[str, Any]:
            request = self.client.new_request("PUT", endpoint, body)
            return self.client.send_and_parse(request, dict, cancel_event)

        response = retry_operation(
            attempt,
            max_attempts=retry_count,
            operation_name=f"{suffix}_host",
            cancel_event=cancel_event,
            log=self.log,
        )
        self.log.debug("power response", id=host.id, response=response)

        if suffix == POWER_SUFFIX and response.get(POWER_SUFFIX) is False:
            raise PowerOperationError(f"Failed Power Operation [{command.power_action}] on host {host.id}")
        boot = response.get(BOOT_SUFFIX)
        if suffix == BOOT_SUFFIX and isinstance(boot, dict) and boot.get("result") is False:
            raise PowerOperationError(f"Failed Boot Operation [{command.device}] on host {host.id}")
        return response
