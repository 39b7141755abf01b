# Copyright (c) 2020, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

"""The automation config document pushed to the agents of every member.

The document is a plain JSON-compatible dict. Everything that wants to change
it does so through a Modification, a function taking the previous document and
returning a new one. Modifications are folded over the base document in the
order given and must not depend on that order.
"""

import copy
from enum import Enum
from typing import Callable, Optional, TYPE_CHECKING

from . import fqdn
from .errors import InvariantViolation

if TYPE_CHECKING:
    from .mongodbcluster.cluster_api import MongoDBClusterSpec


Modification = Callable[[dict], dict]


class TLSMode(Enum):
    Disabled = "disabled"
    Preferred = "preferTLS"
    Required = "requireTLS"


class ClientCertificateMode(Enum):
    Optional = "OPTIONAL"
    Required = "REQUIRE"


MONGOD_PORT = 27017
DATA_DIR = "/data"
AUTOMATION_DOWNLOAD_BASE = "/var/lib/mongodb-mms-automation"


def apply_modifications(ac: dict, *modifications: Modification) -> dict:
    for modification in modifications:
        ac = modification(ac)
    return ac


def feature_compatibility_version(version: str) -> str:
    return ".".join(version.split(".")[:2])


def disabled_process_tls() -> dict:
    return {"mode": TLSMode.Disabled.value}


def default_tls() -> dict:
    return {
        "CAFilePath": "",
        "clientCertificateMode": ClientCertificateMode.Optional.value
    }


def process_tls(process: dict) -> Optional[dict]:
    return process.get("args2_6", {}).get("net", {}).get("tls")


def _prepare_process(spec: 'MongoDBClusterSpec', index: int) -> dict:
    return {
        "name": fqdn.process_name(spec, index),
        "hostname": fqdn.process_fqdn(spec, index),
        "processType": "mongod",
        "version": spec.version,
        "authSchemaVersion": 5,
        "featureCompatibilityVersion": feature_compatibility_version(spec.version),
        "args2_6": {
            "net": {
                "port": MONGOD_PORT,
                "tls": disabled_process_tls()
            },
            "replication": {
                "replSetName": spec.name
            },
            "storage": {
                "dbPath": DATA_DIR
            }
        }
    }


def _prepare_replica_set(spec: 'MongoDBClusterSpec') -> dict:
    return {
        "_id": spec.name,
        "protocolVersion": "1",
        "members": [
            {
                "_id": i,
                "host": fqdn.process_name(spec, i),
                "priority": 1,
                "votes": 1,
                "arbiterOnly": False
            } for i in range(spec.members)
        ]
    }


def prepare_base_automation_config(spec: 'MongoDBClusterSpec') -> dict:
    return {
        "version": 0,
        "processes": [_prepare_process(spec, i) for i in range(spec.members)],
        "replicaSets": [_prepare_replica_set(spec)],
        "auth": {
            "disabled": True
        },
        "tls": default_tls(),
        "options": {
            "downloadBase": AUTOMATION_DOWNLOAD_BASE
        }
    }


def validate_automation_config(ac: dict) -> None:
    """Check the TLS related invariants of a built document.

    A violation means one of the modifications is broken, so it is raised as
    a permanent error instead of being retried.
    """
    tls = ac.get("tls", {})
    if tls.get("clientCertificateMode") != ClientCertificateMode.Optional.value:
        raise InvariantViolation(
            f"tls.clientCertificateMode must be {ClientCertificateMode.Optional.value} but is {tls.get('clientCertificateMode')!r}")

    modes = set()
    for process in ac.get("processes", []):
        ptls = process_tls(process)
        if not isinstance(ptls, dict):
            raise InvariantViolation(
                f"process {process.get('name')} has no args2_6.net.tls section")

        mode = ptls.get("mode", TLSMode.Disabled.value)
        modes.add(mode)

        pem_key_file = ptls.get("PEMKeyFile", "")
        ca_file = ptls.get("CAFile", "")
        allow_without_cert = ptls.get("allowConnectionsWithoutCertificates", False)

        if mode == TLSMode.Disabled.value:
            if pem_key_file or ca_file or allow_without_cert:
                raise InvariantViolation(
                    f"process {process.get('name')} has TLS disabled but TLS settings {ptls}")
        elif not pem_key_file or not ca_file or not allow_without_cert:
            raise InvariantViolation(
                f"process {process.get('name')} has TLS mode {mode} but incomplete TLS settings {ptls}")

    if len(modes) > 1:
        raise InvariantViolation(f"processes use different TLS modes {sorted(modes)}")

    enabled = bool(modes) and modes != {TLSMode.Disabled.value}
    if enabled != bool(tls.get("CAFilePath")):
        raise InvariantViolation(
            f"tls.CAFilePath is {tls.get('CAFilePath')!r} while process TLS is {'enabled' if enabled else 'disabled'}")


def _without_version(ac: dict) -> dict:
    return {k: v for k, v in ac.items() if k != "version"}


def build_automation_config(spec: 'MongoDBClusterSpec', current: dict,
                            *modifications: Modification) -> dict:
    """Build the document for spec, applying modifications on top.

    The version of current is kept when nothing changed and bumped by one
    otherwise, so the agents only act on real changes.
    """
    ac = apply_modifications(prepare_base_automation_config(spec), *modifications)
    validate_automation_config(ac)

    current_version = current.get("version", 0) if current else 0
    if current and _without_version(current) == _without_version(ac):
        ac["version"] = current_version
    else:
        ac["version"] = current_version + 1

    return copy.deepcopy(ac)
