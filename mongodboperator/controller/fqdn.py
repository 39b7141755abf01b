# Copyright (c) 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

"""Management of FQDNs

Every member of the replica set is addressed by the automation agents through
its stable name behind the headless service. The same names end up in the
automation config, so they have to be computed in exactly one place.
"""

from os import getenv
from typing import TYPE_CHECKING

from . import config

if TYPE_CHECKING:
    from .mongodbcluster.cluster_api import MongoDBClusterSpec

FQDN_ENV_NAME = "MONGODB_OPERATOR_FQDN_TEMPLATE"


def operator_service_fqdn_template() -> str:
    """Get the global default FQDN template based on opertor config"""
    return getenv(FQDN_ENV_NAME,
                  "{service}.{namespace}.svc.{domain}")


def service_name(spec: 'MongoDBClusterSpec') -> str:
    return f"{spec.name}-svc"


def service_fqdn(spec: 'MongoDBClusterSpec') -> str:
    return operator_service_fqdn_template().format(
        service=service_name(spec),
        namespace=spec.namespace,
        domain=config.K8S_CLUSTER_DOMAIN
    )


def process_name(spec: 'MongoDBClusterSpec', index: int) -> str:
    return f"{spec.name}-{index}"


def process_fqdn(spec: 'MongoDBClusterSpec', index: int) -> str:
    return process_name(spec, index) + "." + service_fqdn(spec)
