# Copyright (c) 2020, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

"""TLS activation for replica set members.

Enabling TLS is done in two phases so that members never disagree on whether
to talk TLS to each other:

1. The certificate material is staged: the operator owned Secret is created
   and mounted into every pod, but all processes keep running with TLS
   disabled.
2. Once every member carries the material the rollout marker annotation is
   set on the cluster and the processes switch to preferTLS/requireTLS.

The phase lives only in the annotation, everything here is recomputed from the
cluster object on every reconciliation.
"""

import copy
from logging import Logger
from typing import List, Optional, Tuple

import kopf

from .. import consts, utils
from ..automationconfig import (ClientCertificateMode, Modification, TLSMode,
                                disabled_process_tls)
from ..errors import SourceMaterialMissing, StoreWriteFailed
from ..store import ObjectStore
from .cluster_api import MongoDBCluster, MongoDBClusterSpec


# Containers running or supervising mongod, they all need the material
TLS_CONTAINERS = [consts.AGENT_CONTAINER_NAME, consts.MONGOD_CONTAINER_NAME]


def resolve_tls_mode(tls_enabled: bool, tls_optional: bool, rollout_complete: bool) -> TLSMode:
    if not tls_enabled:
        return TLSMode.Disabled
    if not rollout_complete:
        # material staged but not yet present on every member
        return TLSMode.Disabled
    if tls_optional:
        return TLSMode.Preferred
    return TLSMode.Required


def tls_ca_file_path() -> str:
    return consts.TLS_CA_MOUNT_PATH + consts.TLS_CA_CERT_NAME


def tls_operator_secret_file_name(cert: str, key: str) -> str:
    """File name of the concatenated certificate and key.

    It changes whenever the certificate or the key change, which makes the
    agents restart mongod with the new file, while pods still referencing the
    old name keep resolving until they are rolled.
    """
    return utils.sha256(utils.sha256(cert) + utils.sha256(key)) + ".pem"


def read_tls_source_material(store: ObjectStore, spec: MongoDBClusterSpec) -> Tuple[str, str, str]:
    secret = store.get_or_none(consts.SECRET_KIND, spec.namespace,
                               spec.tls.certificateKeySecretName)
    if secret is None:
        raise SourceMaterialMissing(
            f"TLS certificate Secret {spec.namespace}/{spec.tls.certificateKeySecretName} not found")

    data = secret.get("data") or {}
    for field in (consts.TLS_CERT_KEY, consts.TLS_KEY_KEY):
        if field not in data:
            raise SourceMaterialMissing(
                f"TLS certificate Secret {spec.namespace}/{spec.tls.certificateKeySecretName} has no field {field}")

    cm = store.get_or_none(consts.CONFIGMAP_KIND, spec.namespace,
                           spec.tls.caConfigMapName)
    if cm is None:
        raise SourceMaterialMissing(
            f"TLS CA ConfigMap {spec.namespace}/{spec.tls.caConfigMapName} not found")

    cm_data = cm.get("data") or {}
    if consts.TLS_CA_CERT_NAME not in cm_data:
        raise SourceMaterialMissing(
            f"TLS CA ConfigMap {spec.namespace}/{spec.tls.caConfigMapName} has no field {consts.TLS_CA_CERT_NAME}")

    return data[consts.TLS_CERT_KEY], data[consts.TLS_KEY_KEY], cm_data[consts.TLS_CA_CERT_NAME]


def prepare_tls_operator_secret(spec: MongoDBClusterSpec, file_name: str, certificate_key: str) -> dict:
    return {
        "apiVersion": "v1",
        "kind": consts.SECRET_KIND,
        "metadata": {
            "name": spec.tls_operator_secret_name,
            "namespace": spec.namespace,
            "labels": {
                "app.kubernetes.io/managed-by": "mongodb-operator",
                "mongodbcommunity.mongodb.com/cluster": spec.name
            }
        },
        "type": "Opaque",
        "data": {
            file_name: certificate_key
        }
    }


def ensure_tls_operator_secret(store: ObjectStore, cluster: MongoDBCluster, logger: Logger) -> str:
    """Upsert the operator owned Secret with the concatenated certificate and
    key, returning the file name it is stored under."""
    spec = cluster.parsed_spec
    cert, key, _ = read_tls_source_material(store, spec)

    file_name = tls_operator_secret_file_name(cert, key)
    secret = prepare_tls_operator_secret(spec, file_name, cert + key)
    kopf.adopt(secret, owner=cluster.obj)

    try:
        logger.info(f"Writing TLS operator Secret {spec.namespace}/{spec.tls_operator_secret_name} key={file_name}")
        store.upsert(secret)
    except Exception as exc:
        raise StoreWriteFailed(
            f"Could not write TLS operator Secret {spec.namespace}/{spec.tls_operator_secret_name}: {exc}") from exc

    return file_name


def tls_config_modification(mode: TLSMode, operator_secret_file_name: str) -> Modification:
    ca_file = tls_ca_file_path()
    pem_key_file = consts.TLS_OPERATOR_SECRET_MOUNT_PATH + operator_secret_file_name

    def modification(ac: dict) -> dict:
        ac = copy.deepcopy(ac)

        tls = ac.setdefault("tls", {})
        tls["CAFilePath"] = ca_file if mode != TLSMode.Disabled else ""
        # client certificates are never demanded
        tls["clientCertificateMode"] = ClientCertificateMode.Optional.value

        for process in ac.get("processes", []):
            net = process.setdefault("args2_6", {}).setdefault("net", {})
            if mode == TLSMode.Disabled:
                net["tls"] = disabled_process_tls()
            else:
                net["tls"] = {
                    "mode": mode.value,
                    "PEMKeyFile": pem_key_file,
                    "CAFile": ca_file,
                    "allowConnectionsWithoutCertificates": True
                }

        return ac

    return modification


def get_tls_config_modification(store: ObjectStore, cluster: MongoDBCluster, logger: Logger) -> Modification:
    spec = cluster.parsed_spec
    if not spec.tls.enabled:
        return tls_config_modification(TLSMode.Disabled, "")

    # the material is needed in both phases, it has to be mounted before
    # any process is told to use it
    file_name = ensure_tls_operator_secret(store, cluster, logger)

    mode = resolve_tls_mode(spec.tls.enabled, spec.tls.optional, cluster.tls_rolled_out)
    logger.info(f"TLS mode for {cluster}: {mode.value} (rolled out: {cluster.tls_rolled_out})")

    return tls_config_modification(mode, file_name)


class VolumeMountPlan:
    def __init__(self, volumes: List[dict], volume_mounts: List[dict], containers: List[str]):
        self.volumes = volumes
        self.volume_mounts = volume_mounts
        self.containers = containers

    def __repr__(self):
        return f"<VolumeMountPlan volumes={[v['name'] for v in self.volumes]} containers={self.containers}>"

    def sts_patch(self) -> dict:
        return {
            "spec": {
                "template": {
                    "spec": {
                        "volumes": copy.deepcopy(self.volumes),
                        "containers": [
                            {
                                "name": name,
                                "volumeMounts": copy.deepcopy(self.volume_mounts)
                            } for name in self.containers
                        ]
                    }
                }
            }
        }


def plan_tls_volumes(ca_config_map_name: str, operator_secret_name: str,
                     containers: Optional[List[str]] = None) -> VolumeMountPlan:
    volumes = [
        {
            "name": consts.TLS_CA_VOLUME_NAME,
            "configMap": {
                "name": ca_config_map_name
            }
        },
        {
            "name": consts.TLS_SECRET_VOLUME_NAME,
            "secret": {
                "secretName": operator_secret_name
            }
        }
    ]

    mounts = [
        {
            "name": consts.TLS_SECRET_VOLUME_NAME,
            "readOnly": True,
            "mountPath": consts.TLS_OPERATOR_SECRET_MOUNT_PATH
        },
        {
            "name": consts.TLS_CA_VOLUME_NAME,
            "readOnly": True,
            "mountPath": consts.TLS_CA_MOUNT_PATH
        }
    ]

    return VolumeMountPlan(volumes, mounts, list(containers if containers is not None else TLS_CONTAINERS))


def add_tls_volumes_to_sts(sts: dict, plan: VolumeMountPlan) -> None:
    utils.merge_patch_object(sts, plan.sts_patch())
