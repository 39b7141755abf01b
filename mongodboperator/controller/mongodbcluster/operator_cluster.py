# Copyright (c) 2020, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

from typing import Optional
from logging import Logger

from kopf._cogs.structs.bodies import Body
import kopf

from .. import config, consts
from ..kubeutils import k8s_version
from ..store import KubeObjectStore
from .cluster_controller import ClusterController
from .cluster_api import MongoDBCluster


def reconcile(body: Body, logger: Logger) -> None:
    cluster = MongoDBCluster(body)

    controller = ClusterController(cluster, KubeObjectStore(), logger)
    if controller.reconcile():
        raise kopf.TemporaryError(f"TLS rollout of {cluster} in progress",
                                  delay=config.TLS_ROLLOUT_REQUEUE_DELAY)


@kopf.on.create(consts.GROUP, consts.VERSION,
                consts.MONGODB_PLURAL)  # type: ignore
def on_mongodb_create(name: str, namespace: Optional[str], body: Body,
                      logger: Logger, **kwargs) -> None:
    logger.info(
        f"Initializing MongoDBCommunity name={name} namespace={namespace} on K8s {k8s_version()}")

    reconcile(body, logger)


@kopf.on.resume(consts.GROUP, consts.VERSION,
                consts.MONGODB_PLURAL)  # type: ignore
def on_mongodb_resume(name: str, namespace: Optional[str], body: Body,
                      logger: Logger, **kwargs) -> None:
    logger.info(f"Resuming MongoDBCommunity name={name} namespace={namespace}")

    reconcile(body, logger)


# Also fires for the TLS rollout annotation, which is what switches the
# processes from staged to enforced TLS
@kopf.on.update(consts.GROUP, consts.VERSION,
                consts.MONGODB_PLURAL)  # type: ignore
def on_mongodb_update(name: str, namespace: Optional[str], body: Body,
                      diff, logger: Logger, **kwargs) -> None:
    logger.info(f"MongoDBCommunity name={name} namespace={namespace} changed: {diff}")

    reconcile(body, logger)
