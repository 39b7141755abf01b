# Copyright (c) 2020, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

from logging import Logger
from typing import Optional
import copy

import kopf

from .. import automationconfig, consts
from ..api_utils import ApiSpecError
from ..automationconfig import Modification
from ..errors import SourceMaterialMissing, StoreWriteFailed
from ..store import ObjectStore
from . import cluster_objects, tls
from .cluster_api import MongoDBCluster, MongoDBClusterSpec


class ClusterController:
    """
    This is the controller for a MongoDBCommunity object.
    A reconcile pass converges the Service, the automation config, the TLS
    material and the StatefulSet towards the spec and drives the TLS rollout
    marker. It's safe to run any number of times.
    """

    def __init__(self, cluster: MongoDBCluster, store: ObjectStore, logger: Logger):
        self.cluster = cluster
        self.store = store
        self.logger = logger

    def reconcile(self) -> bool:
        """Run one pass, returns True if the caller should requeue"""
        spec = self.parse_spec()
        self.cluster.log_cluster_info(self.logger)

        self.ensure_service(spec)

        try:
            tls_modification = tls.get_tls_config_modification(self.store, self.cluster, self.logger)
        except SourceMaterialMissing as exc:
            self.cluster.warn(action="ReconcileTLS", reason="TLSSourceMissing", message=str(exc))
            raise

        self.ensure_automation_config(spec, tls_modification)
        sts = self.ensure_stateful_set(spec)

        return self.update_tls_rollout(spec, sts)

    def parse_spec(self) -> MongoDBClusterSpec:
        try:
            self.cluster.parse_spec()
            self.cluster.parsed_spec.validate(self.logger)
        except ApiSpecError as e:
            self.cluster.error(action="Reconcile", reason="InvalidArgument", message=str(e))
            raise kopf.TemporaryError(f"Error in MongoDBCommunity spec: {e}")

        return self.cluster.parsed_spec

    def _write(self, obj: dict) -> dict:
        try:
            return self.store.upsert(obj)
        except Exception as exc:
            raise StoreWriteFailed(
                f"Could not write {obj['kind']} {obj['metadata']['namespace']}/{obj['metadata']['name']}: {exc}") from exc

    def ensure_service(self, spec: MongoDBClusterSpec) -> None:
        service = cluster_objects.prepare_cluster_service(spec)
        name = service["metadata"]["name"]
        if self.store.get_or_none(consts.SERVICE_KIND, spec.namespace, name) is None:
            self.logger.info(f"Creating Service {spec.namespace}/{name}")
            kopf.adopt(service, owner=self.cluster.obj)
            self._write(service)

    def ensure_automation_config(self, spec: MongoDBClusterSpec, *modifications: Modification) -> dict:
        current_secret = self.store.get_or_none(consts.SECRET_KIND, spec.namespace,
                                                spec.automation_config_secret_name)
        current = cluster_objects.read_automation_config(current_secret)

        ac = automationconfig.build_automation_config(spec, current, *modifications)

        if current_secret is not None and ac["version"] == current.get("version"):
            self.logger.info(f"Automation config unchanged at version {ac['version']}")
            return ac

        self.logger.info(f"Writing automation config version {ac['version']}")
        secret = cluster_objects.prepare_automation_config_secret(spec, ac)
        kopf.adopt(secret, owner=self.cluster.obj)
        self._write(secret)

        return ac

    def ensure_stateful_set(self, spec: MongoDBClusterSpec) -> dict:
        sts = cluster_objects.prepare_cluster_stateful_set(spec, self.logger)

        # mounted in both rollout phases, processes only use it once rolled out
        if spec.tls.enabled:
            plan = tls.plan_tls_volumes(spec.tls.caConfigMapName, spec.tls_operator_secret_name)
            self.logger.info(f"Adding TLS volumes {plan}")
            tls.add_tls_volumes_to_sts(sts, plan)

        kopf.adopt(sts, owner=self.cluster.obj)

        current = self.store.get_or_none(consts.STATEFULSET_KIND, spec.namespace, spec.name)
        if current is None:
            self.logger.info(f"Creating StatefulSet {spec.namespace}/{spec.name}")
            return self._write(sts)

        # only these fields of a StatefulSet spec may change
        updated = copy.deepcopy(current)
        for field in ("replicas", "template", "updateStrategy"):
            updated["spec"][field] = sts["spec"][field]

        self.logger.info(f"Updating StatefulSet {spec.namespace}/{spec.name}")
        try:
            return self.store.update(updated)
        except Exception as exc:
            raise StoreWriteFailed(
                f"Could not update StatefulSet {spec.namespace}/{spec.name}: {exc}") from exc

    def _set_tls_rolled_out(self, value: Optional[str]) -> None:
        patch = {"metadata": {"annotations": {consts.TLS_ROLLED_OUT_ANNOTATION: value}}}
        try:
            self.store.patch(consts.MONGODB_KIND, self.cluster.namespace, self.cluster.name, patch)
        except Exception as exc:
            raise StoreWriteFailed(f"Could not annotate {self.cluster}: {exc}") from exc

    def update_tls_rollout(self, spec: MongoDBClusterSpec, sts: dict) -> bool:
        rolled_out = self.cluster.tls_rolled_out

        if not spec.tls.enabled:
            if rolled_out:
                # a later enable has to go through staging again
                self.logger.info("TLS disabled, clearing the TLS rollout marker")
                self._set_tls_rolled_out(None)
            return False

        if rolled_out:
            return False

        if not cluster_objects.is_stateful_set_ready(sts, spec.members):
            self.logger.info("Waiting for all members to mount the TLS material")
            return True

        self.logger.info("TLS material mounted on all members, marking TLS as rolled out")
        self._set_tls_rolled_out("true")
        self.cluster.info(action="ReconcileTLS", reason="TLSRolledOut",
                          message=f"TLS material present on all {spec.members} members, enabling TLS")
        return True
