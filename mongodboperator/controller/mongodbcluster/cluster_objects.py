# Copyright (c) 2020, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

from logging import Logger
from typing import Optional
import json

import yaml

from .. import config, consts, fqdn
from .cluster_api import MongoDBClusterSpec


def prepare_cluster_service(spec: MongoDBClusterSpec) -> dict:
    tmpl = f"""
apiVersion: v1
kind: Service
metadata:
  name: {fqdn.service_name(spec)}
  namespace: {spec.namespace}
  labels:
    app: {spec.name}-svc
    mongodbcommunity.mongodb.com/cluster: {spec.name}
spec:
  clusterIP: None
  publishNotReadyAddresses: true
  ports:
  - name: mongodb
    port: 27017
    targetPort: 27017
  selector:
    app: {spec.name}-svc
  type: ClusterIP
"""
    return yaml.safe_load(tmpl)


def prepare_automation_config_secret(spec: MongoDBClusterSpec, ac: dict) -> dict:
    return {
        "apiVersion": "v1",
        "kind": consts.SECRET_KIND,
        "metadata": {
            "name": spec.automation_config_secret_name,
            "namespace": spec.namespace,
            "labels": {
                "mongodbcommunity.mongodb.com/cluster": spec.name
            }
        },
        "type": "Opaque",
        "data": {
            consts.AUTOMATION_CONFIG_KEY: json.dumps(ac, sort_keys=True)
        }
    }


def read_automation_config(secret: Optional[dict]) -> dict:
    if not secret:
        return {}
    data = secret.get("data") or {}
    if consts.AUTOMATION_CONFIG_KEY not in data:
        return {}
    return json.loads(data[consts.AUTOMATION_CONFIG_KEY])


# The agent container supervises mongod through the shared automation config
# and reports health through /healthstatus, the readiness probe reads it.
def prepare_cluster_stateful_set(spec: MongoDBClusterSpec, logger: Logger) -> dict:
    tmpl = f"""
apiVersion: apps/v1
kind: StatefulSet
metadata:
  name: {spec.name}
  namespace: {spec.namespace}
  labels:
    app: {spec.name}-svc
    mongodbcommunity.mongodb.com/cluster: {spec.name}
    app.kubernetes.io/name: mongodb
    app.kubernetes.io/instance: {spec.name}
    app.kubernetes.io/component: database
    app.kubernetes.io/managed-by: mongodb-operator
spec:
  serviceName: {fqdn.service_name(spec)}
  replicas: {spec.members}
  selector:
    matchLabels:
      app: {spec.name}-svc
  updateStrategy:
    type: RollingUpdate
  template:
    metadata:
      labels:
        app: {spec.name}-svc
        mongodbcommunity.mongodb.com/cluster: {spec.name}
    spec:
      securityContext:
        runAsUser: 2000
        runAsNonRoot: true
        fsGroup: 2000
      terminationGracePeriodSeconds: 30
      initContainers:
      - name: {consts.POSTHOOK_CONTAINER_NAME}
        image: {config.VERSION_UPGRADE_HOOK_IMAGE}
        imagePullPolicy: {spec.image_pull_policy}
        command: ["cp", "version-upgrade-hook", "/hooks/version-upgrade"]
        volumeMounts:
        - name: hooks
          mountPath: /hooks
      containers:
      - name: {consts.AGENT_CONTAINER_NAME}
        image: {config.AGENT_IMAGE}
        imagePullPolicy: {spec.image_pull_policy}
        command:
        - agent/mongodb-agent
        - -cluster=/var/lib/automation/config/{consts.AUTOMATION_CONFIG_KEY}
        - -skipMongoStart
        - -noDaemonize
        - -healthCheckFilePath=/var/log/mongodb-mms-automation/healthstatus/agent-health-status.json
        - -serveStatusPort=5000
        readinessProbe:
          exec:
            command: ["/var/lib/mongodb-mms-automation/probes/readinessprobe"]
          initialDelaySeconds: 5
          periodSeconds: 10
          failureThreshold: 60
        env:
        - name: AGENT_STATUS_FILEPATH
          value: /var/log/mongodb-mms-automation/healthstatus/agent-health-status.json
        volumeMounts:
        - name: automation-config
          mountPath: /var/lib/automation/config
          readOnly: true
        - name: healthstatus
          mountPath: /var/log/mongodb-mms-automation/healthstatus
        - name: data-volume
          mountPath: /data
      - name: {consts.MONGOD_CONTAINER_NAME}
        image: {spec.mongodb_image}
        imagePullPolicy: {spec.image_pull_policy}
        command:
        - /bin/sh
        - -c
        - |
          # run post-start hook to handle version changes
          /hooks/version-upgrade
          # wait for config to be created by the agent
          while [ ! -f /data/automation-mongod.conf ]; do sleep 3 ; done ; sleep 2 ;
          # start mongod with this configuration
          exec mongod -f /data/automation-mongod.conf ;
        env:
        - name: AGENT_STATUS_FILEPATH
          value: /healthstatus/agent-health-status.json
        volumeMounts:
        - name: data-volume
          mountPath: /data
        - name: healthstatus
          mountPath: /healthstatus
        - name: hooks
          mountPath: /hooks
      volumes:
      - name: automation-config
        secret:
          secretName: {spec.automation_config_secret_name}
      - name: healthstatus
        emptyDir: {{}}
      - name: hooks
        emptyDir: {{}}
  volumeClaimTemplates:
  - metadata:
      name: data-volume
    spec:
      accessModes: ["ReadWriteOnce"]
      resources:
        requests:
          storage: 10G
"""
    sts = yaml.safe_load(tmpl)
    logger.debug(f"Prepared StatefulSet {spec.namespace}/{spec.name} with {spec.members} members")
    return sts


def is_stateful_set_ready(sts: Optional[dict], members: int) -> bool:
    """All members run the latest template and report ready"""
    if not sts:
        return False

    status = sts.get("status") or {}
    generation = sts.get("metadata", {}).get("generation")
    observed = status.get("observedGeneration")
    if generation is not None and (observed is None or observed < generation):
        return False

    return (status.get("readyReplicas") or 0) == members and \
        (status.get("updatedReplicas") or 0) == members
