# Copyright (c) 2020, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

from typing import Optional
from logging import Logger

from kopf._cogs.structs.bodies import Body

from ..k8sobject import K8sInterfaceObject
from .. import config, consts
from ..api_utils import dget_bool, dget_dict, dget_enum, dget_str, dget_int, ApiSpecError, ImagePullPolicy


MAX_CLUSTER_NAME_LEN = 40


class TLSSpec:
    enabled: bool = False
    # accept connections without TLS next to TLS ones
    optional: bool = False
    # user provided Secret holding tls.crt and tls.key
    certificateKeySecretName: str = ""
    # user provided ConfigMap holding ca.crt
    caConfigMapName: str = ""

    def parse(self, spec: dict, prefix: str) -> None:
        self.enabled = dget_bool(spec, "enabled", prefix, default_value=False)
        self.optional = dget_bool(spec, "optional", prefix, default_value=False)

        if "certificateKeySecretRef" in spec:
            ref = dget_dict(spec, "certificateKeySecretRef", prefix)
            self.certificateKeySecretName = dget_str(ref, "name", prefix+".certificateKeySecretRef")

        if "caConfigMapRef" in spec:
            ref = dget_dict(spec, "caConfigMapRef", prefix)
            self.caConfigMapName = dget_str(ref, "name", prefix+".caConfigMapRef")

    def validate(self) -> None:
        if not self.enabled:
            return

        if not self.certificateKeySecretName:
            raise ApiSpecError(
                "spec.security.tls.certificateKeySecretRef.name must be set when TLS is enabled")
        if not self.caConfigMapName:
            raise ApiSpecError(
                "spec.security.tls.caConfigMapRef.name must be set when TLS is enabled")


class MongoDBClusterSpec:
    # number of replica set members (required)
    members: int = 1
    # MongoDB server version (required)
    version: str = ""

    imagePullPolicy: ImagePullPolicy = config.default_image_pull_policy

    def __init__(self, namespace: str, name: str, spec: dict):
        self.namespace = namespace
        self.name = name
        self.tls = TLSSpec()

        self.load(spec)

    def load(self, spec: dict) -> None:
        self.members = dget_int(spec, "members", "spec")
        self.version = dget_str(spec, "version", "spec")

        if "imagePullPolicy" in spec:
            self.imagePullPolicy = dget_enum(
                spec, "imagePullPolicy", "spec",
                default_value=config.default_image_pull_policy,
                enum_type=ImagePullPolicy)

        security = dget_dict(spec, "security", "spec", default_value={})
        if "tls" in security:
            self.tls.parse(dget_dict(security, "tls", "spec.security"), "spec.security.tls")

    def validate(self, logger: Logger) -> None:
        if len(self.name) > MAX_CLUSTER_NAME_LEN:
            raise ApiSpecError(
                f"Cluster name {self.name} is too long. Must be < {MAX_CLUSTER_NAME_LEN}")

        if self.members < 1:
            raise ApiSpecError(
                f"spec.members must be set and > 0. Got {self.members!r}")

        if len(self.version.split(".")) != 3:
            raise ApiSpecError(
                f"spec.version must be of the form n.n.n. Got {self.version!r}")

        self.tls.validate()

        if not self.tls.enabled and (self.tls.certificateKeySecretName or self.tls.caConfigMapName):
            logger.info("spec.security.tls references are set but will be ignored because TLS is not enabled")

    @property
    def tls_operator_secret_name(self) -> str:
        return f"{self.name}-server-certificate-key"

    @property
    def automation_config_secret_name(self) -> str:
        return f"{self.name}-config"

    @property
    def mongodb_image(self) -> str:
        return f"{config.MONGODB_REPO_URL}/{config.MONGODB_IMAGE}:{self.version}"

    @property
    def image_pull_policy(self) -> str:
        return self.imagePullPolicy.value


class MongoDBCluster(K8sInterfaceObject):
    def __init__(self, cluster: Body) -> None:
        super().__init__()

        self.obj: Body = cluster
        self._parsed_spec: Optional[MongoDBClusterSpec] = None

    def __str__(self):
        return f"{self.namespace}/{self.name}"

    def __repr__(self):
        return f"<MongoDBCluster {self.name}>"

    @property
    def metadata(self) -> dict:
        return self.obj["metadata"]

    @property
    def annotations(self) -> dict:
        return self.metadata.get("annotations") or {}

    @property
    def spec(self) -> dict:
        return self.obj["spec"]

    @property
    def name(self) -> str:
        return self.metadata["name"]

    @property
    def namespace(self) -> str:
        return self.metadata["namespace"]

    @property
    def uid(self) -> str:
        return self.metadata.get("uid", "")

    def self_ref(self, field_path: Optional[str] = None) -> dict:
        ref = {
            "apiVersion": consts.API_VERSION,
            "kind": consts.MONGODB_KIND,
            "name": self.name,
            "namespace": self.namespace,
            "resourceVersion": self.metadata.get("resourceVersion"),
            "uid": self.uid
        }
        if field_path:
            ref["fieldPath"] = field_path
        return ref

    @property
    def parsed_spec(self) -> MongoDBClusterSpec:
        if not self._parsed_spec:
            self.parse_spec()
            assert self._parsed_spec

        return self._parsed_spec

    def parse_spec(self) -> None:
        self._parsed_spec = MongoDBClusterSpec(self.namespace, self.name, self.spec)

    @property
    def tls_rolled_out(self) -> bool:
        return self.annotations.get(consts.TLS_ROLLED_OUT_ANNOTATION) == "true"

    def log_cluster_info(self, logger: Logger) -> None:
        spec = self.parsed_spec
        logger.info(f"MongoDBCommunity {self.namespace}/{self.name}")
        logger.info(f"\tmembers: {spec.members}  version: {spec.version}")
        logger.info(f"\ttls.enabled: {spec.tls.enabled}  tls.optional: {spec.tls.optional}  tlsRolledOut: {self.tls_rolled_out}")
