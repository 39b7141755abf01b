# Copyright (c) 2023, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

from unittest.mock import MagicMock

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from mongodboperator.controller import consts, utils
from mongodboperator.controller.errors import AlreadyExists, Conflict, NotFound
from mongodboperator.controller.mongodbcluster.cluster_api import MongoDBCluster
from mongodboperator.controller.mongodbcluster.tls import (
    ensure_tls_operator_secret, tls_operator_secret_file_name)
from mongodboperator.controller.store import KubeObjectStore

from conftest import make_body

NS = "mongodb"
OPERATOR_SECRET = "example-mongodb-server-certificate-key"


def not_found() -> ApiException:
    return ApiException(status=404, reason="Not Found")


def conflict() -> ApiException:
    return ApiException(status=409, reason="Conflict")


@pytest.fixture
def api_core() -> MagicMock:
    api = MagicMock()

    def read_namespaced_secret(name, namespace):
        if name == "tls-secret-name":
            return client.V1Secret(
                api_version="v1", kind="Secret",
                metadata=client.V1ObjectMeta(name=name, namespace=namespace, resource_version="3"),
                data={consts.TLS_CERT_KEY: utils.b64encode("CERT"),
                      consts.TLS_KEY_KEY: utils.b64encode("KEY")})
        raise not_found()

    def read_namespaced_config_map(name, namespace):
        if name == "tls-ca-configmap-name":
            return client.V1ConfigMap(
                api_version="v1", kind="ConfigMap",
                metadata=client.V1ObjectMeta(name=name, namespace=namespace),
                data={consts.TLS_CA_CERT_NAME: "CERT"})
        raise not_found()

    api.read_namespaced_secret.side_effect = read_namespaced_secret
    api.read_namespaced_config_map.side_effect = read_namespaced_config_map
    api.create_namespaced_secret.side_effect = lambda namespace, body: body
    api.replace_namespaced_secret.side_effect = lambda name, namespace, body: body
    return api


@pytest.fixture
def kube_store(api_core) -> KubeObjectStore:
    return KubeObjectStore(api_core=api_core, api_apps=MagicMock(),
                           api_customobj=MagicMock(), api_client=client.ApiClient())


def test_secret_data_is_decoded_on_read(kube_store) -> None:
    secret = kube_store.get(consts.SECRET_KIND, NS, "tls-secret-name")

    assert secret["kind"] == "Secret"
    assert secret["metadata"]["resourceVersion"] == "3"
    assert secret["data"] == {consts.TLS_CERT_KEY: "CERT", consts.TLS_KEY_KEY: "KEY"}


def test_config_map_data_is_not_decoded(kube_store) -> None:
    cm = kube_store.get(consts.CONFIGMAP_KIND, NS, "tls-ca-configmap-name")

    assert cm["data"] == {consts.TLS_CA_CERT_NAME: "CERT"}


def test_operator_secret_is_stored_base64_encoded(kube_store, api_core, logger) -> None:
    body = make_body(tls=True)

    file_name = ensure_tls_operator_secret(kube_store, MongoDBCluster(body), logger)

    assert file_name == tls_operator_secret_file_name("CERT", "KEY")
    api_core.create_namespaced_secret.assert_called_once()
    namespace, sent = api_core.create_namespaced_secret.call_args.args
    assert namespace == NS
    assert sent["metadata"]["name"] == OPERATOR_SECRET
    assert sent["data"] == {file_name: utils.b64encode("CERTKEY")}


def test_get_missing_raises_not_found(kube_store) -> None:
    with pytest.raises(NotFound) as exc:
        kube_store.get(consts.SECRET_KIND, NS, OPERATOR_SECRET)

    assert exc.value.name == OPERATOR_SECRET
    assert kube_store.get_or_none(consts.SECRET_KIND, NS, OPERATOR_SECRET) is None


def test_create_existing_raises_already_exists(kube_store, api_core) -> None:
    api_core.create_namespaced_secret.side_effect = conflict()
    secret = {"apiVersion": "v1", "kind": consts.SECRET_KIND,
              "metadata": {"name": OPERATOR_SECRET, "namespace": NS},
              "data": {"file.pem": "CERTKEY"}}

    with pytest.raises(AlreadyExists):
        kube_store.create(secret)


def test_update_stale_raises_conflict(kube_store, api_core) -> None:
    api_core.replace_namespaced_secret.side_effect = conflict()
    secret = {"apiVersion": "v1", "kind": consts.SECRET_KIND,
              "metadata": {"name": OPERATOR_SECRET, "namespace": NS, "resourceVersion": "1"},
              "data": {"file.pem": "CERTKEY"}}

    with pytest.raises(Conflict):
        kube_store.update(secret)


def test_update_missing_raises_not_found(kube_store, api_core) -> None:
    api_core.replace_namespaced_secret.side_effect = not_found()
    secret = {"apiVersion": "v1", "kind": consts.SECRET_KIND,
              "metadata": {"name": OPERATOR_SECRET, "namespace": NS},
              "data": {}}

    with pytest.raises(NotFound):
        kube_store.update(secret)


def test_other_api_errors_propagate(kube_store, api_core) -> None:
    api_core.read_namespaced_secret.side_effect = ApiException(status=500, reason="Internal Server Error")

    with pytest.raises(ApiException):
        kube_store.get(consts.SECRET_KIND, NS, "tls-secret-name")


def test_custom_resource_patch(kube_store) -> None:
    patch = {"metadata": {"annotations": {consts.TLS_ROLLED_OUT_ANNOTATION: "true"}}}
    kube_store.api_customobj.patch_namespaced_custom_object.return_value = {
        "apiVersion": consts.API_VERSION, "kind": consts.MONGODB_KIND,
        "metadata": {"name": "example-mongodb", "namespace": NS,
                     "annotations": {consts.TLS_ROLLED_OUT_ANNOTATION: "true"}}}

    ret = kube_store.patch(consts.MONGODB_KIND, NS, "example-mongodb", patch)

    kube_store.api_customobj.patch_namespaced_custom_object.assert_called_once_with(
        consts.GROUP, consts.VERSION, NS, consts.MONGODB_PLURAL, "example-mongodb", body=patch)
    assert ret["metadata"]["annotations"][consts.TLS_ROLLED_OUT_ANNOTATION] == "true"
