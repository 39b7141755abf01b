# Copyright (c) 2023, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

import copy
import logging

import pytest

from mongodboperator.controller import consts, k8sobject
from mongodboperator.controller.errors import AlreadyExists, NotFound
from mongodboperator.controller.store import ObjectStore, object_key
from mongodboperator.controller.mongodbcluster.cluster_api import MongoDBCluster


def _merge(base: dict, patch: dict) -> None:
    for k, v in patch.items():
        if v is None:
            base.pop(k, None)
        elif isinstance(v, dict) and isinstance(base.get(k), dict):
            _merge(base[k], v)
        else:
            base[k] = copy.deepcopy(v)


class InMemoryStore(ObjectStore):
    def __init__(self):
        self.objects = {}
        self.writes = []
        self._rv = 0

    def _bump(self, obj: dict) -> None:
        self._rv += 1
        obj["metadata"]["resourceVersion"] = str(self._rv)

    def get(self, kind, namespace, name):
        key = (kind, namespace, name)
        if key not in self.objects:
            raise NotFound(kind, namespace, name)
        return copy.deepcopy(self.objects[key])

    def create(self, obj):
        key = object_key(obj)
        if key in self.objects:
            raise AlreadyExists(*key)
        obj = copy.deepcopy(obj)
        self._bump(obj)
        self.objects[key] = obj
        self.writes.append(("create",) + key)
        return copy.deepcopy(obj)

    def update(self, obj):
        key = object_key(obj)
        if key not in self.objects:
            raise NotFound(*key)
        obj = copy.deepcopy(obj)
        self._bump(obj)
        self.objects[key] = obj
        self.writes.append(("update",) + key)
        return copy.deepcopy(obj)

    def patch(self, kind, namespace, name, patch):
        key = (kind, namespace, name)
        if key not in self.objects:
            raise NotFound(*key)
        _merge(self.objects[key], patch)
        self._bump(self.objects[key])
        self.writes.append(("patch",) + key)
        return copy.deepcopy(self.objects[key])

    def add(self, obj: dict) -> None:
        self.objects[object_key(obj)] = copy.deepcopy(obj)

    def data(self, kind, namespace, name) -> dict:
        return self.objects[(kind, namespace, name)].get("data", {})


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("mongodboperator.tests")


@pytest.fixture(autouse=True)
def events(monkeypatch) -> list:
    posted = []

    def post_event(namespace, object_ref, type, action, reason, message):
        posted.append({"type": type, "action": action, "reason": reason, "message": message})

    monkeypatch.setattr(k8sobject, "post_event", post_event)
    return posted


def make_body(name: str = "example-mongodb", namespace: str = "mongodb",
              members: int = 3, tls: bool = False, optional: bool = False,
              rolled_out: bool = False) -> dict:
    body = {
        "apiVersion": consts.API_VERSION,
        "kind": consts.MONGODB_KIND,
        "metadata": {
            "name": name,
            "namespace": namespace,
            "uid": "8f3a3a6c-4d54-4a4c-9c1a-2f5a6f0d0e11",
            "resourceVersion": "1",
            "annotations": {}
        },
        "spec": {
            "members": members,
            "version": "4.2.6",
        }
    }
    if tls:
        body["spec"]["security"] = {
            "tls": {
                "enabled": True,
                "optional": optional,
                "certificateKeySecretRef": {"name": "tls-secret-name"},
                "caConfigMapRef": {"name": "tls-ca-configmap-name"}
            }
        }
    if rolled_out:
        body["metadata"]["annotations"][consts.TLS_ROLLED_OUT_ANNOTATION] = "true"
    return body


def create_tls_secret_and_config_map(store: InMemoryStore, body: dict,
                                     cert: str = "CERT", key: str = "KEY") -> None:
    namespace = body["metadata"]["namespace"]
    store.add({
        "apiVersion": "v1",
        "kind": consts.SECRET_KIND,
        "metadata": {"name": "tls-secret-name", "namespace": namespace},
        "data": {consts.TLS_CERT_KEY: cert, consts.TLS_KEY_KEY: key}
    })
    store.add({
        "apiVersion": "v1",
        "kind": consts.CONFIGMAP_KIND,
        "metadata": {"name": "tls-ca-configmap-name", "namespace": namespace},
        "data": {consts.TLS_CA_CERT_NAME: "CERT"}
    })


@pytest.fixture
def replica_set() -> MongoDBCluster:
    return MongoDBCluster(make_body())


@pytest.fixture
def replica_set_with_tls(store) -> MongoDBCluster:
    body = make_body(tls=True)
    create_tls_secret_and_config_map(store, body)
    return MongoDBCluster(body)
