# Copyright (c) 2020, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

"""Narrow accessor for the objects the operator reads and writes.

Objects cross this interface as plain manifest dicts. Secret data is handed
out and taken in decoded, base64 is only a concern of the Kubernetes backed
implementation.
"""

import abc
import copy
from typing import Optional, cast

from kubernetes.client.rest import ApiException

from . import consts, utils
from .errors import AlreadyExists, Conflict, NotFound


class ObjectStore(abc.ABC):
    @abc.abstractmethod
    def get(self, kind: str, namespace: str, name: str) -> dict:
        """Return the object or raise NotFound"""
        ...

    @abc.abstractmethod
    def create(self, obj: dict) -> dict:
        """Create the object or raise AlreadyExists"""
        ...

    @abc.abstractmethod
    def update(self, obj: dict) -> dict:
        """Replace the object or raise NotFound/Conflict"""
        ...

    @abc.abstractmethod
    def patch(self, kind: str, namespace: str, name: str, patch: dict) -> dict:
        ...

    def get_or_none(self, kind: str, namespace: str, name: str) -> Optional[dict]:
        try:
            return self.get(kind, namespace, name)
        except NotFound:
            return None

    def upsert(self, obj: dict) -> dict:
        """Create obj or overwrite the existing object with it"""
        kind, namespace, name = object_key(obj)
        current = self.get_or_none(kind, namespace, name)
        if current is None:
            try:
                return self.create(obj)
            except AlreadyExists:
                # lost a race against another writer, overwrite what it wrote
                current = self.get(kind, namespace, name)

        updated = copy.deepcopy(obj)
        if "resourceVersion" in current["metadata"]:
            updated["metadata"]["resourceVersion"] = current["metadata"]["resourceVersion"]
        return self.update(updated)


def object_key(obj: dict):
    return (obj["kind"], obj["metadata"]["namespace"], obj["metadata"]["name"])


class KubeObjectStore(ObjectStore):
    def __init__(self, api_core=None, api_apps=None, api_customobj=None, api_client=None):
        if api_core is None or api_apps is None or api_customobj is None or api_client is None:
            from . import kubeutils

            api_core = api_core or kubeutils.api_core
            api_apps = api_apps or kubeutils.api_apps
            api_customobj = api_customobj or kubeutils.api_customobj
            api_client = api_client or kubeutils.api_client

        self.api_core = api_core
        self.api_apps = api_apps
        self.api_customobj = api_customobj
        self.api_client = api_client

    def _to_dict(self, kind: str, obj) -> dict:
        if isinstance(obj, dict):
            d = copy.deepcopy(obj)
        else:
            d = cast(dict, self.api_client.sanitize_for_serialization(obj))
        d.setdefault("kind", kind)
        if kind == consts.SECRET_KIND and d.get("data"):
            d["data"] = {k: utils.b64decode(v) for k, v in d["data"].items()}
        return d

    def _to_body(self, obj: dict) -> dict:
        body = copy.deepcopy(obj)
        if body["kind"] == consts.SECRET_KIND and body.get("data"):
            body["data"] = {k: utils.b64encode(v) for k, v in body["data"].items()}
        return body

    def _translate(self, exc: ApiException, kind: str, namespace: str, name: str) -> Exception:
        if exc.status == 404:
            return NotFound(kind, namespace, name, str(exc.reason))
        if exc.status == 409:
            return Conflict(kind, namespace, name, str(exc.reason))
        return exc

    def get(self, kind: str, namespace: str, name: str) -> dict:
        try:
            if kind == consts.SECRET_KIND:
                obj = self.api_core.read_namespaced_secret(name, namespace)
            elif kind == consts.CONFIGMAP_KIND:
                obj = self.api_core.read_namespaced_config_map(name, namespace)
            elif kind == consts.SERVICE_KIND:
                obj = self.api_core.read_namespaced_service(name, namespace)
            elif kind == consts.STATEFULSET_KIND:
                obj = self.api_apps.read_namespaced_stateful_set(name, namespace)
            elif kind == consts.MONGODB_KIND:
                obj = self.api_customobj.get_namespaced_custom_object(
                    consts.GROUP, consts.VERSION, namespace,
                    consts.MONGODB_PLURAL, name)
            else:
                raise ValueError(f"Unsupported kind {kind}")
        except ApiException as e:
            raise self._translate(e, kind, namespace, name) from e

        return self._to_dict(kind, obj)

    def create(self, obj: dict) -> dict:
        kind, namespace, name = object_key(obj)
        body = self._to_body(obj)
        try:
            if kind == consts.SECRET_KIND:
                ret = self.api_core.create_namespaced_secret(namespace, body)
            elif kind == consts.CONFIGMAP_KIND:
                ret = self.api_core.create_namespaced_config_map(namespace, body)
            elif kind == consts.SERVICE_KIND:
                ret = self.api_core.create_namespaced_service(namespace, body)
            elif kind == consts.STATEFULSET_KIND:
                ret = self.api_apps.create_namespaced_stateful_set(namespace, body)
            else:
                raise ValueError(f"Unsupported kind {kind}")
        except ApiException as e:
            if e.status == 409:
                raise AlreadyExists(kind, namespace, name, str(e.reason)) from e
            raise

        return self._to_dict(kind, ret)

    def update(self, obj: dict) -> dict:
        kind, namespace, name = object_key(obj)
        body = self._to_body(obj)
        try:
            if kind == consts.SECRET_KIND:
                ret = self.api_core.replace_namespaced_secret(name, namespace, body)
            elif kind == consts.CONFIGMAP_KIND:
                ret = self.api_core.replace_namespaced_config_map(name, namespace, body)
            elif kind == consts.SERVICE_KIND:
                ret = self.api_core.replace_namespaced_service(name, namespace, body)
            elif kind == consts.STATEFULSET_KIND:
                ret = self.api_apps.replace_namespaced_stateful_set(name, namespace, body)
            else:
                raise ValueError(f"Unsupported kind {kind}")
        except ApiException as e:
            raise self._translate(e, kind, namespace, name) from e

        return self._to_dict(kind, ret)

    def patch(self, kind: str, namespace: str, name: str, patch: dict) -> dict:
        try:
            if kind == consts.MONGODB_KIND:
                ret = self.api_customobj.patch_namespaced_custom_object(
                    consts.GROUP, consts.VERSION, namespace,
                    consts.MONGODB_PLURAL, name, body=patch)
            elif kind == consts.STATEFULSET_KIND:
                ret = self.api_apps.patch_namespaced_stateful_set(name, namespace, body=patch)
            else:
                raise ValueError(f"Unsupported kind {kind}")
        except ApiException as e:
            raise self._translate(e, kind, namespace, name) from e

        return self._to_dict(kind, ret)
