# Copyright (c) 2020, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

import kopf


class StoreError(Exception):
    def __init__(self, kind: str, namespace: str, name: str, msg: str = ""):
        super().__init__(msg or f"{kind} {namespace}/{name}")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class NotFound(StoreError):
    pass


class AlreadyExists(StoreError):
    pass


class Conflict(StoreError):
    pass


class SourceMaterialMissing(kopf.TemporaryError):
    """The user supplied certificate Secret or CA ConfigMap is absent or
    lacks one of the expected fields. Requeued, never retried in place."""

    def __init__(self, msg: str, delay: float = 10):
        super().__init__(msg, delay=delay)


class StoreWriteFailed(Exception):
    """Creating or updating an operator owned object failed. The cause is
    chained, retry is left to the reconcile loop."""
    pass


class InvariantViolation(kopf.PermanentError):
    pass
