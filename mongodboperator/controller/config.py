# Copyright (c) 2020, 2023, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#


from importlib import metadata
import os

from .api_utils import ImagePullPolicy

debug = 0

_pull_policy = os.getenv("MONGODB_OPERATOR_IMAGE_PULL_POLICY")
if _pull_policy:
    default_image_pull_policy = ImagePullPolicy[_pull_policy]
else:
    default_image_pull_policy = ImagePullPolicy.Always


# Constants
OPERATOR_VERSION = "0.5.2"

DEFAULT_AGENT_IMAGE = "quay.io/mongodb/mongodb-agent:10.19.0.6562-1"
DEFAULT_VERSION_UPGRADE_HOOK_IMAGE = "quay.io/mongodb/mongodb-kubernetes-operator-version-upgrade-post-start-hook:1.0.2"
DEFAULT_MONGODB_REPO_URL = "registry.hub.docker.com/library"
DEFAULT_MONGODB_IMAGE = "mongo"

AGENT_IMAGE = os.getenv("AGENT_IMAGE", default=DEFAULT_AGENT_IMAGE)
VERSION_UPGRADE_HOOK_IMAGE = os.getenv(
    "VERSION_UPGRADE_HOOK_IMAGE", default=DEFAULT_VERSION_UPGRADE_HOOK_IMAGE)
MONGODB_REPO_URL = os.getenv(
    "MONGODB_REPO_URL", default=DEFAULT_MONGODB_REPO_URL).rstrip('/')
MONGODB_IMAGE = os.getenv("MONGODB_IMAGE", default=DEFAULT_MONGODB_IMAGE)

K8S_CLUSTER_DOMAIN = os.getenv(
    "MONGODB_OPERATOR_K8S_CLUSTER_DOMAIN", default="cluster.local")

# Requeue delay while waiting for the StatefulSet to pick up TLS material
TLS_ROLLOUT_REQUEUE_DELAY = 10


def log_config_banner(logger) -> None:
    logger.info(f"OPERATOR_VERSION   ={OPERATOR_VERSION}")
    logger.info(f"AGENT_IMAGE        ={AGENT_IMAGE}")
    logger.info(f"VERSION_UPGRADE_HOOK_IMAGE={VERSION_UPGRADE_HOOK_IMAGE}")
    logger.info(f"MONGODB_REPO_URL   ={MONGODB_REPO_URL}")
    logger.info(f"MONGODB_IMAGE      ={MONGODB_IMAGE}")
    logger.info(f"IMAGE_PULL_POLICY  ={default_image_pull_policy.value}")
    logger.info(f"K8S_CLUSTER_DOMAIN ={K8S_CLUSTER_DOMAIN}")
    for dist in metadata.distributions():
        logger.info(f"{dist.metadata['Name']:20} = {dist.version:10}")


def config_from_env() -> None:
    global debug

    level = os.getenv("MONGODB_OPERATOR_DEBUG")

    if level:
        debug = int(level)
