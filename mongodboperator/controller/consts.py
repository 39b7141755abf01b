# Copyright (c) 2020, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

GROUP = "mongodbcommunity.mongodb.com"
VERSION = "v1"
API_VERSION = GROUP+"/"+VERSION

MONGODB_KIND = "MongoDBCommunity"
MONGODB_PLURAL = "mongodbcommunity"

SECRET_KIND = "Secret"
CONFIGMAP_KIND = "ConfigMap"
SERVICE_KIND = "Service"
STATEFULSET_KIND = "StatefulSet"

# Set on the custom resource once every member has the TLS material mounted
TLS_ROLLED_OUT_ANNOTATION = "mongodb.com/v1.tlsRolledOut"

# Keys in the user supplied Secret and CA ConfigMap
TLS_CERT_KEY = "tls.crt"
TLS_KEY_KEY = "tls.key"

# Mount layout shared by the automation config and the pod template
TLS_CA_VOLUME_NAME = "tls-ca"
TLS_SECRET_VOLUME_NAME = "tls-secret"
TLS_CA_MOUNT_PATH = "/var/lib/tls/ca/"
TLS_CA_CERT_NAME = "ca.crt"
TLS_OPERATOR_SECRET_MOUNT_PATH = "/var/lib/tls/server/"

AGENT_CONTAINER_NAME = "mongodb-agent"
MONGOD_CONTAINER_NAME = "mongod"
POSTHOOK_CONTAINER_NAME = "mongod-posthook"

AUTOMATION_CONFIG_KEY = "cluster-config.json"
