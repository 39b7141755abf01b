# Copyright (c) 2023, 2024, Oracle and/or its affiliates.
#
# Licensed under the Universal Permissive License v 1.0 as shown at https://oss.oracle.com/licenses/upl/
#

import copy

import pytest

from mongodboperator.controller import automationconfig, consts
from mongodboperator.controller.automationconfig import TLSMode
from mongodboperator.controller.mongodbcluster.cluster_api import MongoDBCluster
from mongodboperator.controller.mongodbcluster.tls import (
    get_tls_config_modification, tls_config_modification, tls_operator_secret_file_name)

from conftest import create_tls_secret_and_config_map, make_body

CA_FILE = consts.TLS_CA_MOUNT_PATH + consts.TLS_CA_CERT_NAME


def create_ac(store, cluster: MongoDBCluster, logger) -> dict:
    modification = get_tls_config_modification(store, cluster, logger)
    return automationconfig.build_automation_config(cluster.parsed_spec, {}, modification)


def assert_tls_disabled(ac: dict) -> None:
    assert ac["tls"] == {
        "CAFilePath": "",
        "clientCertificateMode": "OPTIONAL"
    }
    for process in ac["processes"]:
        assert process["args2_6"]["net"]["tls"] == {"mode": "disabled"}


def assert_tls_enabled(ac: dict, mode: str) -> None:
    assert ac["tls"] == {
        "CAFilePath": CA_FILE,
        "clientCertificateMode": "OPTIONAL"
    }
    for process in ac["processes"]:
        assert process["args2_6"]["net"]["tls"] == {
            "mode": mode,
            "PEMKeyFile": consts.TLS_OPERATOR_SECRET_MOUNT_PATH + tls_operator_secret_file_name("CERT", "KEY"),
            "CAFile": CA_FILE,
            "allowConnectionsWithoutCertificates": True
        }


def test_tls_disabled(store, replica_set, logger) -> None:
    ac = create_ac(store, replica_set, logger)

    assert_tls_disabled(ac)
    # nothing is written while TLS is off
    assert store.writes == []


@pytest.mark.parametrize("optional", [False, True])
def test_tls_enabled_during_rollout(store, logger, optional) -> None:
    body = make_body(tls=True, optional=optional)
    create_tls_secret_and_config_map(store, body)

    ac = create_ac(store, MongoDBCluster(body), logger)

    assert_tls_disabled(ac)


def test_tls_enabled_and_required_rollout_completed(store, logger) -> None:
    body = make_body(tls=True, rolled_out=True)
    create_tls_secret_and_config_map(store, body)

    ac = create_ac(store, MongoDBCluster(body), logger)

    assert_tls_enabled(ac, "requireTLS")


def test_tls_enabled_and_optional_rollout_completed(store, logger) -> None:
    body = make_body(tls=True, optional=True, rolled_out=True)
    create_tls_secret_and_config_map(store, body)

    ac = create_ac(store, MongoDBCluster(body), logger)

    assert_tls_enabled(ac, "preferTLS")


@pytest.mark.parametrize("mode", list(TLSMode))
def test_client_certificates_are_never_required(replica_set, mode) -> None:
    base = automationconfig.prepare_base_automation_config(replica_set.parsed_spec)
    base["tls"]["clientCertificateMode"] = "REQUIRE"

    ac = tls_config_modification(mode, "file.pem")(base)

    assert ac["tls"]["clientCertificateMode"] == "OPTIONAL"


def test_modification_does_not_mutate_its_input(replica_set) -> None:
    base = automationconfig.prepare_base_automation_config(replica_set.parsed_spec)
    original = copy.deepcopy(base)

    tls_config_modification(TLSMode.Required, "file.pem")(base)

    assert base == original


def test_modification_composes_in_any_order(replica_set) -> None:
    def set_port(ac: dict) -> dict:
        ac = copy.deepcopy(ac)
        for process in ac["processes"]:
            process["args2_6"]["net"]["port"] = 27018
        return ac

    tls_modification = tls_config_modification(TLSMode.Preferred, "file.pem")
    base = automationconfig.prepare_base_automation_config(replica_set.parsed_spec)

    first = automationconfig.apply_modifications(base, set_port, tls_modification)
    second = automationconfig.apply_modifications(base, tls_modification, set_port)

    assert first == second
    assert first["processes"][0]["args2_6"]["net"]["port"] == 27018
    assert first["processes"][0]["args2_6"]["net"]["tls"]["mode"] == "preferTLS"


def test_disabling_clears_previous_tls_settings(replica_set) -> None:
    base = automationconfig.prepare_base_automation_config(replica_set.parsed_spec)
    enabled = tls_config_modification(TLSMode.Required, "file.pem")(base)

    ac = tls_config_modification(TLSMode.Disabled, "file.pem")(enabled)

    assert_tls_disabled(ac)
