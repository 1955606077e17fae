from __future__ import annotations

from unittest import mock

import pytest
from kubernetes.client.rest import ApiException
from urllib3.exceptions import MaxRetryError

from kubernoisy.cluster import ApiCallError, KubernetesClusterClient
from kubernoisy.resources import build_resources


@pytest.fixture
def cluster():
    client = KubernetesClusterClient(mock.MagicMock())
    client.core_v1 = mock.MagicMock()
    return client


def test_create_calls_core_v1(cluster):
    pair = build_resources("kubernoisy-abc", "load-test")

    cluster.create_workload(pair)
    cluster.create_endpoint(pair)

    cluster.core_v1.create_namespaced_pod.assert_called_once_with(namespace="load-test", body=pair.workload)
    cluster.core_v1.create_namespaced_service.assert_called_once_with(namespace="load-test", body=pair.endpoint)


def test_delete_calls_core_v1(cluster):
    cluster.delete_workload("kubernoisy-abc", "load-test")
    cluster.delete_endpoint("kubernoisy-abc", "load-test")

    _, kwargs = cluster.core_v1.delete_namespaced_pod.call_args
    assert kwargs["name"] == "kubernoisy-abc"
    assert kwargs["namespace"] == "load-test"
    cluster.core_v1.delete_namespaced_service.assert_called_once()


def test_api_exception_becomes_api_call_error(cluster):
    cluster.core_v1.create_namespaced_service.side_effect = ApiException(status=409, reason="Conflict")

    with pytest.raises(ApiCallError) as excinfo:
        cluster.create_endpoint(build_resources("kubernoisy-abc", "load-test"))

    error = excinfo.value
    assert error.kind == "service"
    assert error.action == "add"
    assert error.status == 409
    assert "could not add service kubernoisy-abc.load-test: Conflict" in str(error)


def test_transport_error_becomes_api_call_error(cluster):
    cluster.core_v1.delete_namespaced_pod.side_effect = MaxRetryError(None, "/api/v1", "connection refused")

    with pytest.raises(ApiCallError) as excinfo:
        cluster.delete_workload("kubernoisy-abc", "load-test")

    assert excinfo.value.kind == "pod"
    assert excinfo.value.action == "delete"
    assert excinfo.value.status is None
