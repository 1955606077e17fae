"""Thin wrapper around the Kubernetes API used to create and delete churned objects."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from .resources import ENDPOINT_KIND, WORKLOAD_KIND, ResourcePair

logger = logging.getLogger(__name__)


class ApiCallError(Exception):
    """A create or delete call against the cluster failed."""

    def __init__(
        self,
        kind: str,
        action: str,
        name: str,
        namespace: str,
        reason: str,
        status: Optional[int] = None,
    ) -> None:
        super().__init__(f"could not {action} {kind} {name}.{namespace}: {reason}")
        self.kind = kind
        self.action = action
        self.name = name
        self.namespace = namespace
        self.reason = reason
        self.status = status


class ClusterClient(Protocol):
    """Operations a churn cycle needs from the orchestration API."""

    def create_workload(self, pair: ResourcePair) -> None: ...

    def create_endpoint(self, pair: ResourcePair) -> None: ...

    def delete_workload(self, name: str, namespace: str) -> None: ...

    def delete_endpoint(self, name: str, namespace: str) -> None: ...


def load_api_client(kubeconfig: Optional[str] = None) -> client.ApiClient:
    """Build an API client from the in-cluster service account or a kubeconfig file."""

    if kubeconfig:
        logger.info("Loading kubeconfig from %s", kubeconfig)
        config.load_kube_config(config_file=kubeconfig)
    else:
        try:
            config.load_incluster_config()
            logger.info("Using in-cluster Kubernetes configuration")
        except config.ConfigException:
            config.load_kube_config()
            logger.info("Using default kubeconfig file")
    return client.ApiClient(configuration=client.Configuration.get_default_copy())


class KubernetesClusterClient:
    """``ClusterClient`` backed by the CoreV1 API."""

    def __init__(self, api_client: client.ApiClient) -> None:
        self.core_v1 = client.CoreV1Api(api_client)

    @classmethod
    def connect(cls, kubeconfig: Optional[str] = None) -> "KubernetesClusterClient":
        return cls(load_api_client(kubeconfig))

    def create_workload(self, pair: ResourcePair) -> None:
        self._call(
            WORKLOAD_KIND,
            "add",
            pair.identity,
            pair.namespace,
            self.core_v1.create_namespaced_pod,
            namespace=pair.namespace,
            body=pair.workload,
        )

    def create_endpoint(self, pair: ResourcePair) -> None:
        self._call(
            ENDPOINT_KIND,
            "add",
            pair.identity,
            pair.namespace,
            self.core_v1.create_namespaced_service,
            namespace=pair.namespace,
            body=pair.endpoint,
        )

    def delete_workload(self, name: str, namespace: str) -> None:
        self._call(
            WORKLOAD_KIND,
            "delete",
            name,
            namespace,
            self.core_v1.delete_namespaced_pod,
            name=name,
            namespace=namespace,
            body=client.V1DeleteOptions(),
        )

    def delete_endpoint(self, name: str, namespace: str) -> None:
        self._call(
            ENDPOINT_KIND,
            "delete",
            name,
            namespace,
            self.core_v1.delete_namespaced_service,
            name=name,
            namespace=namespace,
            body=client.V1DeleteOptions(),
        )

    @staticmethod
    def _call(
        kind: str,
        action: str,
        object_name: str,
        object_namespace: str,
        method: Callable[..., object],
        **kwargs,
    ) -> None:
        try:
            method(**kwargs)
        except ApiException as exc:
            raise ApiCallError(
                kind, action, object_name, object_namespace, exc.reason or str(exc), exc.status
            ) from exc
        except HTTPError as exc:
            raise ApiCallError(kind, action, object_name, object_namespace, str(exc)) from exc


__all__ = ["ApiCallError", "ClusterClient", "KubernetesClusterClient", "load_api_client"]
