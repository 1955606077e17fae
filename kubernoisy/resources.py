"""Kubernetes object specifications churned by every cycle."""

from __future__ import annotations

from dataclasses import dataclass

from kubernetes import client

WORKLOAD_IMAGE = "gcr.io/google_containers/pause:3.2"
PORT_NAME = "kubernoisy"
PORT_NUMBER = 1234
NOISE_LABELS = {"kubernoisy": "noise"}

WORKLOAD_KIND = "pod"
ENDPOINT_KIND = "service"


@dataclass(frozen=True, slots=True)
class ResourcePair:
    """A pod and the headless service selecting it, both named after one identity."""

    identity: str
    namespace: str
    workload: client.V1Pod
    endpoint: client.V1Service


def build_workload(identity: str, namespace: str) -> client.V1Pod:
    return client.V1Pod(
        metadata=client.V1ObjectMeta(
            name=identity,
            namespace=namespace,
            labels={"app": identity, **NOISE_LABELS},
        ),
        spec=client.V1PodSpec(
            hostname="pod",
            containers=[
                client.V1Container(
                    name=identity,
                    image=WORKLOAD_IMAGE,
                    ports=[client.V1ContainerPort(name=PORT_NAME, container_port=PORT_NUMBER)],
                )
            ],
        ),
    )


def build_endpoint(identity: str, namespace: str) -> client.V1Service:
    # Headless: DNS answers with the pod address once the pod is selected.
    return client.V1Service(
        metadata=client.V1ObjectMeta(
            name=identity,
            namespace=namespace,
            labels=dict(NOISE_LABELS),
        ),
        spec=client.V1ServiceSpec(
            cluster_ip="None",
            type="ClusterIP",
            selector={"app": identity},
            ports=[client.V1ServicePort(name=PORT_NAME, port=PORT_NUMBER)],
        ),
    )


def build_resources(identity: str, namespace: str) -> ResourcePair:
    """Build the pod/service pair for ``identity``; pure and deterministic."""

    return ResourcePair(
        identity=identity,
        namespace=namespace,
        workload=build_workload(identity, namespace),
        endpoint=build_endpoint(identity, namespace),
    )


def lookup_name(identity: str, namespace: str, domain: str = "") -> str:
    """DNS name that resolves once the service for ``identity`` is ready.

    Without a cluster domain the bare identity is returned and the resolver's
    search path (``<namespace>.svc.<domain>`` inside a pod) completes it.
    """

    if not domain:
        return identity
    return f"{identity}.{namespace}.svc.{domain.strip('.')}"


__all__ = [
    "ENDPOINT_KIND",
    "ResourcePair",
    "WORKLOAD_KIND",
    "build_endpoint",
    "build_resources",
    "build_workload",
    "lookup_name",
]
