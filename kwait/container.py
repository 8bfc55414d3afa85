#  Kube Wait - Dependency Injection Container
#
#  DeclarativeContainer wiring the Kubernetes clients, the status source,
#  the readiness policies and the waiter.
#
#  Depends on: config.py, services/*
#  Used by:    applications embedding kwait, tests

from dependency_injector import containers, providers
from kubernetes import client, config
from kubernetes.dynamic import DynamicClient

from kwait.config import EVENT_QUEUE_SIZE, KUBE_CONTEXT, KUBE_IN_CLUSTER, WATCH_TIMEOUT
from kwait.services.kube_source import KubernetesStatusSource
from kwait.services.readiness import PolicyRegistry
from kwait.services.waiter import Waiter


def create_api_client(in_cluster: bool = False, context: str | None = None) -> client.ApiClient:
    """Load cluster credentials and build an ApiClient."""
    if in_cluster:
        config.load_incluster_config()
    elif context:
        config.load_kube_config(context=context)
    else:
        config.load_kube_config()
    return client.ApiClient()


class Container(containers.DeclarativeContainer):
    """DI container for kwait.

    Clients and the status source are Singletons; each Waiter is built fresh.
    Tests override them via container.xxx.override(providers.Object(fake)).
    """

    # --- Kubernetes ---
    api_client = providers.Singleton(create_api_client, in_cluster=KUBE_IN_CLUSTER, context=KUBE_CONTEXT)
    dynamic_client = providers.Singleton(DynamicClient, api_client)

    # --- Services ---
    status_source = providers.Singleton(
        KubernetesStatusSource,
        client=dynamic_client,
        queue_size=EVENT_QUEUE_SIZE,
        watch_timeout=WATCH_TIMEOUT,
    )
    policies = providers.Singleton(PolicyRegistry)
    waiter = providers.Factory(Waiter, source=status_source, policies=policies)
