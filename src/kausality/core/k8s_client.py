"""Kubernetes API wrapper."""

from __future__ import annotations

from typing import Any, Callable

from kubernetes import client, config
from kubernetes.client import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import ResourceNotFoundError, ResourceNotUniqueError

from kausality.config.settings import Settings, settings as default_settings


def split_api_version(api_version: str) -> tuple[str, str]:
    """Split ``group/version`` (or bare ``version`` for the core group).

    Raises ValueError for malformed values.
    """
    if not api_version:
        return "", ""
    if api_version.count("/") > 1:
        raise ValueError(f"unexpected apiVersion format {api_version!r}")
    if "/" not in api_version:
        return "", api_version
    group, version = api_version.split("/", 1)
    if not group or not version:
        raise ValueError(f"unexpected apiVersion format {api_version!r}")
    return group, version


def is_conflict(err: BaseException) -> bool:
    return isinstance(err, ApiException) and err.status == 409


class K8sClient:
    """Thin wrapper around the Kubernetes Python client.

    Objects go in and come out as JSON-tree dicts so callers never depend on
    typed models for arbitrary custom resources.
    """

    def __init__(self, context: str | None = None, cfg: Settings | None = None):
        self.settings = cfg or default_settings
        self.context = context if context is not None else self.settings.kube_context
        self._core_v1: client.CoreV1Api | None = None
        self._custom: client.CustomObjectsApi | None = None
        self._api_client: client.ApiClient | None = None
        self._dynamic: DynamicClient | None = None
        self._plurals: dict[tuple[str, str], str] = {}

    def _load_config(self) -> client.ApiClient:
        if self._api_client is not None:
            return self._api_client
        try:
            cfg = client.Configuration()
            config.load_kube_config(
                context=self.context,
                client_configuration=cfg,
            )
            # Prevent indefinite hangs on unreachable clusters
            cfg.retries = 1
            if not cfg.connection_pool_maxsize:
                cfg.connection_pool_maxsize = 4
            self._api_client = client.ApiClient(configuration=cfg)
        except config.ConfigException:
            config.load_incluster_config()
            self._api_client = client.ApiClient()
        return self._api_client

    @property
    def core_v1(self) -> client.CoreV1Api:
        if self._core_v1 is None:
            self._core_v1 = client.CoreV1Api(api_client=self._load_config())
        return self._core_v1

    @property
    def custom(self) -> client.CustomObjectsApi:
        if self._custom is None:
            self._custom = client.CustomObjectsApi(api_client=self._load_config())
        return self._custom

    @property
    def dynamic(self) -> DynamicClient:
        if self._dynamic is None:
            self._dynamic = DynamicClient(self._load_config())
        return self._dynamic

    def get_object(
        self,
        api_version: str,
        kind: str,
        name: str,
        namespace: str = "",
    ) -> dict | None:
        """Get a single object; an empty namespace reads it cluster-scoped.

        Returns None when the object does not exist.
        """
        group, version = split_api_version(api_version)
        try:
            if group:
                if namespace:
                    return self.custom.get_namespaced_custom_object(
                        group=group,
                        version=version,
                        namespace=namespace,
                        plural=self._plural(api_version, kind),
                        name=name,
                        _request_timeout=self.settings.request_timeout,
                    )
                return self.custom.get_cluster_custom_object(
                    group=group,
                    version=version,
                    plural=self._plural(api_version, kind),
                    name=name,
                    _request_timeout=self.settings.request_timeout,
                )
            # Core API
            return self._call_core("read", kind, name, namespace)
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    def replace_object(self, obj: dict) -> dict:
        """Write an object back; resourceVersion makes the write conditional.

        Raises ApiException (status 409) when the object changed since it was read.
        """
        metadata = obj.get("metadata") or {}
        name = metadata.get("name", "")
        namespace = metadata.get("namespace", "")
        kind = obj.get("kind", "")
        api_version = obj.get("apiVersion", "")
        group, version = split_api_version(api_version)
        if group:
            if namespace:
                return self.custom.replace_namespaced_custom_object(
                    group=group,
                    version=version,
                    namespace=namespace,
                    plural=self._plural(api_version, kind),
                    name=name,
                    body=obj,
                    _request_timeout=self.settings.request_timeout,
                )
            return self.custom.replace_cluster_custom_object(
                group=group,
                version=version,
                plural=self._plural(api_version, kind),
                name=name,
                body=obj,
                _request_timeout=self.settings.request_timeout,
            )
        return self._call_core("replace", kind, name, namespace, body=obj)

    def _call_core(
        self, verb: str, kind: str, name: str, namespace: str, body: dict | None = None,
    ) -> dict:
        method = self._core_method(verb, kind, namespaced=bool(namespace))
        if method is None:
            raise ValueError(f"unsupported core kind {kind!r}")
        kwargs: dict[str, Any] = {"name": name, "_request_timeout": self.settings.request_timeout}
        if namespace:
            kwargs["namespace"] = namespace
        if body is not None:
            kwargs["body"] = body
        result = method(**kwargs)
        return self._load_config().sanitize_for_serialization(result)

    def _core_method(self, verb: str, kind: str, namespaced: bool) -> Callable | None:
        kind_lower = kind.lower()
        namespaced_kinds = {
            "service": "service",
            "configmap": "config_map",
            "secret": "secret",
            "serviceaccount": "service_account",
            "persistentvolumeclaim": "persistent_volume_claim",
            "pod": "pod",
            "endpoints": "endpoints",
            "replicationcontroller": "replication_controller",
        }
        cluster_kinds = {
            "namespace": "namespace",
            "persistentvolume": "persistent_volume",
            "node": "node",
        }
        if namespaced and kind_lower in namespaced_kinds:
            return getattr(self.core_v1, f"{verb}_namespaced_{namespaced_kinds[kind_lower]}")
        if not namespaced and kind_lower in cluster_kinds:
            return getattr(self.core_v1, f"{verb}_{cluster_kinds[kind_lower]}")
        return None

    def _plural(self, api_version: str, kind: str) -> str:
        """Resource name for a kind, taken from API discovery when the server serves it."""
        key = (api_version, kind)
        plural = self._plurals.get(key)
        if plural is not None:
            return plural
        try:
            plural = self.dynamic.resources.get(api_version=api_version, kind=kind).name
        except (ResourceNotFoundError, ResourceNotUniqueError):
            return self._kind_to_plural(kind)
        self._plurals[key] = plural
        return plural

    @staticmethod
    def _kind_to_plural(kind: str) -> str:
        k = kind.lower()
        if k.endswith(("s", "x", "z", "ch", "sh")):
            return k + "es"
        # Only a consonant before the y takes "ies": Policy but not Gateway
        if k.endswith("y") and len(k) > 1 and k[-2] not in "aeiou":
            return k[:-1] + "ies"
        return k + "s"
