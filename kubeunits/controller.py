"""
Lifecycle controller for unit workloads.

Schedules, tracks and tears down short-lived unit containers on behalf of a
single owner (the hosting peer). Per workload name the lifecycle is:

    Absent -> Starting -> Running -> Stopping -> Absent

with Running -> Absent also possible when a workload disappears out of band.

Start is an idempotent restart: whatever is running under the unit's name is
torn down first (best-effort, logged), then the bundle is uploaded and a new
workload created. Stop deletes matching workloads with a zero grace period
and releases their exit handles. Wait blocks on the exit handle registered
by Start; it is released only by Stop, not by the workload exiting on its
own.

Stop is eager-fail: the first delete error is raised immediately, the
remaining instances are not attempted and the artifact bundle is kept.
"""

import logging
import time
from typing import Any, Optional

from kubeunits.bundle import extract_common_root
from kubeunits.clients.base import OrchestratorClient
from kubeunits.config import DEFAULT_NAMESPACE
from kubeunits.errors import NotFoundError, OrchestratorError
from kubeunits.metrics import BuildMetrics
from kubeunits.naming import DEFAULT_NAME_PREFIX, derive_name, image_name
from kubeunits.resources import ConfigLookup, build_resource_spec
from kubeunits.schemas import (
    ArtifactBundleRef,
    EnvVar,
    ResourceSpec,
    StopOptions,
    UnitDescriptor,
    WorkloadDescriptor,
    WorkloadHandle,
    WorkloadKind,
    bundle_labels,
    instance_selector,
    workload_labels,
)
from kubeunits.wait_registry import ExitSignal, WaitRegistry

logger = logging.getLogger(__name__)

CONTAINER_NAME_PREFIX = "unit-"


class _EmptyConfig:
    def get(self, key: str, default: Any = None) -> Any:
        return default


class LifecycleController:
    """
    Runs units as workloads through an OrchestratorClient.

    Usage:
        controller = LifecycleController(client, owner_id="peer0", namespace="units")
        unit = UnitDescriptor("mycc", "1.0")

        controller.start(unit, args=["run"], env=["CORE_PEER_ID=peer0"], files=files)
        exit_code = controller.wait(unit)  # returns once stop() runs
        controller.stop(unit)

    The controller owns its WaitRegistry; Start/Stop/Wait may be called
    concurrently from multiple threads.
    """

    def __init__(
        self,
        client: OrchestratorClient,
        owner_id: str = "",
        namespace: str = "",
        config: Optional[ConfigLookup] = None,
        registry: Optional[WaitRegistry] = None,
        metrics: Optional[BuildMetrics] = None,
        name_prefix: str = DEFAULT_NAME_PREFIX,
    ):
        """
        Initialize the controller.

        Args:
            client: Orchestrator client used for every cluster call
            owner_id: Owner on whose behalf units are scheduled
            namespace: Target namespace; empty falls back to "default"
            config: Dotted-key config lookup (registry and resource settings)
            registry: Exit-handle registry; a fresh one is created if omitted
            metrics: Optional build metrics recorder
            name_prefix: Prefix for derived workload names
        """
        if not namespace:
            logger.warning("No namespace given. Using default namespace %s.", DEFAULT_NAMESPACE)
            namespace = DEFAULT_NAMESPACE

        self._client = client
        self.owner_id = owner_id
        self.namespace = namespace
        self.config: ConfigLookup = config if config is not None else _EmptyConfig()
        self.registry = registry if registry is not None else WaitRegistry()
        self.metrics = metrics
        self.name_prefix = name_prefix

    @classmethod
    def from_config(
        cls,
        config: Any,
        owner_id: Optional[str] = None,
        client: Optional[OrchestratorClient] = None,
        metrics: Optional[BuildMetrics] = None,
    ) -> "LifecycleController":
        """
        Create a controller from a KubeunitsConfig.

        If no client is given, an in-cluster Kubernetes client is created.
        """
        namespace = config.resolved_namespace()
        if client is None:
            from kubeunits.clients.kubernetes import (
                KubernetesOrchestratorClient,
                get_kubernetes_client,
            )
            client = KubernetesOrchestratorClient(get_kubernetes_client(), namespace)

        return cls(
            client,
            owner_id=owner_id if owner_id is not None else config.owner_id,
            namespace=namespace,
            config=config,
            metrics=metrics,
            name_prefix=config.name_prefix or DEFAULT_NAME_PREFIX,
        )

    @property
    def client(self) -> OrchestratorClient:
        return self._client

    # -- naming ------------------------------------------------------------

    def name_for(self, descriptor: UnitDescriptor) -> str:
        return derive_name(self.owner_id, descriptor, prefix=self.name_prefix)

    def image_for(self, descriptor: UnitDescriptor) -> str:
        return image_name(
            descriptor,
            self.config.get("chaincode.registry.namespace", ""),
            self.config.get("chaincode.registry.prefix", ""),
        )

    def selector_for(self, descriptor: UnitDescriptor) -> str:
        return instance_selector(self.owner_id, descriptor)

    # -- lifecycle ---------------------------------------------------------

    def start(
        self,
        descriptor: UnitDescriptor,
        args: Optional[list[str]] = None,
        env: Optional[list[str]] = None,
        files: Optional[dict[str, bytes]] = None,
    ) -> WorkloadHandle:
        """
        Start (or restart) a unit.

        Args:
            descriptor: Unit to start
            args: Container arguments
            env: Environment entries as ``KEY=VALUE`` strings
            files: Files to mount into the container, keyed by absolute path

        Returns:
            Handle of the created workload

        Raises:
            ConfigurationError: If a resource quantity is malformed
            OrchestratorError: If uploading the bundle or creating the workload
                fails. When the create fails after the bundle was uploaded,
                the bundle is removed again (best-effort, logged on failure).
        """
        name = self.name_for(descriptor)
        logger.info("Starting unit %s...", name, extra={"unit": str(descriptor), "workload": name})

        # Replace anything already running under this name.
        try:
            self._teardown(descriptor, name)
        except OrchestratorError as e:
            logger.warning("Could not clean up existing workloads for %s: %s", name, e)

        started = time.monotonic()
        success = False
        try:
            handle = self._create(descriptor, name, args or [], env or [], files or {})
            success = True
        finally:
            if self.metrics is not None:
                self.metrics.observe(descriptor.name, success, time.monotonic() - started)

        self.registry.register(name, ExitSignal())
        logger.info("Unit %s started successfully.", handle.name)
        return handle

    def stop(self, descriptor: UnitDescriptor, options: Optional[StopOptions] = None) -> None:
        """
        Stop every running instance of a unit and remove its artifact bundle.

        Raises:
            OrchestratorError: On the first failed list or delete call
        """
        options = options or StopOptions()
        logger.info(
            "Stop unit %s requested. [kill=%s, remove=%s]",
            descriptor.name,
            options.kill,
            options.remove,
        )
        if not options.remove:
            return
        self._teardown(descriptor, self.name_for(descriptor))

    def wait(self, descriptor: UnitDescriptor) -> int:
        """
        Block until the unit's exit handle is released by stop().

        Returns:
            Exit code, always 0: the controller does not observe real exit
            statuses

        Raises:
            NotFoundError: If the unit was never started (or already stopped)
        """
        name = self.name_for(descriptor)
        logger.info("Waiting for %s to exit...", name)

        signal = self.registry.lookup(name)
        if signal is None:
            logger.error("Unit %s exit handle was not found.", name)
            raise NotFoundError(name)

        signal.wait()
        logger.info("Unit %s exited.", name)
        return 0

    def health_check(self) -> None:
        """Liveness check; nothing to verify yet."""
        return None

    def running_instances(self, descriptor: UnitDescriptor) -> list[WorkloadHandle]:
        """Query the orchestrator for this owner's instances of a unit."""
        return self._client.list_workloads(self.selector_for(descriptor))

    # -- internals ---------------------------------------------------------

    def _create(
        self,
        descriptor: UnitDescriptor,
        name: str,
        args: list[str],
        env: list[str],
        files: dict[str, bytes],
    ) -> WorkloadHandle:
        packaged = extract_common_root(files)
        resources = build_resource_spec(self.config)

        bundle: Optional[ArtifactBundleRef] = None
        if packaged.files:
            bundle = self._client.create_or_update_artifact_bundle(
                name, bundle_labels(self.owner_id, name), packaged.files
            )
            if not packaged.mount_point:
                logger.warning("Files for %s share no common directory; bundle is not mounted", name)

        workload = self._assemble(descriptor, name, args, env, packaged.mount_point, bundle, resources)
        try:
            return self._client.create_workload(workload)
        except OrchestratorError:
            if bundle is not None:
                self._discard_bundle(name)
            raise

    def _discard_bundle(self, name: str) -> None:
        # Best-effort; the create error is the one the caller sees.
        try:
            self._client.delete_artifact_bundle(name)
        except OrchestratorError as e:
            logger.warning("Could not remove artifact bundle %s after failed create: %s", name, e)

    def _assemble(
        self,
        descriptor: UnitDescriptor,
        name: str,
        args: list[str],
        env: list[str],
        mount_point: str,
        bundle: Optional[ArtifactBundleRef],
        resources: ResourceSpec,
    ) -> WorkloadDescriptor:
        env_vars = []
        for entry in env:
            var = EnvVar.parse(entry)
            logger.debug("create workload %s: add env %s", name, var.name)
            env_vars.append(var)

        return WorkloadDescriptor(
            kind=WorkloadKind.POD,
            name=name,
            namespace=self.namespace,
            image=self.image_for(descriptor),
            container_name=CONTAINER_NAME_PREFIX + descriptor.name,
            args=list(args),
            env=env_vars,
            labels=workload_labels(self.owner_id, descriptor, name),
            mount_point=mount_point,
            bundle=bundle,
            resources=resources,
            affinity_owner=self.owner_id,
        )

    def _teardown(self, descriptor: UnitDescriptor, name: str) -> None:
        instances = self._client.list_workloads(self.selector_for(descriptor))
        for instance in instances:
            logger.info("Removing unit workload %s", instance.name)
            self._client.delete_workload(instance.name, grace_period_seconds=0)
            if self.registry.release(instance.name):
                logger.debug("Released exit handle for %s", instance.name)

        # The workload may have gone away on its own; its handle is stale either way.
        if self.registry.release(name):
            logger.debug("Released exit handle for %s", name)

        try:
            self._client.delete_artifact_bundle(name)
        except OrchestratorError as e:
            if not e.is_not_found:
                raise
            logger.debug("No artifact bundle to remove for %s", name)
