"""
CLI interface for kubeunits.

Provides commands to initialize configuration and to start, stop and
inspect units on the cluster. With --dry-run the commands run against an
in-memory orchestrator and print what would have been submitted.
"""

import json
import sys
from pathlib import Path

import click

from kubeunits import __version__


@click.group()
@click.version_option(version=__version__, prog_name="kubeunits")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Path to config.yaml (default: $KUBEUNITS_HOME/config.yaml)",
)
@click.option("--dry-run", is_flag=True, help="Use an in-memory orchestrator instead of the cluster")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, config_path, dry_run: bool, verbose: bool):
    """
    kubeunits - run short-lived unit workloads on Kubernetes.
    """
    from kubeunits.config import load_config
    from kubeunits.logging_utils import setup_logging

    ctx.ensure_object(dict)
    ctx.obj["dry_run"] = dry_run
    try:
        config = load_config(config_path)
        ctx.obj["config"] = config
        setup_logging("DEBUG" if verbose else config.log_level, config.log_format)
    except Exception as e:
        # init does not need a config; other commands check ctx.obj.get("config")
        ctx.obj["config_error"] = str(e)
        setup_logging("DEBUG" if verbose else "WARNING")


def _require_config(ctx):
    if "config" not in ctx.obj:
        click.echo(f"✗ Config not loaded: {ctx.obj.get('config_error', 'Unknown error')}", err=True)
        click.echo("Run 'kubeunits init' to create a configuration file.", err=True)
        raise SystemExit(1)
    return ctx.obj["config"]


def _get_controller(ctx):
    from kubeunits.clients import InMemoryOrchestratorClient
    from kubeunits.controller import LifecycleController
    from kubeunits.errors import KubeunitsError

    config = _require_config(ctx)
    if ctx.obj.get("dry_run"):
        client = InMemoryOrchestratorClient(namespace=config.resolved_namespace())
        return LifecycleController.from_config(config, client=client)
    try:
        return LifecycleController.from_config(config)
    except KubeunitsError as e:
        _fail(e)


def _fail(error: Exception):
    click.echo(f"✗ {error}", err=True)
    raise SystemExit(1)


@main.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing configuration")
def init(force: bool):
    """Initialize kubeunits configuration."""
    from kubeunits.config import get_kubeunits_home
    import yaml

    home = get_kubeunits_home()
    if not home.exists():
        home.mkdir(parents=True)

    cfg_path = home / "config.yaml"
    if cfg_path.exists() and not force:
        click.echo(f"Config already exists at {cfg_path}. Use --force to overwrite.", err=True)
        raise SystemExit(1)

    default_cfg = {
        "owner_id": "peer0",
        "namespace": "default",
        "kubernetes_enabled": True,
        "registry_namespace": "hyperledger",
        "registry_prefix": "cc",
        "name_prefix": "cc",
        "limits_cpu": None,
        "limits_memory": None,
        "requests_cpu": None,
        "requests_memory": None,
        "env_file": str(home / ".env"),
        "log_level": "INFO",
        "log_format": "pretty",
    }
    cfg_path.write_text(yaml.safe_dump(default_cfg, sort_keys=False))

    env_path = home / ".env"
    if not env_path.exists():
        env_path.write_text("# KUBEUNITS_NAMESPACE=...\n# KUBEUNITS_OWNER_ID=...\n")

    click.echo(f"Initialized kubeunits config at {cfg_path}")


@main.command("name")
@click.argument("name")
@click.argument("version")
@click.option("--owner", default=None, help="Owner id (default: owner_id from config)")
@click.pass_context
def show_name(ctx, name: str, version: str, owner: str | None):
    """Print the workload name and image for a unit."""
    from kubeunits.naming import derive_name, image_name
    from kubeunits.schemas import UnitDescriptor

    config = ctx.obj.get("config")
    unit = UnitDescriptor(name, version)
    owner_id = owner if owner is not None else (config.owner_id if config else "")
    prefix = config.name_prefix if config else "cc"

    click.echo(derive_name(owner_id, unit, prefix=prefix))
    if config:
        click.echo(image_name(unit, config.registry_namespace, config.registry_prefix))


@main.command("start")
@click.argument("name")
@click.argument("version")
@click.option("--arg", "args", multiple=True, help="Container argument (repeatable)")
@click.option("--env", "env", multiple=True, help="KEY=VALUE environment entry (repeatable)")
@click.option(
    "--file",
    "files",
    multiple=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="File to mount into the unit (repeatable)",
)
@click.pass_context
def start(ctx, name: str, version: str, args, env, files):
    """
    Start (or restart) a unit.

    Examples:

        kubeunits start mycc 1.0 --arg chaincode --env CORE_PEER_ID=peer0

        kubeunits --dry-run start mycc 1.0 --file ./certs/tls.crt
    """
    from kubeunits.errors import KubeunitsError
    from kubeunits.schemas import UnitDescriptor

    controller = _get_controller(ctx)
    unit = UnitDescriptor(name, version)
    payload = {str(path.resolve()): path.read_bytes() for path in files}

    try:
        handle = controller.start(unit, args=list(args), env=list(env), files=payload)
    except KubeunitsError as e:
        _fail(e)

    if ctx.obj.get("dry_run"):
        submitted = controller.client.workloads[handle.name]
        click.echo(json.dumps(submitted.to_dict(), indent=2))
    click.echo(f"✓ Started {handle.name}")


@main.command("stop")
@click.argument("name")
@click.argument("version")
@click.option("--keep", is_flag=True, help="Leave the workload in place")
@click.pass_context
def stop(ctx, name: str, version: str, keep: bool):
    """Stop every running instance of a unit."""
    from kubeunits.errors import KubeunitsError
    from kubeunits.schemas import StopOptions, UnitDescriptor

    controller = _get_controller(ctx)
    try:
        controller.stop(UnitDescriptor(name, version), StopOptions(remove=not keep))
    except KubeunitsError as e:
        _fail(e)
    click.echo(f"✓ Stopped {controller.name_for(UnitDescriptor(name, version))}")


@main.command("status")
@click.argument("name")
@click.argument("version")
@click.pass_context
def status(ctx, name: str, version: str):
    """List running instances of a unit."""
    from kubeunits.errors import KubeunitsError
    from kubeunits.schemas import UnitDescriptor

    controller = _get_controller(ctx)
    try:
        instances = controller.running_instances(UnitDescriptor(name, version))
    except KubeunitsError as e:
        _fail(e)

    if not instances:
        click.echo("No running instances")
        return
    for instance in instances:
        click.echo(f"  {instance.name}  {instance.namespace}  {instance.uid or '-'}")


@main.command("health")
@click.pass_context
def health(ctx):
    """Run the controller health check."""
    controller = _get_controller(ctx)
    controller.health_check()
    click.echo("✓ healthy")


@main.command("in-cluster")
@click.pass_context
def in_cluster_cmd(ctx):
    """Exit 0 if the controller can reach the cluster from inside a pod."""
    from kubeunits.clients.kubernetes import in_cluster

    config = _require_config(ctx)
    if in_cluster(config):
        click.echo("✓ in cluster")
        return
    click.echo("✗ not in cluster", err=True)
    sys.exit(1)


if __name__ == "__main__":
    main()
