"""
Configuration management for kubeunits.

Loads ``config.yaml`` from KUBEUNITS_HOME (default ~/.config/kubeunits) and,
if the config names one, a dotenv file. The controller and resource builder
read settings through dotted keys:

    vm.kubernetes.namespace             -> namespace
    vm.kubernetes.enabled               -> kubernetes_enabled
    chaincode.registry.namespace        -> registry_namespace
    chaincode.registry.prefix           -> registry_prefix
    vm.kubernetes.container.limits.cpu  -> limits_cpu   (and friends)
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from kubeunits.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "default"

DOTTED_KEYS = {
    "vm.kubernetes.namespace": "namespace",
    "vm.kubernetes.enabled": "kubernetes_enabled",
    "chaincode.registry.namespace": "registry_namespace",
    "chaincode.registry.prefix": "registry_prefix",
    "vm.kubernetes.container.limits.cpu": "limits_cpu",
    "vm.kubernetes.container.limits.memory": "limits_memory",
    "vm.kubernetes.container.requests.cpu": "requests_cpu",
    "vm.kubernetes.container.requests.memory": "requests_memory",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}


def get_kubeunits_home() -> Path:
    """Config directory: $KUBEUNITS_HOME or ~/.config/kubeunits."""
    home = os.environ.get("KUBEUNITS_HOME")
    if home:
        return Path(home).expanduser()
    return Path("~/.config/kubeunits").expanduser()


@dataclass
class KubeunitsConfig:
    """Settings for one controller (one owner)."""
    owner_id: str = ""
    namespace: str = ""
    kubernetes_enabled: bool = False
    registry_namespace: str = ""
    registry_prefix: str = ""
    name_prefix: str = "cc"
    limits_cpu: Optional[str] = None
    limits_memory: Optional[str] = None
    requests_cpu: Optional[str] = None
    requests_memory: Optional[str] = None
    env_file: Optional[str] = None
    log_level: str = "INFO"
    log_format: str = "pretty"

    def get(self, key: str, default: Any = None) -> Any:
        """
        Look up a setting by dotted key or field name.

        Unset (None or empty) values return ``default``.
        """
        attr = DOTTED_KEYS.get(key, key)
        value = getattr(self, attr, None)
        if value is None or value == "":
            return default
        return value

    def resolved_namespace(self) -> str:
        """Target namespace, falling back to the cluster default."""
        if not self.namespace:
            logger.warning(
                "'vm.kubernetes.namespace' not set. Using default namespace %s.",
                DEFAULT_NAMESPACE,
            )
            return DEFAULT_NAMESPACE
        return self.namespace

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "KubeunitsConfig":
        """Build a config from a flat mapping, accepting dotted keys too."""
        known = {f.name for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            attr = DOTTED_KEYS.get(key, key)
            if attr not in known:
                logger.warning("Ignoring unknown config key: %s", key)
                continue
            values[attr] = value

        if "kubernetes_enabled" in values:
            values["kubernetes_enabled"] = _as_bool(values["kubernetes_enabled"])
        for attr in ("limits_cpu", "limits_memory", "requests_cpu", "requests_memory"):
            if values.get(attr) is not None:
                values[attr] = str(values[attr])
        for attr in ("owner_id", "namespace", "registry_namespace", "registry_prefix", "name_prefix"):
            if values.get(attr) is None:
                values.pop(attr, None)
            else:
                values[attr] = str(values[attr])
        return cls(**values)


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_STRINGS


def load_config(config_path: Optional[Path] = None) -> KubeunitsConfig:
    """
    Load kubeunits configuration from YAML.

    Args:
        config_path: Path to config file. Defaults to $KUBEUNITS_HOME/config.yaml

    Returns:
        KubeunitsConfig instance

    Raises:
        FileNotFoundError: If the config file does not exist
        ConfigurationError: If the file is empty or not valid YAML
    """
    if config_path is None:
        config_path = get_kubeunits_home() / "config.yaml"

    if not config_path.exists():
        raise FileNotFoundError(
            f"kubeunits config.yaml not found at {config_path}. Run `kubeunits init`."
        )

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML syntax: {e}") from e

    if not data:
        raise ConfigurationError("Configuration file is empty")
    if not isinstance(data, dict):
        raise ConfigurationError("Configuration file must contain a mapping")

    cfg = KubeunitsConfig.from_dict(data)

    if cfg.env_file:
        env_path = Path(cfg.env_file).expanduser()
        if env_path.exists():
            load_dotenv(env_path)
        else:
            logger.debug("env_file %s does not exist, skipping", env_path)

    # Environment overrides
    if os.environ.get("KUBEUNITS_NAMESPACE"):
        cfg.namespace = os.environ["KUBEUNITS_NAMESPACE"]
    if os.environ.get("KUBEUNITS_OWNER_ID"):
        cfg.owner_id = os.environ["KUBEUNITS_OWNER_ID"]

    return cfg
