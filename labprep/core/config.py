"""Labprep runtime configuration and settings."""
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import yaml

from labprep.core.errors import ConfigError

# Default config search paths (ordered by proximity to current run)
CONFIG_PATHS = [
    "./labprep.yml",
    "/etc/labprep/labprep.yml",
]

DEFAULT_SSHD_DIRECTIVES = {
    "PasswordAuthentication": "no",
    "PermitRootLogin": "no",
    "UsePAM": "no",
}

# (example, active) pairs, relative to the project directory
DEFAULT_ENV_FILES = [
    ("n8n/example.env", "n8n/.env"),
    ("watchtower/example.env", "watchtower/.env"),
    ("caddy/caddyfile/Caddyfile.example", "caddy/caddyfile/Caddyfile"),
]

_PATH_FIELDS = (
    "os_release",
    "shells_file",
    "sshd_config",
    "sshd_drop_in",
    "sshd_binary",
    "home_root",
    "admin_authorized_keys",
    "project_dir",
    "lock_file",
)


@dataclass
class PrepConfig:
    """Host paths and tunables used by the provisioning pipeline.

    Attributes:
        os_release: Distribution identity file
        shells_file: Registry of valid login shells
        sshd_config: Main SSH daemon config, patched in place
        sshd_drop_in: Cloud-init drop-in that would override the hardening
        sshd_binary: Daemon binary used for `sshd -t`
        home_root: Parent of user home directories
        admin_authorized_keys: Keys copied into the new account
        project_dir: Homelab checkout relocated into the new home
        lock_file: Guards against concurrent runs
        shell_package: Package providing the alternate login shell
        fallback_shell: Login shell used when the alternate one is missing
        container_group: Group granting container runtime access
        sshd_directives: Ordered directive -> value pairs to enforce
        env_files: Ordered (example, active) copies inside project_dir
        config_dir_name: Config directory created in the new home
    """

    os_release: Path = Path("/etc/os-release")
    shells_file: Path = Path("/etc/shells")
    sshd_config: Path = Path("/etc/ssh/sshd_config")
    sshd_drop_in: Path = Path("/etc/ssh/sshd_config.d/50-cloud-init.conf")
    sshd_binary: Path = Path("/usr/sbin/sshd")
    home_root: Path = Path("/home")
    admin_authorized_keys: Path = Path("/root/.ssh/authorized_keys")
    project_dir: Path = field(default_factory=lambda: Path.home() / "homelab")
    lock_file: Path = Path("/var/run/labprep/prep.lock")

    shell_package: str = "zsh"
    fallback_shell: str = "/bin/bash"
    container_group: str = "docker"
    config_dir_name: str = ".config"

    sshd_directives: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_SSHD_DIRECTIVES)
    )
    env_files: List[Tuple[str, str]] = field(
        default_factory=lambda: list(DEFAULT_ENV_FILES)
    )

    def home_for(self, username: str) -> Path:
        """Return the home directory useradd creates for username."""
        return self.home_root / username

    @classmethod
    def from_env(cls, base: Optional["PrepConfig"] = None) -> "PrepConfig":
        """Apply LABPREP_* environment overrides.

        Every path attribute can be overridden with LABPREP_<NAME>, e.g.
        LABPREP_SSHD_CONFIG or LABPREP_PROJECT_DIR. String tunables use the
        same scheme (LABPREP_SHELL_PACKAGE, LABPREP_CONTAINER_GROUP, ...).
        """
        config = base or cls()
        overrides = {}
        for f in fields(cls):
            value = os.getenv(f"LABPREP_{f.name.upper()}")
            if value is None:
                continue
            if f.name in _PATH_FIELDS:
                overrides[f.name] = Path(value)
            elif f.type is str:
                overrides[f.name] = value
        return replace(config, **overrides)


def find_config(config_path: Optional[str] = None) -> Optional[Path]:
    """Locate the active labprep.yml, or None when there is none."""
    if config_path:
        return Path(config_path)

    if env_config := os.environ.get("LABPREP_CONFIG"):
        return Path(env_config)

    for path in CONFIG_PATHS:
        if Path(path).exists():
            return Path(path)

    return None


def _directive_value(value) -> str:
    # YAML reads bare no/yes as booleans
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def _parse_env_files(raw) -> List[Tuple[str, str]]:
    pairs = []
    for entry in raw:
        if isinstance(entry, dict) and {"example", "active"} <= entry.keys():
            pairs.append((str(entry["example"]), str(entry["active"])))
        elif isinstance(entry, (list, tuple)) and len(entry) == 2:
            pairs.append((str(entry[0]), str(entry[1])))
        else:
            raise ConfigError(f"Invalid env_files entry: {entry!r}")
    return pairs


def load_config(config_path: Optional[str] = None) -> PrepConfig:
    """Build a PrepConfig from labprep.yml (if any) and the environment.

    Precedence: defaults < labprep.yml < LABPREP_* environment variables.

    Raises:
        ConfigError: If an explicit file is missing, unparsable, or has
            unknown keys
    """
    path = find_config(config_path)
    config = PrepConfig()

    if path is not None:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        try:
            with open(path) as f:
                raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(f"{path} must contain a mapping at the top level")

        known = {f.name for f in fields(PrepConfig)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys in {path}: {', '.join(unknown)}")

        overrides = {}
        for key, value in raw.items():
            if key in _PATH_FIELDS:
                overrides[key] = Path(os.path.expanduser(str(value)))
            elif key == "sshd_directives":
                if not isinstance(value, dict):
                    raise ConfigError("sshd_directives must be a mapping")
                overrides[key] = {str(k): _directive_value(v) for k, v in value.items()}
            elif key == "env_files":
                overrides[key] = _parse_env_files(value or [])
            else:
                overrides[key] = str(value)
        config = replace(config, **overrides)

    return PrepConfig.from_env(config)
