"""Inspection of the compose stacks shipped in the project directory.

Each stack is a subdirectory with a docker-compose.yaml. The status
report shows its services, the active env/config files the workspace
migrator creates, and the secret files the tailscale sidecars read.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import yaml

from labprep.core.errors import ProvisionError

COMPOSE_FILENAMES = ("docker-compose.yaml", "docker-compose.yml", "compose.yaml")


@dataclass
class StackInfo:
    """Summary of one compose stack."""
    name: str
    compose_file: Path
    services: List[str] = field(default_factory=list)
    images: Dict[str, str] = field(default_factory=dict)
    active_files: Dict[str, bool] = field(default_factory=dict)  # relative path -> exists
    secret_files: Dict[str, bool] = field(default_factory=dict)  # path -> exists

    @property
    def ready(self) -> bool:
        """True when every active file and secret file is in place."""
        return all(self.active_files.values()) and all(self.secret_files.values())


def _find_compose_file(stack_dir: Path) -> Optional[Path]:
    for name in COMPOSE_FILENAMES:
        candidate = stack_dir / name
        if candidate.is_file():
            return candidate
    return None


def load_compose(path: Path) -> dict:
    """Parse a compose file.

    Raises:
        ProvisionError: If the file is not valid YAML or has no services
    """
    try:
        compose = yaml.safe_load(Path(path).read_text())
    except yaml.YAMLError as e:
        raise ProvisionError(f"Invalid compose file {path}: {e}") from e

    if not isinstance(compose, dict) or not compose.get('services'):
        raise ProvisionError(f"Invalid compose file {path}: no services section found")
    return compose


def _secret_paths(compose: dict, stack_dir: Path) -> List[Path]:
    paths = []
    for secret in (compose.get('secrets') or {}).values():
        if isinstance(secret, dict) and secret.get('file'):
            path = Path(os.path.expanduser(str(secret['file'])))
            paths.append(path if path.is_absolute() else stack_dir / path)
    return paths


def inspect_stack(
    stack_dir: Path,
    project_dir: Path,
    env_files: Sequence[Tuple[str, str]] = (),
) -> Optional[StackInfo]:
    """Build a StackInfo for stack_dir, or None if it has no compose file."""
    compose_file = _find_compose_file(stack_dir)
    if compose_file is None:
        return None

    compose = load_compose(compose_file)
    info = StackInfo(name=stack_dir.name, compose_file=compose_file)

    for service_name, service in compose['services'].items():
        info.services.append(service_name)
        if isinstance(service, dict) and service.get('image'):
            info.images[service_name] = str(service['image'])

    prefix = f"{stack_dir.name}/"
    for _, active in env_files:
        if active.startswith(prefix):
            info.active_files[active] = (project_dir / active).is_file()

    for secret in _secret_paths(compose, stack_dir):
        info.secret_files[str(secret)] = secret.is_file()

    return info


def discover_stacks(
    project_dir: Path,
    env_files: Sequence[Tuple[str, str]] = (),
) -> List[StackInfo]:
    """Return every compose stack directly under project_dir, sorted by name."""
    project_dir = Path(project_dir)
    if not project_dir.is_dir():
        raise ProvisionError(f"Project directory not found: {project_dir}")

    stacks = []
    for child in sorted(project_dir.iterdir()):
        if not child.is_dir():
            continue
        info = inspect_stack(child, project_dir, env_files)
        if info is not None:
            stacks.append(info)
    return stacks
