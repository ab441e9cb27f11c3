"""Moves the homelab project into the new account's home.

Active env/config files are always reset from their examples: an existing
`.env` or `Caddyfile` is overwritten, never merged.
"""
import shutil
from pathlib import Path
from typing import List

from labprep.core.context import ProvisionContext
from labprep.core.errors import ProvisionError
from labprep.core.logger import get_logger

logger = get_logger(__name__)


class WorkspaceMigrator:
    """Activates example configs and relocates the project directory."""

    def __init__(self, ctx: ProvisionContext):
        self.ctx = ctx

    def run(self) -> Path:
        self.activate_env_files()
        destination = self.relocate_project()
        self.create_config_dir()
        return destination

    def activate_env_files(self) -> List[Path]:
        """Copy each example file over its active counterpart."""
        project_dir = Path(self.ctx.config.project_dir)
        activated = []

        for example, active in self.ctx.config.env_files:
            source = project_dir / example
            target = project_dir / active
            if not source.is_file():
                raise ProvisionError(f"Example file not found: {source}")

            if self.ctx.dry_run:
                logger.info(f"MOCK: Would copy {source} to {target}")
            else:
                try:
                    shutil.copyfile(source, target)
                except OSError as e:
                    raise ProvisionError(f"Cannot copy {example} to {active}: {e}") from e
                logger.info(f"Copied {example} -> {active}")
            activated.append(target)

        return activated

    def relocate_project(self) -> Path:
        """Move project_dir into the new home and hand it to the new user."""
        project_dir = Path(self.ctx.config.project_dir)
        destination = self.ctx.home / project_dir.name

        if not project_dir.is_dir():
            raise ProvisionError(f"Project directory not found: {project_dir}")
        if destination.exists():
            raise ProvisionError(f"Destination already exists: {destination}")

        if self.ctx.dry_run:
            logger.info(f"MOCK: Would move {project_dir} to {destination}")
        else:
            try:
                shutil.move(str(project_dir), str(destination))
            except OSError as e:
                raise ProvisionError(f"Cannot move {project_dir} to {destination}: {e}") from e
            logger.info(f"Moved {project_dir} to {destination}")

        self.ctx.runner.run(["chown", "-R", self.ctx.owner(), str(destination)])
        return destination

    def create_config_dir(self) -> Path:
        config_dir = self.ctx.home / self.ctx.config.config_dir_name

        if self.ctx.dry_run:
            logger.info(f"MOCK: Would create {config_dir}")
        else:
            try:
                config_dir.mkdir()
            except FileExistsError as e:
                raise ProvisionError(f"{config_dir} already exists") from e
            except OSError as e:
                raise ProvisionError(f"Cannot create {config_dir}: {e}") from e

        self.ctx.runner.run(["chown", "-R", self.ctx.owner(), str(config_dir)])
        return config_dir
