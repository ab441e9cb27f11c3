"""Tests for the workspace migration step."""
import shutil

import pytest

from labprep.core.errors import ProvisionError
from labprep.services.workspace import WorkspaceMigrator


@pytest.fixture
def home(ctx):
    home = ctx.home
    home.mkdir()
    return home


class TestActivateEnvFiles:
    def test_copies_examples(self, ctx):
        project = ctx.config.project_dir

        activated = WorkspaceMigrator(ctx).activate_env_files()

        assert activated == [
            project / "n8n" / ".env",
            project / "watchtower" / ".env",
            project / "caddy" / "caddyfile" / "Caddyfile",
        ]
        assert (project / "n8n" / ".env").read_text() == "N8N_PORT=5678\n"

    def test_existing_active_file_is_reset(self, ctx):
        env = ctx.config.project_dir / "n8n" / ".env"
        env.write_text("N8N_PORT=9999\n")

        WorkspaceMigrator(ctx).activate_env_files()

        assert env.read_text() == "N8N_PORT=5678\n"

    def test_missing_example_is_fatal(self, ctx):
        (ctx.config.project_dir / "watchtower" / "example.env").unlink()

        with pytest.raises(ProvisionError) as exc_info:
            WorkspaceMigrator(ctx).activate_env_files()

        assert "watchtower/example.env" in str(exc_info.value)


class TestWorkspaceMigrator:
    def test_full_run(self, ctx, home, runner):
        source = ctx.config.project_dir

        destination = WorkspaceMigrator(ctx).run()

        assert destination == home / "homelab"
        assert not source.exists()
        assert (destination / "n8n" / ".env").exists()
        assert (destination / "caddy" / "caddyfile" / "Caddyfile").exists()
        assert (home / ".config").is_dir()
        assert runner.argvs == [
            ["chown", "-R", "bob-1:bob-1", str(home / "homelab")],
            ["chown", "-R", "bob-1:bob-1", str(home / ".config")],
        ]

    def test_destination_exists(self, ctx, home):
        (home / "homelab").mkdir()

        with pytest.raises(ProvisionError):
            WorkspaceMigrator(ctx).relocate_project()

        assert ctx.config.project_dir.exists()

    def test_missing_project_dir(self, ctx, home, tmp_path):
        ctx.config.project_dir = tmp_path / "nowhere"

        with pytest.raises(ProvisionError) as exc_info:
            WorkspaceMigrator(ctx).relocate_project()

        assert "Project directory not found" in str(exc_info.value)

    def test_config_dir_already_present(self, ctx, home):
        (home / ".config").mkdir()

        with pytest.raises(ProvisionError):
            WorkspaceMigrator(ctx).create_config_dir()

    def test_dry_run_moves_nothing(self, ctx, home, fake_runner_cls):
        ctx.runner = fake_runner_cls(mock=True)

        WorkspaceMigrator(ctx).run()

        assert ctx.config.project_dir.exists()
        assert not (ctx.config.project_dir / "n8n" / ".env").exists()
        assert not (home / ".config").exists()

    def test_failed_move_is_provision_error(self, ctx, home, monkeypatch):
        def no_space(src, dst):
            raise OSError(28, "No space left on device")

        monkeypatch.setattr(shutil, "move", no_space)

        with pytest.raises(ProvisionError) as exc_info:
            WorkspaceMigrator(ctx).relocate_project()

        assert "Cannot move" in str(exc_info.value)
        assert ctx.config.project_dir.exists()
