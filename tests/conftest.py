"""Shared test fixtures for Labprep tests."""
import os
from pathlib import Path

import pytest

from labprep.core.config import PrepConfig
from labprep.core.context import ProvisionContext
from labprep.core.credentials import ScriptedInput
from labprep.core.errors import CommandError
from labprep.core.runner import CommandResult
from labprep.discovery.osdetect import APT_PROFILE, Distribution


SSHD_CONFIG = """\
Include /etc/ssh/sshd_config.d/*.conf

#Port 22
#PermitRootLogin prohibit-password
#PubkeyAuthentication yes

# To disable tunneled clear text passwords, change to no here!
#PasswordAuthentication yes
#PermitEmptyPasswords no

UsePAM yes

X11Forwarding yes
PrintMotd no
"""


class FakeRunner:
    """Records commands instead of running them.

    failures maps a command name (argv[0] basename) to the exit code it
    should return; side_effects maps a command name to a callable run
    with the argv, e.g. to create the home directory useradd would make.
    """

    def __init__(self, failures=None, side_effects=None, mock=False):
        self.mock = mock
        self.calls = []
        self.failures = dict(failures or {})
        self.side_effects = dict(side_effects or {})

    def run(self, argv, *, input_text=None, env=None, ok_codes=(0,)):
        argv = [str(a) for a in argv]
        self.calls.append({"argv": argv, "input": input_text, "env": env})
        name = os.path.basename(argv[0])

        returncode = self.failures.get(name, 0)
        if returncode not in tuple(ok_codes):
            raise CommandError(argv, returncode, f"{name} failed")

        if name in self.side_effects:
            self.side_effects[name](argv)
        return CommandResult(argv=argv, returncode=returncode)

    @property
    def argvs(self):
        return [call["argv"] for call in self.calls]

    def commands(self, name):
        return [argv for argv in self.argvs if os.path.basename(argv[0]) == name]


@pytest.fixture
def host(tmp_path):
    """A fake host filesystem laid out like a fresh Ubuntu VM."""
    etc = tmp_path / "etc"
    (etc / "ssh" / "sshd_config.d").mkdir(parents=True)
    (etc / "os-release").write_text(
        'NAME="Ubuntu"\nID=ubuntu\nVERSION_ID="22.04"\nPRETTY_NAME="Ubuntu 22.04.4 LTS"\n'
    )
    (etc / "shells").write_text("/bin/sh\n/bin/bash\n")
    (etc / "ssh" / "sshd_config").write_text(SSHD_CONFIG)
    (etc / "ssh" / "sshd_config.d" / "50-cloud-init.conf").write_text("PasswordAuthentication yes\n")

    root_ssh = tmp_path / "root" / ".ssh"
    root_ssh.mkdir(parents=True)
    (root_ssh / "authorized_keys").write_text("ssh-ed25519 AAAAC3Nza admin@laptop\n")

    project = tmp_path / "root" / "homelab"
    (project / "n8n").mkdir(parents=True)
    (project / "watchtower").mkdir()
    (project / "caddy" / "caddyfile").mkdir(parents=True)
    (project / "n8n" / "example.env").write_text("N8N_PORT=5678\n")
    (project / "watchtower" / "example.env").write_text("WATCHTOWER_CLEANUP=true\n")
    (project / "caddy" / "caddyfile" / "Caddyfile.example").write_text(":80 {\n}\n")

    (tmp_path / "home").mkdir()

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    zsh = bin_dir / "zsh"
    zsh.write_text("#!/bin/sh\n")
    zsh.chmod(0o755)

    return tmp_path


@pytest.fixture
def prep_config(host):
    """PrepConfig pointing every path into the fake host."""
    return PrepConfig(
        os_release=host / "etc" / "os-release",
        shells_file=host / "etc" / "shells",
        sshd_config=host / "etc" / "ssh" / "sshd_config",
        sshd_drop_in=host / "etc" / "ssh" / "sshd_config.d" / "50-cloud-init.conf",
        sshd_binary=Path("/usr/sbin/sshd"),
        home_root=host / "home",
        admin_authorized_keys=host / "root" / ".ssh" / "authorized_keys",
        project_dir=host / "root" / "homelab",
        lock_file=host / "run" / "prep.lock",
    )


@pytest.fixture
def runner(prep_config):
    """FakeRunner whose useradd creates the home directory."""
    def make_home(argv):
        (prep_config.home_root / argv[-1]).mkdir()

    return FakeRunner(side_effects={"useradd": make_home})


@pytest.fixture
def ctx(prep_config, runner, host):
    """Context as it looks after detection, install and credential steps."""
    return ProvisionContext(
        config=prep_config,
        runner=runner,
        input_source=ScriptedInput([]),
        distribution=Distribution("ubuntu", "22.04"),
        profile=APT_PROFILE,
        shell_bin=str(host / "bin" / "zsh"),
        username="bob-1",
        password="secret",
    )


@pytest.fixture
def fake_runner_cls():
    """The FakeRunner class, for tests that need custom failures."""
    return FakeRunner
