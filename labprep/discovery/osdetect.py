"""Distribution detection and package-manager profile selection."""
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Tuple

from labprep.core.errors import UnsupportedOSError


@dataclass(frozen=True)
class Distribution:
    """Identity read from os-release."""
    id: str
    version: str = ""


@dataclass(frozen=True)
class PackageProfile:
    """Package-manager commands and host conventions for one OS family."""
    family: str
    manager: str
    update_cmd: Tuple[str, ...]
    install_cmd: Tuple[str, ...]
    admin_group: str
    ssh_service: str
    update_ok_codes: Tuple[int, ...] = (0,)
    install_env: Dict[str, str] = field(default_factory=dict, hash=False)


APT_PROFILE = PackageProfile(
    family="debian",
    manager="apt-get",
    update_cmd=("apt-get", "update", "-qq"),
    install_cmd=("apt-get", "install", "-yq"),
    install_env={"DEBIAN_FRONTEND": "noninteractive"},
    admin_group="sudo",
    ssh_service="ssh",
)

# dnf check-update exits 100 when updates are available
DNF_PROFILE = PackageProfile(
    family="amazon",
    manager="dnf",
    update_cmd=("dnf", "check-update", "-q"),
    install_cmd=("dnf", "install", "-yq"),
    update_ok_codes=(0, 100),
    admin_group="wheel",
    ssh_service="sshd",
)

PROFILES: Dict[str, PackageProfile] = {
    "ubuntu": APT_PROFILE,
    "debian": APT_PROFILE,
    "amazon": DNF_PROFILE,
    "amzn": DNF_PROFILE,
}

DISPLAY_NAMES = {
    "ubuntu": "Ubuntu",
    "debian": "Debian",
    "amazon": "Amazon Linux",
    "amzn": "Amazon Linux",
}


def parse_os_release(text: str) -> Dict[str, str]:
    """Parse os-release KEY=value lines, unquoting values."""
    info: Dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, value = line.split("=", 1)
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
            value = value[1:-1]
        info[key.strip()] = value
    return info


def detect_distribution(os_release: Path) -> Distribution:
    """Read the distribution identity.

    Raises:
        UnsupportedOSError: If the identity file does not exist
    """
    path = Path(os_release)
    if not path.is_file():
        raise UnsupportedOSError(f"Cannot detect OS. {path} not found.")

    info = parse_os_release(path.read_text())
    return Distribution(id=info.get("ID", ""), version=info.get("VERSION_ID", ""))


def select_profile(distribution: Distribution) -> PackageProfile:
    """Map a distribution to its package-manager profile.

    Raises:
        UnsupportedOSError: If the distribution is not in PROFILES
    """
    profile = PROFILES.get(distribution.id)
    if profile is None:
        raise UnsupportedOSError(
            f"Unsupported Linux distribution: {distribution.id} {distribution.version}".rstrip()
        )
    return profile


def describe(distribution: Distribution, profile: PackageProfile) -> str:
    """Return the banner printed after detection."""
    name = DISPLAY_NAMES.get(distribution.id, distribution.id)
    return f"Detected {name} ({distribution.version}). Using {profile.manager}."
