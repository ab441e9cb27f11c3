"""Host discovery: distribution identity and package-manager profiles."""
from labprep.discovery.osdetect import (
    Distribution,
    PackageProfile,
    detect_distribution,
    select_profile,
)

__all__ = ['Distribution', 'PackageProfile', 'detect_distribution', 'select_profile']
