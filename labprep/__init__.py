"""Labprep - prepare a fresh VM for a self-hosted homelab stack."""

__version__ = "0.1.0"
