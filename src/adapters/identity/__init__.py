"""Identity adapters - Certificate identity resolution."""

from .certificate import CertificateHeaderResolver, common_name

__all__ = ["CertificateHeaderResolver", "common_name"]
