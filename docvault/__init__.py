"""DocVault: a small signed-in-to-edit document manager."""

from docvault.server import create_app

__version__ = "0.1.0"

__all__ = ["create_app", "__version__"]
