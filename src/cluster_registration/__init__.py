"""Register external clusters with a managed control plane and reconcile them."""

__version__ = "0.1.0"
