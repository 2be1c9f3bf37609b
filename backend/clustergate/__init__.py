"""Kubernetes cluster status and pod lifecycle gateway."""

__version__ = "1.0.0"
