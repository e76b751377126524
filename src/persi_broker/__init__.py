"""Open Service Broker for Kubernetes persistent volume claims."""

__version__ = "0.3.0"
