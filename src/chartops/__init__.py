"""chartops: resolve, authenticate and install Helm charts from cluster-registered repositories."""

__version__ = "0.1.0"
