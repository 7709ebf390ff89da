"""RDAP bootstrap client: Service Registry download, caching and lookup."""

__version__ = "0.1.0"
__all__ = ["bootstrap", "cache", "models", "registries", "registry_file"]