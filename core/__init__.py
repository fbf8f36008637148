"""Core models and services for the Service Catalog launch infrastructure."""

from .models import CatalogDefinition, PolicyDoc, PolicyStatement, load_definition

__all__ = ["CatalogDefinition", "PolicyDoc", "PolicyStatement", "load_definition"]
