"""CDK application for the Service Catalog launch infrastructure."""
