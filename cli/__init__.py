"""svccat command line interface."""
