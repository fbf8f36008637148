"""Infrastructure definitions."""
