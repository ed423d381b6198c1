"""Statutory rate configuration: schema, loader and contributor validator."""
