"""Parsing and input-validation helpers shared by the filing services."""
