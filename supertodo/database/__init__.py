"""Persistence for supertodo."""
