"""Adapters for the external collaborators (document store, identity, blobs)."""
