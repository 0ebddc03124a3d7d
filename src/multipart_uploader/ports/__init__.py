"""Ports: contracts between the uploader and its callers or collaborators."""
