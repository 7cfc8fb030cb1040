"""Questrade API access: token rotation, HTTP client and account collection."""
