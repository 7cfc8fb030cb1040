"""Deployment configuration modules loaded through qtrack.core.utils.config."""
