"""Decisioning agents: master governor and worker steps."""
