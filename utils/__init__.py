"""Shared configuration, state and helpers."""
