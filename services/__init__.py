"""Burnout risk scoring services."""
