"""Deployment selection, filtering and target-group aggregation."""
