"""Scoring stages: state annotation, reconciliation, and propagation."""
