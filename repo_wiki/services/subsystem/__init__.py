"""Subsystem stages: vector clustering and labeling."""
