"""
Deterministic square-footage engine.

Pure Python math, no I/O. Given raw slab dimensions in inches and a
customer type, produce final dimensions, billable square feet, and the
human-readable trail that justifies them.
"""
