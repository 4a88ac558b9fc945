"""Shared utilities: normalization, parallel execution, stats, rate limiting."""
