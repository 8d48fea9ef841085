"""Rows, messages, filters, deduplication, checkpoints, UDP datagrams and an average-price node for a flight-data pipeline."""

__version__ = "0.1.0"