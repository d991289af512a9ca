"""Adapters connecting the exporter core to logging, HTTP and the tail process."""
