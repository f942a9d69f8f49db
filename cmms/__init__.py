"""CMMS backend: reliability metrics, invoicing rules and maintenance planning."""
