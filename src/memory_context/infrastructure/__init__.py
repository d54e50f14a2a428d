"""Adapters for external embedding providers and memory stores."""
