"""Infrastructure adapters: stores and data sources."""
