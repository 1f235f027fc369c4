"""HTTP service mode for axumdoc."""
