"""HTTP command/query interface."""
