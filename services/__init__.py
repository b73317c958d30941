"""Service implementations for the address projection domain."""
