"""Configuration, port allocation and compose generation."""
