"""Configuration, security, errors and shared infrastructure."""
