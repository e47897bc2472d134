"""Command line interface for envshelter."""
