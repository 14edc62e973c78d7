"""Kernel – errors, identifiers and time primitives shared by every layer."""
