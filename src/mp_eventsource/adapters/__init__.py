"""Adapters – storage backends for the event sourcing ports."""
