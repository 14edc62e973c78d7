"""Application layer – event sourcing core and pagination primitives."""
