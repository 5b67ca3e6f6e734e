"""Operator-facing console interface."""
