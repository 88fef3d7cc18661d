"""Guidant: mentorship session booking and lifecycle service."""
