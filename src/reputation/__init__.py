"""Reputation and ranking engine for the tutoring platform."""
