"""Clients bound to Firebase apps."""
