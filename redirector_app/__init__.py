"""Signed redirect links with bot filtering."""
