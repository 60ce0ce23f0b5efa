"""Presentation helpers for the dnsname CLI."""
