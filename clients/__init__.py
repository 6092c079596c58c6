"""Clients for external collaborators (Lightning node, invoice and QR encoding)."""
