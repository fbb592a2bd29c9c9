"""Bridges to external crypto and header-encoding formats."""
