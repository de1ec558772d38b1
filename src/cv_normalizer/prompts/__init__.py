"""Prompt construction for CV parsing."""
