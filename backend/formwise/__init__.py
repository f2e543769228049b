"""Formwise backend: usage quota accounting for OCR, analysis, and form generation."""
