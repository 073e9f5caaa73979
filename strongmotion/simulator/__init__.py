"""Synthetic accelerograms for demos and tests."""
