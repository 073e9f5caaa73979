"""
Strong-Motion Processing
========================
V1 to V2 correction of strong-motion accelerograms.
"""

__version__ = "0.4.0"
