"""
Tax/financial documents → canonical fields → cross-checks → review gate.

A deterministic, testable core that maps OCR output of tax forms onto
canonical field paths, reconciles the same fact across the documents of a
deal, and decides whether the extracted data may proceed automatically or
must be queued for human review.
"""

__version__ = "0.1.0"
