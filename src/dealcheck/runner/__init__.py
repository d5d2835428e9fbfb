"""
CLI runner module.

Provides commands:
- map: Project OCR key-value pairs onto canonical fields
- check: Verify a deal and evaluate the review gate
- init-config: Write a default configuration file
"""

from .main import create_cli, main, verify_deal

__all__ = [
    "create_cli",
    "main",
    "verify_deal",
]
