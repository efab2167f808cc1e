"""
Combat log cell parser

Decodes World of Warcraft combat log lines into typed event records.
"""

__version__ = "0.1.0"
__author__ = "Combat Log Parser Team"
