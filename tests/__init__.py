"""
Tests for the combat log parser.
"""
