"""Test suite for the bitmap toolkit."""
