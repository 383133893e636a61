"""
Test suite for eventvault application.
"""
