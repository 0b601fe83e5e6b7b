"""
Quote Journal Test Suite
========================

This package contains tests for the Quote Journal including:
- Unit tests for individual components
- Integration tests for the store, API and CLI working together
"""
