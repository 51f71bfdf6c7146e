"""Unit tests for LingoFlow.

This package contains test modules for all components of the LingoFlow application.
Tests use pytest with asyncio support and replace storage, network and speech backends with
in-memory fakes or monkeypatched doubles.
"""
