"""Tests - Test suite and the example circuits it exercises."""
