"""Tests for `MDISimulator.utils`."""
