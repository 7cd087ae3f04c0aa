"""Tests for `MDISimulator.core`: data types and the simulation engine."""
