"""Tests for the glucose model implementations in `MDISimulator.models`."""
