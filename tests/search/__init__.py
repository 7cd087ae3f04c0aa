"""Tests for the objective function, the evaluation cache and the search strategies."""
