"""Test suite for the MDISimulator library.

This package contains the unit and integration tests for the MDISimulator
library. The structure of this test package mirrors the structure of the
main `MDISimulator` package (e.g., `tests.core` for `MDISimulator.core`).

Shared stub models and objectives live in `tests.stubs`; fixtures built
on them are registered in `conftest.py`.

The `pytest` framework is used for test discovery and execution.
"""
