"""Test infrastructure: device and host doubles, NOT actual tests."""
