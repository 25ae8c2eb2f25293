"""
Test suite for vSphere DRS VM Override.

This package contains unit tests for the override reconciliation engine,
its checks and harness, and live acceptance tests against vCenter.
"""
