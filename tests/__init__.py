"""
Test suite for the word classification experiment runtime.

This package contains unit tests and integration tests for:
- Stimulus parsing and validation
- Latency measurement and trial recording
- Word-list loading with retry and backoff
- Results submission
- The session phase state machine
- Console presentation and the development stub services
"""
