"""Tests for soundtouch_transport."""
