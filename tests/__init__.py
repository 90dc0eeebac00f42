"""Tests for the HA Presence service."""
