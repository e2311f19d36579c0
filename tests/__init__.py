"""Tests for nixwizard."""
