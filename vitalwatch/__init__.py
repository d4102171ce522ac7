"""Vitals threshold evaluation and alert deduplication for patient monitoring.

This package contains the clinical alerting logic and domain models,
isolated from storage and transport so it is easy to test and reason about.
"""
