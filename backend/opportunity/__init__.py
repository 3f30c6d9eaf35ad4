"""Opportunity job-search backend."""
