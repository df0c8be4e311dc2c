"""
Self-healing resilience pipeline for HashTracks event ingestion.

Structure fingerprinting, AI-assisted parse recovery and guarded
automated issue filing for scrape alerts.
"""
