"""
REST API for the resilience pipeline.
"""
