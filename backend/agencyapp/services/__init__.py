"""
Service layer for trials, subscriptions and clients.
"""
