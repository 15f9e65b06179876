"""
Algorithms package for the Banker's Allocator.
Contains the safety check, the request adjudicator and shared vector helpers.
"""
