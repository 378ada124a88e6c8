"""
Core package for shared utilities.

Configuration, structured logging and token handling shared by the API,
services and persistence layers.
"""
