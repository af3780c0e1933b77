"""
Sample command package scanned by the registry discovery tests.
"""
