"""
Command-line entry points of the coupled participants
"""
