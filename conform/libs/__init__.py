"""
Libs Layer - pluggable text transforms.
"""
