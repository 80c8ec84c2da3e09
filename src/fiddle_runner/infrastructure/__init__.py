"""
Infrastructure Layer

Filesystem, process and logging adapters implementing the domain ports.
"""
