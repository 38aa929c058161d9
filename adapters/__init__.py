"""
Adapters implementing the ports.
"""
