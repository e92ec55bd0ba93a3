"""
ZKL CLI Commands Package
"""

__all__ = ['access', 'network']
