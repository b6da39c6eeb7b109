"""
Wait for Terraform Cloud workspace runs to settle.
"""

__version__ = "1.0.0"
