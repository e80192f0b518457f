"""
Utility modules for the contract pipeline
"""
from .config_loader import Settings, load_settings, mask_secret

__all__ = [
    'Settings',
    'load_settings',
    'mask_secret',
]
