"""
Layers package - Link endpoint and the byte pipe beneath it.

Contains implementations for:
- Physical Layer (delay, Gilbert-Elliot channel, loss)
- Data-Link Layer (framing, deframing, stop-and-wait)
"""

from .physical_layer import PhysicalLayer
from .link_layer import DataLinkLayer

__all__ = [
    'PhysicalLayer',
    'DataLinkLayer'
]
