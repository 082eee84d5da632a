"""
                Tableside Ordering System

Multi-tenant restaurant ordering backend: admin console API, per-table
QR ordering for customers, and a real-time kitchen board.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
