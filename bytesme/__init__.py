"""Bytesme checkout core: voucher rules, applied-voucher storage and order placement."""

__version__ = "0.1.0"
