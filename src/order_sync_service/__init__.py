"""Magento order import into workflow cases."""

__version__ = "1.0.0"
