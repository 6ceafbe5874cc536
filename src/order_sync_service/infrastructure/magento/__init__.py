"""Magento REST API access."""

from order_sync_service.infrastructure.magento.client import MagentoRestClient
from order_sync_service.infrastructure.magento.parser import parse_error, parse_object_list

__all__ = ["MagentoRestClient", "parse_error", "parse_object_list"]
