"""Shared constants across the application."""

# Workflow activities applied to order cases
ACTIVITY_CREATE = 800  # new order case, also the "synchronize" transition
ACTIVITY_UPDATE = 801  # order fields changed
ACTIVITY_RESYNC = 802  # case stage no longer matches the shop status

# Magento paging
MAGENTO_PAGE_SIZE = 100  # Magento returns at most 100 orders per request
MAGENTO_ORDERS_PATH = "/api/rest/orders"

# Case identity
ORDER_KEY_PREFIX = "magento:order"

# Run lock
RUN_LOCK_PREFIX = "order-sync:lock"

# Default limits
DEFAULT_CASE_LIMIT = 50
MAX_CASE_LIMIT = 500

# Status messages
STATUS_TIME_FORMAT = "%d.%m.%y %H:%M:%S"
