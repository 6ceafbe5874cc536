"""Infrastructure adapters: database, Redis, Magento."""
