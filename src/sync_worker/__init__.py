"""Celery worker importing Magento orders."""
