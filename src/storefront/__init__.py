"""Storefront bounded context: orders, order threads, customers and loyalty codes."""
