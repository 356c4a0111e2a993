"""
Product Pricing Package

Configurable product pricing for merchants: a base price plus up to four
customer-facing special fields (text, number, dropdown), each with its own
pricing rule, and validation of the merchant configuration.
"""

__version__ = "1.0.0"
