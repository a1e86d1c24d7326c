"""
Doughboard - profit dashboard for Shopify stores
"""
__version__ = "1.0.0"
