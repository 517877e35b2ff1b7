"""
Inventory Insights Engine

Forecasts, anomalies, recommendations and question answering over
small-business inventory and sales data.
"""

__version__ = "1.0.0"
