"""
Magento 2 development tools for AI agents, served over the Model Context Protocol.
"""

__version__ = "1.0.0"
