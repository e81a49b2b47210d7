"""Magento project model and the DI plugin analysis engine"""
