"""
stocksync: sincronizacion de inventario entre una hoja de calculo y Notion.
"""

__version__ = "1.0.0"
