"""Cotizador: assemblage de devis pour un distributeur de matériel électrique."""

__version__ = "1.0.0"
