"""Simulador de asignación de bloques: contigua, enlazada e indexada."""

__version__ = "0.1.0"
