# errors.py
from __future__ import annotations


class DashboardError(Exception):
    """Error base del dashboard."""


class NetworkError(DashboardError):
    """La petición HTTP falló o devolvió un estado no exitoso."""


class DataError(DashboardError):
    """El payload recibido no tiene el formato esperado."""
