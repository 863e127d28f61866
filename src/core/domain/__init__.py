"""Modelos y entidades del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2) y la
  aritmética de calendario.
- El dominio no conoce HTTP, CLI, ni SDKs: solo conceptos del problema.
"""
