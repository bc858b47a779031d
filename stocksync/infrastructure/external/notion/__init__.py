"""
Integracion con la API de Notion (bases de datos y paginas).

Este paquete solo hace I/O HTTP y define la configuracion de mapeo por
tabla; la logica de sync vive en application/services.
"""
