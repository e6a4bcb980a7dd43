"""
Adapter HTTP (FastAPI): routers, schemas, dependencias y mapeo de errores.
"""
