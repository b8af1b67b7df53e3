"""Service layer — account operations and the ServiceResult façade.

Services may import from domain and infrastructure layers.
They must never import from commands or output.
"""
