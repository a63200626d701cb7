"""Interfaces: guards, decorators and FastAPI integration."""
