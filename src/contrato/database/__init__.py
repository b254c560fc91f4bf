"""Persistence layer for Contrato de Sangue character records."""
