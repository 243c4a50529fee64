"""
Infrastructure Layer

Provider clients, persistence and community reporting.
"""
