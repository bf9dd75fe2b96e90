# src/services/fleet_api/__init__.py
"""
Fleet API: GPS-трекинг автопарка, реестры и аутентификация.
"""
