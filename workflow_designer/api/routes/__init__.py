"""Sandbox backend routers."""
