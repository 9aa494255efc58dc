"""
HTTP API for VeilVault
"""
