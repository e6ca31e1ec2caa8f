"""
Helpdesk auto-resolution service
"""
