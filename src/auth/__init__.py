"""
Authentication module for the blood donation system.

This module provides authentication and authorization functionality including:
- Login with email and password
- JWT access/refresh token pairs with transparent refresh
- Role-based access control
- Facility staff position checks
"""
