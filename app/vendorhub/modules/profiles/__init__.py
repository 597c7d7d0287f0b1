"""
Profiles module.

Self-service profile and password changes, admin user management (create,
list, role changes synced to the auth provider) and Discord account linking.
"""
