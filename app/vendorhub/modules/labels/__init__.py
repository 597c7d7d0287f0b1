"""
Label requests module.

Sellers request a shipping label for a pending SHIP commitment; admins process
the request (approve/reject/fulfill) and may attach label files from storage.
"""
