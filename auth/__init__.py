"""auth/ -- Password hashing, signed tokens, and the login/verify service.

Layer rule: auth/ imports only stdlib + third-party libraries.
It does NOT import from api/, accounts/, or core/.
api/ imports from auth/, not the other way around.
"""
