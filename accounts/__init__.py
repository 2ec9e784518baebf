"""accounts/ -- Role and user records and their SQL persistence.

Layer rule: accounts/ imports only stdlib + third-party libraries.
api/ imports from accounts/, not the other way around. auth/ never imports
accounts/ -- it depends on the store through a structural Protocol.
"""
