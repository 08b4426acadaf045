"""
mail/ -- Outbound email: HTML templates and the background dispatcher.

Layer rule: mail/ imports only stdlib, third-party libraries, and core/.
"""
