"""Printable appointment report for the clinic.

Lays out appointment records as a paginated PDF table whose row heights are
measured from wrapped text, so that no row is ever split across pages.
"""
