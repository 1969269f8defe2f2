"""Daycare System package.

Feature modules (children, enrollments, attendance, billing, payments, ...)
with a thin Flask controller layer over service/repository layers.
"""
