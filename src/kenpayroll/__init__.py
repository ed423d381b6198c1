"""Kenyan payroll deductions and leave workflow."""
