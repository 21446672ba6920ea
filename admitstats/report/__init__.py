"""
Report rendering: plots, tables and the JSON summary.
"""
