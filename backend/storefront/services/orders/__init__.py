"""
Order placement and lifecycle workflow.
"""
