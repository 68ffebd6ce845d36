"""
Job lifecycle service with background execution and webhook notification.
"""

__version__ = "1.0.0"
