"""RAMS - Report Approval Management System.

Inquiry response reports authored by handlers, reviewed by approvers,
and printed or archived as PDF once approved.
"""

__version__ = "1.0.0"
